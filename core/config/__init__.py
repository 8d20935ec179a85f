"""
Runtime Configuration Module

Provides configuration loading and management for distribution runs.
"""

from core.schemas.entries import DuplicatePolicy

from .runtime import (
    DropConfig,
    InputConfig,
    TreeConfig,
    SigningConfig,
    SelfCheckConfig,
    OutputConfig,
)

__all__ = [
    "DropConfig",
    "InputConfig",
    "TreeConfig",
    "SigningConfig",
    "SelfCheckConfig",
    "OutputConfig",
    "DuplicatePolicy",
]
