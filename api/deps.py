"""
Module 08 - API Dependencies

Dependency injection for the API.
Provides the served distribution, loaded once per process.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from api.errors import DistributionUnavailableError
from core.schemas.distribution import Distribution
from orchestrator.artifacts.io import ArtifactIOError, load_distribution

logger = logging.getLogger(__name__)


DEFAULT_DISTRIBUTION_PATH = "distribution.json"


def distribution_path() -> Path:
    """Path of the served distribution (MERKLEDROP_DISTRIBUTION)."""
    return Path(os.getenv("MERKLEDROP_DISTRIBUTION", DEFAULT_DISTRIBUTION_PATH))


@lru_cache(maxsize=1)
def _load_cached(path: str) -> Distribution:
    distribution = load_distribution(path)
    logger.info(
        f"Serving distribution {distribution.merkle_root} "
        f"({distribution.total_entries} claims) from {path}"
    )
    return distribution


def get_distribution() -> Distribution:
    """
    FastAPI dependency returning the served distribution.

    Raises:
        DistributionUnavailableError: File missing or invalid
    """
    path = distribution_path()
    try:
        return _load_cached(str(path))
    except FileNotFoundError:
        raise DistributionUnavailableError(f"Distribution not found: {path}") from None
    except ArtifactIOError as e:
        raise DistributionUnavailableError(f"Invalid distribution: {path}", details={"reason": str(e)}) from e


def reset_distribution_cache() -> None:
    """Forget the loaded distribution (next request reloads)."""
    _load_cached.cache_clear()
