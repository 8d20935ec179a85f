"""
CLI command modules.
"""

from merkledrop_cli.commands import allowlist, generate, proof, split, verify

__all__ = ["allowlist", "generate", "proof", "split", "verify"]
