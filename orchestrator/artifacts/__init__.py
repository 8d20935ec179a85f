"""
Module 06D - Artifact IO

Reading entitlement CSVs and saving/loading distribution artifacts.
"""

from orchestrator.artifacts.io import (
    DISTRIBUTION_FILE,
    TREE_FILE,
    CLAIMS_DIR,
    ArtifactIOError,
    parse_units,
    format_units,
    load_entries_csv,
    save_distribution,
    load_distribution,
    save_tree,
    load_tree,
    split_claims,
    write_allowlist,
)

__all__ = [
    "DISTRIBUTION_FILE",
    "TREE_FILE",
    "CLAIMS_DIR",
    "ArtifactIOError",
    "parse_units",
    "format_units",
    "load_entries_csv",
    "save_distribution",
    "load_distribution",
    "save_tree",
    "load_tree",
    "split_claims",
    "write_allowlist",
]
