"""
Module 07 - CLI Split Command

Write one claim file per beneficiary for static hosting.

Usage:
    merkledrop split [--distribution PATH] [--out-dir dist/claims]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from orchestrator.artifacts.io import ArtifactIOError, load_distribution, split_claims


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def split_cmd(args: Namespace) -> int:
    """Execute the split command."""
    path = Path(args.distribution or args.cli_config.distribution_path)

    try:
        distribution = load_distribution(path)
    except (FileNotFoundError, ArtifactIOError) as e:
        print(f"Error loading distribution: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    written = split_claims(distribution, args.out_dir)

    if args.json:
        print(json.dumps({"out_dir": str(args.out_dir), "files": len(written)}, indent=2))
    else:
        print(f"Generated {len(written)} claim files in {args.out_dir}/")
    return EXIT_SUCCESS
