"""
Module 07 - CLI Allowlist Command

Generate a random test allowlist CSV (``address,amount``).

Usage:
    merkledrop allowlist [--out data/allowlist.csv] [--count 10] [--min 0.01] [--max 100]

Defaults can also come from ALLOWLIST_COUNT, ALLOWLIST_MIN, ALLOWLIST_MAX
and ALLOWLIST_DECIMALS.
"""

from __future__ import annotations

import logging
import sys
from argparse import Namespace

from orchestrator.artifacts.io import write_allowlist


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def allowlist_cmd(args: Namespace) -> int:
    """Execute the allowlist command."""
    try:
        path = write_allowlist(
            args.out,
            args.count,
            minimum=args.min,
            maximum=args.max,
            places=args.places,
            seed=args.seed,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    print(f"Wrote {args.count} entries to {path}")
    return EXIT_SUCCESS
