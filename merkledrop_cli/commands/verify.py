"""
Module 07 - CLI Verify Command

Verify a distribution.json offline:
- Structural consistency (count, indices, total, depth)
- Every claim's proof against the root
- Optionally every signature against the authority

Usage:
    merkledrop verify distribution.json [--signer 0x... --contract 0x... --chain-id 1] [--json] [--debug]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from core.schemas.errors import DropException
from core.schemas.verification import VerificationResult
from orchestrator.artifacts.io import ArtifactIOError, load_distribution
from orchestrator.verifier import verify_distribution


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of distribution verification for CLI output."""
    distribution_path: str = ""
    merkle_root: str = ""
    total_entries: int = 0
    token_total: str = ""
    signatures_checked: bool = False
    ok: bool = False
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["checks"]:
            del d["checks"]
        if not d["errors"]:
            del d["errors"]
        return d


def checks_to_dicts(result: VerificationResult) -> list[dict[str, Any]]:
    return [
        {
            "check_id": check.check_id,
            "ok": check.ok,
            "code": check.code,
            "message": check.message,
        }
        for check in result.checks
    ]


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"distribution: {summary.distribution_path}")
    print(f"merkle_root: {summary.merkle_root}")
    print(f"total_entries: {summary.total_entries}")
    print(f"token_total: {summary.token_total}")
    print(f"signatures_checked: {str(summary.signatures_checked).lower()}")
    print(f"ok: {str(summary.ok).lower()}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")

    if summary.checks:
        passed = sum(1 for c in summary.checks if c["ok"])
        failed = len(summary.checks) - passed
        print(f"\nchecks: {passed} passed, {failed} failed")
        for check in summary.checks[:20]:
            status = "✓" if check["ok"] else "✗"
            print(f"  {status} {check['check_id']}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    path = Path(args.distribution or args.cli_config.distribution_path)
    output_json = args.json or args.cli_config.default_output_format == "json"
    debug = args.debug

    if not path.exists():
        print(f"Error: Distribution not found: {path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        distribution = load_distribution(path)
    except ArtifactIOError as e:
        print(f"Error loading distribution: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        result = verify_distribution(
            distribution,
            signer=args.signer,
            verifying_contract=args.contract,
            chain_id=args.chain_id,
        )
    except (ValueError, DropException) as e:
        if debug:
            raise
        print(f"Error verifying distribution: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = VerifySummary(
        distribution_path=str(path),
        merkle_root=distribution.merkle_root,
        total_entries=distribution.total_entries,
        token_total=distribution.token_total,
        signatures_checked=args.signer is not None,
        ok=result.ok,
        errors=result.get_error_messages(),
    )
    if debug:
        summary.checks = checks_to_dicts(result)

    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    if result.ok:
        logger.info("Verification passed")
        return EXIT_SUCCESS
    logger.warning("Verification failed")
    return EXIT_VERIFICATION_FAILED
