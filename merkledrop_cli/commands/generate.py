"""
Module 07 - CLI Generate Command

Build distribution.json (and tree.json) from an entitlement CSV.

The authority key is read from the environment variable named by
``signing.key_env`` (PRIVATE_KEY by default, .env honoured) and is held for
the signing batch only. A run without a signing domain fails unless
``--unsigned`` asks for a dry run.

Usage:
    merkledrop generate --input data/allowlist.csv --contract 0x... --chain-id 1
    merkledrop generate --input data/allowlist.csv --unsigned --out-dir build
"""

from __future__ import annotations

import json
import logging
import os
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from core.config import DropConfig, DuplicatePolicy
from core.crypto.signatures import authority_key
from core.schemas.errors import DropException, SelfCheckException
from orchestrator.artifacts.io import (
    DISTRIBUTION_FILE,
    TREE_FILE,
    load_entries_csv,
    save_distribution,
    save_tree,
)
from orchestrator.pipeline import DistributionPipeline, GenerationResult

from merkledrop_cli.config import CLIConfig


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class GenerateSummary:
    """Summary of a generation run for CLI output."""
    merkle_root: str = ""
    token_total: str = ""
    total_entries: int = 0
    tree_depth: int = 0
    signer: str | None = None
    saved_to: str | None = None
    tree_saved_to: str | None = None
    ok: bool = True
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        for key in ("signer", "saved_to", "tree_saved_to"):
            if not d[key]:
                del d[key]
        if not d["checks"]:
            del d["checks"]
        if not d["errors"]:
            del d["errors"]
        return d


def build_drop_config(args: Namespace, cli_config: CLIConfig | None = None) -> DropConfig:
    """Run configuration: YAML file (if any), then env, then flags."""
    run_config = getattr(args, "run_config", None) or (cli_config.run_config if cli_config else None)
    if run_config:
        config = DropConfig.from_yaml(run_config).with_env_overrides()
    else:
        config = DropConfig.from_env()

    if args.input:
        config.input.path = args.input
    if args.decimals is not None:
        config.input.decimals = args.decimals
    if args.duplicates:
        config.input.duplicate_policy = DuplicatePolicy(args.duplicates)
    if args.no_sort:
        config.tree.sort_entries = False
    if args.workers is not None:
        config.tree.max_workers = args.workers
    if args.contract:
        config.signing.verifying_contract = args.contract
    if args.chain_id is not None:
        config.signing.chain_id = args.chain_id
    if args.no_self_check:
        config.self_check.enabled = False
    return config


def run_generation(config: DropConfig, *, unsigned: bool = False) -> GenerationResult:
    """
    Load entries and run the pipeline, signing every claim unless ``unsigned``.

    Raises:
        FileNotFoundError: Input CSV missing
        DropException: Invalid input rows
        ValueError: No signing domain, or the key variable is unset
    """
    if not config.input.path:
        raise ValueError("No input CSV given (--input or input.path)")
    if not unsigned and not config.signing.enabled:
        raise ValueError("Signing requires --contract and --chain-id (or pass --unsigned)")

    entries = load_entries_csv(
        config.input.path,
        config.input.decimals,
        address_column=config.input.address_column,
        amount_column=config.input.amount_column,
    )
    pipeline = DistributionPipeline(config)

    if unsigned:
        logger.warning("Unsigned dry run: claims will carry no signatures")
        return pipeline.run(entries)

    private_key = os.getenv(config.signing.key_env)
    if not private_key:
        raise ValueError(f"Signing key variable {config.signing.key_env} is not set")
    with authority_key(private_key) as signer:
        return pipeline.run(entries, signer=signer)


def print_summary_human(summary: GenerateSummary) -> None:
    """Print summary in human-readable format."""
    print(f"merkle_root: {summary.merkle_root}")
    print(f"token_total: {summary.token_total}")
    print(f"total_entries: {summary.total_entries}")
    print(f"tree_depth: {summary.tree_depth}")
    if summary.signer:
        print(f"signer: {summary.signer}")
    if summary.saved_to:
        print(f"saved_to: {summary.saved_to}")
    if summary.tree_saved_to:
        print(f"tree_saved_to: {summary.tree_saved_to}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")

    if summary.checks:
        print(f"\nchecks ({len(summary.checks)}):")
        for check in summary.checks[:20]:
            status = "✓" if check["ok"] else "✗"
            print(f"  {status} {check['check_id']}: {check['message']}")


def generate_cmd(args: Namespace) -> int:
    """
    Execute the generate command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    output_json = args.json or getattr(args, "cli_config", CLIConfig()).default_output_format == "json"

    try:
        config = build_drop_config(args, getattr(args, "cli_config", None))
        result = run_generation(config, unsigned=args.unsigned)
    except (FileNotFoundError, ValueError, DropException) as e:
        if args.debug:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = GenerateSummary(ok=result.ok, errors=list(result.errors))
    if args.debug:
        summary.checks = [
            {"check_id": c.check_id, "ok": c.ok, "message": c.message}
            for c in result.checks
        ]

    if not result.ok:
        if output_json:
            print(json.dumps(summary.to_dict(), indent=2))
        else:
            print_summary_human(summary)
        logger.error("Generation failed")
        if isinstance(result.exception, SelfCheckException):
            return EXIT_VERIFICATION_FAILED
        return EXIT_RUNTIME_ERROR

    distribution = result.distribution
    out_dir = Path(args.out_dir)
    saved = save_distribution(distribution, out_dir / DISTRIBUTION_FILE)
    summary.saved_to = str(saved)
    if not args.no_tree:
        summary.tree_saved_to = str(save_tree(result.tree_dump(), out_dir / TREE_FILE))

    summary.merkle_root = distribution.merkle_root
    summary.token_total = distribution.token_total
    summary.total_entries = distribution.total_entries
    summary.tree_depth = distribution.tree_depth
    summary.signer = result.signer

    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    logger.info(f"Generated {distribution.total_entries} claims under {distribution.merkle_root}")
    return EXIT_SUCCESS
