"""
Module 07 - CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m merkledrop_cli generate --input data/allowlist.csv [--out-dir .] (--contract 0x... --chain-id N | --unsigned)
    python -m merkledrop_cli verify [distribution.json] [--signer 0x... --contract 0x... --chain-id N]
    python -m merkledrop_cli proof <address> [amount] [--distribution PATH]
    python -m merkledrop_cli split [--distribution PATH] [--out-dir dist/claims]
    python -m merkledrop_cli allowlist [--out data/allowlist.csv] [--count N]
    python -m merkledrop_cli config --init

Environment Variables:
    PRIVATE_KEY                     Authority signing key (name set by signing.key_env)
    MERKLEDROP_RUN_CONFIG           YAML run configuration
    MERKLEDROP_VERIFYING_CONTRACT   Claim contract address bound into signatures
    MERKLEDROP_CHAIN_ID             Chain id bound into signatures
    MERKLEDROP_DUPLICATE_POLICY     reject | keep_first | keep_last
    MERKLEDROP_LOG_LEVEL            Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
from pathlib import Path
from typing import Sequence

import yaml

from core.config import DropConfig
from merkledrop_cli.commands import allowlist, generate, proof, split, verify
from merkledrop_cli.config import load_config, get_default_config_template


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def _add_domain_args(parser: argparse.ArgumentParser, *, with_signer: bool) -> None:
    """Signing domain options shared by generate, verify and proof."""
    if with_signer:
        parser.add_argument(
            "--signer",
            type=str,
            default=None,
            help="Authority address; when given, signatures are checked",
        )
    parser.add_argument(
        "--contract",
        type=str,
        default=None,
        help="Verifying (claim) contract address bound into signatures",
    )
    parser.add_argument(
        "--chain-id",
        type=int,
        default=None,
        help="Chain id bound into signatures",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="merkledrop",
        description="merkledrop CLI - Generate, verify and publish Merkle airdrop distributions.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to CLI configuration file (default: ./merkledrop.json or ~/.config/merkledrop/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate command ---
    generate_parser = subparsers.add_parser(
        "generate",
        help="Build distribution.json from an entitlement CSV",
        description="Hash entries, build the tree, sign claims and write distribution.json and tree.json.",
    )
    generate_parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Input CSV with an address,amount header (default: input.path from the run config)",
    )
    generate_parser.add_argument(
        "--out-dir", "-o",
        type=str,
        default=".",
        help="Output directory (default: .)",
    )
    generate_parser.add_argument(
        "--decimals", "-d",
        type=int,
        default=None,
        help="Token decimals used to convert CSV amounts (default: 18)",
    )
    generate_parser.add_argument(
        "--run-config",
        type=str,
        default=None,
        help="YAML run configuration",
    )
    generate_parser.add_argument(
        "--duplicates",
        type=str,
        choices=["reject", "keep_first", "keep_last"],
        default=None,
        help="Duplicate beneficiary policy (default: reject)",
    )
    generate_parser.add_argument(
        "--no-sort",
        action="store_true",
        default=False,
        help="Keep input order instead of canonical address order",
    )
    generate_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for hashing and signing",
    )
    _add_domain_args(generate_parser, with_signer=False)
    generate_parser.add_argument(
        "--unsigned",
        action="store_true",
        default=False,
        help="Dry run: write claims without signatures",
    )
    generate_parser.add_argument(
        "--no-self-check",
        action="store_true",
        default=False,
        help="Skip the post-build self-check",
    )
    generate_parser.add_argument(
        "--no-tree",
        action="store_true",
        default=False,
        help="Do not write tree.json",
    )
    generate_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    generate_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include detailed checks in output",
    )
    generate_parser.set_defaults(func=generate.generate_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a distribution offline",
        description="Check every claim against the root, plus totals, indices and depth.",
    )
    verify_parser.add_argument(
        "distribution",
        type=str,
        nargs="?",
        default=None,
        help="Path to distribution.json (default: from config)",
    )
    _add_domain_args(verify_parser, with_signer=True)
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include detailed checks",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Show and verify one beneficiary's claim",
        description="Look up an address and check its proof (and optionally signature).",
    )
    proof_parser.add_argument("address", type=str, help="Beneficiary address")
    proof_parser.add_argument(
        "amount",
        type=str,
        nargs="?",
        default=None,
        help="Amount in base units (default: recorded amount)",
    )
    proof_parser.add_argument(
        "--distribution",
        type=str,
        default=None,
        help="Path to distribution.json (default: from config)",
    )
    _add_domain_args(proof_parser, with_signer=True)
    proof_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    proof_parser.set_defaults(func=proof.proof_cmd)

    # --- split command ---
    split_parser = subparsers.add_parser(
        "split",
        help="Write one claim file per beneficiary",
    )
    split_parser.add_argument(
        "--distribution",
        type=str,
        default=None,
        help="Path to distribution.json (default: from config)",
    )
    split_parser.add_argument(
        "--out-dir", "-o",
        type=str,
        default="dist/claims",
        help="Output directory (default: dist/claims)",
    )
    split_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    split_parser.set_defaults(func=split.split_cmd)

    # --- allowlist command ---
    allowlist_parser = subparsers.add_parser(
        "allowlist",
        help="Generate a random test allowlist CSV",
    )
    allowlist_parser.add_argument(
        "--out", "-o",
        type=str,
        default="data/allowlist.csv",
        help="Output CSV path (default: data/allowlist.csv)",
    )
    allowlist_parser.add_argument(
        "--count", "-n",
        type=int,
        default=int(os.getenv("ALLOWLIST_COUNT", "10")),
        help="Number of entries (default: 10)",
    )
    allowlist_parser.add_argument(
        "--min",
        type=str,
        default=os.getenv("ALLOWLIST_MIN", "0.01"),
        help="Minimum amount (default: 0.01)",
    )
    allowlist_parser.add_argument(
        "--max",
        type=str,
        default=os.getenv("ALLOWLIST_MAX", "100"),
        help="Maximum amount (default: 100)",
    )
    allowlist_parser.add_argument(
        "--places",
        type=int,
        default=int(os.getenv("ALLOWLIST_DECIMALS", "4")),
        help="Decimal places in generated amounts (default: 4)",
    )
    allowlist_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible keys and amounts",
    )
    allowlist_parser.set_defaults(func=allowlist.allowlist_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template CLI configuration file",
    )
    config_parser.add_argument(
        "--init-run",
        type=str,
        default=None,
        metavar="PATH",
        help="Create a template YAML run configuration at PATH",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="merkledrop.json",
        help="Path for config file (default: merkledrop.json)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (MERKLEDROP_* prefix).")
        return EXIT_SUCCESS

    if args.init_run:
        run_path = Path(args.init_run)
        if run_path.exists():
            print(f"Error: Config file already exists: {run_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        run_path.write_text(yaml.safe_dump(DropConfig().to_dict(), sort_keys=False))
        print(f"Created run configuration: {run_path}")
        return EXIT_SUCCESS

    if args.show:
        config = args.cli_config
        if config.run_config:
            run = DropConfig.from_yaml(config.run_config).with_env_overrides()
        else:
            run = DropConfig.from_env()
        config_dict = {
            "run_config": config.run_config,
            "distribution_path": config.distribution_path,
            "log_level": config.log_level,
            "log_file": config.log_file,
            "default_output_format": config.default_output_format,
            "run": run.to_dict(),
        }
        print(json.dumps(config_dict, indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: merkledrop config [--init|--init-run PATH|--show]")
    print("  --init           Create a template CLI configuration file")
    print("  --init-run PATH  Create a template YAML run configuration")
    print("  --show           Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if hasattr(args, "debug") and args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
