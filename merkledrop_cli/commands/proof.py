"""
Module 07 - CLI Proof Command

Look up one beneficiary and verify their claim against the root.

Usage:
    merkledrop proof <address> [amount] [--distribution PATH] [--json]

``amount`` is in base units; when omitted the recorded amount is used.
Exit codes: 0 valid, 1 address not in the distribution, 2 invalid claim.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from core.schemas.errors import DropException, ErrorCodes
from orchestrator.artifacts.io import ArtifactIOError, load_distribution
from orchestrator.verifier import verify_claim


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def proof_cmd(args: Namespace) -> int:
    """
    Execute the proof command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    path = Path(args.distribution or args.cli_config.distribution_path)
    output_json = args.json or args.cli_config.default_output_format == "json"

    try:
        distribution = load_distribution(path)
    except (FileNotFoundError, ArtifactIOError) as e:
        print(f"Error loading distribution: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    amount = None
    if args.amount is not None:
        if not args.amount.isdigit():
            print(f"Error: amount must be an integer in base units, got {args.amount!r}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        amount = int(args.amount)

    try:
        result = verify_claim(
            distribution,
            args.address,
            amount=amount,
            signer=args.signer,
            verifying_contract=args.contract,
            chain_id=args.chain_id,
        )
    except (ValueError, DropException) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    found = distribution.get_claim(args.address)
    codes = result.get_error_codes()

    if output_json:
        data = {
            "address": found[0] if found else args.address,
            "valid": result.ok,
            "merkle_root": distribution.merkle_root,
            "error_codes": codes,
        }
        if found:
            data["claim"] = found[1].model_dump(mode="json", exclude_none=True)
        print(json.dumps(data, indent=2))
    elif found is None:
        print(f"✗ Address not found in {path}", file=sys.stderr)
    else:
        address, record = found
        print(f"address: {address}")
        print(f"index: {record.index}")
        print(f"amount: {record.amount if amount is None else amount}")
        print("proof:")
        for node in record.proof:
            print(f"  {node}")
        if record.signature:
            print(f"signature: {record.signature}")
        print(f"expected_root: {distribution.merkle_root}")
        for message in result.get_error_messages():
            print(f"  ✗ {message}")
        print(f"valid: {str(result.ok).lower()}")

    if result.ok:
        return EXIT_SUCCESS
    if ErrorCodes.CLAIM_NOT_FOUND in codes:
        return EXIT_RUNTIME_ERROR
    logger.warning(f"Claim for {args.address} is invalid: {', '.join(codes)}")
    return EXIT_VERIFICATION_FAILED
