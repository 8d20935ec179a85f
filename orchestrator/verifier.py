"""
Module 06C - Offline Distribution Verifier

Checks a published distribution.json without access to the original
entries: every claim must recompute the root, totals and depth must be
consistent, and (when the authority is known) every signature must
recover to it.

Failures are reported as CheckResults carrying stable error codes, so a
missing beneficiary (CLAIM_NOT_FOUND), a wrong amount (AMOUNT_MISMATCH)
and a tampered proof (PROOF_MISMATCH) are distinguishable.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from core.crypto.hashing import to_hex
from core.crypto.signatures import require_valid_signature
from core.merkle.leaf import hash_leaf
from core.merkle.merkle_tree import EMPTY_TREE_ROOT, compute_tree_depth, process_proof
from core.schemas.distribution import ClaimRecord, Distribution
from core.schemas.entries import MAX_UINT256
from core.schemas.errors import (
    ClaimNotFoundException,
    DropException,
    ErrorCodes,
    InvalidEntryException,
    MalformedSignatureException,
)
from core.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


def _require_domain(
    signer: Optional[str],
    verifying_contract: Optional[str],
    chain_id: Optional[int],
) -> bool:
    """True when signatures should be checked."""
    if signer is None:
        return False
    if verifying_contract is None or chain_id is None:
        raise ValueError("Checking signatures requires verifying_contract and chain_id")
    return True


def check_claim(
    address: str,
    record: ClaimRecord,
    root: bytes,
    *,
    amount: Optional[int] = None,
    signer: Optional[str] = None,
    verifying_contract: Optional[str] = None,
    chain_id: Optional[int] = None,
) -> list[CheckResult]:
    """
    Run the per-claim checks for one record.

    Args:
        address: Beneficiary the record is keyed under
        record: The claim record
        root: Expected Merkle root
        amount: Amount the claimant asserts; defaults to the recorded amount
        signer: Authority address; signatures are skipped when None
        verifying_contract: Contract bound into signatures
        chain_id: Chain id bound into signatures

    Returns:
        One CheckResult per check performed
    """
    check_signatures = _require_domain(signer, verifying_contract, chain_id)
    checks: list[CheckResult] = []

    claimed = record.amount_int if amount is None else amount
    if claimed != record.amount_int:
        checks.append(CheckResult.failed(
            "claim_amount",
            f"Amount {claimed} does not match recorded amount {record.amount}",
            code=ErrorCodes.AMOUNT_MISMATCH,
            details={"beneficiary": address, "expected": record.amount, "got": str(claimed)},
        ))
        return checks

    try:
        computed = process_proof(hash_leaf(address, claimed), record.proof_bytes)
    except InvalidEntryException as e:
        checks.append(CheckResult.failed("claim_proof", e.message, code=e.code, details={"beneficiary": address}))
        return checks

    if computed == root:
        checks.append(CheckResult.passed(
            "claim_proof",
            f"Proof for {address} recomputes the root",
            details={"index": record.index},
        ))
    else:
        checks.append(CheckResult.failed(
            "claim_proof",
            f"Proof for {address} does not recompute the root",
            code=ErrorCodes.PROOF_MISMATCH,
            details={
                "beneficiary": address,
                "index": record.index,
                "computed_root": to_hex(computed),
                "expected_root": to_hex(root),
            },
        ))

    if check_signatures:
        try:
            if record.signature is None:
                raise MalformedSignatureException("Claim has no signature")
            require_valid_signature(
                address, claimed, verifying_contract, chain_id, record.signature, signer
            )
            checks.append(CheckResult.passed("claim_signature", f"Signature for {address} recovers to {signer}"))
        except DropException as e:
            checks.append(CheckResult.failed(
                "claim_signature",
                e.message,
                code=e.code,
                details={"beneficiary": address, **e.details},
            ))

    return checks


def structure_checks(distribution: Distribution) -> list[CheckResult]:
    """
    Whole-distribution consistency: entry count, index set, token total,
    tree depth and the empty-tree root.
    """
    checks: list[CheckResult] = []
    n = len(distribution.claims)

    if n == distribution.total_entries:
        checks.append(CheckResult.passed("entry_count", f"{n} claims"))
    else:
        checks.append(CheckResult.failed(
            "entry_count",
            f"totalEntries is {distribution.total_entries} but {n} claims are present",
            code=ErrorCodes.SELF_CHECK_FAILED,
        ))

    indices = sorted(record.index for record in distribution.claims.values())
    if indices == list(range(n)):
        checks.append(CheckResult.passed("claim_indices", "Claim indices cover 0..N-1 exactly once"))
    else:
        checks.append(CheckResult.failed(
            "claim_indices",
            "Claim indices are not a permutation of 0..N-1",
            code=ErrorCodes.OUT_OF_RANGE_INDEX,
        ))

    total = sum(record.amount_int for record in distribution.claims.values())
    if total > MAX_UINT256:
        checks.append(CheckResult.failed(
            "token_total",
            "Sum of claim amounts exceeds uint256",
            code=ErrorCodes.AMOUNT_OVERFLOW,
        ))
    elif str(total) == distribution.token_total:
        checks.append(CheckResult.passed("token_total", f"tokenTotal {total} matches claims"))
    else:
        checks.append(CheckResult.failed(
            "token_total",
            f"tokenTotal is {distribution.token_total} but claims sum to {total}",
            code=ErrorCodes.AMOUNT_MISMATCH,
        ))

    expected_depth = compute_tree_depth(n)
    if distribution.tree_depth == expected_depth:
        checks.append(CheckResult.passed("tree_depth", f"Depth {expected_depth}"))
    else:
        checks.append(CheckResult.failed(
            "tree_depth",
            f"treeDepth is {distribution.tree_depth}, expected {expected_depth} for {n} leaves",
            code=ErrorCodes.SELF_CHECK_FAILED,
        ))

    if n == 0 and distribution.root_bytes != EMPTY_TREE_ROOT:
        checks.append(CheckResult.failed(
            "empty_root",
            "Empty distribution must commit to the zero root",
            code=ErrorCodes.PROOF_MISMATCH,
        ))

    return checks


def verify_claims(
    distribution: Distribution,
    addresses: Iterable[str],
    *,
    signer: Optional[str] = None,
    verifying_contract: Optional[str] = None,
    chain_id: Optional[int] = None,
) -> list[CheckResult]:
    """
    Per-claim checks over many records, condensed: failures are reported
    individually, passes as one summary check.
    """
    root = distribution.root_bytes
    failures: list[CheckResult] = []
    count = 0
    for address in addresses:
        record = distribution.claims[address]
        count += 1
        for check in check_claim(
            address,
            record,
            root,
            signer=signer,
            verifying_contract=verifying_contract,
            chain_id=chain_id,
        ):
            if not check.ok:
                failures.append(check)

    if failures:
        logger.warning(f"{len(failures)} claim check(s) failed out of {count} claims")
        return failures
    return [CheckResult.passed("claims", f"{count} claims verified", details={"count": count})]


def verify_distribution(
    distribution: Distribution,
    signer: Optional[str] = None,
    verifying_contract: Optional[str] = None,
    chain_id: Optional[int] = None,
) -> VerificationResult:
    """
    Verify every claim of a distribution plus its structural consistency.

    Args:
        distribution: Loaded distribution.json
        signer: Authority address; when given, every signature is checked
        verifying_contract: Contract bound into signatures
        chain_id: Chain id bound into signatures

    Raises:
        ValueError: If signer is given without the signing domain
    """
    _require_domain(signer, verifying_contract, chain_id)
    checks = structure_checks(distribution)
    checks.extend(verify_claims(
        distribution,
        distribution.claims.keys(),
        signer=signer,
        verifying_contract=verifying_contract,
        chain_id=chain_id,
    ))
    result = VerificationResult.from_checks(checks)
    logger.info(
        f"Verified distribution {distribution.merkle_root}: "
        f"{'ok' if result.ok else 'FAILED'} ({result.error_count} errors)"
    )
    return result


def verify_claim(
    distribution: Distribution,
    beneficiary: str,
    amount: Optional[int] = None,
    signer: Optional[str] = None,
    verifying_contract: Optional[str] = None,
    chain_id: Optional[int] = None,
) -> VerificationResult:
    """
    Verify one beneficiary's claim.

    ``amount`` defaults to the amount stored in the distribution. The
    result's failed check codes say which way the claim is bad:
    CLAIM_NOT_FOUND, AMOUNT_MISMATCH, PROOF_MISMATCH, MALFORMED_SIGNATURE
    or SIGNER_MISMATCH.
    """
    found = distribution.get_claim(beneficiary)
    if found is None:
        error = ClaimNotFoundException(beneficiary)
        return VerificationResult.failure(
            checks=[CheckResult.failed(
                "claim_lookup",
                error.message,
                code=error.code,
                details=error.details,
            )],
            error=error.to_error_model(),
        )

    address, record = found
    checks = [CheckResult.passed("claim_lookup", f"Found claim #{record.index} for {address}")]
    checks.extend(check_claim(
        address,
        record,
        distribution.root_bytes,
        amount=amount,
        signer=signer,
        verifying_contract=verifying_contract,
        chain_id=chain_id,
    ))
    return VerificationResult.from_checks(checks)


__all__ = [
    "check_claim",
    "structure_checks",
    "verify_claims",
    "verify_distribution",
    "verify_claim",
]
