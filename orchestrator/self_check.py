"""
Module 06B - Post-Build Self-Check

Re-verifies a freshly assembled distribution before it is published.

Small distributions are checked in full. Above ``full_check_max_entries``
a seeded random sample of ``sample_size`` claims is checked, always
including the first and last index. Structural checks (count, indices,
total, depth) always cover the whole distribution.
"""
from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from core.config.runtime import SelfCheckConfig
from core.crypto.hashing import to_hex
from core.merkle.leaf import hash_leaf
from core.schemas.distribution import Distribution
from core.schemas.errors import ErrorCodes
from core.schemas.verification import CheckResult, VerificationResult
from orchestrator.verifier import structure_checks, verify_claims


logger = logging.getLogger(__name__)


def select_indices(n: int, config: SelfCheckConfig) -> list[int]:
    """Leaf indices to check for a distribution of ``n`` claims."""
    if n <= config.full_check_max_entries:
        return list(range(n))
    rng = random.Random(config.seed)
    chosen = set(rng.sample(range(n), min(config.sample_size, n)))
    chosen.update((0, n - 1))
    return sorted(chosen)


def run_self_check(
    distribution: Distribution,
    config: Optional[SelfCheckConfig] = None,
    *,
    leaves: Optional[Sequence[bytes]] = None,
    signer: Optional[str] = None,
    verifying_contract: Optional[str] = None,
    chain_id: Optional[int] = None,
) -> VerificationResult:
    """
    Check a generated distribution.

    Args:
        distribution: The assembled distribution
        config: Sampling options
        leaves: Tree leaves in index order; when given, each checked claim's
            leaf must equal the leaf at its index
        signer: Authority address when the distribution is signed
        verifying_contract: Contract bound into signatures
        chain_id: Chain id bound into signatures
    """
    config = config or SelfCheckConfig()
    checks = structure_checks(distribution)

    by_index = {record.index: address for address, record in distribution.claims.items()}
    indices = [i for i in select_indices(len(distribution.claims), config) if i in by_index]
    addresses = [by_index[i] for i in indices]

    if leaves is not None:
        mismatched = []
        for index, address in zip(indices, addresses):
            record = distribution.claims[address]
            if index >= len(leaves) or hash_leaf(address, record.amount_int) != leaves[index]:
                mismatched.append(index)
        if mismatched:
            checks.append(CheckResult.failed(
                "leaf_index",
                f"{len(mismatched)} claim(s) do not match the leaf at their index",
                code=ErrorCodes.SELF_CHECK_FAILED,
                details={"indices": mismatched[:20]},
            ))
        else:
            checks.append(CheckResult.passed("leaf_index", "Claims match the leaves at their indices"))

    checks.extend(verify_claims(
        distribution,
        addresses,
        signer=signer,
        verifying_contract=verifying_contract,
        chain_id=chain_id,
    ))

    result = VerificationResult.from_checks(checks)
    sampled = len(indices) < len(distribution.claims)
    logger.info(
        f"Self-check {'passed' if result.ok else 'FAILED'}: "
        f"{len(indices)}/{len(distribution.claims)} claims"
        f"{' (sampled)' if sampled else ''}, root {to_hex(distribution.root_bytes)}"
    )
    return result


__all__ = [
    "select_indices",
    "run_self_check",
]
