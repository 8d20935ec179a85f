"""
Module 08 - Claims Route

Read-only lookups into the served distribution:
- GET /distribution - Header fields
- GET /claims/{address} - One beneficiary's claim with proof
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_distribution
from api.errors import ClaimNotFoundError
from api.models.responses import ClaimResponse, DistributionSummary
from core.schemas.distribution import Distribution
from core.schemas.entries import normalize_address


logger = logging.getLogger(__name__)

router = APIRouter(tags=["claims"])


@router.get("/distribution", response_model=DistributionSummary)
async def get_summary(distribution: Distribution = Depends(get_distribution)) -> DistributionSummary:
    """Return the root, total and size of the served distribution."""
    return DistributionSummary(
        merkle_root=distribution.merkle_root,
        token_total=distribution.token_total,
        total_entries=distribution.total_entries,
        tree_depth=distribution.tree_depth,
        generated_at=distribution.generated_at,
        signed=distribution.signed,
    )


@router.get("/claims/{address}", response_model=ClaimResponse)
async def get_claim(
    address: str,
    distribution: Distribution = Depends(get_distribution),
) -> ClaimResponse:
    """
    Look up the claim for one beneficiary.

    The address may be given in any hex case.

    Errors:
        400 INVALID_ENTRY: Not an address
        404 CLAIM_NOT_FOUND: Address has no claim
    """
    checksummed = normalize_address(address)
    found = distribution.get_claim(checksummed)
    if found is None:
        raise ClaimNotFoundError(checksummed)

    key, record = found
    logger.debug(f"Served claim #{record.index} for {key}")
    return ClaimResponse(
        ok=True,
        address=key,
        merkle_root=distribution.merkle_root,
        index=record.index,
        amount=record.amount,
        proof=record.proof,
        signature=record.signature,
    )
