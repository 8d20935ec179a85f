"""
Module 08 - Verify Route

Stateless claim checks against the served distribution:
- POST /verify/proof - Check a caller-supplied proof
- POST /verify/claim - Check a stored claim (proof and signature)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_distribution
from api.errors import InvalidRequestError
from api.models.requests import ClaimVerifyRequest, ProofVerifyRequest
from api.models.responses import CheckInfo, VerifyResponse
from core.crypto.hashing import bytes32_from_hex
from core.merkle import MerkleVerifier
from core.schemas.distribution import Distribution
from core.schemas.entries import check_uint256, normalize_address
from core.schemas.errors import ErrorCodes
from core.schemas.verification import VerificationResult
from orchestrator.verifier import verify_claim


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verify", tags=["verification"])


def _to_response(result: VerificationResult, root: str, include_checks: bool) -> VerifyResponse:
    checks = []
    if include_checks or not result.ok:
        checks = [
            CheckInfo(check_id=c.check_id, ok=c.ok, code=c.code, message=c.message)
            for c in result.checks
        ]
    return VerifyResponse(
        ok=result.ok,
        merkle_root=root,
        error_codes=result.get_error_codes(),
        checks=checks,
    )


@router.post("/proof", response_model=VerifyResponse)
async def verify_proof(
    request: ProofVerifyRequest,
    distribution: Distribution = Depends(get_distribution),
) -> VerifyResponse:
    """
    Check that (address, amount, proof) recomputes a root.

    The root defaults to the served distribution's root. A mismatch is
    reported with ok=false, not as an HTTP error.
    """
    address = normalize_address(request.address)
    amount = check_uint256(int(request.amount))
    try:
        proof = [bytes32_from_hex(p) for p in request.proof]
        root = bytes32_from_hex(request.root) if request.root else distribution.root_bytes
    except ValueError as e:
        raise InvalidRequestError(str(e)) from e

    root_hex = request.root.lower() if request.root else distribution.merkle_root
    if MerkleVerifier.verify_entry(address, amount, proof, root):
        return VerifyResponse(ok=True, merkle_root=root_hex)

    logger.info(f"Proof rejected for {address}")
    return VerifyResponse(
        ok=False,
        merkle_root=root_hex,
        error_codes=[ErrorCodes.PROOF_MISMATCH],
        checks=[CheckInfo(
            check_id="claim_proof",
            ok=False,
            code=ErrorCodes.PROOF_MISMATCH,
            message=f"Proof for {address} does not recompute the root",
        )],
    )


@router.post("/claim", response_model=VerifyResponse)
async def verify_stored_claim(
    request: ClaimVerifyRequest,
    distribution: Distribution = Depends(get_distribution),
) -> VerifyResponse:
    """
    Check a beneficiary's stored claim.

    Signatures are checked when ``signer`` is given, which then also
    needs ``verifying_contract`` and ``chain_id``.
    """
    address = normalize_address(request.address)
    try:
        result = verify_claim(
            distribution,
            address,
            amount=int(request.amount) if request.amount is not None else None,
            signer=request.signer,
            verifying_contract=request.verifying_contract,
            chain_id=request.chain_id,
        )
    except ValueError as e:
        raise InvalidRequestError(str(e)) from e

    return _to_response(result, distribution.merkle_root, request.include_checks)
