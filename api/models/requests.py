"""
Module 08 - API Request Models

Pydantic models for API request validation.
"""

from pydantic import BaseModel, Field


class ProofVerifyRequest(BaseModel):
    """Request body for POST /verify/proof: check an explicit proof."""

    address: str = Field(..., description="Beneficiary address (any hex case)")
    amount: str = Field(..., pattern=r"^[0-9]+$", description="Amount in base units")
    proof: list[str] = Field(default_factory=list, description="Sibling digests, leaf to root")
    root: str | None = Field(
        default=None,
        description="Root to check against (default: the served distribution's root)",
    )


class ClaimVerifyRequest(BaseModel):
    """Request body for POST /verify/claim: check a claim from the served distribution."""

    address: str = Field(..., description="Beneficiary address (any hex case)")
    amount: str | None = Field(
        default=None,
        pattern=r"^[0-9]+$",
        description="Asserted amount in base units (default: the recorded amount)",
    )
    signer: str | None = Field(default=None, description="Authority address; enables signature checks")
    verifying_contract: str | None = Field(default=None, description="Claim contract bound into signatures")
    chain_id: int | None = Field(default=None, ge=0, description="Chain id bound into signatures")
    include_checks: bool = Field(default=False, description="Include detailed checks in the response")
