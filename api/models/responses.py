"""
Module 08 - API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "merkledrop-api"
    version: str = "v1"


class DistributionSummary(BaseModel):
    """Header fields of the served distribution."""

    merkle_root: str = Field(..., description="Committed Merkle root")
    token_total: str = Field(..., description="Sum of all claim amounts (base units)")
    total_entries: int = Field(..., description="Number of beneficiaries")
    tree_depth: int = Field(..., description="Proof length")
    generated_at: str | None = Field(default=None)
    signed: bool = Field(default=False, description="Whether claims carry signatures")


class ClaimResponse(BaseModel):
    """Response for GET /claims/{address}."""

    ok: bool = True
    address: str = Field(..., description="Checksummed beneficiary address")
    merkle_root: str
    index: int
    amount: str
    proof: list[str] = Field(default_factory=list)
    signature: str | None = None


class CheckInfo(BaseModel):
    """One verification check."""

    check_id: str
    ok: bool
    code: str | None = None
    message: str


class VerifyResponse(BaseModel):
    """Response for POST /verify/* endpoints."""

    ok: bool = Field(..., description="Whether every check passed")
    merkle_root: str = Field(..., description="Root the claim was checked against")
    error_codes: list[str] = Field(default_factory=list)
    checks: list[CheckInfo] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
