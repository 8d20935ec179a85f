"""API request and response models."""

from api.models.requests import ClaimVerifyRequest, ProofVerifyRequest
from api.models.responses import (
    CheckInfo,
    ClaimResponse,
    DistributionSummary,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    VerifyResponse,
)

__all__ = [
    "ProofVerifyRequest",
    "ClaimVerifyRequest",
    "HealthResponse",
    "DistributionSummary",
    "ClaimResponse",
    "CheckInfo",
    "VerifyResponse",
    "ErrorDetail",
    "ErrorResponse",
]
