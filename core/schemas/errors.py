"""
Module 01 - Schemas
File: errors.py

Purpose: Standard error taxonomy for commitment generation, proof
verification and claim authorization.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

None of these failures are retryable: each one indicates either bad
input or a security violation and must surface immediately.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the engine."""

    # Input Errors
    EMPTY_INPUT = "EMPTY_INPUT"
    INVALID_ENTRY = "INVALID_ENTRY"
    DUPLICATE_BENEFICIARY = "DUPLICATE_BENEFICIARY"
    AMOUNT_OVERFLOW = "AMOUNT_OVERFLOW"

    # Merkle & Commitment Errors
    OUT_OF_RANGE_INDEX = "OUT_OF_RANGE_INDEX"
    PROOF_MISMATCH = "PROOF_MISMATCH"
    CLAIM_NOT_FOUND = "CLAIM_NOT_FOUND"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"

    # Authorization Errors
    MALFORMED_SIGNATURE = "MALFORMED_SIGNATURE"
    SIGNER_MISMATCH = "SIGNER_MISMATCH"

    # Generation Errors
    SELF_CHECK_FAILED = "SELF_CHECK_FAILED"

    # Claim Rejections (reference distributor)
    ZERO_AMOUNT = "ZERO_AMOUNT"
    ALREADY_CLAIMED = "ALREADY_CLAIMED"
    CLAIM_WINDOW_EXPIRED = "CLAIM_WINDOW_EXPIRED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class DropError(BaseModel):
    """
    Base error model for structured error communication.

    Used for passing errors between modules without exceptions
    (verification reports, API responses).
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.PROOF_MISMATCH],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class DropException(Exception):
    """
    Base exception for all merkledrop errors.

    Carries structured error information and converts to the
    DropError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "MERKLEDROP_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> DropError:
        """Convert this exception to a DropError model."""
        return DropError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class EmptyInputException(DropException):
    """Raised when a distribution is requested for zero entries."""

    def __init__(self, message: str = "No entries to commit", details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCodes.EMPTY_INPUT, details=details)


class InvalidEntryException(DropException):
    """Raised when a beneficiary address or amount cannot be encoded."""

    def __init__(
        self,
        message: str,
        row: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if row is not None:
            full_details["row"] = row
        super().__init__(message=message, code=ErrorCodes.INVALID_ENTRY, details=full_details)


class DuplicateBeneficiaryException(DropException):
    """Raised by the ``reject`` duplicate policy."""

    def __init__(self, beneficiary: str, details: dict[str, Any] | None = None) -> None:
        full_details = details or {}
        full_details["beneficiary"] = beneficiary
        super().__init__(
            message=f"Duplicate beneficiary: {beneficiary}",
            code=ErrorCodes.DUPLICATE_BENEFICIARY,
            details=full_details,
        )


class AmountOverflowException(DropException):
    """Raised when an amount or the running total leaves the uint256 range."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCodes.AMOUNT_OVERFLOW, details=details)


class OutOfRangeIndexException(DropException):
    """Raised when a proof is requested for an index outside [0, N)."""

    def __init__(self, index: int, size: int) -> None:
        super().__init__(
            message=f"Leaf index {index} out of range for {size} leaves",
            code=ErrorCodes.OUT_OF_RANGE_INDEX,
            details={"index": index, "size": size},
        )


class ProofMismatchException(DropException):
    """Raised when a proof does not recompute the expected root."""

    def __init__(
        self,
        message: str = "Merkle proof does not match root",
        beneficiary: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if beneficiary:
            full_details["beneficiary"] = beneficiary
        super().__init__(message=message, code=ErrorCodes.PROOF_MISMATCH, details=full_details)


class ClaimNotFoundException(DropException):
    """Raised when a beneficiary has no record in a distribution."""

    def __init__(self, beneficiary: str) -> None:
        super().__init__(
            message=f"No claim for {beneficiary}",
            code=ErrorCodes.CLAIM_NOT_FOUND,
            details={"beneficiary": beneficiary},
        )


class MalformedSignatureException(DropException):
    """Raised for wrong-length, non-canonical or unrecoverable signatures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCodes.MALFORMED_SIGNATURE, details=details)


class SignerMismatchException(DropException):
    """Raised when the recovered signer is not the expected authority."""

    def __init__(self, recovered: str, expected: str) -> None:
        super().__init__(
            message=f"Signature recovered {recovered}, expected {expected}",
            code=ErrorCodes.SIGNER_MISMATCH,
            details={"recovered": recovered, "expected": expected},
        )


class SelfCheckException(DropException):
    """Raised when the post-build self-check rejects a generated distribution."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCodes.SELF_CHECK_FAILED, details=details)


class ClaimRejectedException(DropException):
    """Base class for reference distributor claim rejections."""


class ZeroAmountException(ClaimRejectedException):
    def __init__(self) -> None:
        super().__init__(message="Claim amount is zero", code=ErrorCodes.ZERO_AMOUNT)


class AlreadyClaimedException(ClaimRejectedException):
    def __init__(self, account: str) -> None:
        super().__init__(
            message=f"{account} has already claimed",
            code=ErrorCodes.ALREADY_CLAIMED,
            details={"account": account},
        )


class ClaimWindowExpiredException(ClaimRejectedException):
    def __init__(self, end_time: int, now: int) -> None:
        super().__init__(
            message=f"Claim window ended at {end_time}",
            code=ErrorCodes.CLAIM_WINDOW_EXPIRED,
            details={"end_time": end_time, "now": now},
        )


class InsufficientBalanceException(ClaimRejectedException):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            message=f"Distributor holds {available}, claim needs {requested}",
            code=ErrorCodes.INSUFFICIENT_BALANCE,
            details={"requested": requested, "available": available},
        )

