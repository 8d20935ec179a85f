"""
Module 01 - Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Error models and exceptions
from .errors import (
    AlreadyClaimedException,
    AmountOverflowException,
    ClaimNotFoundException,
    ClaimRejectedException,
    ClaimWindowExpiredException,
    DropError,
    DropException,
    DuplicateBeneficiaryException,
    EmptyInputException,
    ErrorCodes,
    InsufficientBalanceException,
    InvalidEntryException,
    MalformedSignatureException,
    OutOfRangeIndexException,
    ProofMismatchException,
    SelfCheckException,
    SignerMismatchException,
    ZeroAmountException,
)

# Entries
from .entries import (
    MAX_UINT256,
    DuplicatePolicy,
    Entry,
    canonical_order,
    check_uint256,
    normalize_address,
    resolve_duplicates,
    sum_amounts,
)

# Verification results
from .verification import (
    CheckResult,
    VerificationResult,
)

# Published artifacts
from .distribution import (
    ClaimRecord,
    Distribution,
    TreeDump,
    TreeEntry,
)


__all__ = [
    # Errors
    "ErrorCodes",
    "DropError",
    "DropException",
    "EmptyInputException",
    "InvalidEntryException",
    "DuplicateBeneficiaryException",
    "AmountOverflowException",
    "OutOfRangeIndexException",
    "ProofMismatchException",
    "ClaimNotFoundException",
    "MalformedSignatureException",
    "SignerMismatchException",
    "SelfCheckException",
    "ClaimRejectedException",
    "ZeroAmountException",
    "AlreadyClaimedException",
    "ClaimWindowExpiredException",
    "InsufficientBalanceException",
    # Entries
    "MAX_UINT256",
    "DuplicatePolicy",
    "Entry",
    "canonical_order",
    "check_uint256",
    "normalize_address",
    "resolve_duplicates",
    "sum_amounts",
    # Verification
    "CheckResult",
    "VerificationResult",
    # Artifacts
    "ClaimRecord",
    "Distribution",
    "TreeDump",
    "TreeEntry",
]
