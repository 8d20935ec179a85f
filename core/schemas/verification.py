"""
Module 01 - Schemas
File: verification.py

Purpose: Per-check outcome records for distribution verification.
The post-build self-check, the offline verifier, the CLI and the HTTP API
all report through these models, so a caller can tell a missing claim
apart from a tampered proof without catching exceptions.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import DropError


CheckSeverity = Literal["info", "warn", "error"]


class CheckResult(BaseModel):
    """
    Outcome of one check against a distribution or claim.

    ``code`` holds the stable error code of a failed check
    (``PROOF_MISMATCH``, ``SIGNER_MISMATCH``...).
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(..., min_length=1, description="Check identifier, e.g. 'claim_proof'")
    ok: bool
    severity: CheckSeverity
    message: str
    code: str | None = Field(default=None, description="Error code for failed checks")
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return not self.ok and self.severity == "error"

    @property
    def is_warning(self) -> bool:
        return self.severity == "warn"

    @classmethod
    def passed(cls, check_id: str, message: str = "Check passed", details: dict[str, Any] | None = None) -> "CheckResult":
        return cls(check_id=check_id, ok=True, severity="info", message=message, details=details or {})

    @classmethod
    def warning(cls, check_id: str, message: str, details: dict[str, Any] | None = None) -> "CheckResult":
        """A non-fatal observation; the check still counts as passed."""
        return cls(check_id=check_id, ok=True, severity="warn", message=message, details=details or {})

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        return cls(
            check_id=check_id,
            ok=False,
            severity="error",
            message=message,
            code=code,
            details=details or {},
        )


class VerificationResult(BaseModel):
    """Aggregate of the checks run over one distribution or one claim."""

    model_config = ConfigDict(extra="forbid")

    ok: bool
    checks: list[CheckResult] = Field(default_factory=list)
    error: DropError | None = Field(
        default=None,
        description="Set when verification stopped on an exception rather than a failed check",
    )

    @property
    def error_count(self) -> int:
        return sum(1 for check in self.checks if check.is_error)

    def get_error_codes(self) -> list[str]:
        """Error codes of the failed checks, in check order."""
        return [check.code for check in self.checks if check.is_error and check.code]

    def get_error_messages(self) -> list[str]:
        return [check.message for check in self.checks if check.is_error]

    @classmethod
    def from_checks(cls, checks: list[CheckResult]) -> "VerificationResult":
        """Build a result whose status follows its checks."""
        return cls(ok=not any(check.is_error for check in checks), checks=checks)

    @classmethod
    def failure(cls, checks: list[CheckResult], error: DropError | None = None) -> "VerificationResult":
        return cls(ok=False, checks=checks, error=error)
