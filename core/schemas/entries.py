"""
Module 01 - Schemas
File: entries.py

Purpose: The (beneficiary, amount) entitlement pair, its canonical order,
the duplicate-beneficiary policy and exact uint256 totals.

Canonical order (the leaf index order):
    ascending by the 20-byte beneficiary address, ties broken by amount.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Sequence

from eth_utils import is_address, to_canonical_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import (
    AmountOverflowException,
    DuplicateBeneficiaryException,
    InvalidEntryException,
)


logger = logging.getLogger(__name__)


MAX_UINT256 = 2**256 - 1


class DuplicatePolicy(str, Enum):
    """What to do when the same beneficiary appears more than once."""
    REJECT = "reject"  # Fail the batch
    KEEP_FIRST = "keep_first"  # Warn and drop the newer row
    KEEP_LAST = "keep_last"  # Warn and replace the earlier row


def normalize_address(value: str) -> str:
    """
    Return the EIP-55 checksummed form of an EVM address.

    Accepts any hex case, with or without a valid checksum.

    Raises:
        InvalidEntryException: If the value is not a 20-byte hex address
    """
    if not isinstance(value, str):
        raise InvalidEntryException(f"Address must be a string, got {type(value).__name__}")
    candidate = value.strip()
    if not candidate.startswith(("0x", "0X")):
        candidate = "0x" + candidate
    if not is_address(candidate.lower()):
        raise InvalidEntryException(f"Invalid address: {value}")
    return to_checksum_address(candidate.lower())


def check_uint256(amount: int) -> int:
    """Validate that an amount fits an unsigned 256-bit word."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidEntryException(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidEntryException(f"Amount must be non-negative, got {amount}")
    if amount > MAX_UINT256:
        raise AmountOverflowException(
            "Amount exceeds uint256",
            details={"amount": str(amount)},
        )
    return amount


class Entry(BaseModel):
    """
    One entitlement: a beneficiary address and an amount in the smallest
    token unit (already decimal-shifted).

    Immutable once created.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    beneficiary: str = Field(..., description="EIP-55 checksummed beneficiary address")
    amount: int = Field(..., ge=0, le=MAX_UINT256, description="Amount in base units")

    @field_validator("beneficiary", mode="before")
    @classmethod
    def _checksum(cls, v: str) -> str:
        try:
            return normalize_address(v)
        except InvalidEntryException as e:
            raise ValueError(e.message) from e

    @field_validator("amount", mode="before")
    @classmethod
    def _reject_bool(cls, v: object) -> object:
        if isinstance(v, bool):
            raise ValueError("Amount must be an integer")
        return v

    @classmethod
    def create(cls, beneficiary: str, amount: int | str) -> "Entry":
        """
        Build an Entry, mapping validation failures onto the error taxonomy.

        Raises:
            AmountOverflowException: If the amount is above uint256
            InvalidEntryException: For any other invalid field
        """
        if isinstance(amount, int) and not isinstance(amount, bool) and amount > MAX_UINT256:
            raise AmountOverflowException("Amount exceeds uint256", details={"amount": str(amount)})
        try:
            return cls(beneficiary=beneficiary, amount=amount)
        except ValidationError as e:
            raise InvalidEntryException(
                f"Invalid entry ({beneficiary!r}, {amount!r})",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

    @property
    def address_bytes(self) -> bytes:
        """Canonical 20-byte address."""
        return to_canonical_address(self.beneficiary)

    @property
    def sort_key(self) -> tuple[bytes, int]:
        return (self.address_bytes, self.amount)


def canonical_order(entries: Iterable[Entry]) -> list[Entry]:
    """Return entries in canonical leaf order (address, then amount)."""
    return sorted(entries, key=lambda e: e.sort_key)


def resolve_duplicates(
    entries: Sequence[Entry],
    policy: DuplicatePolicy = DuplicatePolicy.REJECT,
) -> list[Entry]:
    """
    Apply the duplicate-beneficiary policy.

    Input order is preserved for surviving entries; with ``keep_last`` the
    surviving row takes the position of the first occurrence.

    Raises:
        DuplicateBeneficiaryException: Under ``reject`` on the first duplicate
    """
    policy = DuplicatePolicy(policy)
    positions: dict[str, int] = {}
    result: list[Entry] = []

    for entry in entries:
        key = entry.beneficiary.lower()
        if key not in positions:
            positions[key] = len(result)
            result.append(entry)
            continue

        if policy == DuplicatePolicy.REJECT:
            raise DuplicateBeneficiaryException(entry.beneficiary)

        if policy == DuplicatePolicy.KEEP_FIRST:
            logger.warning(f"Duplicate beneficiary {entry.beneficiary}: keeping first row, dropping amount {entry.amount}")
        else:
            previous = result[positions[key]]
            logger.warning(
                f"Duplicate beneficiary {entry.beneficiary}: replacing amount {previous.amount} with {entry.amount}"
            )
            result[positions[key]] = entry

    return result


def sum_amounts(entries: Iterable[Entry]) -> int:
    """
    Exact sum of all amounts.

    Raises:
        AmountOverflowException: As soon as the running total exceeds uint256
    """
    total = 0
    for count, entry in enumerate(entries, start=1):
        total += entry.amount
        if total > MAX_UINT256:
            raise AmountOverflowException(
                "Token total exceeds uint256",
                details={"entries_summed": count, "beneficiary": entry.beneficiary},
            )
    return total


__all__ = [
    "MAX_UINT256",
    "DuplicatePolicy",
    "Entry",
    "normalize_address",
    "check_uint256",
    "canonical_order",
    "resolve_duplicates",
    "sum_amounts",
]
