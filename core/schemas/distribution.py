"""
Module 01 - Schemas
File: distribution.py

Purpose: The durable artifacts consumers depend on.

- ClaimRecord: per-beneficiary index, amount, proof and signature
- Distribution: distribution.json (root, totals, claims keyed by address)
- TreeDump: tree.json (ordered entries and leaves, for audits)

JSON field names follow the published file format (camelCase); Python
attribute names are snake_case. Amounts are decimal strings so uint256
values survive JSON consumers that parse numbers as doubles.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.crypto.hashing import bytes32_from_hex, from_hex
from .entries import MAX_UINT256, normalize_address
from .errors import ClaimNotFoundException, InvalidEntryException


_HEX32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_HEX_RE = re.compile(r"^0x(?:[0-9a-fA-F]{2})*$")


def _check_uint256_str(value: str) -> str:
    if not isinstance(value, str) or not value.isdigit():
        raise ValueError(f"Expected decimal string, got {value!r}")
    if int(value) > MAX_UINT256:
        raise ValueError("Value exceeds uint256")
    return value


def _check_hex32(value: str) -> str:
    if not isinstance(value, str) or not _HEX32_RE.match(value):
        raise ValueError(f"Expected 0x-prefixed 32-byte hex, got {value!r}")
    return value


class ClaimRecord(BaseModel):
    """Everything a beneficiary needs to submit a claim."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    index: int = Field(..., ge=0, description="Leaf index in canonical order")
    amount: str = Field(..., description="Amount in base units (decimal string)")
    proof: list[str] = Field(default_factory=list, description="Sibling digests, leaf to root")
    signature: str | None = Field(
        default=None,
        description="65-byte claim authorization (hex); absent for unsigned dry runs",
    )

    @field_validator("amount")
    @classmethod
    def _amount(cls, v: str) -> str:
        return _check_uint256_str(v)

    @field_validator("proof")
    @classmethod
    def _proof(cls, v: list[str]) -> list[str]:
        return [_check_hex32(p) for p in v]

    @field_validator("signature")
    @classmethod
    def _signature(cls, v: str | None) -> str | None:
        if v is not None and not _HEX_RE.match(v):
            raise ValueError("Signature must be 0x-prefixed hex")
        return v

    @property
    def amount_int(self) -> int:
        return int(self.amount)

    @property
    def proof_bytes(self) -> list[bytes]:
        return [bytes32_from_hex(p) for p in self.proof]

    @property
    def signature_bytes(self) -> bytes | None:
        return from_hex(self.signature) if self.signature is not None else None


class Distribution(BaseModel):
    """
    The published commitment: root, totals and one claim per beneficiary.

    Must be internally consistent: the root recomputes from every claim's
    proof and tokenTotal is the exact sum of claim amounts.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    merkle_root: str = Field(..., alias="merkleRoot")
    token_total: str = Field(..., alias="tokenTotal")
    total_entries: int = Field(..., alias="totalEntries", ge=0)
    tree_depth: int = Field(..., alias="treeDepth", ge=0)
    generated_at: str | None = Field(default=None, alias="generatedAt")
    claims: dict[str, ClaimRecord] = Field(default_factory=dict)

    @field_validator("merkle_root")
    @classmethod
    def _root(cls, v: str) -> str:
        return _check_hex32(v)

    @field_validator("token_total")
    @classmethod
    def _total(cls, v: str) -> str:
        return _check_uint256_str(v)

    @property
    def root_bytes(self) -> bytes:
        return bytes32_from_hex(self.merkle_root)

    @property
    def signed(self) -> bool:
        return any(record.signature is not None for record in self.claims.values())

    def get_claim(self, beneficiary: str) -> tuple[str, ClaimRecord] | None:
        """
        Look up a claim by address, in any hex case.

        Returns:
            (checksummed address, record), or None if the address has no claim
        """
        try:
            address = normalize_address(beneficiary)
        except InvalidEntryException:
            return None
        record = self.claims.get(address)
        if record is None:
            # Tolerate files keyed by lowercase addresses
            record = self.claims.get(address.lower())
        if record is None:
            return None
        return address, record

    def require_claim(self, beneficiary: str) -> tuple[str, ClaimRecord]:
        """
        Raises:
            ClaimNotFoundException: If the beneficiary is not in the distribution
        """
        found = self.get_claim(beneficiary)
        if found is None:
            raise ClaimNotFoundException(beneficiary)
        return found

    def to_json_dict(self) -> dict[str, Any]:
        """JSON-ready dict using the published field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TreeEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    address: str
    amount: str


class TreeDump(BaseModel):
    """tree.json: the ordered entries and leaves behind a root."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    root: str
    entries: list[TreeEntry] = Field(default_factory=list)
    leaves: list[str] = Field(default_factory=list)
    depth: int = Field(..., ge=0)
    generated_at: str | None = Field(default=None, alias="generatedAt")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "ClaimRecord",
    "Distribution",
    "TreeEntry",
    "TreeDump",
]
