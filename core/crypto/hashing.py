"""
Module 02 - Hashing Utilities
Keccak-256 hashing and hex helpers for Merkle commitments.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- Keccak-256 hashing for raw bytes (the EVM's keccak256, not NIST SHA3-256)
- Hex encoding/decoding with 0x prefix
- Fixed-width 32-byte word parsing

Security/Determinism Notes:
- Always hash raw bytes exactly as specified
- Digests are compared as unsigned byte strings
- All operations are deterministic
"""
from __future__ import annotations

from eth_utils import keccak


WORD_SIZE = 32


def keccak256(data: bytes) -> bytes:
    """
    Compute the Keccak-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte Keccak-256 digest

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak(primitive=data)


def hash_concat(left: bytes, right: bytes) -> bytes:
    """
    Hash the concatenation of two byte sequences.

    parent = keccak256(left + right). Callers are responsible for
    ordering; see ``core.merkle.merkle_tree.hash_pair`` for the sorted form.
    """
    return keccak256(left + right)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to lowercase hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not isinstance(hex_string, str) or not hex_string[:2].lower() == "0x":
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {str(hex_string)[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def bytes32_from_hex(hex_string: str) -> bytes:
    """Decode a 0x-prefixed 32-byte word (digest, root or proof element)."""
    data = from_hex(hex_string)
    if len(data) != WORD_SIZE:
        raise ValueError(f"Expected {WORD_SIZE}-byte word, got {len(data)} bytes")
    return data


__all__ = [
    "WORD_SIZE",
    "keccak256",
    "hash_concat",
    "to_hex",
    "from_hex",
    "bytes32_from_hex",
]
