"""
Module 03 - Leaf Encoder
Maps one (beneficiary, amount) pair to a 32-byte leaf digest.

Owner: Protocol/Crypto Engineer
Module ID: M03

Leaf Rule (Hard Contract, must match the verifying contract):
    leaf = keccak256(keccak256(abi.encode(address beneficiary, uint256 amount)))

abi.encode pads the address on the left to a full 32-byte word and writes
the amount as a 32-byte big-endian integer, 64 bytes in total.

Leaves live in the image of H(H(x)) while internal nodes are a single H over
a 64-byte concatenation of two digests, so an internal node cannot be
presented as a leaf. A single-hash leaf produces incompatible roots.
"""
from __future__ import annotations

from eth_abi import encode

from core.crypto.hashing import keccak256
from core.schemas.entries import Entry, check_uint256, normalize_address


LEAF_ABI_TYPES = ["address", "uint256"]


def encode_leaf(beneficiary: str, amount: int) -> bytes:
    """
    ABI-encode a (beneficiary, amount) pair for leaf hashing.

    Raises:
        InvalidEntryException: If the address is malformed or the amount negative
        AmountOverflowException: If the amount does not fit uint256
    """
    address = normalize_address(beneficiary)
    return encode(LEAF_ABI_TYPES, [address, check_uint256(amount)])


def hash_leaf(beneficiary: str, amount: int) -> bytes:
    """
    Compute the double-hashed leaf for one entry.

    Example:
        >>> len(hash_leaf("0x" + "aa" * 20, 1000))
        32
    """
    return keccak256(keccak256(encode_leaf(beneficiary, amount)))


def hash_entry(entry: Entry) -> bytes:
    """Leaf digest of an already validated Entry."""
    return hash_leaf(entry.beneficiary, entry.amount)


__all__ = [
    "LEAF_ABI_TYPES",
    "encode_leaf",
    "hash_leaf",
    "hash_entry",
]
