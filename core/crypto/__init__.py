"""
Core cryptographic utilities.

Module 02 provides Keccak-256 hashing and hex helpers.
Module 04 provides claim authorization signing and recovery.
"""
from .hashing import (
    keccak256,
    hash_concat,
    to_hex,
    from_hex,
    bytes32_from_hex,
)
from .signatures import (
    ClaimSigner,
    authority_key,
    claim_message,
    claim_message_hash,
    prefixed_hash,
    split_signature,
    sign_claim,
    recover_signer,
    require_valid_signature,
    check_signature,
)

__all__ = [
    "keccak256",
    "hash_concat",
    "to_hex",
    "from_hex",
    "bytes32_from_hex",
    "ClaimSigner",
    "authority_key",
    "claim_message",
    "claim_message_hash",
    "prefixed_hash",
    "split_signature",
    "sign_claim",
    "recover_signer",
    "require_valid_signature",
    "check_signature",
]
