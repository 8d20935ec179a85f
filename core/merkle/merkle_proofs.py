"""
Module 03 - Merkle Proofs Convenience Wrappers
Thin entry-level wrappers around the core Merkle tree functions.

Owner: Protocol/Crypto Engineer
Module ID: M03

This module provides class-based interfaces:
- MerkleProver: Generate proofs for entries
- MerkleVerifier: Verify (beneficiary, amount) membership against a root

These are convenience wrappers around the functions in merkle_tree.py
and leaf.py.
"""
from __future__ import annotations

from typing import Sequence

from core.merkle.leaf import hash_entry, hash_leaf
from core.merkle.merkle_tree import (
    MerkleProof,
    MerkleTree,
    process_proof,
    verify_merkle_proof,
)
from core.crypto.hashing import to_hex
from core.schemas.entries import Entry
from core.schemas.errors import ProofMismatchException


class MerkleProver:
    """
    Convenience class for generating Merkle proofs from entries.

    Entries are hashed in the order given; callers put them in canonical
    order first.

    Example:
        >>> proof = MerkleProver.prove_entries(entries, index=1)
        >>> proof.leaf == hash_entry(entries[1])
        True
    """

    @staticmethod
    def tree_for(entries: Sequence[Entry], max_workers: int = 1) -> MerkleTree:
        """Build the tree over the leaves of ``entries``."""
        return MerkleTree([hash_entry(e) for e in entries], max_workers=max_workers)

    @staticmethod
    def prove_entries(entries: Sequence[Entry], index: int) -> MerkleProof:
        """
        Generate a Merkle proof for the entry at the given index.

        Raises:
            OutOfRangeIndexException: If index is out of range
        """
        return MerkleProver.tree_for(entries).proof(index)

    @staticmethod
    def compute_root(entries: Sequence[Entry]) -> bytes:
        """Compute the Merkle root for a sequence of entries."""
        return MerkleProver.tree_for(entries).root


class MerkleVerifier:
    """
    Convenience class for verifying entry membership.

    Example:
        >>> MerkleVerifier.verify_entry(address, 1000, proof, root)
        True
    """

    @staticmethod
    def verify_entry(
        beneficiary: str,
        amount: int,
        proof: Sequence[bytes],
        root: bytes,
    ) -> bool:
        """
        Verify that (beneficiary, amount) is committed under ``root``.

        The pair is leaf-hashed, then the proof is folded with sorted-pair
        hashing.

        Returns:
            True if the proof is valid, False otherwise
        """
        return verify_merkle_proof(hash_leaf(beneficiary, amount), proof, root)

    @staticmethod
    def require_entry(
        beneficiary: str,
        amount: int,
        proof: Sequence[bytes],
        root: bytes,
    ) -> None:
        """
        Like verify_entry, but raises on mismatch.

        Raises:
            ProofMismatchException: With the computed and expected roots
        """
        computed = process_proof(hash_leaf(beneficiary, amount), proof)
        if computed != root:
            raise ProofMismatchException(
                beneficiary=beneficiary,
                details={
                    "computed_root": to_hex(computed),
                    "expected_root": to_hex(root),
                },
            )


__all__ = [
    "MerkleProver",
    "MerkleVerifier",
]
