"""
Module 03 - Merkle Tree and Commitments
Leaf encoding, deterministic Merkle tree construction, proof
generation and verification.

Owner: Protocol/Crypto Engineer
Module ID: M03

This module provides:
- hash_leaf: Double-hashed leaf for a (beneficiary, amount) pair
- hash_pair: Sorted-pair parent hash
- MerkleTree: One-shot tree with root, depth and per-index proofs
- verify_merkle_proof: Verify a proof against a claimed root

Canonical Commitment Rules:
1. Leaf hashing: keccak256(keccak256(abi.encode(address, uint256)))
2. Parent hashing: keccak256(sorted(a, b) concatenated)
3. Padding: last node of an odd layer is paired with itself
4. Empty tree: 32 zero bytes
5. Single leaf: root = leaf

Usage:
    from core.merkle import MerkleTree, hash_leaf, verify_merkle_proof

    leaves = [hash_leaf(e.beneficiary, e.amount) for e in entries]
    tree = MerkleTree(leaves)
    proof = tree.proof_for(2)
    assert verify_merkle_proof(leaves[2], proof, tree.root)
"""
from .leaf import (
    encode_leaf,
    hash_leaf,
    hash_entry,
)

from .merkle_tree import (
    EMPTY_TREE_ROOT,
    MerkleProof,
    MerkleTree,
    hash_pair,
    build_layers,
    build_merkle_root,
    build_merkle_proof,
    process_proof,
    verify_merkle_proof,
    compute_tree_depth,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
)


__all__ = [
    # Leaf encoder
    "encode_leaf",
    "hash_leaf",
    "hash_entry",
    # Core types
    "MerkleProof",
    "MerkleTree",
    "EMPTY_TREE_ROOT",
    # Core functions
    "hash_pair",
    "build_layers",
    "build_merkle_root",
    "build_merkle_proof",
    "process_proof",
    "verify_merkle_proof",
    "compute_tree_depth",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
