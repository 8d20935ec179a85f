"""
Module 03 - Merkle Tree Implementation
Deterministic Merkle tree construction, proof generation, and verification.

Owner: Protocol/Crypto Engineer
Module ID: M03

This module provides:
- Sorted-pair parent hashing (commutative)
- Layer-by-layer tree construction with the duplicate-last padding rule
- Merkle proof generation for any leaf index
- Merkle proof verification

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = keccak256(keccak256(abi.encode(address, uint256)))
   - Implemented in core.merkle.leaf.hash_leaf()
2. Parent hashing: parent = keccak256(min(a, b) + max(a, b))
   - a and b compared as unsigned byte strings
   - Matches the sorted-pair convention of the on-chain proof check, so a
     proof is just the list of siblings, no left/right flags
3. Padding rule: the last node of an odd layer is paired with itself
4. Empty leaves: root is 32 zero bytes, no proofs exist
5. Single leaf: root = leaf, proof = []

Determinism Notes:
- Leaf ordering is defined upstream (canonical entry order)
- This module never sorts leaves - it trusts input order
- Parallel layer hashing produces the same layers as sequential hashing
"""
from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Sequence

from core.crypto.hashing import keccak256
from core.schemas.errors import OutOfRangeIndexException


# Empty tree sentinel: 32 zero bytes
EMPTY_TREE_ROOT: bytes = b"\x00" * 32

# Layers shorter than this are always hashed sequentially
DEFAULT_PARALLEL_THRESHOLD = 4096


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle proof for a single leaf in a Merkle tree.

    Attributes:
        leaf: The leaf hash being proven (32 bytes)
        index: The 0-based index of the leaf in the leaf list
        siblings: Sibling hashes from bottom to top of tree
        root: The Merkle root this proof is against
    """
    leaf: bytes
    index: int
    siblings: list[bytes] = field(default_factory=list)
    root: bytes = EMPTY_TREE_ROOT

    def __post_init__(self) -> None:
        """Validate proof structure."""
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")

    def verify(self) -> bool:
        return verify_merkle_proof(self.leaf, self.siblings, self.root)


def hash_pair(a: bytes, b: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes.

    The pair is sorted before hashing, so hash_pair(a, b) == hash_pair(b, a).

    Args:
        a: One child hash
        b: The other child hash

    Returns:
        Parent hash (32 bytes)
    """
    if a <= b:
        return keccak256(a + b)
    return keccak256(b + a)


def _hash_layer_slice(layer: Sequence[bytes], start: int, stop: int) -> list[bytes]:
    out: list[bytes] = []
    last = len(layer) - 1
    for i in range(start, stop, 2):
        left = layer[i]
        right = layer[i + 1] if i < last else layer[i]
        out.append(hash_pair(left, right))
    return out


def next_layer(
    layer: Sequence[bytes],
    executor: ThreadPoolExecutor | None = None,
    chunk_pairs: int = 1024,
) -> list[bytes]:
    """
    Hash one layer into its parent layer.

    With an executor, the layer is split into even-aligned chunks that are
    hashed concurrently and reassembled in order.
    """
    n = len(layer)
    if executor is None:
        return _hash_layer_slice(layer, 0, n)

    step = chunk_pairs * 2
    futures = [
        executor.submit(_hash_layer_slice, layer, start, min(start + step, n))
        for start in range(0, n, step)
    ]
    out: list[bytes] = []
    for future in futures:
        out.extend(future.result())
    return out


def build_layers(
    leaves: Sequence[bytes],
    *,
    max_workers: int = 1,
    parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD,
) -> list[list[bytes]]:
    """
    Build every layer of the tree, leaves first, root layer last.

    Layer construction is sequential across layers; within a layer the pair
    hashes are independent and are spread over ``max_workers`` threads once
    the layer reaches ``parallel_threshold`` nodes.

    Args:
        leaves: Ordered leaf digests
        max_workers: Worker threads for within-layer hashing (1 = sequential)
        parallel_threshold: Minimum layer length for parallel hashing

    Returns:
        List of layers; ``[[]]`` for no leaves
    """
    if len(leaves) == 0:
        return [[]]

    layers: list[list[bytes]] = [list(leaves)]
    executor = ThreadPoolExecutor(max_workers=max_workers) if max_workers > 1 else None
    try:
        while len(layers[-1]) > 1:
            current = layers[-1]
            use_pool = executor if len(current) >= parallel_threshold else None
            layers.append(next_layer(current, use_pool))
    finally:
        if executor is not None:
            executor.shutdown(wait=True)
    return layers


def compute_tree_depth(num_leaves: int) -> int:
    """
    Number of proof elements per leaf.

    Depth is ceil(log2(N)) for N > 1 and 0 for N <= 1.
    """
    if num_leaves <= 1:
        return 0
    return math.ceil(math.log2(num_leaves))


class MerkleTree:
    """
    One-shot Merkle tree over a closed, ordered leaf list.

    Never mutated after construction; answers root, depth and proof
    queries for any index.

    Example:
        >>> tree = MerkleTree(leaves)
        >>> proof = tree.proof_for(2)
        >>> verify_merkle_proof(leaves[2], proof, tree.root)
        True
    """

    def __init__(
        self,
        leaves: Sequence[bytes],
        *,
        max_workers: int = 1,
        parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD,
    ) -> None:
        self._layers: tuple[tuple[bytes, ...], ...] = tuple(
            tuple(layer)
            for layer in build_layers(
                leaves,
                max_workers=max_workers,
                parallel_threshold=parallel_threshold,
            )
        )

    @property
    def size(self) -> int:
        return len(self._layers[0])

    @property
    def leaves(self) -> tuple[bytes, ...]:
        return self._layers[0]

    @property
    def layers(self) -> tuple[tuple[bytes, ...], ...]:
        return self._layers

    @property
    def depth(self) -> int:
        return len(self._layers) - 1

    @property
    def root(self) -> bytes:
        if self.size == 0:
            return EMPTY_TREE_ROOT
        return self._layers[-1][0]

    def proof_for(self, index: int) -> list[bytes]:
        """
        Sibling digests from leaf to root for the leaf at ``index``.

        At each layer the sibling is index-1 for a right node and index+1
        for a left node; when that position is past the end of an odd layer
        the node itself is the sibling (it was paired with itself).

        Raises:
            OutOfRangeIndexException: If index is outside [0, size)
        """
        if index < 0 or index >= self.size:
            raise OutOfRangeIndexException(index, self.size)

        proof: list[bytes] = []
        idx = index
        for nodes in self._layers[:-1]:
            is_right = idx % 2 == 1
            pair_index = idx - 1 if is_right else idx + 1
            sibling = nodes[pair_index] if pair_index < len(nodes) else nodes[idx]
            proof.append(sibling)
            idx //= 2
        return proof

    def proof(self, index: int) -> MerkleProof:
        """Proof for ``index`` bundled with its leaf and the root."""
        siblings = self.proof_for(index)
        return MerkleProof(
            leaf=self.leaves[index],
            index=index,
            siblings=siblings,
            root=self.root,
        )


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Padding Rule: the last node of an odd layer is paired with itself.
    Example: [a, b, c] -> [pair(a,b), pair(c,c)] -> [pair(ab, cc)]

    Returns:
        32-byte Merkle root (EMPTY_TREE_ROOT for no leaves)
    """
    return MerkleTree(leaves).root


def build_merkle_proof(leaves: Sequence[bytes], index: int) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    Raises:
        OutOfRangeIndexException: If index is out of range (always, for no leaves)
    """
    return MerkleTree(leaves).proof(index)


def process_proof(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    """Fold hash_pair over the proof, bottom-up, returning the computed root."""
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed


def verify_merkle_proof(leaf: bytes, proof: Sequence[bytes], expected_root: bytes) -> bool:
    """
    Verify a Merkle proof.

    Recomputes the root from the leaf and siblings (in proof order) and
    compares against the expected root. Identical to the on-chain check.

    Returns:
        True if the proof is valid, False otherwise
    """
    return process_proof(leaf, proof) == expected_root


__all__ = [
    "EMPTY_TREE_ROOT",
    "DEFAULT_PARALLEL_THRESHOLD",
    "MerkleProof",
    "MerkleTree",
    "hash_pair",
    "next_layer",
    "build_layers",
    "build_merkle_root",
    "build_merkle_proof",
    "process_proof",
    "verify_merkle_proof",
    "compute_tree_depth",
]
