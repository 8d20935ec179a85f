"""
Module 05 - Reference Claim Distributor

Usage:
    from core.distributor import MerkleDistributor

    distributor = MerkleDistributor(
        merkle_root=dist.root_bytes,
        signer=authority,
        address=contract,
        chain_id=1,
        balance=int(dist.token_total),
    )
    receipt = distributor.claim(addr, amount, proof, signature)
"""
from .ledger import ClaimReceipt, MerkleDistributor

__all__ = [
    "ClaimReceipt",
    "MerkleDistributor",
]
