"""
Module 05 - Reference Claim Distributor
In-memory model of the on-chain claim contract.

Owner: Protocol/Crypto Engineer
Module ID: M05

The contract holds a token balance, a committed Merkle root and the
authority address. A claim is accepted only if, in this order:

1. the claim window is still open
2. the amount is non-zero
3. the caller has not claimed before
4. the authorization signature recovers to the authority, over
   (caller, amount, this contract's address, this chain id)
5. the Merkle proof recomputes the committed root
6. the contract holds enough tokens

Generated artifacts are exercised against this model to show they satisfy
the contract's acceptance rules before anything is deployed.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from core.crypto.hashing import to_hex
from core.crypto.signatures import require_valid_signature
from core.merkle.merkle_proofs import MerkleVerifier
from core.schemas.entries import check_uint256, normalize_address
from core.schemas.errors import (
    AlreadyClaimedException,
    ClaimWindowExpiredException,
    InsufficientBalanceException,
    ZeroAmountException,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimReceipt:
    """Outcome of an accepted claim (the Claimed event)."""
    account: str
    amount: int
    claimed_at: int
    remaining_balance: int


@dataclass
class MerkleDistributor:
    """
    Reference distributor contract.

    Attributes:
        merkle_root: Committed 32-byte root
        signer: Authority address that signs claim authorizations
        address: This contract's address (the verifying contract)
        chain_id: Chain the contract is deployed on
        balance: Tokens held by the contract, in base units
        claim_duration: Seconds after deployment during which claims are open
        deployed_at: Deployment timestamp (unix seconds)
    """
    merkle_root: bytes
    signer: str
    address: str
    chain_id: int
    balance: int
    claim_duration: int = 30 * 24 * 3600
    deployed_at: int = field(default_factory=lambda: int(time.time()))
    _claimed: set[str] = field(default_factory=set, init=False, repr=False)
    _transfers: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if len(self.merkle_root) != 32:
            raise ValueError("Merkle root must be 32 bytes")
        self.signer = normalize_address(self.signer)
        self.address = normalize_address(self.address)
        check_uint256(self.chain_id)
        check_uint256(self.balance)

    @property
    def end_time(self) -> int:
        return self.deployed_at + self.claim_duration

    def is_claimed(self, account: str) -> bool:
        return normalize_address(account) in self._claimed

    def balance_of(self, account: str) -> int:
        """Tokens transferred to ``account`` by this distributor."""
        return self._transfers.get(normalize_address(account), 0)

    def verify(self, proof: Sequence[bytes], account: str, amount: int) -> bool:
        """Read-only membership check (the contract's ``verify`` view)."""
        return MerkleVerifier.verify_entry(account, amount, proof, self.merkle_root)

    def claim(
        self,
        caller: str,
        amount: int,
        proof: Sequence[bytes],
        signature: bytes | str,
        now: Optional[int] = None,
    ) -> ClaimReceipt:
        """
        Claim ``amount`` for ``caller``.

        The caller is the beneficiary; nobody can claim on someone else's
        behalf. State changes only when every check passes.

        Raises:
            ClaimWindowExpiredException: After end_time
            ZeroAmountException: amount == 0
            AlreadyClaimedException: Caller claimed before
            MalformedSignatureException: Signature fails structural checks
            SignerMismatchException: Signature is not from the authority
            ProofMismatchException: Proof does not reach the root
            InsufficientBalanceException: Contract cannot cover the amount
        """
        timestamp = int(time.time()) if now is None else now
        account = normalize_address(caller)

        if timestamp > self.end_time:
            raise ClaimWindowExpiredException(end_time=self.end_time, now=timestamp)
        if amount == 0:
            raise ZeroAmountException()
        if account in self._claimed:
            raise AlreadyClaimedException(account)

        require_valid_signature(
            account, amount, self.address, self.chain_id, signature, self.signer
        )
        MerkleVerifier.require_entry(account, amount, proof, self.merkle_root)

        if amount > self.balance:
            raise InsufficientBalanceException(requested=amount, available=self.balance)

        self._claimed.add(account)
        self.balance -= amount
        self._transfers[account] = self._transfers.get(account, 0) + amount
        logger.info(f"Claimed {amount} for {account} against root {to_hex(self.merkle_root)}")

        return ClaimReceipt(
            account=account,
            amount=amount,
            claimed_at=timestamp,
            remaining_balance=self.balance,
        )


__all__ = [
    "ClaimReceipt",
    "MerkleDistributor",
]
