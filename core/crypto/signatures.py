"""
Module 04 - Claim Authorization Signatures
Sign and verify per-entry claim authorizations.

Owner: Protocol/Crypto Engineer
Module ID: M04

Message Rule (Hard Contract, must match the claim contract):
    digest   = keccak256(abi.encodePacked(address beneficiary, uint256 amount,
                                          address verifyingContract, uint256 chainId))
    prefixed = keccak256("\\x19Ethereum Signed Message:\\n32" || digest)
    signature = secp256k1 sign(prefixed), serialized r || s || v (65 bytes)

The message uses packed encoding, unlike the padded ABI encoding of leaves.
An authorization is valid for one verifying contract on one chain.

Key Handling:
- The authority key is borrowed through ``authority_key()`` for one signing
  batch and dropped when the block exits
- Signing is a pure function of key and message; a ClaimSigner can be
  shared by worker threads inside the block
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from eth_abi.packed import encode_packed
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_utils import ValidationError as EthValidationError

from core.crypto.hashing import from_hex, keccak256
from core.schemas.entries import check_uint256, normalize_address
from core.schemas.errors import (
    DropException,
    MalformedSignatureException,
    SignerMismatchException,
)


logger = logging.getLogger(__name__)


SIGNATURE_LENGTH = 65
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"
CLAIM_MESSAGE_TYPES = ["address", "uint256", "address", "uint256"]

# secp256k1 group order; s above n/2 is the malleable twin and is rejected
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2


def claim_message(
    beneficiary: str,
    amount: int,
    verifying_contract: str,
    chain_id: int,
) -> bytes:
    """
    Tightly packed claim authorization message (104 bytes).

    Raises:
        InvalidEntryException: If an address is malformed
        AmountOverflowException: If amount or chain id does not fit uint256
    """
    return encode_packed(
        CLAIM_MESSAGE_TYPES,
        [
            normalize_address(beneficiary),
            check_uint256(amount),
            normalize_address(verifying_contract),
            check_uint256(chain_id),
        ],
    )


def claim_message_hash(
    beneficiary: str,
    amount: int,
    verifying_contract: str,
    chain_id: int,
) -> bytes:
    """keccak256 of the packed claim message."""
    return keccak256(claim_message(beneficiary, amount, verifying_contract, chain_id))


def prefixed_hash(digest: bytes) -> bytes:
    """
    Personal-message hash of a digest (EIP-191 version 0x45).

    keccak256("\\x19Ethereum Signed Message:\\n" + len(digest) + digest)
    """
    return keccak256(PERSONAL_MESSAGE_PREFIX + str(len(digest)).encode("ascii") + digest)


def _as_bytes(signature: bytes | str) -> bytes:
    if isinstance(signature, str):
        try:
            return from_hex(signature)
        except ValueError as e:
            raise MalformedSignatureException(f"Signature is not hex: {e}") from e
    if not isinstance(signature, (bytes, bytearray, memoryview)):
        raise MalformedSignatureException(
            f"Signature must be bytes or a hex string, got {type(signature).__name__}"
        )
    return bytes(signature)


def split_signature(signature: bytes | str) -> tuple[int, int, int]:
    """
    Split and validate a 65-byte ``r || s || v`` signature.

    Applies the same acceptance rules as the contract's ECDSA helper:
    v must be 27 or 28, r in [1, n), s in [1, n/2].

    Returns:
        (r, s, v)

    Raises:
        MalformedSignatureException: For any violation
    """
    raw = _as_bytes(signature)
    if len(raw) != SIGNATURE_LENGTH:
        raise MalformedSignatureException(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}",
            details={"length": len(raw)},
        )

    r = int.from_bytes(raw[0:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]

    if v not in (27, 28):
        raise MalformedSignatureException(f"Invalid recovery id v={v}", details={"v": v})
    if not 0 < r < SECP256K1_N:
        raise MalformedSignatureException("Signature r out of range")
    if not 0 < s <= SECP256K1_HALF_N:
        raise MalformedSignatureException("Signature s out of range (non-canonical)")
    return r, s, v


class ClaimSigner:
    """
    Scoped handle on the authority signing key.

    Obtain one through ``authority_key()``; the handle is closed (and the
    key reference dropped) when the ``with`` block exits.
    """

    def __init__(self, private_key: bytes | str) -> None:
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError, EthValidationError):
            # Never echo key material back in the error
            raise ValueError("Invalid authority signing key") from None
        self._address: str = self._account.address

    @property
    def address(self) -> str:
        """Checksummed address of the authority."""
        return self._address

    @property
    def closed(self) -> bool:
        return self._account is None

    def close(self) -> None:
        self._account = None

    def sign_claim(
        self,
        beneficiary: str,
        amount: int,
        verifying_contract: str,
        chain_id: int,
    ) -> bytes:
        """
        Sign the authorization for one entry.

        Returns:
            65-byte signature (r || s || v, v in {27, 28})

        Raises:
            RuntimeError: If the handle has been closed
        """
        account = self._account
        if account is None:
            raise RuntimeError("Signing key handle is closed")
        digest = claim_message_hash(beneficiary, amount, verifying_contract, chain_id)
        signed = account.sign_message(encode_defunct(primitive=digest))
        return bytes(signed.signature)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"ClaimSigner(address={self._address!r}, {state})"


@contextmanager
def authority_key(private_key: bytes | str) -> Iterator[ClaimSigner]:
    """
    Borrow the authority key for the duration of one signing batch.

    Example:
        >>> with authority_key(os.environ["PRIVATE_KEY"]) as signer:
        ...     sig = signer.sign_claim(addr, 1000, contract, 1)
    """
    signer = ClaimSigner(private_key)
    logger.debug(f"Authority key acquired for {signer.address}")
    try:
        yield signer
    finally:
        signer.close()
        logger.debug(f"Authority key released for {signer.address}")


def sign_claim(
    beneficiary: str,
    amount: int,
    verifying_contract: str,
    chain_id: int,
    signing_key: bytes | str,
) -> bytes:
    """One-off signature; the key is held only for this call."""
    with authority_key(signing_key) as signer:
        return signer.sign_claim(beneficiary, amount, verifying_contract, chain_id)


def recover_signer(
    beneficiary: str,
    amount: int,
    verifying_contract: str,
    chain_id: int,
    signature: bytes | str,
) -> str:
    """
    Recover the checksummed signer address of a claim authorization.

    Raises:
        MalformedSignatureException: Malformed signature or recovery failure
        InvalidEntryException: If an address field is malformed
    """
    raw = _as_bytes(signature)
    split_signature(raw)
    digest = claim_message_hash(beneficiary, amount, verifying_contract, chain_id)
    try:
        return Account.recover_message(encode_defunct(primitive=digest), signature=raw)
    except (BadSignature, EthValidationError, ValueError) as e:
        raise MalformedSignatureException(f"Signature recovery failed: {e}") from e


def require_valid_signature(
    beneficiary: str,
    amount: int,
    verifying_contract: str,
    chain_id: int,
    signature: bytes | str,
    expected_signer: str,
) -> None:
    """
    Require that ``signature`` authorizes the claim for ``expected_signer``.

    Raises:
        MalformedSignatureException: Malformed signature or recovery failure
        SignerMismatchException: Recovered identity differs from expected
    """
    expected = normalize_address(expected_signer)
    recovered = recover_signer(beneficiary, amount, verifying_contract, chain_id, signature)
    if recovered.lower() != expected.lower():
        raise SignerMismatchException(recovered=recovered, expected=expected)


def check_signature(
    beneficiary: str,
    amount: int,
    verifying_contract: str,
    chain_id: int,
    signature: bytes | str,
    expected_signer: str,
) -> bool:
    """
    Boolean form of require_valid_signature.

    Every failure (malformed input, bad recovery, wrong signer) is a
    rejection; this function never raises.
    """
    try:
        require_valid_signature(
            beneficiary, amount, verifying_contract, chain_id, signature, expected_signer
        )
    except DropException as e:
        logger.debug(f"Signature rejected: {e.code} {e.message}")
        return False
    return True


__all__ = [
    "SIGNATURE_LENGTH",
    "PERSONAL_MESSAGE_PREFIX",
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
