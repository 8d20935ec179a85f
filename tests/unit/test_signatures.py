"""
Module 04 - Signature Unit Tests
Tests for core/crypto/signatures.py

Tests:
- Packed claim message layout
- Personal-message prefix
- Sign / recover with the test authority
- Signature binding to beneficiary, amount, contract and chain id
- Structural rejection: length, v, high-s
- Scoped key handle
"""
import pytest
from eth_keys import keys

from core.crypto.hashing import keccak256
from core.crypto.signatures import (
    SECP256K1_N,
    ClaimSigner,
    authority_key,
    check_signature,
    claim_message,
    claim_message_hash,
    prefixed_hash,
    recover_signer,
    require_valid_signature,
    sign_claim,
    split_signature,
)
from core.schemas.errors import (
    ErrorCodes,
    InvalidEntryException,
    MalformedSignatureException,
    SignerMismatchException,
)

from fixtures.common import TEST_CHAIN_ID, TEST_CONTRACT, TEST_PRIVATE_KEY, TEST_SIGNER_ADDRESS


BENEFICIARY = "0x" + "11" * 20
AMOUNT = 10**18


@pytest.fixture(scope="module")
def signature() -> bytes:
    return sign_claim(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, TEST_PRIVATE_KEY)


class TestClaimMessage:
    """Tests for the packed claim message."""

    def test_packed_layout(self):
        message = claim_message(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID)
        assert len(message) == 20 + 32 + 20 + 32
        assert message[:20] == bytes.fromhex("11" * 20)
        assert int.from_bytes(message[20:52], "big") == AMOUNT
        assert message[52:72] == bytes.fromhex("c0" * 20)
        assert int.from_bytes(message[72:], "big") == TEST_CHAIN_ID

    def test_message_hash(self):
        message = claim_message(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID)
        assert claim_message_hash(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID) == keccak256(message)

    def test_prefixed_hash(self):
        digest = keccak256(b"x")
        assert prefixed_hash(digest) == keccak256(b"\x19Ethereum Signed Message:\n32" + digest)

    def test_bad_contract_address(self):
        with pytest.raises(InvalidEntryException):
            claim_message(BENEFICIARY, AMOUNT, "0x1234", TEST_CHAIN_ID)


class TestSignAndRecover:
    """Tests for signing and recovery."""

    def test_signature_shape(self, signature):
        assert len(signature) == 65
        assert signature[64] in (27, 28)

    def test_recover_test_authority(self, signature):
        recovered = recover_signer(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, signature)
        assert recovered == TEST_SIGNER_ADDRESS

    def test_recover_over_prefixed_hash(self, signature):
        """The signature is over the personal-message hash of the digest."""
        r, s, v = split_signature(signature)
        digest = claim_message_hash(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID)
        sig = keys.Signature(vrs=(v - 27, r, s))
        public_key = sig.recover_public_key_from_msg_hash(prefixed_hash(digest))
        assert public_key.to_checksum_address() == TEST_SIGNER_ADDRESS

    def test_hex_signature_accepted(self, signature):
        assert check_signature(
            BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, "0x" + signature.hex(), TEST_SIGNER_ADDRESS
        )

    def test_deterministic(self, signature):
        again = sign_claim(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, TEST_PRIVATE_KEY)
        assert again == signature

    def test_expected_signer_any_case(self, signature):
        require_valid_signature(
            BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, signature, TEST_SIGNER_ADDRESS.lower()
        )


class TestSignatureBinding:
    """A signature authorizes exactly one (beneficiary, amount, contract, chain)."""

    @pytest.mark.parametrize("field", ["beneficiary", "amount", "contract", "chain_id"])
    def test_changed_field_rejected(self, signature, field):
        args = {
            "beneficiary": BENEFICIARY,
            "amount": AMOUNT,
            "contract": TEST_CONTRACT,
            "chain_id": TEST_CHAIN_ID,
        }
        args[field] = {
            "beneficiary": "0x" + "22" * 20,
            "amount": AMOUNT + 1,
            "contract": "0x" + "c1" * 20,
            "chain_id": TEST_CHAIN_ID + 1,
        }[field]

        with pytest.raises(SignerMismatchException) as exc:
            require_valid_signature(
                args["beneficiary"], args["amount"], args["contract"], args["chain_id"],
                signature, TEST_SIGNER_ADDRESS,
            )
        assert exc.value.code == ErrorCodes.SIGNER_MISMATCH
        assert not check_signature(
            args["beneficiary"], args["amount"], args["contract"], args["chain_id"],
            signature, TEST_SIGNER_ADDRESS,
        )

    def test_wrong_expected_signer(self, signature):
        with pytest.raises(SignerMismatchException):
            require_valid_signature(
                BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, signature, "0x" + "99" * 20
            )


class TestMalformedSignatures:
    """Structural acceptance rules."""

    def test_wrong_length(self, signature):
        with pytest.raises(MalformedSignatureException, match="65 bytes"):
            split_signature(signature[:64])

    @pytest.mark.parametrize("v", [0, 1, 26, 29])
    def test_bad_v(self, signature, v):
        with pytest.raises(MalformedSignatureException, match="recovery id"):
            split_signature(signature[:64] + bytes([v]))

    def test_high_s_rejected(self, signature):
        """The malleable twin (n - s, flipped v) is rejected."""
        r, s, v = split_signature(signature)
        twin = r.to_bytes(32, "big") + (SECP256K1_N - s).to_bytes(32, "big") + bytes([55 - v])
        with pytest.raises(MalformedSignatureException, match="s out of range"):
            split_signature(twin)
        assert not check_signature(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, twin, TEST_SIGNER_ADDRESS)

    def test_zero_r_rejected(self, signature):
        with pytest.raises(MalformedSignatureException, match="r out of range"):
            split_signature(b"\x00" * 32 + signature[32:])

    def test_non_hex_string(self):
        with pytest.raises(MalformedSignatureException):
            split_signature("0xnothex")

    @pytest.mark.parametrize("value", [None, 12345, ["0x00"], b""])
    def test_missing_or_wrong_type_is_rejection(self, value):
        """Absent or non-bytes signatures are a rejection, not a crash."""
        with pytest.raises(MalformedSignatureException):
            split_signature(value)
        assert not check_signature(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, value, TEST_SIGNER_ADDRESS)

    def test_recover_rejects_malformed(self, signature):
        with pytest.raises(MalformedSignatureException) as exc:
            recover_signer(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID, signature[:10])
        assert exc.value.code == ErrorCodes.MALFORMED_SIGNATURE


class TestAuthorityKey:
    """Tests for the scoped key handle."""

    def test_address(self):
        with authority_key(TEST_PRIVATE_KEY) as signer:
            assert signer.address == TEST_SIGNER_ADDRESS
            assert not signer.closed

    def test_closed_after_block(self):
        with authority_key(TEST_PRIVATE_KEY) as signer:
            pass
        assert signer.closed
        with pytest.raises(RuntimeError, match="closed"):
            signer.sign_claim(BENEFICIARY, AMOUNT, TEST_CONTRACT, TEST_CHAIN_ID)

    def test_repr_hides_key(self):
        signer = ClaimSigner(TEST_PRIVATE_KEY)
        assert TEST_PRIVATE_KEY[2:] not in repr(signer)
        assert TEST_SIGNER_ADDRESS in repr(signer)

    def test_invalid_key(self):
        with pytest.raises(ValueError, match="Invalid authority signing key"):
            ClaimSigner("0x1234")
