"""
Module 02 - Hashing Unit Tests
Tests for core/crypto/hashing.py

Tests:
- keccak256 known values (not NIST SHA3-256)
- hash_concat ordering
- to_hex/from_hex round trip and rejection of malformed hex
"""
import hashlib

import pytest
from eth_utils import keccak

from core.crypto.hashing import (
    keccak256,
    hash_concat,
    to_hex,
    from_hex,
    bytes32_from_hex,
)


KECCAK_EMPTY = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


class TestKeccak256:
    """Tests for keccak256() function."""

    def test_keccak_empty_known_value(self):
        """Test keccak256 of empty bytes matches the Ethereum constant."""
        assert keccak256(b"").hex() == KECCAK_EMPTY

    def test_keccak_is_not_sha3(self):
        """Test keccak256 differs from NIST SHA3-256 (different padding)."""
        assert keccak256(b"") != hashlib.sha3_256(b"").digest()

    def test_keccak_matches_eth_utils(self):
        """Test keccak256 agrees with eth_utils.keccak."""
        data = b"merkledrop"
        assert keccak256(data) == keccak(data)

    def test_keccak_length_and_determinism(self):
        """Test digest length and repeatability."""
        assert len(keccak256(b"abc")) == 32
        assert keccak256(b"abc") == keccak256(b"abc")
        assert keccak256(b"abc") != keccak256(b"abd")


class TestHashConcat:
    """Tests for hash_concat() function."""

    def test_hash_concat_is_hash_of_concatenation(self):
        left, right = b"\x01" * 32, b"\x02" * 32
        assert hash_concat(left, right) == keccak256(left + right)

    def test_hash_concat_is_ordered(self):
        left, right = b"\x01" * 32, b"\x02" * 32
        assert hash_concat(left, right) != hash_concat(right, left)


class TestHexConversion:
    """Tests for to_hex/from_hex."""

    def test_to_hex_lowercase_prefixed(self):
        assert to_hex(bytes.fromhex("DEADBEEF")) == "0xdeadbeef"

    def test_round_trip(self):
        data = keccak256(b"round trip")
        assert from_hex(to_hex(data)) == data

    def test_from_hex_accepts_uppercase_prefix(self):
        assert from_hex("0Xff") == b"\xff"

    def test_from_hex_requires_prefix(self):
        with pytest.raises(ValueError, match="0x"):
            from_hex("deadbeef")

    def test_from_hex_odd_length(self):
        with pytest.raises(ValueError, match="even length"):
            from_hex("0xabc")

    def test_from_hex_invalid_chars(self):
        with pytest.raises(ValueError, match="Invalid hex"):
            from_hex("0xzz")

    def test_bytes32_from_hex_length(self):
        assert bytes32_from_hex("0x" + "00" * 32) == b"\x00" * 32
        with pytest.raises(ValueError, match="32-byte"):
            bytes32_from_hex("0x" + "00" * 31)
