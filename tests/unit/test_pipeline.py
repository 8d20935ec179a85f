"""
Module 06A - Distribution Pipeline Tests
Tests for orchestrator/pipeline.py

Tests:
- Unsigned and signed end-to-end generation
- Canonical order, indices and exact totals
- Empty input, duplicates, overflow and missing signing domain
- Parallel generation equals sequential generation
"""
import pytest

from core.crypto.signatures import authority_key, recover_signer
from core.merkle import MerkleTree, hash_entry, hash_leaf, hash_pair, verify_merkle_proof
from core.schemas.entries import MAX_UINT256, DuplicatePolicy, Entry, canonical_order
from core.schemas.errors import (
    AmountOverflowException,
    DuplicateBeneficiaryException,
    EmptyInputException,
    ErrorCodes,
    SelfCheckException,
)
from core.schemas.verification import CheckResult, VerificationResult
from orchestrator.pipeline import DistributionPipeline, generate_distribution, utc_timestamp

from fixtures.common import (
    FIXED_TIMESTAMP,
    TEST_CHAIN_ID,
    TEST_CONTRACT,
    TEST_PRIVATE_KEY,
    TEST_SIGNER_ADDRESS,
    make_address,
    make_config,
    make_distribution,
    make_entries,
)


def run(entries, config=None, signed=False):
    config = config or make_config(signed=signed)
    pipeline = DistributionPipeline(config, clock=lambda: FIXED_TIMESTAMP)
    if signed:
        with authority_key(TEST_PRIVATE_KEY) as signer:
            return pipeline.run(entries, signer=signer)
    return pipeline.run(entries)


class TestUnsignedGeneration:
    """Tests for generation without signatures."""

    def test_basic_fields(self, entries):
        result = run(entries)
        assert result.ok
        distribution = result.distribution
        assert distribution.total_entries == 5
        assert distribution.token_total == str(sum(e.amount for e in entries))
        assert distribution.tree_depth == 3
        assert distribution.generated_at == FIXED_TIMESTAMP
        assert not distribution.signed
        assert result.signer is None

    def test_claims_keyed_by_checksum(self, entries):
        distribution = run(entries).distribution
        assert set(distribution.claims) == {e.beneficiary for e in entries}

    def test_indices_follow_canonical_order(self, entries):
        reversed_entries = list(reversed(entries))
        distribution = run(reversed_entries).distribution
        for index, entry in enumerate(canonical_order(entries)):
            assert distribution.claims[entry.beneficiary].index == index

    def test_every_claim_verifies(self, entries):
        distribution = run(entries).distribution
        for address, record in distribution.claims.items():
            leaf = hash_leaf(address, record.amount_int)
            assert verify_merkle_proof(leaf, record.proof_bytes, distribution.root_bytes)

    def test_three_entry_tree(self):
        entries = canonical_order(make_entries(3))
        a, b, c = (hash_entry(e) for e in entries)
        distribution = run(entries).distribution
        assert distribution.root_bytes == hash_pair(hash_pair(a, b), hash_pair(c, c))
        assert distribution.tree_depth == 2

    def test_single_entry(self):
        entry = Entry.create(make_address(9), 123)
        distribution = run([entry]).distribution
        assert distribution.root_bytes == hash_entry(entry)
        assert distribution.tree_depth == 0
        assert distribution.claims[entry.beneficiary].proof == []

    def test_permutation_invariance(self, entries):
        shuffled = [entries[i] for i in (3, 0, 4, 1, 2)]
        assert run(entries).merkle_root == run(shuffled).merkle_root

    def test_exact_total_over_1000_entries(self):
        entries = [Entry.create(make_address(i + 1), 10**24 + i) for i in range(1000)]
        distribution = run(entries).distribution
        assert int(distribution.token_total) == 1000 * 10**24 + sum(range(1000))
        assert distribution.tree_depth == 10

    def test_tree_dump(self, entries):
        result = run(entries)
        dump = result.tree_dump()
        assert dump.root == result.merkle_root
        assert [e.address for e in dump.entries] == [e.beneficiary for e in canonical_order(entries)]
        assert MerkleTree(result.leaves).root == result.distribution.root_bytes
        assert dump.depth == result.distribution.tree_depth

    def test_step_results_recorded(self, entries):
        result = run(entries)
        names = [name for name, _, _ in result.step_results]
        assert names == [
            "validate_input",
            "resolve_duplicates",
            "canonical_order",
            "hash_leaves",
            "build_tree",
            "token_total",
            "assemble",
            "self_check",
        ]

    def test_to_dict(self, entries):
        data = run(entries).to_dict()
        assert data["ok"] is True
        assert data["total_entries"] == 5
        assert data["signed"] is False


class TestSignedGeneration:
    """Tests for generation with claim signatures."""

    def test_signatures_recover_authority(self, entries):
        result = run(entries, signed=True)
        assert result.ok
        assert result.signer == TEST_SIGNER_ADDRESS
        assert result.distribution.signed
        for address, record in result.distribution.claims.items():
            recovered = recover_signer(
                address, record.amount_int, TEST_CONTRACT, TEST_CHAIN_ID, record.signature
            )
            assert recovered == TEST_SIGNER_ADDRESS

    def test_sign_step_present(self, entries):
        names = [name for name, _, _ in run(entries, signed=True).step_results]
        assert "sign_claims" in names

    def test_signing_requires_domain(self, entries):
        config = make_config(signed=False)
        with authority_key(TEST_PRIVATE_KEY) as signer:
            result = DistributionPipeline(config).run(entries, signer=signer)
        assert not result.ok
        with pytest.raises(ValueError, match="verifying_contract"):
            result.raise_for_failure()

    def test_parallel_signing_matches(self, entries):
        sequential = run(entries, signed=True).distribution
        config = make_config(signed=True)
        config.tree.max_workers = 4
        parallel = run(entries, config=config, signed=True).distribution
        assert parallel == sequential


class TestFailures:
    """Tests for failing runs."""

    def test_empty_input(self):
        result = run([])
        assert not result.ok
        assert result.distribution is None
        with pytest.raises(EmptyInputException) as exc:
            result.raise_for_failure()
        assert exc.value.code == ErrorCodes.EMPTY_INPUT

    def test_duplicates_rejected_by_default(self):
        entries = [Entry.create(make_address(1), 1), Entry.create(make_address(1), 2)]
        with pytest.raises(DuplicateBeneficiaryException):
            generate_distribution(entries)

    def test_duplicates_keep_first_warns(self):
        entries = [Entry.create(make_address(1), 1), Entry.create(make_address(1), 2)]
        config = make_config()
        config.input.duplicate_policy = DuplicatePolicy.KEEP_FIRST
        result = run(entries, config=config)
        assert result.ok
        assert result.distribution.total_entries == 1
        assert result.distribution.token_total == "1"
        warnings = [c for c in result.checks if c.check_id == "duplicates"]
        assert warnings and warnings[0].is_warning

    def test_total_overflow(self):
        entries = [Entry.create(make_address(1), MAX_UINT256), Entry.create(make_address(2), 1)]
        with pytest.raises(AmountOverflowException):
            generate_distribution(entries)

    def test_self_check_failure(self, entries, monkeypatch):
        def failing_check(distribution, config=None, **kwargs):
            return VerificationResult.from_checks([
                CheckResult.failed("claim_proof", "forced failure", code=ErrorCodes.PROOF_MISMATCH)
            ])

        monkeypatch.setattr("orchestrator.pipeline.run_self_check", failing_check)
        result = run(entries)
        assert not result.ok
        assert isinstance(result.exception, SelfCheckException)
        assert result.exception.details["error_codes"] == [ErrorCodes.PROOF_MISMATCH]

    def test_self_check_can_be_disabled(self, entries):
        config = make_config(enabled=False)
        result = run(entries, config=config)
        assert result.ok
        assert result.self_check is None


class TestOrdering:
    """Tests for ordering options."""

    def test_no_sort_keeps_input_order(self, entries):
        config = make_config()
        config.tree.sort_entries = False
        reversed_entries = list(reversed(entries))
        result = run(reversed_entries, config=config)
        assert result.ok
        for index, entry in enumerate(reversed_entries):
            assert result.distribution.claims[entry.beneficiary].index == index
        assert any(c.check_id == "canonical_order" and c.is_warning for c in result.checks)

    def test_parallel_hashing_matches(self):
        entries = make_entries(40)
        config = make_config()
        config.tree.max_workers = 4
        config.tree.parallel_threshold = 2
        assert run(entries, config=config).merkle_root == run(entries).merkle_root


class TestHelpers:
    """Tests for module helpers."""

    def test_utc_timestamp_format(self):
        stamp = utc_timestamp()
        assert stamp.endswith("Z")
        assert len(stamp) == len("2026-01-01T00:00:00.000Z")

    def test_generate_distribution_matches_fixture(self, entries):
        assert generate_distribution(entries).merkle_root == make_distribution(entries).merkle_root
