"""
Module 06A - Distribution Pipeline

Deterministic, in-process batch job that turns a closed list of
(beneficiary, amount) entries into a published distribution.

Steps:
1. validate_input: reject an empty batch
2. resolve_duplicates: apply the configured duplicate policy
3. canonical_order: sort by address then amount (can be disabled)
4. hash_leaves: double-hashed leaves, parallel when configured
5. build_tree: layers, root and depth
6. token_total: exact uint256 sum
7. sign_claims: one authorization per entry (only with a signer)
8. assemble: ClaimRecords keyed by checksummed beneficiary
9. self_check: re-verify the result (can be disabled)

The first failing step stops the run; the original exception is kept on
the result.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from core.config.runtime import DropConfig
from core.crypto.hashing import to_hex
from core.crypto.signatures import ClaimSigner
from core.merkle.leaf import hash_entry
from core.merkle.merkle_tree import MerkleTree
from core.schemas.distribution import ClaimRecord, Distribution, TreeDump, TreeEntry
from core.schemas.entries import Entry, canonical_order, resolve_duplicates, sum_amounts
from core.schemas.errors import DropException, EmptyInputException, SelfCheckException
from core.schemas.verification import CheckResult, VerificationResult

from orchestrator.self_check import run_self_check
from orchestrator.sop_executor import PipelineState, SOPExecutor, make_step


logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


# =============================================================================
# Run Result
# =============================================================================

@dataclass
class GenerationResult:
    """Complete result of a generation run."""
    distribution: Optional[Distribution] = None
    entries: list[Entry] = field(default_factory=list)
    leaves: list[bytes] = field(default_factory=list)
    tree: Optional[MerkleTree] = None
    self_check: Optional[VerificationResult] = None
    signer: Optional[str] = None
    ok: bool = False
    checks: list[CheckResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    exception: Optional[BaseException] = None
    step_results: list[tuple[str, bool, Optional[str]]] = field(default_factory=list)

    @property
    def merkle_root(self) -> Optional[str]:
        return self.distribution.merkle_root if self.distribution else None

    def raise_for_failure(self) -> None:
        """Re-raise the failure of an unsuccessful run."""
        if self.ok:
            return
        if self.exception is not None:
            raise self.exception
        raise DropException("; ".join(self.errors) or "Distribution generation failed")

    def tree_dump(self) -> TreeDump:
        """tree.json contents for a successful run."""
        if self.distribution is None or self.tree is None:
            raise ValueError("No tree: generation did not complete")
        return TreeDump(
            root=self.distribution.merkle_root,
            entries=[TreeEntry(address=e.beneficiary, amount=str(e.amount)) for e in self.entries],
            leaves=[to_hex(leaf) for leaf in self.leaves],
            depth=self.tree.depth,
            generated_at=self.distribution.generated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "merkle_root": self.merkle_root,
            "total_entries": self.distribution.total_entries if self.distribution else None,
            "token_total": self.distribution.token_total if self.distribution else None,
            "tree_depth": self.distribution.tree_depth if self.distribution else None,
            "signed": self.distribution.signed if self.distribution else False,
            "signer": self.signer,
            "errors": self.errors,
            "check_count": len(self.checks),
        }


# =============================================================================
# Pipeline Class
# =============================================================================

class DistributionPipeline:
    """
    Runs the generation steps over one batch of entries.

    Example:
        >>> pipeline = DistributionPipeline(DropConfig())
        >>> with authority_key(key) as signer:
        ...     result = pipeline.run(entries, signer=signer)
        >>> result.raise_for_failure()
    """

    def __init__(
        self,
        config: Optional[DropConfig] = None,
        *,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.config = config or DropConfig()
        self._clock = clock
        self._executor = SOPExecutor(stop_on_error=True)

    def run(self, entries: Sequence[Entry], signer: Optional[ClaimSigner] = None) -> GenerationResult:
        """Execute all steps over ``entries``."""
        state = PipelineState(entries=list(entries), signer=signer)
        state = self._executor.execute(self._build_steps(signer is not None), state)
        return self._state_to_result(state)

    def _build_steps(self, signing: bool) -> list:
        """Build pipeline steps based on config."""
        steps = [
            make_step("validate_input", self._step_validate_input),
            make_step("resolve_duplicates", self._step_resolve_duplicates),
            make_step("canonical_order", self._step_canonical_order),
            make_step("hash_leaves", self._step_hash_leaves),
            make_step("build_tree", self._step_build_tree),
            make_step("token_total", self._step_token_total),
        ]
        if signing:
            steps.append(make_step("sign_claims", self._step_sign_claims))
        steps.append(make_step("assemble", self._step_assemble))
        if self.config.self_check.enabled:
            steps.append(make_step("self_check", self._step_self_check))
        return steps

    def _map(self, func: Callable[[Any], Any], items: Sequence[Any]) -> list[Any]:
        """Order-preserving map, threaded when max_workers > 1."""
        workers = self.config.tree.max_workers
        if workers <= 1 or len(items) < 2:
            return [func(item) for item in items]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(func, items))

    def _step_validate_input(self, state: PipelineState) -> PipelineState:
        """Step 1: Reject an empty batch."""
        if not state.entries:
            raise EmptyInputException()
        state.add_check(CheckResult.passed("input", f"{len(state.entries)} input entries"))
        return state

    def _step_resolve_duplicates(self, state: PipelineState) -> PipelineState:
        """Step 2: Apply the duplicate-beneficiary policy."""
        policy = self.config.input.duplicate_policy
        resolved = resolve_duplicates(state.entries, policy)
        dropped = len(state.entries) - len(resolved)
        if dropped:
            state.add_check(CheckResult.warning(
                "duplicates",
                f"{dropped} duplicate row(s) resolved with policy {policy.value}",
                details={"dropped": dropped},
            ))
        state.ordered = resolved
        return state

    def _step_canonical_order(self, state: PipelineState) -> PipelineState:
        """Step 3: Sort entries into canonical leaf order."""
        if self.config.tree.sort_entries:
            state.ordered = canonical_order(state.ordered)
        else:
            logger.warning(
                "Canonical ordering disabled: leaf indices follow input order "
                "and the root depends on row order"
            )
            state.add_check(CheckResult.warning("canonical_order", "Entries kept in input order"))
        return state

    def _step_hash_leaves(self, state: PipelineState) -> PipelineState:
        """Step 4: Hash every entry into its leaf."""
        state.leaves = self._map(hash_entry, state.ordered)
        logger.debug(f"Hashed {len(state.leaves)} leaves")
        return state

    def _step_build_tree(self, state: PipelineState) -> PipelineState:
        """Step 5: Build the tree."""
        state.tree = MerkleTree(
            state.leaves,
            max_workers=self.config.tree.max_workers,
            parallel_threshold=self.config.tree.parallel_threshold,
        )
        logger.info(f"Built tree: root {to_hex(state.tree.root)}, depth {state.tree.depth}, {state.tree.size} leaves")
        return state

    def _step_token_total(self, state: PipelineState) -> PipelineState:
        """Step 6: Exact token total."""
        state.token_total = sum_amounts(state.ordered)
        return state

    def _step_sign_claims(self, state: PipelineState) -> PipelineState:
        """Step 7: Sign one claim authorization per entry."""
        signing = self.config.signing
        if not signing.enabled:
            raise ValueError("Signing requires signing.verifying_contract and signing.chain_id")
        signer = state.signer

        def sign(entry: Entry) -> bytes:
            return signer.sign_claim(entry.beneficiary, entry.amount, signing.verifying_contract, signing.chain_id)

        state.signatures = self._map(sign, state.ordered)
        logger.info(f"Signed {len(state.signatures)} claims as {signer.address} for chain {signing.chain_id}")
        return state

    def _step_assemble(self, state: PipelineState) -> PipelineState:
        """Step 8: Assemble the distribution."""
        tree = state.tree
        claims: dict[str, ClaimRecord] = {}
        for index, entry in enumerate(state.ordered):
            claims[entry.beneficiary] = ClaimRecord(
                index=index,
                amount=str(entry.amount),
                proof=[to_hex(node) for node in tree.proof_for(index)],
                signature=to_hex(state.signatures[index]) if state.signatures is not None else None,
            )

        state.distribution = Distribution(
            merkle_root=to_hex(tree.root),
            token_total=str(state.token_total),
            total_entries=len(state.ordered),
            tree_depth=tree.depth,
            generated_at=self._clock(),
            claims=claims,
        )
        return state

    def _step_self_check(self, state: PipelineState) -> PipelineState:
        """Step 9: Re-verify the assembled distribution."""
        signed = state.signatures is not None
        result = run_self_check(
            state.distribution,
            self.config.self_check,
            leaves=state.leaves,
            signer=state.signer.address if signed else None,
            verifying_contract=self.config.signing.verifying_contract if signed else None,
            chain_id=self.config.signing.chain_id if signed else None,
        )
        state.self_check = result
        state.add_checks(result.checks)
        if not result.ok:
            raise SelfCheckException(
                f"Self-check failed: {'; '.join(result.get_error_messages()[:5])}",
                details={"error_codes": result.get_error_codes()},
            )
        return state

    def _state_to_result(self, state: PipelineState) -> GenerationResult:
        """Convert final PipelineState to GenerationResult."""
        ok = state.ok and state.distribution is not None
        return GenerationResult(
            distribution=state.distribution if ok else None,
            entries=state.ordered,
            leaves=state.leaves,
            tree=state.tree,
            self_check=state.self_check,
            signer=state.signer.address if state.signatures is not None else None,
            ok=ok,
            checks=state.checks,
            errors=state.errors,
            exception=state.exception,
            step_results=self._executor.step_results,
        )


# =============================================================================
# Factory Functions
# =============================================================================

def generate_distribution(
    entries: Sequence[Entry],
    config: Optional[DropConfig] = None,
    signer: Optional[ClaimSigner] = None,
) -> Distribution:
    """
    Generate a distribution or raise.

    Raises:
        EmptyInputException: No entries
        DuplicateBeneficiaryException: Duplicates under the reject policy
        AmountOverflowException: Token total exceeds uint256
        SelfCheckException: The result failed its own verification
    """
    result = DistributionPipeline(config).run(entries, signer=signer)
    result.raise_for_failure()
    return result.distribution


__all__ = [
    "utc_timestamp",
    "GenerationResult",
    "DistributionPipeline",
    "generate_distribution",
]
