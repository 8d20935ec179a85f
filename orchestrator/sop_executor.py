"""
Module 06A - SOP Executor

Purpose: Keep generation steps composable and testable with minimal abstraction.

Provides:
- SOPStep: Protocol for individual pipeline steps
- PipelineState: Dataclass holding artifacts incrementally
- SOPExecutor: Runner that executes steps in sequence

A step that raises stops the run; the exception object is kept on the
state so callers can re-raise it with its original type and code.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, TYPE_CHECKING

from core.schemas.entries import Entry
from core.schemas.verification import CheckResult, VerificationResult

if TYPE_CHECKING:
    from core.crypto.signatures import ClaimSigner
    from core.merkle.merkle_tree import MerkleTree
    from core.schemas.distribution import Distribution


logger = logging.getLogger(__name__)


@dataclass
class PipelineState:
    """
    Holds artifacts incrementally as generation progresses.

    Each step may read from and write to this state.
    Fields are Optional to allow incremental population.
    """

    # Input
    entries: list[Entry] = field(default_factory=list)
    signer: Optional["ClaimSigner"] = None

    # Steps 2-3: Duplicate resolution and canonical order
    ordered: list[Entry] = field(default_factory=list)

    # Steps 4-5: Leaves and tree
    leaves: list[bytes] = field(default_factory=list)
    tree: Optional["MerkleTree"] = None

    # Step 6: Token total
    token_total: Optional[int] = None

    # Step 7: Claim authorizations (same order as ``ordered``)
    signatures: Optional[list[bytes]] = None

    # Steps 8-9: Assembly and self-check
    distribution: Optional["Distribution"] = None
    self_check: Optional[VerificationResult] = None

    # Aggregated results
    checks: list[CheckResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    exception: Optional[BaseException] = None
    ok: bool = True

    def add_check(self, check: CheckResult) -> None:
        """Add a check result to the aggregated checks."""
        self.checks.append(check)
        if not check.ok and check.severity == "error":
            self.ok = False

    def add_checks(self, checks: list[CheckResult]) -> None:
        """Add multiple check results."""
        for check in checks:
            self.add_check(check)

    def add_error(self, error: str) -> None:
        """Add an error message and mark state as not ok."""
        self.errors.append(error)
        self.ok = False


class SOPStep(Protocol):
    """
    Protocol for a single pipeline step.

    Each step has a name and a run method that transforms state.
    """

    @property
    def name(self) -> str:
        """Unique name for this step."""
        ...

    def run(self, state: PipelineState) -> PipelineState:
        """
        Execute this step, potentially modifying state.

        Args:
            state: Current pipeline state

        Returns:
            Updated pipeline state (may be the same object)
        """
        ...


@dataclass
class FunctionStep:
    """
    Adapter to create SOPStep from a plain function.

    Example:
        step = FunctionStep("my_step", lambda s: do_something(s))
    """

    _name: str
    _func: Callable[[PipelineState], PipelineState]

    @property
    def name(self) -> str:
        return self._name

    def run(self, state: PipelineState) -> PipelineState:
        return self._func(state)


class SOPExecutor:
    """
    Executor that runs a sequence of SOPSteps.

    Provides:
    - Sequential execution of steps
    - Error handling and state tracking
    - Per-step debug timing
    """

    def __init__(self, *, stop_on_error: bool = True):
        """
        Initialize executor.

        Args:
            stop_on_error: If True, stop execution on first step error.
                          If False, continue and aggregate errors.
        """
        self.stop_on_error = stop_on_error
        self._step_results: list[tuple[str, bool, Optional[str]]] = []

    def execute(
        self,
        steps: list[SOPStep],
        state: PipelineState,
    ) -> PipelineState:
        """
        Execute all steps in sequence.

        Args:
            steps: List of steps to execute
            state: Initial pipeline state

        Returns:
            Final pipeline state after all steps
        """
        self._step_results = []

        for step in steps:
            started = time.perf_counter()
            try:
                state = step.run(state)
                self._step_results.append((step.name, True, None))

                if self.stop_on_error and not state.ok:
                    break

            except Exception as e:
                logger.error(f"Step '{step.name}' failed: {e}")
                state.add_error(f"Step '{step.name}' failed: {e}")
                if state.exception is None:
                    state.exception = e
                self._step_results.append((step.name, False, str(e)))

                if self.stop_on_error:
                    break
            finally:
                logger.debug(f"Step '{step.name}' took {time.perf_counter() - started:.3f}s")

        return state

    @property
    def step_results(self) -> list[tuple[str, bool, Optional[str]]]:
        """
        Get results of each step execution.

        Returns:
            List of (step_name, success, error_message) tuples
        """
        return self._step_results.copy()


def make_step(name: str, func: Callable[[PipelineState], PipelineState]) -> SOPStep:
    """
    Convenience function to create a step from a function.

    Args:
        name: Step name
        func: Function that takes and returns PipelineState

    Returns:
        SOPStep wrapping the function
    """
    return FunctionStep(name, func)
