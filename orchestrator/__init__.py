"""
Module 06 - Distribution Generation

In-process batch job that turns entries into a published distribution,
plus the post-build self-check and the offline verifier.

Public API:
- DistributionPipeline: Step runner for one batch
- GenerationResult: Complete result of a generation run
- generate_distribution: Run the pipeline and return the distribution or raise
- run_self_check: Sampled re-verification of a generated distribution
- verify_distribution / verify_claim: Offline verification of distribution.json
- SOPExecutor / PipelineState: Step executor and its state container
"""

from orchestrator.pipeline import (
    DistributionPipeline,
    GenerationResult,
    generate_distribution,
    utc_timestamp,
)
from orchestrator.sop_executor import (
    FunctionStep,
    PipelineState,
    SOPExecutor,
    SOPStep,
    make_step,
)
from orchestrator.self_check import run_self_check, select_indices
from orchestrator.verifier import (
    check_claim,
    structure_checks,
    verify_claim,
    verify_claims,
    verify_distribution,
)


__all__ = [
    # Main pipeline
    "DistributionPipeline",
    "GenerationResult",
    "generate_distribution",
    "utc_timestamp",
    # SOP executor
    "SOPExecutor",
    "SOPStep",
    "FunctionStep",
    "PipelineState",
    "make_step",
    # Self-check
    "run_self_check",
    "select_indices",
    # Verifier
    "check_claim",
    "structure_checks",
    "verify_claim",
    "verify_claims",
    "verify_distribution",
]
