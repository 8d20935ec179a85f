"""
Common test fixtures shared by all modules.

Provides factory functions for core merkledrop data structures:
- Entry lists with deterministic addresses
- DropConfig for tests
- Distribution (unsigned or signed by the test authority)
- Entitlement CSV files
"""

from pathlib import Path
from typing import Iterable, Optional

from core.config.runtime import DropConfig
from core.crypto.signatures import authority_key
from core.schemas.distribution import Distribution
from core.schemas.entries import Entry
from orchestrator.pipeline import DistributionPipeline


# Well-known throwaway key; never holds funds
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_SIGNER_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"

TEST_CONTRACT = "0x" + "c0" * 20
TEST_CHAIN_ID = 31337

FIXED_TIMESTAMP = "2026-01-01T00:00:00.000Z"


# =============================================================================
# Entry Factories
# =============================================================================

def make_address(n: int) -> str:
    """Deterministic lowercase address for integer ``n`` (n >= 1)."""
    return "0x" + f"{n:040x}"


def make_entries(count: int, base_amount: int = 1000) -> list[Entry]:
    """
    Create ``count`` entries with distinct addresses.

    Amounts are ``base_amount * (i + 1)`` so every entry differs.
    """
    return [
        Entry.create(make_address(i + 1), base_amount * (i + 1))
        for i in range(count)
    ]


# =============================================================================
# Config / Distribution Factories
# =============================================================================

def make_config(signed: bool = False, **self_check) -> DropConfig:
    """DropConfig for tests; the signing domain is set when ``signed``."""
    config = DropConfig()
    if signed:
        config.signing.verifying_contract = TEST_CONTRACT
        config.signing.chain_id = TEST_CHAIN_ID
    for key, value in self_check.items():
        setattr(config.self_check, key, value)
    return config


def make_distribution(
    entries: Optional[Iterable[Entry]] = None,
    signed: bool = False,
    config: Optional[DropConfig] = None,
) -> Distribution:
    """Generate a distribution through the full pipeline."""
    entries = list(entries) if entries is not None else make_entries(5)
    config = config or make_config(signed=signed)
    pipeline = DistributionPipeline(config, clock=lambda: FIXED_TIMESTAMP)

    if signed:
        with authority_key(TEST_PRIVATE_KEY) as signer:
            result = pipeline.run(entries, signer=signer)
    else:
        result = pipeline.run(entries)

    result.raise_for_failure()
    return result.distribution


# =============================================================================
# File Factories
# =============================================================================

def write_csv(path: Path, rows: Iterable[tuple[str, str]], header: str = "address,amount") -> Path:
    """Write an entitlement CSV."""
    lines = [header] + [f"{address},{amount}" for address, amount in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
