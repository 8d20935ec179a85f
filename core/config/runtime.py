"""
Runtime Configuration

Central configuration for distribution generation: input parsing, tree
construction, claim signing and the post-build self-check.

The authority signing key is never part of this structure. Only the name
of the environment variable that holds it is configured; the key itself is
read at the command boundary and handed to ``authority_key()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

from core.merkle.merkle_tree import DEFAULT_PARALLEL_THRESHOLD
from core.schemas.entries import DuplicatePolicy

load_dotenv()


ENV_PREFIX = "MERKLEDROP_"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class InputConfig:
    """How entitlement rows are read."""
    path: Optional[str] = None
    decimals: int = 18
    address_column: str = "address"
    amount_column: str = "amount"
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REJECT

    def __post_init__(self):
        self.duplicate_policy = DuplicatePolicy(self.duplicate_policy)
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {self.decimals}")


@dataclass
class TreeConfig:
    """Tree construction options."""
    sort_entries: bool = True
    max_workers: int = 1
    parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD


@dataclass
class SigningConfig:
    """Claim authorization domain. Both fields are required to sign."""
    verifying_contract: Optional[str] = None
    chain_id: Optional[int] = None
    key_env: str = "PRIVATE_KEY"

    @property
    def enabled(self) -> bool:
        return self.verifying_contract is not None and self.chain_id is not None


@dataclass
class SelfCheckConfig:
    """Post-build self-check of the generated distribution."""
    enabled: bool = True
    full_check_max_entries: int = 1000
    sample_size: int = 256
    seed: int = 0


@dataclass
class OutputConfig:
    """Where artifacts are written."""
    distribution_path: str = "distribution.json"
    tree_path: Optional[str] = "tree.json"
    claims_dir: str = "claims"


@dataclass
class DropConfig:
    """
    Complete configuration for a distribution run.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    input: InputConfig = field(default_factory=InputConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    signing: SigningConfig = field(default_factory=SigningConfig)
    self_check: SelfCheckConfig = field(default_factory=SelfCheckConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - MERKLEDROP_DECIMALS: Token decimals for CSV amounts
        - MERKLEDROP_DUPLICATE_POLICY: reject | keep_first | keep_last
        - MERKLEDROP_SORT_ENTRIES: Canonical ordering (true/false)
        - MERKLEDROP_MAX_WORKERS: Worker threads for hashing and signing
        - MERKLEDROP_VERIFYING_CONTRACT: Claim contract address
        - MERKLEDROP_CHAIN_ID: Chain id bound into signatures
        - MERKLEDROP_SIGNING_KEY_ENV: Name of the env var holding the key
        - MERKLEDROP_SELF_CHECK: Run the post-build self-check (true/false)
        - MERKLEDROP_OUTPUT: distribution.json path
        """
        overrides: dict[str, Any] = {}

        # Input settings
        if os.getenv(f"{ENV_PREFIX}DECIMALS"):
            overrides.setdefault("input", {})["decimals"] = int(os.getenv(f"{ENV_PREFIX}DECIMALS"))
        if os.getenv(f"{ENV_PREFIX}DUPLICATE_POLICY"):
            overrides.setdefault("input", {})["duplicate_policy"] = os.getenv(f"{ENV_PREFIX}DUPLICATE_POLICY")

        # Tree settings
        if os.getenv(f"{ENV_PREFIX}SORT_ENTRIES"):
            overrides.setdefault("tree", {})["sort_entries"] = _env_bool(os.getenv(f"{ENV_PREFIX}SORT_ENTRIES"))
        if os.getenv(f"{ENV_PREFIX}MAX_WORKERS"):
            overrides.setdefault("tree", {})["max_workers"] = int(os.getenv(f"{ENV_PREFIX}MAX_WORKERS"))

        # Signing domain
        if os.getenv(f"{ENV_PREFIX}VERIFYING_CONTRACT"):
            overrides.setdefault("signing", {})["verifying_contract"] = os.getenv(f"{ENV_PREFIX}VERIFYING_CONTRACT")
        if os.getenv(f"{ENV_PREFIX}CHAIN_ID"):
            overrides.setdefault("signing", {})["chain_id"] = int(os.getenv(f"{ENV_PREFIX}CHAIN_ID"))
        if os.getenv(f"{ENV_PREFIX}SIGNING_KEY_ENV"):
            overrides.setdefault("signing", {})["key_env"] = os.getenv(f"{ENV_PREFIX}SIGNING_KEY_ENV")

        # Self-check
        if os.getenv(f"{ENV_PREFIX}SELF_CHECK"):
            overrides.setdefault("self_check", {})["enabled"] = _env_bool(os.getenv(f"{ENV_PREFIX}SELF_CHECK"))

        # Output
        if os.getenv(f"{ENV_PREFIX}OUTPUT"):
            overrides.setdefault("output", {})["distribution_path"] = os.getenv(f"{ENV_PREFIX}OUTPUT")

        return overrides

    @classmethod
    def from_env(cls) -> "DropConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DropConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DropConfig":
        """Load configuration from a dictionary (supports partial data)."""
        input_data = data.get("input", {})
        tree_data = data.get("tree", {})
        signing_data = data.get("signing", {})
        self_check_data = data.get("self_check", {})
        output_data = data.get("output", {})

        return cls(
            input=InputConfig(**input_data) if input_data else InputConfig(),
            tree=TreeConfig(**tree_data) if tree_data else TreeConfig(),
            signing=SigningConfig(**signing_data) if signing_data else SigningConfig(),
            self_check=SelfCheckConfig(**self_check_data) if self_check_data else SelfCheckConfig(),
            output=OutputConfig(**output_data) if output_data else OutputConfig(),
        )

    def with_env_overrides(self) -> "DropConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        data = self.to_dict()
        for section, values in overrides.items():
            data.setdefault(section, {}).update(values)
        return self.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "input": {
                "path": self.input.path,
                "decimals": self.input.decimals,
                "address_column": self.input.address_column,
                "amount_column": self.input.amount_column,
                "duplicate_policy": self.input.duplicate_policy.value,
            },
            "tree": {
                "sort_entries": self.tree.sort_entries,
                "max_workers": self.tree.max_workers,
                "parallel_threshold": self.tree.parallel_threshold,
            },
            "signing": {
                "verifying_contract": self.signing.verifying_contract,
                "chain_id": self.signing.chain_id,
                "key_env": self.signing.key_env,
            },
            "self_check": {
                "enabled": self.self_check.enabled,
                "full_check_max_entries": self.self_check.full_check_max_entries,
                "sample_size": self.self_check.sample_size,
                "seed": self.self_check.seed,
            },
            "output": {
                "distribution_path": self.output.distribution_path,
                "tree_path": self.output.tree_path,
                "claims_dir": self.output.claims_dir,
            },
        }

