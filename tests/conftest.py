"""
Pytest configuration and shared fixtures for merkledrop tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

TEST_PRIVATE_KEY = _common.TEST_PRIVATE_KEY
TEST_SIGNER_ADDRESS = _common.TEST_SIGNER_ADDRESS
TEST_CONTRACT = _common.TEST_CONTRACT
TEST_CHAIN_ID = _common.TEST_CHAIN_ID

make_address = _common.make_address
make_entries = _common.make_entries
make_config = _common.make_config
make_distribution = _common.make_distribution
write_csv = _common.write_csv


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def entries():
    """Five entries with distinct addresses and amounts."""
    return make_entries(5)


@pytest.fixture
def unsigned_distribution(entries):
    """Unsigned distribution over the default entries."""
    return make_distribution(entries)


@pytest.fixture
def signed_distribution(entries):
    """Distribution signed by the test authority for TEST_CONTRACT / TEST_CHAIN_ID."""
    return make_distribution(entries, signed=True)


@pytest.fixture
def signing_key(monkeypatch):
    """Expose the test authority key as PRIVATE_KEY."""
    monkeypatch.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY)
    return TEST_PRIVATE_KEY


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep MERKLEDROP_* settings from the developer's shell out of tests."""
    import os
    for name in list(os.environ):
        if name.startswith("MERKLEDROP_"):
            monkeypatch.delenv(name, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_check_passed():
    """Helper to assert a specific check passed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert checks[0].ok, f"Check '{check_id}' failed: {checks[0].message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    """Helper to assert a specific check failed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) >= 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert not checks[0].ok, f"Check '{check_id}' unexpectedly passed"
    return _assert
