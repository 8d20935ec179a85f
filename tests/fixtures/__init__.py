"""
Test fixtures package for merkledrop tests.

- common.py: Entry, config, distribution and CSV factories

Usage:
    from fixtures.common import make_entries, make_distribution

    def test_something():
        distribution = make_distribution(make_entries(3), signed=True)
"""

from .common import (
    TEST_PRIVATE_KEY,
    TEST_SIGNER_ADDRESS,
    TEST_CONTRACT,
    TEST_CHAIN_ID,
    make_address,
    make_entries,
    make_config,
    make_distribution,
    write_csv,
)

__all__ = [
    "TEST_PRIVATE_KEY",
    "TEST_SIGNER_ADDRESS",
    "TEST_CONTRACT",
    "TEST_CHAIN_ID",
    "make_address",
    "make_entries",
    "make_config",
    "make_distribution",
    "write_csv",
]
