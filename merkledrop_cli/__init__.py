"""
Module 07 - merkledrop CLI

Command-line interface for generating and verifying Merkle airdrop
distributions.

Usage:
    python -m merkledrop_cli generate --input data/allowlist.csv
    python -m merkledrop_cli verify distribution.json
    python -m merkledrop_cli proof 0xAbC... [amount]
    python -m merkledrop_cli split --out-dir dist/claims
    python -m merkledrop_cli allowlist --count 100
"""

__version__ = "0.1.0"
