"""
Module 06D - Artifact IO
File: io.py

Purpose: Read entitlement CSVs and save/load the published artifacts
(distribution.json, tree.json, per-beneficiary claim files, test
allowlists).
"""

from __future__ import annotations

import csv
import json
import logging
import random
from decimal import Decimal, Inexact, InvalidOperation, localcontext
from pathlib import Path
from typing import Any, Optional

from eth_account import Account
from pydantic import ValidationError

from core.schemas.distribution import Distribution, TreeDump
from core.schemas.entries import Entry, MAX_UINT256
from core.schemas.errors import AmountOverflowException, DropException, InvalidEntryException


logger = logging.getLogger(__name__)


# File name constants
DISTRIBUTION_FILE = "distribution.json"
TREE_FILE = "tree.json"
CLAIMS_DIR = "claims"

# uint256 has 78 decimal digits
_MAX_DIGITS = 78
_PRECISION = 200


class ArtifactIOError(Exception):
    """Error reading or writing artifacts."""
    pass


def parse_units(value: str, decimals: int) -> int:
    """
    Convert a decimal string to integer base units.

    Example:
        >>> parse_units("1.5", 18)
        1500000000000000000

    Raises:
        InvalidEntryException: Not a number, negative, or more fraction
            digits than ``decimals``
        AmountOverflowException: Result exceeds uint256
    """
    text = value.strip()
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise InvalidEntryException(f"Invalid amount: {value!r}") from None
    if not number.is_finite():
        raise InvalidEntryException(f"Invalid amount: {value!r}")
    if number < 0:
        raise InvalidEntryException(f"Amount must be non-negative, got {value!r}")

    if number.adjusted() + decimals > _MAX_DIGITS:
        raise AmountOverflowException("Amount exceeds uint256", details={"amount": text})

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        ctx.traps[Inexact] = True
        try:
            scaled = number.scaleb(decimals)
        except Inexact:
            raise InvalidEntryException(f"Amount {value!r} has too many digits") from None
    if scaled != scaled.to_integral_value():
        raise InvalidEntryException(f"Amount {value!r} has more than {decimals} decimal places")

    units = int(scaled)
    if units > MAX_UINT256:
        raise AmountOverflowException("Amount exceeds uint256", details={"amount": text})
    return units


def format_units(units: int, decimals: int) -> str:
    """Inverse of parse_units, without trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        text = format(Decimal(units).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def load_entries_csv(
    path: str | Path,
    decimals: int = 18,
    *,
    address_column: str = "address",
    amount_column: str = "amount",
) -> list[Entry]:
    """
    Load entries from a CSV with a header row.

    Amounts are human decimal strings converted with ``decimals``. Blank
    lines are skipped.

    Raises:
        FileNotFoundError: Missing file
        InvalidEntryException: Missing column, bad address, non-positive amount
        AmountOverflowException: Amount above uint256
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    entries: list[Entry] = []
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        fields = [name.strip() for name in (reader.fieldnames or [])]
        reader.fieldnames = fields
        for column in (address_column, amount_column):
            if column not in fields:
                raise InvalidEntryException(f"Missing column {column!r} in {path}")

        # Row 1 is the header
        for row_number, row in enumerate(reader, start=2):
            address = (row.get(address_column) or "").strip()
            amount_text = (row.get(amount_column) or "").strip()
            if not address and not amount_text:
                continue
            if not address or not amount_text:
                raise InvalidEntryException(f"Row {row_number}: missing address or amount", row=row_number)

            try:
                amount = parse_units(amount_text, decimals)
                if amount == 0:
                    raise InvalidEntryException(f"Amount must be positive, got {amount_text!r}")
                entries.append(Entry.create(address, amount))
            except DropException as e:
                e.details.setdefault("row", row_number)
                e.message = f"Row {row_number}: {e.message}"
                e.args = (e.message,)
                raise

    logger.info(f"Loaded {len(entries)} entries from {path}")
    return entries


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ArtifactIOError(f"Invalid JSON in {path}: {e}") from e


def save_distribution(distribution: Distribution, path: str | Path) -> Path:
    """Write distribution.json."""
    path = Path(path)
    _write_json(path, distribution.to_json_dict())
    logger.info(f"Saved distribution ({distribution.total_entries} claims) to {path}")
    return path


def load_distribution(path: str | Path) -> Distribution:
    """
    Read and validate distribution.json.

    Raises:
        FileNotFoundError: Missing file
        ArtifactIOError: Invalid JSON or schema
    """
    path = Path(path)
    data = _read_json(path)
    try:
        return Distribution.model_validate(data)
    except ValidationError as e:
        raise ArtifactIOError(f"Invalid distribution file {path}: {e}") from e


def save_tree(tree: TreeDump, path: str | Path) -> Path:
    """Write tree.json."""
    path = Path(path)
    _write_json(path, tree.to_json_dict())
    return path


def load_tree(path: str | Path) -> TreeDump:
    path = Path(path)
    data = _read_json(path)
    try:
        return TreeDump.model_validate(data)
    except ValidationError as e:
        raise ArtifactIOError(f"Invalid tree file {path}: {e}") from e


def split_claims(distribution: Distribution, out_dir: str | Path) -> list[Path]:
    """
    Write one ``<address>.json`` claim file per beneficiary.

    Each file holds that beneficiary's ClaimRecord, for static hosting
    behind a claim UI.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for address, record in distribution.claims.items():
        path = out_dir / f"{address}.json"
        _write_json(path, record.model_dump(mode="json", exclude_none=True))
        written.append(path)
    logger.info(f"Wrote {len(written)} claim files to {out_dir}")
    return written


def _random_amount(rng: random.Random, minimum: Decimal, maximum: Decimal, places: int) -> str:
    value = minimum + (maximum - minimum) * Decimal(repr(rng.random()))
    text = format(value.quantize(Decimal(1).scaleb(-places)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def write_allowlist(
    path: str | Path,
    count: int = 10,
    *,
    minimum: str = "0.01",
    maximum: str = "100",
    places: int = 4,
    seed: Optional[int] = None,
) -> Path:
    """
    Write a random test allowlist CSV (``address,amount``).

    Addresses come from freshly created accounts; with ``seed`` the keys
    and amounts are reproducible.

    Raises:
        ValueError: Non-positive count or an invalid amount range
    """
    low, high = Decimal(minimum), Decimal(maximum)
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    if low <= 0 or high <= 0 or high < low:
        raise ValueError(f"Invalid amount range [{minimum}, {maximum}]")

    rng = random.Random(seed)
    seen: set[str] = set()
    lines = ["address,amount"]
    while len(lines) - 1 < count:
        if seed is None:
            account = Account.create()
        else:
            account = Account.from_key(rng.randbytes(32))
        if account.address in seen:
            continue
        seen.add(account.address)
        amount = _random_amount(rng, low, high, places)
        if Decimal(amount) == 0:
            continue
        lines.append(f"{account.address},{amount}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info(f"Wrote {count} entries to {path}")
    return path


__all__ = [
    "DISTRIBUTION_FILE",
    "TREE_FILE",
    "CLAIMS_DIR",
    "ArtifactIOError",
    "parse_units",
    "format_units",
    "load_entries_csv",
    "save_distribution",
    "load_distribution",
    "save_tree",
    "load_tree",
    "split_claims",
    "write_allowlist",
]
