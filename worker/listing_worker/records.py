from __future__ import annotations

import csv
import logging
import re
from pathlib import Path

from listing_worker.models import Item, RunSnapshot, SearchType

JAN_RE = re.compile(r"^\d{13}$")
ASIN_RE = re.compile(r"^[A-Z0-9]{10}$", re.IGNORECASE)

IDENTIFIER_KEYS = {
    SearchType.JAN: ("jan", "productid", "identifier"),
    SearchType.ASIN: ("sku", "identifier"),
}

logger = logging.getLogger(__name__)


def validate_identifier(identifier: str, search_type: SearchType, search_code: str | None = None) -> str | None:
    """Return a problem description for an input row, or ``None`` when it is usable."""
    identifier = identifier.strip()
    if search_type == SearchType.JAN:
        if not JAN_RE.match(identifier):
            return "JAN must be 13 digits"
        return None
    if not identifier:
        return "SKU is required"
    if not search_code or not ASIN_RE.match(search_code.strip()):
        return "ASIN must be 10 alphanumeric characters"
    return None


def _strip_quotes(value: str | None) -> str:
    return (value or "").strip().strip('"').strip()


def _parse_number(value: str | None) -> float:
    cleaned = _strip_quotes(value).replace(",", "")
    if not cleaned:
        raise ValueError("missing number")
    return float(cleaned)


def _first(row: dict[str, str], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = _strip_quotes(row.get(key))
        if value:
            return value
    return ""


def load_items(path: Path, search_type: SearchType = SearchType.JAN) -> list[Item]:
    """Read listing rows from a comma or tab separated file with a header line.

    Rows without an identifier are skipped; rows whose price or stock cannot
    be parsed raise ``ValueError`` naming the line.
    """
    text = path.read_text(encoding="utf-8-sig")
    if not text.strip():
        return []
    dialect = "excel-tab" if "\t" in text.splitlines()[0] else "excel"
    reader = csv.DictReader(text.splitlines(), dialect=dialect)

    items: list[Item] = []
    for line_number, raw in enumerate(reader, start=2):
        row = {str(key).strip().lower(): value for key, value in raw.items() if key is not None}
        identifier = _first(row, IDENTIFIER_KEYS[search_type])
        if not identifier:
            logger.debug("Skipping line %d without identifier", line_number)
            continue
        search_code = None
        if search_type == SearchType.ASIN:
            search_code = _first(row, ("asin",)) or None
        try:
            price = _parse_number(row.get("price"))
            stock = int(_parse_number(row.get("stock")))
        except ValueError as exc:
            raise ValueError(f"Line {line_number}: invalid price or stock for {identifier}") from exc
        items.append(Item(identifier=identifier, price=price, stock=stock, search_code=search_code))
    return items


def write_results(path: Path, snapshot: RunSnapshot) -> None:
    path.write_text(snapshot.to_csv(), encoding="utf-8")
