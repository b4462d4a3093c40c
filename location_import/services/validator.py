from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from ..models.location import LocationRow, RejectedRow
from ..models.row_data import RawRow
from ..models.schema_field import FieldKind, SchemaField
from ..schema import catalog

"""Row validation service for the location import pipeline.

validate_row() checks every column of a RawRow against the schema catalog and
never stops at the first problem: every violation is collected so the operator
sees the complete list for a row in one pass. Values are never silently
corrected; the only transformations are trimming, upper-casing the state code
and applying a column default to a blank optional cell.
"""

__all__ = [
    "ValidationOutcome",
    "validate_row",
    "validate_rows",
]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_POSTCODE_RE = re.compile(r"[0-9]{4}")
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")

_BOUNDS = {
    "latitude": (-90.0, 90.0),
    "longitude": (-180.0, 180.0),
}


@dataclass(frozen=True)
class ValidationOutcome:
    """Partition of decoded rows into accepted and rejected, input order kept."""
    accepted: tuple[LocationRow, ...]
    rejected: tuple[RejectedRow, ...]

    @property
    def total(self) -> int:
        return len(self.accepted) + len(self.rejected)


def validate_rows(rows: Iterable[RawRow]) -> ValidationOutcome:
    accepted: list[LocationRow] = []
    rejected: list[RejectedRow] = []
    for row in rows:
        result = validate_row(row)
        if isinstance(result, LocationRow):
            accepted.append(result)
        else:
            rejected.append(result)
    return ValidationOutcome(accepted=tuple(accepted), rejected=tuple(rejected))


def validate_row(row: RawRow) -> LocationRow | RejectedRow:
    """Validate one decoded row.

    Returns:
        LocationRow when every rule passes, otherwise RejectedRow carrying the
        fields that did parse and every error message in column order.
    """
    errors: list[str] = []
    data: dict[str, Any] = {}

    for column in catalog.field_rules():
        text = _cell_text(row.get(column.key))

        if not text:
            if column.required:
                errors.append(_required_message(column))
            elif column.default_value is not None:
                data[column.key] = column.default_value
            continue

        value, error = _check(column, text)
        if error is not None:
            errors.append(error)
        else:
            data[column.key] = value

    if errors:
        return RejectedRow(row_number=row.row_number, data=data, errors=tuple(errors))
    return LocationRow(row_number=row.row_number, **data)


def _check(column: SchemaField, text: str) -> tuple[Any, str | None]:
    """Apply the rule for one non-blank cell. Returns (value, error)."""
    if column.kind is FieldKind.ENUM:
        candidate = text.upper() if column.key == "state" else text
        allowed = column.enum_values or ()
        if candidate not in allowed:
            return None, f"{column.label} must be one of: {', '.join(allowed)}"
        return candidate, None

    if column.kind is FieldKind.NUMBER:
        number = _parse_decimal(text)
        if number is None:
            return None, f"{column.label} is required and must be a number"
        low, high = _BOUNDS[column.key]
        if number < low or number > high:
            return None, f"{column.label} must be between {low:g} and {high:g}"
        return number, None

    if column.kind is FieldKind.INTEGER:
        whole = _parse_whole_number(text)
        if whole is None or whole < 0:
            return None, f"{column.label} must be a non-negative whole number"
        return whole, None

    if column.kind is FieldKind.EMAIL:
        if not _EMAIL_RE.match(text):
            return None, f"{column.label} must be valid format"
        return text, None

    if column.kind is FieldKind.URL:
        if not _is_http_url(text):
            return None, f"{column.label} must start with http:// or https://"
        return text, None

    if column.kind is FieldKind.HANDLE:
        if not text.startswith("@"):
            return None, f"{column.label} must start with @"
        return text, None

    if column.key == "postcode" and not _POSTCODE_RE.fullmatch(text):
        return None, f"{column.label} must be 4 digits"

    # STRING / FREEFORM: trimmed only
    return text, None


def _required_message(column: SchemaField) -> str:
    if column.kind is FieldKind.NUMBER:
        return f"{column.label} is required and must be a number"
    return f"{column.label} is required"


def _cell_text(value: Any) -> str:
    """Render a decoded cell as trimmed text.

    Spreadsheet cells arrive as int / float; integral floats are rendered
    without the trailing ``.0`` so a numeric postcode 3000.0 reads "3000".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()


def _parse_decimal(text: str) -> float | None:
    # float() alone would also accept "nan", "inf" and "1_000"
    if not _DECIMAL_RE.fullmatch(text):
        return None
    number = float(text)
    if not math.isfinite(number):
        return None
    return number


def _parse_whole_number(text: str) -> int | None:
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    number = _parse_decimal(text)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _is_http_url(text: str) -> bool:
    try:
        parsed = urlparse(text)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
