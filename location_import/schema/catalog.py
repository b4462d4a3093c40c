from __future__ import annotations

from ..models.row_data import FIRST_DATA_ROW_NUMBER, RawRow
from ..models.schema_field import FieldKind, SchemaField

"""Canonical column definitions for location import files.

This module is the single source of truth for both the starter template and
the row validator: the ordered FIELDS tuple defines the template header row,
the example row, the validation notes row and every validation rule.
"""

__all__ = [
    "VALID_CATEGORIES",
    "VALID_STATES",
    "DEFAULT_COUNTRY",
    "FIELDS",
    "headers",
    "example_row",
    "field_rules",
    "validation_notes",
]

VALID_CATEGORIES: tuple[str, ...] = (
    "Venue",
    "Studio",
    "Festival",
    "Label",
    "Management",
    "Services",
    "Education",
    "Government/Peak Body",
    "Community Organisation",
    "Co-working/Creative Hub",
    "Gallery/Arts Space",
    "Other",
)

VALID_STATES: tuple[str, ...] = ("VIC", "NSW", "QLD", "SA", "WA", "TAS", "NT", "ACT")

DEFAULT_COUNTRY = "Australia"


def _or_list(values: tuple[str, ...]) -> str:
    return ", ".join(values[:-1]) + f", or {values[-1]}"


FIELDS: tuple[SchemaField, ...] = (
    SchemaField(
        "name", "Name", True, FieldKind.STRING,
        example="Example Venue",
        note="Required field",
    ),
    SchemaField(
        "category", "Category", True, FieldKind.ENUM,
        enum_values=VALID_CATEGORIES,
        example="Venue",
        note=f"Must be: {_or_list(VALID_CATEGORIES)}",
    ),
    SchemaField(
        "subcategory", "Subcategory", False, FieldKind.FREEFORM,
        example="Music Venue",
        note="Optional additional category detail",
    ),
    SchemaField(
        "address", "Address", True, FieldKind.STRING,
        example="123 Main Street",
        note="Full street address",
    ),
    SchemaField(
        "suburb", "Suburb", True, FieldKind.STRING,
        example="Melbourne",
        note="Suburb/City name",
    ),
    SchemaField(
        "state", "State", True, FieldKind.ENUM,
        enum_values=VALID_STATES,
        example="VIC",
        note=_or_list(VALID_STATES),
    ),
    SchemaField(
        "postcode", "Postcode", True, FieldKind.STRING,
        example="3000",
        note="4 digit postcode",
    ),
    SchemaField(
        "country", "Country", False, FieldKind.FREEFORM,
        default_value=DEFAULT_COUNTRY,
        example="Australia",
        note=f"Default: {DEFAULT_COUNTRY}",
    ),
    SchemaField(
        "latitude", "Latitude", True, FieldKind.NUMBER,
        example="-37.8136",
        note="Decimal number between -90 and 90",
    ),
    SchemaField(
        "longitude", "Longitude", True, FieldKind.NUMBER,
        example="144.9631",
        note="Decimal number between -180 and 180",
    ),
    SchemaField(
        "description", "Description", False, FieldKind.FREEFORM,
        example="A great live music venue in the heart of Melbourne",
        note="Optional detailed description",
    ),
    SchemaField(
        "email", "Email", False, FieldKind.EMAIL,
        example="contact@examplevenue.com",
        note="Valid email format",
    ),
    SchemaField(
        "phone", "Phone", False, FieldKind.FREEFORM,
        example="0412345678",
        note="Phone number",
    ),
    SchemaField(
        "website", "Website", False, FieldKind.URL,
        example="https://examplevenue.com",
        note="Must start with http:// or https://",
    ),
    SchemaField(
        "instagram", "Instagram", False, FieldKind.HANDLE,
        example="@examplevenue",
        note="Instagram handle starting with @",
    ),
    SchemaField(
        "capacity", "Capacity", False, FieldKind.INTEGER,
        example="200",
        note="Number of people",
    ),
    SchemaField(
        "best_for", "Best For", False, FieldKind.FREEFORM,
        example="Live music, Events, Functions",
        note="Comma-separated tags",
    ),
    SchemaField(
        "accessibility_notes", "Accessibility Notes", False, FieldKind.FREEFORM,
        example="Wheelchair accessible, Accessible bathrooms",
        note="Accessibility information",
    ),
)

if len({f.key for f in FIELDS}) != len(FIELDS):  # pragma: no cover - guards edits to FIELDS
    raise RuntimeError("schema field keys must be unique")


def headers() -> list[str]:
    """Display headers in template order, required columns marked with ``*``."""
    return [f.display_header for f in FIELDS]


def example_row() -> RawRow:
    """One fully valid illustrative row, keyed by normalized header."""
    return RawRow(
        row_number=FIRST_DATA_ROW_NUMBER,
        values={f.key: f.example for f in FIELDS},
    )


def field_rules() -> tuple[SchemaField, ...]:
    return FIELDS


def validation_notes() -> list[str]:
    return [f.note for f in FIELDS]
