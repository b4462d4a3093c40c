"""Canonical import schema (columns, enums, template content)."""

from .catalog import (
    DEFAULT_COUNTRY,
    FIELDS,
    VALID_CATEGORIES,
    VALID_STATES,
    example_row,
    field_rules,
    headers,
    validation_notes,
)

__all__ = [
    "DEFAULT_COUNTRY",
    "FIELDS",
    "VALID_CATEGORIES",
    "VALID_STATES",
    "example_row",
    "field_rules",
    "headers",
    "validation_notes",
]
