from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""SchemaField model for the location import schema.

A SchemaField describes one column of the import file: how it is labelled in
the starter template, whether it must be filled in, and which rule the row
validator applies to it.
"""

__all__ = [
    "FieldKind",
    "SchemaField",
]


class FieldKind(Enum):
    """Validation rule family applied to a column."""
    STRING = "string"  # required short text
    NUMBER = "number"  # decimal (latitude / longitude)
    INTEGER = "integer"  # non-negative whole number
    ENUM = "enum"  # member of a fixed value set
    EMAIL = "email"
    URL = "url"
    HANDLE = "handle"  # social handle starting with "@"
    FREEFORM = "freeform"  # optional text, trimmed only


@dataclass(frozen=True)
class SchemaField:
    """Definition of a single import column.

    Attributes:
        key: Normalized header key (e.g. ``best_for``)
        label: Human column name (e.g. ``Best For``)
        required: Whether a blank cell rejects the row
        kind: Validation rule family
        enum_values: Accepted values for ``FieldKind.ENUM`` columns
        default_value: Value applied when the cell is blank
        example: Cell value used in the starter template example row
        note: Plain-language validation note shown in the starter template
    """
    key: str
    label: str
    required: bool
    kind: FieldKind
    enum_values: tuple[str, ...] | None = None
    default_value: str | None = None
    example: str = ""
    note: str = ""

    @property
    def display_header(self) -> str:
        """Header as written to the starter template (required columns end with ``*``)."""
        return f"{self.label}*" if self.required else self.label
