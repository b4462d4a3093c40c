from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

"""Location row models for the import pipeline.

LocationRow is the typed, accepted form of a decoded row. It is produced once by
the row validator and consumed once by the batch loader; nothing downstream
re-validates it. RejectedRow is the terminal artifact for rows that failed at
least one field check and is only consumed by the report writer.
"""

__all__ = [
    "LocationStatus",
    "LocationSource",
    "LocationRow",
    "RejectedRow",
    "BulkInsertOptions",
]


class LocationStatus(Enum):
    """Status given to imported locations.

    ACTIVE publishes the locations immediately, PENDING queues them for review.
    """
    ACTIVE = "Active"
    PENDING = "Pending"


class LocationSource(Enum):
    """Provenance marker stored with each location."""
    ADMIN_IMPORTED = "AdminImported"


@dataclass(frozen=True)
class LocationRow:
    """A row that passed every schema rule, coerced to record store types."""
    row_number: int  # アップロードファイル上の行番号
    name: str
    category: str
    address: str
    suburb: str
    state: str
    postcode: str
    country: str
    latitude: float
    longitude: float
    subcategory: str | None = None
    description: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    instagram: str | None = None
    capacity: int | None = None
    best_for: str | None = None
    accessibility_notes: str | None = None

    def field_values(self) -> dict[str, Any]:
        """Column key -> value, without the row number."""
        values = asdict(self)
        values.pop("row_number")
        return values


@dataclass(frozen=True)
class RejectedRow:
    """A row that failed one or more field checks.

    Attributes:
        row_number: Row number in the uploaded file
        data: Fields that did parse (column key -> typed value)
        errors: Every violation found, in schema column order
    """
    row_number: int
    data: dict[str, Any] = field(default_factory=dict)
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class BulkInsertOptions:
    """Options supplied once per import run."""
    target_status: LocationStatus
    skip_duplicates: bool
    acting_user_id: str
