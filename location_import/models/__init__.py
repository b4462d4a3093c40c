"""Domain models for the location bulk import pipeline.

All models are value objects created and consumed within a single import run.
"""

from .error_record import ErrorRecord
from .location import (
    BulkInsertOptions,
    LocationRow,
    LocationSource,
    LocationStatus,
    RejectedRow,
)
from .processing_result import BatchStatsAccumulator, BulkInsertResult, FailedRow
from .row_data import RawRow
from .schema_field import FieldKind, SchemaField

__all__ = [
    # Schema
    "FieldKind",
    "SchemaField",
    # Row lifecycle
    "RawRow",
    "LocationRow",
    "RejectedRow",
    # Loading
    "BulkInsertOptions",
    "LocationStatus",
    "LocationSource",
    "BulkInsertResult",
    "FailedRow",
    "BatchStatsAccumulator",
    # Error log
    "ErrorRecord",
]
