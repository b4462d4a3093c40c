from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from ..db.store import LocationStore
from ..files.decoder import DecodeError, decode, extension_of
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import FILE_LEVEL_ROW, ErrorRecord
from ..models.location import BulkInsertOptions
from ..models.processing_result import BulkInsertResult
from .batch_loader import DEFAULT_BATCH_SIZE, BatchMetrics, load_locations
from .validator import ValidationOutcome, validate_rows

"""Service orchestration for the location import pipeline.

Stages run strictly in sequence, synchronously:

    IDLE -> DECODING -> VALIDATED -> LOADING -> COMPLETED
                 \\-> ERROR (unsupported / unreadable file)

Decode failures are the only errors raised to the caller. Field validation
errors, duplicate skips and failed batches are accumulated into the returned
ImportOutcome. There is no retry transition; a new run starts from IDLE.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportStage",
    "ImportOutcome",
    "validate_file",
    "run_import",
]


class ImportStage(Enum):
    IDLE = "idle"
    DECODING = "decoding"
    VALIDATED = "validated"
    LOADING = "loading"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class ImportOutcome:
    """Everything a driver needs after a run.

    The driver should offer an error report whenever validation.rejected or
    result.failed_rows is non-empty, and only claim full success when both
    are empty.
    """
    file_name: str
    stage: ImportStage
    decoded_rows: int
    validation: ValidationOutcome
    result: BulkInsertResult = field(default_factory=BulkInsertResult)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def fully_successful(self) -> bool:
        return not self.validation.rejected and not self.result.failed_rows


def validate_file(
    file_bytes: bytes,
    file_name: str,
    *,
    error_log: ErrorLogBuffer | None = None,
    on_stage: Callable[[ImportStage], None] | None = None,
) -> tuple[int, ValidationOutcome]:
    """Decode and validate an upload without touching the record store.

    Returns:
        (decoded row count, ValidationOutcome)

    Raises:
        DecodeError: unsupported extension or unreadable content
    """
    notify = on_stage or (lambda _stage: None)
    notify(ImportStage.DECODING)
    try:
        rows = decode(file_bytes, extension_of(file_name))
    except DecodeError as e:
        notify(ImportStage.ERROR)
        logger.error("decode failed file=%s: %s", file_name, e)
        if error_log is not None:
            error_log.append(ErrorRecord.create(
                file=file_name,
                row=FILE_LEVEL_ROW,
                error_type="DECODE_ERROR",
                message=str(e),
            ))
        raise

    outcome = validate_rows(rows)
    notify(ImportStage.VALIDATED)
    logger.info(
        "file=%s rows=%d accepted=%d rejected=%d",
        file_name, len(rows), len(outcome.accepted), len(outcome.rejected),
    )
    if error_log is not None:
        for rejected in outcome.rejected:
            error_log.append(ErrorRecord.create(
                file=file_name,
                row=rejected.row_number,
                error_type="VALIDATION_ERROR",
                message="; ".join(rejected.errors),
            ))
    return len(rows), outcome


def run_import(
    file_bytes: bytes,
    file_name: str,
    options: BulkInsertOptions,
    store: LocationStore,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    error_log: ErrorLogBuffer | None = None,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
    on_stage: Callable[[ImportStage], None] | None = None,
) -> ImportOutcome:
    """Run the whole pipeline: decode -> validate -> load.

    Args:
        file_bytes: Uploaded file content
        file_name: Uploaded file name (its extension selects the decoder)
        options: Target status / duplicate policy / acting user
        store: Record store the accepted rows are loaded into
        batch_size: Rows per insert call
        error_log: Structured error log (rejected + failed rows)
        metrics_callback: Per-batch timing callback
        on_stage: Called on every stage transition

    Raises:
        DecodeError: before any row is validated or loaded
    """
    notify = on_stage or (lambda _stage: None)
    start_time = datetime.now(UTC)

    decoded, validation = validate_file(
        file_bytes, file_name, error_log=error_log, on_stage=notify
    )

    if validation.accepted:
        notify(ImportStage.LOADING)
        result = load_locations(
            validation.accepted,
            options,
            store,
            batch_size=batch_size,
            metrics_callback=metrics_callback,
            error_log=error_log,
            file_name=file_name,
        )
    else:
        logger.warning("file=%s has no valid rows to import", file_name)
        result = BulkInsertResult()

    notify(ImportStage.COMPLETED)
    end_time = datetime.now(UTC)
    logger.info(
        "file=%s inserted=%d skipped=%d failed=%d",
        file_name, result.success_count, result.skipped_count, len(result.failed_rows),
    )
    return ImportOutcome(
        file_name=file_name,
        stage=ImportStage.COMPLETED,
        decoded_rows=decoded,
        validation=validation,
        result=result,
        start_time=start_time,
        end_time=end_time,
    )
