from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from ..db.errors import BatchInsertError, StoreError
from ..db.store import LocationStore
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.location import BulkInsertOptions, LocationRow, LocationSource
from ..models.processing_result import BatchStatsAccumulator, BulkInsertResult, FailedRow
from .progress import ProgressTracker

"""Batch loader: accepted LocationRows -> record store.

Algorithm (per batch of ``batch_size`` rows, batches strictly in input order):

1. When skip_duplicates is set, check each row with store.exists(address,
   suburb), one at a time in row order. Matches are counted as skipped and
   removed from the batch. Matching is exact address + suburb only.
2. Stamp the remaining rows with status, source=AdminImported and the acting
   user id.
3. Submit them with a single store.insert_batch() call.
4. On failure every submitted row of the batch is recorded in failed_rows
   with the store's message, then the next batch runs. A store that reports
   an inserted count different from the number submitted is treated the same
   way. There is no retry and no partial-batch recovery; the run itself is
   never aborted early.

Duplicate detection and insertion are separate store calls, so two concurrent
runs over overlapping data can both pass the check and insert twice.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "BatchMetrics",
    "chunked",
    "to_record",
    "load_locations",
]

DEFAULT_BATCH_SIZE = 50


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics data for a single insert_batch call."""
    batch_number: int  # 1-based
    batch_size: int  # Number of rows submitted
    elapsed_seconds: float
    succeeded: bool


def chunked(rows: Sequence[LocationRow], size: int) -> Iterator[Sequence[LocationRow]]:
    if size < 1:
        raise ValueError(f"batch size must be >= 1 (got {size})")
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def to_record(row: LocationRow, options: BulkInsertOptions) -> dict[str, Any]:
    """Record store row for an accepted location."""
    record = row.field_values()
    record["status"] = options.target_status.value
    record["source"] = LocationSource.ADMIN_IMPORTED.value
    record["owner_user_id"] = options.acting_user_id
    return record


def load_locations(
    rows: Sequence[LocationRow],
    options: BulkInsertOptions,
    store: LocationStore,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "<upload>",
) -> BulkInsertResult:
    """Load accepted rows into the record store in fixed-size batches.

    Args:
        rows: Accepted rows, in file order
        options: Target status / duplicate policy / acting user
        store: Record store (injected)
        batch_size: Rows per insert call
        metrics_callback: Receives a BatchMetrics after every insert call
        error_log: Structured error log for failed rows (optional)
        file_name: Upload name used in error log records

    Returns:
        BulkInsertResult whose three outcome counts add up to len(rows)
    """
    batches = list(chunked(rows, batch_size))
    success_count = 0
    skipped_count = 0
    failed_rows: list[FailedRow] = []
    stats = BatchStatsAccumulator()

    with ProgressTracker(len(batches)) as progress:
        for number, batch in enumerate(batches, start=1):
            to_insert: list[LocationRow] = []
            for row in batch:
                if options.skip_duplicates and _is_duplicate(store, row, error_log, file_name):
                    skipped_count += 1
                    logger.debug(
                        "row=%d duplicate address=%r suburb=%r skipped",
                        row.row_number, row.address, row.suburb,
                    )
                    continue
                to_insert.append(row)

            if to_insert:
                records = [to_record(row, options) for row in to_insert]
                start = time.perf_counter()
                try:
                    inserted = store.insert_batch(records)
                    if inserted != len(records):
                        raise BatchInsertError(
                            f"store reported {inserted} inserted rows for {len(records)} submitted"
                        )
                except BatchInsertError as e:
                    message = str(e)
                    logger.error(
                        "batch %d/%d failed rows=%d-%d: %s",
                        number, len(batches),
                        to_insert[0].row_number, to_insert[-1].row_number, message,
                    )
                    for row in to_insert:
                        failed_rows.append(FailedRow(row=row, error_message=message))
                        if error_log is not None:
                            error_log.append(ErrorRecord.create(
                                file=file_name,
                                row=row.row_number,
                                error_type="DATABASE_INSERT_ERROR",
                                message=message,
                            ))
                    succeeded = False
                else:
                    success_count += inserted
                    succeeded = True
                elapsed = time.perf_counter() - start
                stats.add_batch_time(elapsed)
                if metrics_callback is not None:
                    metrics_callback(BatchMetrics(
                        batch_number=number,
                        batch_size=len(records),
                        elapsed_seconds=elapsed,
                        succeeded=succeeded,
                    ))

            progress.finish_batch(
                inserted=success_count, skipped=skipped_count, failed=len(failed_rows)
            )

    total_batches, avg_batch, p95_batch = stats.get_stats()
    return BulkInsertResult(
        success_count=success_count,
        skipped_count=skipped_count,
        failed_rows=tuple(failed_rows),
        total_batches=total_batches,
        avg_batch_seconds=avg_batch,
        p95_batch_seconds=p95_batch,
    )


def _is_duplicate(
    store: LocationStore,
    row: LocationRow,
    error_log: ErrorLogBuffer | None,
    file_name: str,
) -> bool:
    """Existence check for one row. A failed lookup counts as "not a duplicate"."""
    try:
        return store.exists(row.address, row.suburb)
    except StoreError as e:
        logger.warning("row=%d duplicate check failed, inserting anyway: %s", row.row_number, e)
        if error_log is not None:
            error_log.append(ErrorRecord.create(
                file=file_name,
                row=row.row_number,
                error_type="DUPLICATE_CHECK_ERROR",
                message=str(e),
            ))
        return False
