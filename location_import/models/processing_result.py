from __future__ import annotations

import statistics
from dataclasses import dataclass, field

from .location import LocationRow

"""Processing result models for the location import pipeline.

BulkInsertResult is returned by the batch loader. Every accepted row ends in
exactly one of three outcomes: inserted, skipped as a duplicate, or failed.
"""

__all__ = [
    "FailedRow",
    "BulkInsertResult",
    "BatchStatsAccumulator",
]


@dataclass(frozen=True)
class FailedRow:
    """An accepted row whose batch insert failed."""
    row: LocationRow
    error_message: str  # ストアが返したエラーメッセージ


@dataclass(frozen=True)
class BulkInsertResult:
    """Outcome of loading accepted rows into the record store.

    Invariant: success_count + skipped_count + len(failed_rows) equals the
    number of rows handed to the loader.
    """
    success_count: int = 0
    skipped_count: int = 0
    failed_rows: tuple[FailedRow, ...] = ()
    # Batch timing statistics (performance monitoring)
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0

    @property
    def processed_count(self) -> int:
        return self.success_count + self.skipped_count + len(self.failed_rows)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_rows)


class BatchStatsAccumulator:
    """Helper class to accumulate batch timing statistics for BulkInsertResult.

    Collects individual batch timing data and calculates summary statistics.
    """

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        """Add a batch timing measurement."""
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 95th percentile (19th out of 20 quantiles, 0-indexed)

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
