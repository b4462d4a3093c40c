from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from location_import.models.location import RejectedRow
from location_import.models.processing_result import BulkInsertResult
from location_import.services.orchestrator import ImportOutcome, ImportStage
from location_import.services.summary import _format_seconds, render_summary_line
from location_import.services.validator import ValidationOutcome


def test_render_summary_line_counts():
    start = datetime(2026, 1, 1, 12, 0, 0)
    outcome = ImportOutcome(
        file_name="venues.csv",
        stage=ImportStage.COMPLETED,
        decoded_rows=10,
        validation=ValidationOutcome(
            accepted=(),
            rejected=(RejectedRow(row_number=3, errors=("x",)),),
        ),
        result=BulkInsertResult(success_count=7, skipped_count=2, total_batches=1),
        start_time=start,
        end_time=start + timedelta(seconds=1.5),
    )
    assert render_summary_line(outcome) == (
        "SUMMARY rows=10 accepted=0 rejected=1 inserted=7 skipped=2 "
        "failed=0 batches=1 elapsed_sec=1.5"
    )


@pytest.mark.parametrize(
    "value, expected",
    [(0, "0"), (2.0, "2"), (0.0012, "0.0012"), (1.23456, "1.235"), (0.25, "0.25")],
)
def test_format_seconds(value, expected):
    assert _format_seconds(value) == expected
