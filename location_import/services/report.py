from __future__ import annotations

import csv
from collections.abc import Sequence
from enum import Enum
from typing import Any

import pandas as pd

from ..models.location import RejectedRow
from ..models.processing_result import FailedRow
from ..schema.catalog import FIELDS

"""Error report rendering (CSV, every cell quoted, UTF-8).

Two fixed layouts:

- validation: Row, Errors, Name, Category, Address: rows rejected before loading
- failed_rows: every schema column + Error: rows whose batch insert failed.
  Headers use the plain column names so the file can be fixed and re-uploaded.

A report is rendered completely in memory; callers either get the whole byte
stream or an exception.
"""

__all__ = [
    "ReportLayout",
    "VALIDATION_REPORT_COLUMNS",
    "FAILED_ROWS_REPORT_COLUMNS",
    "VALIDATION_REPORT_FILENAME",
    "FAILED_ROWS_REPORT_FILENAME",
    "write_validation_report",
    "write_failed_rows_report",
    "write_report",
]

VALIDATION_REPORT_COLUMNS = ["Row", "Errors", "Name", "Category", "Address"]
FAILED_ROWS_REPORT_COLUMNS = [f.label for f in FIELDS] + ["Error"]

VALIDATION_REPORT_FILENAME = "validation-errors.csv"
FAILED_ROWS_REPORT_FILENAME = "failed-imports.csv"

ERROR_SEPARATOR = "; "


class ReportLayout(Enum):
    VALIDATION = "validation"
    FAILED_ROWS = "failed_rows"


def write_validation_report(rejected: Sequence[RejectedRow]) -> bytes:
    rows = [
        [
            str(item.row_number),
            ERROR_SEPARATOR.join(item.errors),
            _cell(item.data.get("name")),
            _cell(item.data.get("category")),
            _cell(item.data.get("address")),
        ]
        for item in rejected
    ]
    return _render(VALIDATION_REPORT_COLUMNS, rows)


def write_failed_rows_report(failed: Sequence[FailedRow]) -> bytes:
    rows = []
    for item in failed:
        values = item.row.field_values()
        rows.append([_cell(values[f.key]) for f in FIELDS] + [item.error_message])
    return _render(FAILED_ROWS_REPORT_COLUMNS, rows)


def write_report(
    rows: Sequence[RejectedRow] | Sequence[FailedRow],
    layout: ReportLayout | None = None,
) -> bytes:
    """Render rows with the layout matching their type.

    ``layout`` is only needed for an empty sequence (header-only report).
    """
    if layout is None:
        if not rows:
            raise ValueError("layout is required for an empty report")
        layout = ReportLayout.VALIDATION if isinstance(rows[0], RejectedRow) else ReportLayout.FAILED_ROWS

    expected: type = RejectedRow if layout is ReportLayout.VALIDATION else FailedRow
    bad = [r for r in rows if not isinstance(r, expected)]
    if bad:
        raise TypeError(
            f"{layout.value} report expects {expected.__name__} items, got {type(bad[0]).__name__}"
        )

    if layout is ReportLayout.VALIDATION:
        return write_validation_report(rows)  # type: ignore[arg-type]
    return write_failed_rows_report(rows)  # type: ignore[arg-type]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _render(columns: list[str], rows: list[list[str]]) -> bytes:
    df = pd.DataFrame(rows, columns=columns, dtype=object)
    text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    # strict: エンコード失敗時は例外 (部分出力なし)
    return text.encode("utf-8")
