from __future__ import annotations

import csv
import io

import pandas as pd
from openpyxl.utils import get_column_letter

from ..schema import catalog

"""Starter template generation (CSV / XLSX).

Layout (both formats):
    row 1: display headers, required columns marked with ``*``
    row 2: one fully valid example row
    row 3: plain-language validation note per column

Every cell comes from the schema catalog.
"""

__all__ = [
    "TEMPLATE_SHEET_NAME",
    "TEMPLATE_FORMATS",
    "template_rows",
    "render_csv_template",
    "render_xlsx_template",
    "render_template",
    "template_filename",
]

TEMPLATE_SHEET_NAME = "Locations Template"
TEMPLATE_FORMATS = ("csv", "xlsx")

DEFAULT_COLUMN_WIDTH = 20
WIDE_COLUMN_WIDTH = 40
_WIDE_COLUMNS = {"description"}


def template_rows() -> list[list[str]]:
    example = catalog.example_row()
    return [
        catalog.headers(),
        [str(example.get(f.key, "")) for f in catalog.field_rules()],
        catalog.validation_notes(),
    ]


def render_csv_template() -> bytes:
    df = pd.DataFrame(template_rows(), dtype=object)
    text = df.to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return text.encode("utf-8")


def render_xlsx_template() -> bytes:
    buffer = io.BytesIO()
    df = pd.DataFrame(template_rows(), dtype=object)
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=TEMPLATE_SHEET_NAME, header=False, index=False)
        worksheet = writer.sheets[TEMPLATE_SHEET_NAME]
        for index, column in enumerate(catalog.field_rules(), start=1):
            width = WIDE_COLUMN_WIDTH if column.key in _WIDE_COLUMNS else DEFAULT_COLUMN_WIDTH
            worksheet.column_dimensions[get_column_letter(index)].width = width
    return buffer.getvalue()


def render_template(fmt: str) -> bytes:
    fmt = fmt.lower().lstrip(".")
    if fmt == "csv":
        return render_csv_template()
    if fmt == "xlsx":
        return render_xlsx_template()
    raise ValueError(f"unknown template format '{fmt}' (expected one of {TEMPLATE_FORMATS})")


def template_filename(fmt: str) -> str:
    return f"locations-template.{fmt.lower().lstrip('.')}"
