from __future__ import annotations

import io
import logging
import re
from collections.abc import Sequence
from pathlib import PurePath
from typing import Any

import pandas as pd

from ..models.row_data import FIRST_DATA_ROW_NUMBER, RawRow

"""Upload decoder: CSV / Excel bytes -> ordered RawRow list.

- The first line (CSV) or first row of the first sheet (Excel) is the header.
- Headers are normalized: lowercase, ``*`` markers removed, whitespace runs
  collapsed to ``_`` (``"Best For"`` -> ``best_for``).
- Rows whose cells are all empty / blank are skipped. This drops blank lines
  and empty spreadsheet rows left between data.
- The Nth kept data row (0-based) gets row_number N + 2.

Nothing here touches the record store; decoding is pure.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DecodeError",
    "UnsupportedFormatError",
    "FileDecodeError",
    "CSV_EXTENSIONS",
    "EXCEL_EXTENSIONS",
    "SUPPORTED_EXTENSIONS",
    "normalize_header",
    "extension_of",
    "decode",
]

CSV_EXTENSIONS = frozenset({".csv"})
EXCEL_EXTENSIONS = frozenset({".xlsx", ".xls"})
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | EXCEL_EXTENSIONS

_WHITESPACE_RE = re.compile(r"\s+")


class DecodeError(Exception):
    """Base class for fatal decode failures (no row is read)."""


class UnsupportedFormatError(DecodeError):
    """Raised when the file extension is neither CSV nor Excel."""


class FileDecodeError(DecodeError):
    """Raised when a supported file cannot be parsed (empty, corrupt, bad encoding)."""


def normalize_header(header: Any) -> str:
    if _is_blank(header):
        return ""
    text = str(header).strip().lower().replace("*", "").strip()
    return _WHITESPACE_RE.sub("_", text)


def extension_of(file_name: str) -> str:
    """Lower-cased suffix of an uploaded file name (``"Venues.XLSX"`` -> ``".xlsx"``)."""
    return PurePath(file_name).suffix.lower()


def decode(file_bytes: bytes, file_extension: str) -> list[RawRow]:
    """Decode an uploaded file into RawRows.

    Parameters
    ----------
    file_bytes: アップロードされたファイル内容
    file_extension: ``.csv`` / ``.xlsx`` / ``.xls`` (先頭ドット省略可, 大文字可)

    Raises
    ------
    UnsupportedFormatError: extension is not supported (checked before parsing)
    FileDecodeError: content cannot be parsed
    """
    ext = file_extension.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"unsupported file format '{file_extension}': please upload a CSV or XLSX file"
        )

    if ext in CSV_EXTENSIONS:
        headers, records = _read_csv(file_bytes)
    else:
        headers, records = _read_excel(file_bytes)

    rows = _to_raw_rows(headers, records)
    logger.debug("decoded format=%s columns=%s rows=%d", ext, headers, len(rows))
    return rows


def _read_csv(file_bytes: bytes) -> tuple[list[str], list[Sequence[Any]]]:
    """Read CSV cells as text, header row included as the first record.

    Cells are matched to headers by position. Cells beyond the header width
    (trailing delimiters, stray extra values) are dropped per row; the row
    itself is kept.
    """
    options: dict[str, Any] = dict(
        header=None,  # ヘッダも1行目として読み、列は位置で対応付け
        dtype=str,
        keep_default_na=False,  # "NA" 等を文字列のまま保持
        skip_blank_lines=True,
        encoding="utf-8-sig",
        engine="python",
    )
    try:
        width = pd.read_csv(io.BytesIO(file_bytes), nrows=1, **options).shape[1]

        def _truncate(bad_line: list[str]) -> list[str]:
            logger.warning(
                "csv line has %d fields, header has %d: extra cells dropped",
                len(bad_line), width,
            )
            return bad_line[:width]

        df = pd.read_csv(io.BytesIO(file_bytes), on_bad_lines=_truncate, **options)
    except pd.errors.EmptyDataError as e:
        raise FileDecodeError("file is empty: a header row is required") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise FileDecodeError(f"invalid CSV file: {e}") from e
    matrix = df.fillna("").to_numpy(dtype=object).tolist()
    headers = [normalize_header(c) for c in matrix[0]]
    return headers, matrix[1:]


def _read_excel(file_bytes: bytes) -> tuple[list[str], list[Sequence[Any]]]:
    try:
        # 先頭シートのみ、ヘッダなしで生読み (1行目をヘッダとして後で適用)
        df = pd.read_excel(io.BytesIO(file_bytes), sheet_name=0, header=None, dtype=object)
    except Exception as e:  # openpyxl / xlrd raise a variety of types for corrupt input
        raise FileDecodeError(f"invalid spreadsheet file: {e}") from e
    if df.shape[0] < 1:
        raise FileDecodeError("spreadsheet is empty: a header row is required")
    matrix = df.to_numpy(dtype=object).tolist()
    headers = [normalize_header(c) for c in matrix[0]]
    return headers, matrix[1:]


def _to_raw_rows(headers: list[str], records: list[Sequence[Any]]) -> list[RawRow]:
    rows: list[RawRow] = []
    for record in records:
        if all(_is_blank(v) for v in record):
            continue
        values: dict[str, Any] = {}
        for key, val in zip(headers, record, strict=False):
            if not key:
                continue  # ヘッダ無し列は無視
            values[key] = "" if _is_blank(val) else val
        rows.append(RawRow(row_number=len(rows) + FIRST_DATA_ROW_NUMBER, values=values))
    return rows


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return pd.isna(value)
    return value is pd.NaT
