# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from location_import.db.errors import BatchInsertError, StoreError
from location_import.schema import catalog


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """batch_size: 50
table: locations
report_directory: ./reports
max_file_bytes: 1048576
defaults:
  status: Pending
  skip_duplicates: true
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def valid_cells(**overrides: Any) -> dict[str, Any]:
    """Normalized-key cells of the catalog example row, with overrides."""
    cells = dict(catalog.example_row().values)
    cells.update(overrides)
    return cells


def make_csv(rows: Sequence[Mapping[str, Any]], headers: Sequence[str] | None = None) -> bytes:
    """CSV bytes using the template display headers (``Name*`` etc.)."""
    headers = list(headers or catalog.headers())
    keys = [f.key for f in catalog.field_rules()]
    records = [[row.get(k, "") for k in keys] for row in rows]
    df = pd.DataFrame(records, columns=headers, dtype=object)
    return df.to_csv(index=False).encode("utf-8")


def make_xlsx(matrix: Sequence[Sequence[Any]], sheet_name: str = "Sheet1", extra_sheets: dict | None = None) -> bytes:
    """XLSX bytes; ``matrix`` rows are written as-is (first row = headers)."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(list(matrix)).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        for name, rows in (extra_sheets or {}).items():
            pd.DataFrame(list(rows)).to_excel(writer, sheet_name=name, header=False, index=False)
    return buffer.getvalue()


class FakeStore:
    """LocationStore double recording every call.

    existing: (address, suburb) pairs reported as already present
    fail_calls: 1-based insert_batch call numbers that raise BatchInsertError
    broken_lookups: addresses whose existence check raises StoreError
    """

    def __init__(
        self,
        existing: set[tuple[str, str]] | None = None,
        fail_calls: set[int] | None = None,
        broken_lookups: set[str] | None = None,
        message: str = "duplicate key value violates unique constraint",
    ) -> None:
        self.existing = set(existing or ())
        self.fail_calls = set(fail_calls or ())
        self.broken_lookups = set(broken_lookups or ())
        self.message = message
        self.exists_calls: list[tuple[str, str]] = []
        self.insert_calls: list[list[dict[str, Any]]] = []

    def exists(self, address: str, suburb: str) -> bool:
        self.exists_calls.append((address, suburb))
        if address in self.broken_lookups:
            raise StoreError("connection reset")
        return (address, suburb) in self.existing

    def insert_batch(self, records: Sequence[Mapping[str, Any]]) -> int:
        self.insert_calls.append([dict(r) for r in records])
        if len(self.insert_calls) in self.fail_calls:
            raise BatchInsertError(self.message)
        return len(records)


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()
