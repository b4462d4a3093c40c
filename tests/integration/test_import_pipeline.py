from __future__ import annotations

import io

import pandas as pd

from conftest import make_csv, make_xlsx, valid_cells
from location_import.db.memory_store import InMemoryLocationStore
from location_import.models.location import BulkInsertOptions, LocationStatus
from location_import.schema import catalog
from location_import.services.orchestrator import run_import
from location_import.services.report import write_failed_rows_report, write_validation_report

"""End-to-end runs over real CSV / XLSX bytes into the in-memory store."""

OPTIONS = BulkInsertOptions(
    target_status=LocationStatus.PENDING, skip_duplicates=True, acting_user_id="admin-7"
)


def test_csv_import_with_rejections_and_duplicates():
    store = InMemoryLocationStore([{"address": "10 Smith St", "suburb": "Fitzroy"}])
    rows = [valid_cells(name=f"Venue {i}", address=f"{i} Main Street") for i in range(120)]
    rows[5] = valid_cells(address="10 Smith St", suburb="Fitzroy")  # 既存
    rows[7] = valid_cells(postcode="123")
    rows[9] = valid_cells(category="Pub", email="nope")

    outcome = run_import(make_csv(rows), "venues.csv", OPTIONS, store)

    assert outcome.decoded_rows == 120
    assert len(outcome.validation.accepted) == 118
    assert [r.row_number for r in outcome.validation.rejected] == [9, 11]
    assert outcome.result.skipped_count == 1
    assert outcome.result.success_count == 117
    assert store.insert_calls == [49, 50, 18]
    inserted = store.records[1]
    assert inserted["status"] == "Pending"
    assert inserted["source"] == "AdminImported"
    assert inserted["owner_user_id"] == "admin-7"
    assert not outcome.fully_successful

    report = pd.read_csv(
        io.BytesIO(write_validation_report(outcome.validation.rejected)),
        dtype=str, keep_default_na=False,
    )
    assert report["Row"].tolist() == ["9", "11"]
    assert report["Errors"].iloc[1].startswith("Category must be one of: ")
    assert report["Errors"].iloc[1].endswith("; Email must be valid format")


def test_xlsx_import_numeric_cells():
    header = catalog.headers()
    keys = [f.key for f in catalog.field_rules()]
    example = valid_cells(postcode=3000, latitude=-37.8136, longitude=144.9631, capacity=200)
    second = dict(example, address="99 Chapel St", suburb="Windsor", postcode=3181, state="vic")
    matrix = [header, [example[k] for k in keys], [None] * len(keys), [second[k] for k in keys]]

    store = InMemoryLocationStore()
    outcome = run_import(make_xlsx(matrix), "Venues.XLSX", OPTIONS, store)

    assert outcome.fully_successful
    assert outcome.result.success_count == 2
    first, last = store.records
    assert first["postcode"] == "3000"
    assert first["capacity"] == 200
    assert first["latitude"] == -37.8136
    assert last["state"] == "VIC"
    assert [r.row_number for r in outcome.validation.accepted] == [2, 3]


def test_failed_rows_report_can_be_reuploaded():
    class FailingStore(InMemoryLocationStore):
        def insert_batch(self, records):
            from location_import.db.errors import BatchInsertError
            raise BatchInsertError("relation \"locations\" does not exist")

    rows = [valid_cells(address=f"{i} Main Street") for i in range(3)]
    outcome = run_import(make_csv(rows), "venues.csv", OPTIONS, FailingStore())
    assert len(outcome.result.failed_rows) == 3

    report = write_failed_rows_report(outcome.result.failed_rows)
    df = pd.read_csv(io.BytesIO(report), dtype=str, keep_default_na=False)
    reupload = df.drop(columns=["Error"]).to_csv(index=False).encode("utf-8")

    store = InMemoryLocationStore()
    again = run_import(reupload, "failed-imports.csv", OPTIONS, store)
    assert again.fully_successful
    assert again.result.success_count == 3
