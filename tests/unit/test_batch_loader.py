from __future__ import annotations

import pytest

from conftest import FakeStore
from location_import.logging.error_log import ErrorLogBuffer
from location_import.models.location import BulkInsertOptions, LocationRow, LocationStatus
from location_import.services.batch_loader import chunked, load_locations, to_record


def _location(row_number: int, address: str | None = None, suburb: str = "Melbourne") -> LocationRow:
    return LocationRow(
        row_number=row_number,
        name=f"Venue {row_number}",
        category="Venue",
        address=address or f"{row_number} Main Street",
        suburb=suburb,
        state="VIC",
        postcode="3000",
        country="Australia",
        latitude=-37.8136,
        longitude=144.9631,
    )


def _rows(n: int) -> list[LocationRow]:
    return [_location(i + 2) for i in range(n)]


OPTIONS = BulkInsertOptions(
    target_status=LocationStatus.PENDING, skip_duplicates=False, acting_user_id="user-42"
)
SKIP_OPTIONS = BulkInsertOptions(
    target_status=LocationStatus.ACTIVE, skip_duplicates=True, acting_user_id="user-42"
)


def test_chunked_sizes():
    assert [len(c) for c in chunked(_rows(120), 50)] == [50, 50, 20]
    assert list(chunked([], 50)) == []


def test_chunked_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(chunked(_rows(3), 0))


def test_to_record_stamps_import_metadata():
    record = to_record(_location(2), OPTIONS)
    assert record["status"] == "Pending"
    assert record["source"] == "AdminImported"
    assert record["owner_user_id"] == "user-42"
    assert record["name"] == "Venue 2"
    assert "row_number" not in record


def test_120_rows_insert_in_three_batches():
    store = FakeStore()
    result = load_locations(_rows(120), OPTIONS, store)
    assert [len(c) for c in store.insert_calls] == [50, 50, 20]
    assert result.success_count == 120
    assert result.skipped_count == 0
    assert result.failed_rows == ()
    assert result.total_batches == 3
    assert store.exists_calls == []  # skip_duplicates=False


def test_custom_batch_size():
    store = FakeStore()
    load_locations(_rows(7), OPTIONS, store, batch_size=3)
    assert [len(c) for c in store.insert_calls] == [3, 3, 1]


def test_empty_input_makes_no_store_calls():
    store = FakeStore()
    result = load_locations([], SKIP_OPTIONS, store)
    assert store.insert_calls == []
    assert store.exists_calls == []
    assert result.processed_count == 0
    assert result.total_batches == 0


def test_duplicates_are_skipped_and_counted():
    rows = _rows(5)
    store = FakeStore(existing={(rows[1].address, "Melbourne"), (rows[3].address, "Melbourne")})
    result = load_locations(rows, SKIP_OPTIONS, store)
    assert result.skipped_count == 2
    assert result.success_count == 3
    assert [r["name"] for r in store.insert_calls[0]] == ["Venue 2", "Venue 4", "Venue 6"]
    # 行順に1件ずつ確認
    assert store.exists_calls == [(r.address, r.suburb) for r in rows]


def test_duplicate_match_requires_same_suburb():
    row = _location(2, address="1 Smith St", suburb="Fitzroy")
    store = FakeStore(existing={("1 Smith St", "Collingwood")})
    result = load_locations([row], SKIP_OPTIONS, store)
    assert result.skipped_count == 0
    assert result.success_count == 1


def test_whole_batch_of_duplicates_makes_no_insert_call():
    rows = _rows(4)
    store = FakeStore(existing={(r.address, r.suburb) for r in rows[:2]})
    result = load_locations(rows, SKIP_OPTIONS, store, batch_size=2)
    assert len(store.insert_calls) == 1
    assert result.skipped_count == 2
    assert result.success_count == 2
    assert result.total_batches == 1


def test_failed_batch_does_not_stop_later_batches():
    store = FakeStore(fail_calls={1}, message="value too long for type character varying(255)")
    rows = _rows(75)
    result = load_locations(rows, OPTIONS, store)
    assert len(store.insert_calls) == 2
    assert result.success_count == 25
    assert len(result.failed_rows) == 50
    assert {f.error_message for f in result.failed_rows} == {
        "value too long for type character varying(255)"
    }
    assert [f.row.row_number for f in result.failed_rows] == [r.row_number for r in rows[:50]]
    assert result.processed_count == 75


def test_failed_rows_are_the_submitted_rows_after_skips():
    rows = _rows(4)
    store = FakeStore(existing={(rows[0].address, rows[0].suburb)}, fail_calls={1})
    result = load_locations(rows, SKIP_OPTIONS, store)
    assert result.skipped_count == 1
    assert [f.row.row_number for f in result.failed_rows] == [3, 4, 5]
    assert result.processed_count == 4


def test_failed_duplicate_check_inserts_anyway(tmp_path):
    rows = _rows(2)
    store = FakeStore(broken_lookups={rows[0].address})
    error_log = ErrorLogBuffer(tmp_path)
    result = load_locations(rows, SKIP_OPTIONS, store, error_log=error_log, file_name="v.csv")
    assert result.success_count == 2
    assert result.skipped_count == 0
    path = error_log.flush()
    assert path is not None
    line = path.read_text(encoding="utf-8").strip()
    assert '"error_type": "DUPLICATE_CHECK_ERROR"' in line
    assert '"row": 2' in line


def test_failed_batch_is_written_to_error_log(tmp_path):
    store = FakeStore(fail_calls={1}, message="boom")
    error_log = ErrorLogBuffer(tmp_path)
    load_locations(_rows(3), OPTIONS, store, error_log=error_log, file_name="v.csv")
    lines = error_log.flush().read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert all('"DATABASE_INSERT_ERROR"' in line for line in lines)


def test_metrics_callback_per_insert_call():
    seen = []
    store = FakeStore(fail_calls={2})
    load_locations(_rows(5), OPTIONS, store, batch_size=2, metrics_callback=seen.append)
    assert [(m.batch_number, m.batch_size, m.succeeded) for m in seen] == [
        (1, 2, True),
        (2, 2, False),
        (3, 1, True),
    ]
    assert all(m.elapsed_seconds >= 0 for m in seen)


def test_inserted_count_mismatch_fails_the_batch():
    class ShortStore(FakeStore):
        def insert_batch(self, records):
            super().insert_batch(records)
            return len(records) - 1

    rows = _rows(3)
    result = load_locations(rows, OPTIONS, ShortStore())
    assert result.success_count == 0
    assert [f.row.row_number for f in result.failed_rows] == [2, 3, 4]
    assert result.failed_rows[0].error_message == "store reported 2 inserted rows for 3 submitted"
    assert result.processed_count == len(rows)
