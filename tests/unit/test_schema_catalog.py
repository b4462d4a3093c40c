from __future__ import annotations

from location_import.models.row_data import FIRST_DATA_ROW_NUMBER
from location_import.models.schema_field import FieldKind
from location_import.schema import catalog


def test_headers_order_and_required_markers():
    assert catalog.headers() == [
        "Name*", "Category*", "Subcategory", "Address*", "Suburb*", "State*",
        "Postcode*", "Country", "Latitude*", "Longitude*", "Description", "Email",
        "Phone", "Website", "Instagram", "Capacity", "Best For", "Accessibility Notes",
    ]


def test_field_keys_unique_and_match_headers():
    keys = [f.key for f in catalog.field_rules()]
    assert len(keys) == len(set(keys)) == 18
    assert keys[-2:] == ["best_for", "accessibility_notes"]


def test_required_fields():
    required = {f.key for f in catalog.field_rules() if f.required}
    assert required == {
        "name", "category", "address", "suburb", "state", "postcode", "latitude", "longitude",
    }


def test_enum_value_sets():
    by_key = {f.key: f for f in catalog.field_rules()}
    assert len(catalog.VALID_CATEGORIES) == 12
    assert by_key["category"].enum_values == catalog.VALID_CATEGORIES
    assert by_key["state"].enum_values == (
        "VIC", "NSW", "QLD", "SA", "WA", "TAS", "NT", "ACT",
    )
    assert by_key["state"].kind is FieldKind.ENUM


def test_example_row_covers_every_column():
    row = catalog.example_row()
    assert row.row_number == FIRST_DATA_ROW_NUMBER
    assert set(row.values) == {f.key for f in catalog.field_rules()}
    assert all(str(v) for v in row.values.values())


def test_validation_notes_one_per_column():
    notes = catalog.validation_notes()
    assert len(notes) == len(catalog.headers())
    assert notes[5] == "VIC, NSW, QLD, SA, WA, TAS, NT, or ACT"
    assert notes[1].endswith("Gallery/Arts Space, or Other")
    assert notes[7] == "Default: Australia"
