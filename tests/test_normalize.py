import math

from tracker.modules import NUMERIC_FIELDS, REQUIRED_FIELDS
from tracker.normalize import normalize_key, normalize_row, numeric_frame, to_number

MANPOWER = REQUIRED_FIELDS["manpower"]


def test_normalize_key_strips_punctuation():
    assert normalize_key("Planned  Headcount (HC)") == "planned_headcount_hc"
    assert normalize_key("Équipe") == "quipe"


def test_prefix_match_picks_loose_headers():
    row = {"Report Date": "2024-01-01", "Discipline Name": "Civil", "Planned HC": 12, "Actual HC": None}
    assert normalize_row(row, MANPOWER) == {
        "date": "2024-01-01",
        "discipline": "Civil",
        "planned_headcount": "12",
        "actual_headcount": "",
    }


def test_prefix_match_takes_first_key_in_row_order():
    row = {"actual_a": "1", "actual_b": "2"}
    assert normalize_row(row, MANPOWER)["actual_headcount"] == "1"


def test_missing_fields_are_blank():
    assert normalize_row({}, MANPOWER) == {f: "" for f in MANPOWER}


def test_to_number_guards_bad_values():
    assert to_number("") == 0.0
    assert to_number("abc") == 0.0
    assert to_number("nan") == 0.0
    assert to_number("inf") == 0.0
    assert to_number(float("nan")) == 0.0
    assert to_number(" 4.5 ") == 4.5
    assert to_number("1e3") == 1000.0
    assert to_number(7) == 7.0


def test_numeric_frame_has_no_nan():
    rows = [
        {"date": "2024-01-01", "discipline": "Civil", "planned_headcount": "NaN", "actual_headcount": "3"},
        {"date": "2024-01-01", "discipline": "Civil", "planned_headcount": "x"},
    ]
    df = numeric_frame(rows, MANPOWER, NUMERIC_FIELDS["manpower"])
    assert list(df.columns) == list(MANPOWER)
    assert df["planned_headcount"].tolist() == [0.0, 0.0]
    assert df["actual_headcount"].tolist() == [3.0, 0.0]
    assert not any(math.isnan(v) for v in df["actual_headcount"])
