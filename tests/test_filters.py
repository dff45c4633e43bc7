from tracker.filters import SpecFilters, apply_filters, filters_to_dict, normalize_filters
from tracker.metrics_manpower import compute_manpower
from tracker.spec import SpecMeta


def _spec(now):
    rows = [
        {"date": "2024-01-01", "discipline": "Civil", "planned_headcount": "10", "actual_headcount": "9"},
        {"date": "2024-01-02", "discipline": "MEP", "planned_headcount": "20", "actual_headcount": "15"},
        {"date": "2024-01-03", "discipline": "Civil", "planned_headcount": "10", "actual_headcount": "10"},
    ]
    return compute_manpower(rows, now=now)


def test_discipline_filter_only_touches_discipline_rows(now):
    spec = _spec(now)
    out = apply_filters(spec, SpecFilters(disciplines=["Civil"]))
    assert [r["discipline"] for r in out.visual("discipline_bar").data] == ["Civil"]
    assert len(out.visual("timeline").data) == 3
    assert out.kpis == spec.kpis
    assert out.insights == spec.insights


def test_date_filter(now):
    out = apply_filters(_spec(now), SpecFilters(date_from="2024-01-02"))
    assert [r["date"] for r in out.visual("timeline").data] == ["2024-01-02", "2024-01-03"]


def test_empty_filters_return_same_spec(now):
    spec = _spec(now)
    assert apply_filters(spec, SpecFilters()) is spec


def test_normalize_filters_against_meta():
    meta = SpecMeta(disciplines=("Civil", "MEP"), date_min="2024-01-01", date_max="2024-01-31")
    f = normalize_filters({"disciplines": ["Civil", "Unknown", "Civil", None], "dateFrom": "2024-01-20", "dateTo": "2024-01-05"}, meta=meta)
    assert f.disciplines == ["Civil"]
    assert (f.date_from, f.date_to) == ("2024-01-05", "2024-01-20")

    full = normalize_filters({"date_from": "2024-01-01", "date_to": "2024-01-31"}, meta=meta)
    assert full.is_empty


def test_filters_to_dict():
    assert filters_to_dict(SpecFilters(disciplines=["MEP"], date_to="2024-02-01")) == {
        "disciplines": ["MEP"],
        "dateFrom": "",
        "dateTo": "2024-02-01",
    }
