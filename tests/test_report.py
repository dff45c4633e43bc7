from urllib.parse import parse_qs, urlparse

import pytest

from tracker.filters import SpecFilters
from tracker.metrics_cost import compute_cost
from tracker.report import ReportStore, render_report, report_name, sign_path, verify_signature


def test_render_report(cost_rows, now):
    spec = compute_cost(cost_rows, now=now)
    text = render_report(spec, "cost", SpecFilters(disciplines=["Civil"], date_from="2024-02-01"), now=now)
    lines = text.split("\n")
    assert lines[:6] == [
        "SITE TRACKER REPORT: COST MODULE",
        f"Generated: {now}",
        "Disciplines: Civil",
        "Date Range: 2024-02-01 to N/A",
        "",
        "KPIs:",
    ]
    assert "Total Budget,3000" in lines
    assert "Cost Variance,300,10.0%" in lines
    assert lines[lines.index("Insights:") + 1] == spec.insights[0]


def test_render_report_without_spec(now):
    text = render_report(None, "equipment", now=now)
    assert "Disciplines: All" in text
    assert text.endswith("Insights:")


def test_report_name(now):
    assert report_name("cost", now) == "cost_2024-03-01T08-00-00Z.csv"


def _parts(url):
    parsed = urlparse(url)
    q = parse_qs(parsed.query)
    return parsed.path.rsplit("/", 1)[-1], q["expires"][0], q["signature"][0]


def test_signed_url_expires():
    name, expires, signature = _parts(sign_path("cost_x.csv", "secret", ttl_seconds=60, now=1000))
    assert name == "cost_x.csv"
    assert expires == "1060"
    assert verify_signature(name, expires, signature, "secret", now=1059)
    assert not verify_signature(name, expires, signature, "secret", now=1061)
    assert not verify_signature(name, expires, signature, "other", now=1000)
    assert not verify_signature("cost_y.csv", expires, signature, "secret", now=1000)
    assert not verify_signature(name, "2000", signature, "secret", now=1000)
    assert not verify_signature(name, "soon", signature, "secret", now=1000)


def test_report_store(tmp_path):
    reports = ReportStore(tmp_path)
    path = reports.save("cost_x.csv", "hello")
    assert path.read_text(encoding="utf-8") == "hello"
    assert reports.read("cost_x.csv") == "hello"
    assert reports.read("missing.csv") is None
    with pytest.raises(ValueError):
        reports.path_for("../secrets.csv")
