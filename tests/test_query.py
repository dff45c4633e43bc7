from tracker.metrics_cost import compute_cost
from tracker.metrics_equipment import compute_equipment
from tracker.metrics_manpower import compute_manpower
from tracker.metrics_progress import compute_progress
from tracker.query import NO_DATA_MESSAGE, RULES, answer, match_rule


def test_rule_order_is_explicit():
    assert [name for name, _, _ in RULES] == [
        "summary",
        "cost",
        "manpower",
        "equipment",
        "progress",
        "discipline",
        "insight",
        "export",
    ]


def test_cost_beats_insight(cost_rows, now):
    spec = compute_cost(cost_rows, now=now)
    assert match_rule("cost insight please") == "cost"
    reply = answer("cost insight please", spec, "cost")
    assert "Budget: **3000**" in reply.message
    assert "Spent: **2700**" in reply.message
    assert "Variance: **300 (10.0%)**" in reply.message
    assert reply.highlight_kpi_id == "cost_variance"


def test_cost_question_without_module_detects_cost_spec(cost_rows, now):
    reply = answer("are we over budget?", compute_cost(cost_rows, now=now))
    assert "Variance" in reply.message


def test_cost_question_on_other_module_redirects(manpower_rows, now):
    reply = answer("what is the budget?", compute_manpower(manpower_rows, now=now), "manpower")
    assert "Budget, spent and variance" in reply.message
    assert reply.highlight_kpi_id is None


def test_no_spec():
    assert answer("summarize", None).message == NO_DATA_MESSAGE
    assert answer("summarize", None).to_dict() == {"message": NO_DATA_MESSAGE}


def test_summary(manpower_rows, now):
    reply = answer("Give me a SUMMARY", compute_manpower(manpower_rows, now=now), "manpower")
    assert reply.message.startswith("**MANPOWER STATUS SUMMARY**")
    assert "• Overall Variance: -20.0% (7 workers)" in reply.message
    assert "1. Overall workforce is -20.0% below plan across 2 disciplines." in reply.message


def test_manpower_highlights_actual(manpower_rows, now):
    reply = answer("how many workers today?", compute_manpower(manpower_rows, now=now), "manpower")
    assert reply.highlight_kpi_id == "total_actual"
    assert reply.to_dict()["highlightKpiId"] == "total_actual"
    assert reply.message == "**Avg Daily Actual** is currently **28 (-20.0%)**."


def test_equipment(equipment_rows, now):
    reply = answer("what equipment is idle?", compute_equipment(equipment_rows, now=now), "equipment")
    assert reply.message.startswith("Equipment fleet: Idle: **1** units, Breakdown: **1** units, Utilization: **50.0%**.")


def test_progress(progress_rows, now):
    reply = answer("what's behind schedule?", compute_progress(progress_rows, now=now), "progress")
    assert "Actual progress: **44.3%**" in reply.message
    assert "Schedule slippage: **-2.3%**" in reply.message


def test_disciplines_and_insights(manpower_rows, now):
    spec = compute_manpower(manpower_rows, now=now)
    assert "Active disciplines: **Civil, MEP**" in answer("list disciplines", spec).message
    listed = answer("any issues?", spec).message
    assert listed.startswith("**Current issues:**")
    assert "3. " in listed


def test_export_and_fallback(manpower_rows, now):
    spec = compute_manpower(manpower_rows, now=now)
    assert "Export Report" in answer("download it", spec).message
    fallback = answer("hello there", spec).message
    assert fallback.startswith("**Avg Daily Planned**: 35.")
    assert "Try asking" in fallback
