from tracker.metrics_cost import compute_cost


def test_totals_and_variance(cost_rows, now):
    spec = compute_cost(cost_rows, now=now)
    assert spec.kpi("total_budget").value == "3000"
    assert spec.kpi("total_spent").value == "2700"
    assert spec.kpi("cost_variance").value == "300"
    assert spec.kpi("cost_variance").delta == "10.0%"
    assert spec.kpi("cost_variance").status == "good"
    assert spec.kpi("total_spent").status == "neutral"


def test_discipline_variance_and_insights(cost_rows, now):
    spec = compute_cost(cost_rows, now=now)
    table = {r["discipline"]: r for r in spec.visual("cost_table").data}
    assert table["Civil"]["variance"] == -200
    assert table["Civil"]["variance_pct"] == "-20.0%"
    assert table["Civil"]["status"] == "danger"
    assert table["MEP"]["status"] == "good"
    assert spec.insights[0] == "Total spend is within budget by 300 (10.0%)."
    assert spec.insights[1] == "Civil shows the worst variance at -20.0%."
    assert spec.insights[-1] == "Data spans 2 day(s) from 2024-02-01 to 2024-02-02."


def test_overspend(now):
    rows = [{"date": "2024-02-01", "discipline": "Civil", "budget_amount": "100", "actual_spend": "103", "cost_code": "C"}]
    spec = compute_cost(rows, now=now)
    assert spec.kpi("cost_variance").value == "-3"
    assert spec.kpi("cost_variance").status == "warning"
    assert spec.kpi("total_spent").status == "warning"
    assert spec.insights[0] == "Total spend is over budget by 3 (3.0%)."


def test_zero_budget(now):
    rows = [{"date": "2024-02-01", "discipline": "Civil", "budget_amount": "", "actual_spend": "50", "cost_code": "C"}]
    spec = compute_cost(rows, now=now)
    assert spec.kpi("cost_variance").delta == "0.0%"


def test_empty_input(now):
    spec = compute_cost([], now=now)
    assert [k.value for k in spec.kpis] == ["0", "0", "0", 0]
    assert spec.meta.disciplines == ()


def _row(discipline, budget, spent):
    return {"date": "2024-02-01", "discipline": discipline, "budget_amount": str(budget), "actual_spend": str(spent), "cost_code": "C"}


def test_ranking_uses_variance_percentage(now):
    rows = [_row("Civil", 1000, 1200), _row("MEP", 10000, 10500), _row("Arch", 1000, 980)]
    spec = compute_cost(rows, now=now)
    assert spec.insights[1] == "Civil shows the worst variance at -20.0%."
    assert spec.insights[2] == "Arch shows the best variance at 2.0%."


def test_best_discipline_insight(cost_rows, now):
    spec = compute_cost(cost_rows, now=now)
    assert spec.insights[2] == "MEP shows the best variance at 25.0%."


def test_tied_variance_resolves_to_first_seen(now):
    spec = compute_cost([_row("Civil", 100, 110), _row("MEP", 200, 220)], now=now)
    assert spec.insights[1] == "Civil shows the worst variance at -10.0%."
    assert spec.insights[2] == "Civil shows the best variance at -10.0%."
