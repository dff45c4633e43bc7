from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from tracker.metrics import (
    as_number,
    cost_status,
    distinct_dates,
    distinct_disciplines,
    pct_text,
    pct_value,
    pick_first,
    planned_actual_series,
    records,
    rows_for,
    span_insight,
    whole,
)
from tracker.modules import NUMERIC_FIELDS, REQUIRED_FIELDS
from tracker.normalize import numeric_frame
from tracker.spec import KPI, DashboardSpec, TableColumn, Visual, assemble_spec


logger = logging.getLogger(__name__)

MODULE = "cost"


def compute_cost(rows: Sequence[Mapping[str, str]], *, now: Optional[str] = None) -> DashboardSpec:
    df = numeric_frame(rows, REQUIRED_FIELDS[MODULE], NUMERIC_FIELDS[MODULE])

    total_budget = float(df["budget_amount"].sum())
    total_spent = float(df["actual_spend"].sum())
    variance = total_budget - total_spent
    variance_pct = pct_text(variance, total_budget)
    status = cost_status(variance, float(variance_pct))

    disciplines = distinct_disciplines(df)
    dates = distinct_dates(df, "date")

    by_discipline: List[Dict[str, Any]] = []
    for discipline in disciplines:
        dr = rows_for(df, "discipline", discipline)
        b = float(dr["budget_amount"].sum())
        a = float(dr["actual_spend"].sum())
        v = b - a
        vp = pct_text(v, b)
        by_discipline.append(
            {
                "discipline": discipline,
                "budget_amount": as_number(b),
                "actual_spend": as_number(a),
                "variance": as_number(v),
                "variance_pct": f"{vp}%",
                "status": cost_status(v, float(vp)),
            }
        )

    timeline = []
    for date in dates:
        dr = rows_for(df, "date", date)
        b = float(dr["budget_amount"].sum())
        a = float(dr["actual_spend"].sum())
        timeline.append({"date": date, "budget_amount": as_number(b), "actual_spend": as_number(a), "variance": as_number(b - a)})

    worst = pick_first(by_discipline, key=lambda d: pct_value(d["variance_pct"]))
    best = pick_first(by_discipline, key=lambda d: pct_value(d["variance_pct"]), descending=True)

    insights = [
        f"Total spend is {'within' if variance >= 0 else 'over'} budget by {whole(abs(variance))} ({abs(float(variance_pct)):.1f}%).",
        f"{worst['discipline']} shows the worst variance at {worst['variance_pct']}." if worst else "",
        f"{best['discipline']} shows the best variance at {best['variance_pct']}." if best and len(by_discipline) > 1 else "",
        span_insight(dates),
    ]

    series = planned_actual_series("budget_amount", "actual_spend", "Budget", "Spend")
    kpis = [
        KPI("total_budget", "Total Budget", whole(total_budget), "neutral", sub_label="Sum of uploaded budget"),
        KPI("total_spent", "Total Spent", whole(total_spent), "warning" if total_spent > total_budget else "neutral", sub_label="Actual spend to date"),
        KPI("cost_variance", "Cost Variance", whole(variance), status, delta=f"{variance_pct}%", sub_label="Budget minus spend"),
        KPI("discipline_count", "Disciplines", len(disciplines), "neutral", sub_label="Reporting data"),
    ]
    visuals = [
        Visual("timeline", "line", "Budget vs Spend Over Time", x_key="date", series=series, data=records(timeline)),
        Visual("discipline_bar", "bar", "Budget vs Spend by Discipline", x_key="discipline", series=series, data=records(by_discipline)),
        Visual(
            "cost_table",
            "table",
            "Cost Detail by Discipline",
            columns=(
                TableColumn("discipline", "Discipline"),
                TableColumn("budget_amount", "Budget"),
                TableColumn("actual_spend", "Spend"),
                TableColumn("variance", "Variance"),
                TableColumn("variance_pct", "Variance %"),
                TableColumn("status", "Status"),
            ),
            data=records(by_discipline),
        ),
    ]
    logger.info("Cost spec: %d rows, %d disciplines, variance %.0f", len(df), len(disciplines), variance)
    return assemble_spec(MODULE, kpis, visuals, insights, disciplines, dates, now)
