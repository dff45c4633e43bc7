from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from tracker.metrics import (
    distinct_dates,
    distinct_disciplines,
    manpower_status,
    pct_text,
    pct_value,
    pick_first,
    planned_actual_series,
    records,
    round_int,
    rows_for,
    span_insight,
)
from tracker.modules import NUMERIC_FIELDS, REQUIRED_FIELDS
from tracker.normalize import numeric_frame
from tracker.spec import KPI, DashboardSpec, TableColumn, Visual, assemble_spec


logger = logging.getLogger(__name__)

MODULE = "manpower"


def compute_manpower(rows: Sequence[Mapping[str, str]], *, now: Optional[str] = None) -> DashboardSpec:
    df = numeric_frame(rows, REQUIRED_FIELDS[MODULE], NUMERIC_FIELDS[MODULE])

    planned = float(df["planned_headcount"].sum())
    actual = float(df["actual_headcount"].sum())
    variance = actual - planned
    variance_pct = pct_text(variance, planned)
    status = manpower_status(float(variance_pct))

    disciplines = distinct_disciplines(df)
    dates = distinct_dates(df, "date")
    day_count = max(len(dates), 1)
    avg_planned = round_int(planned / day_count)
    avg_actual = round_int(actual / day_count)

    breakdown: List[Dict[str, Any]] = []
    for discipline in disciplines:
        dr = rows_for(df, "discipline", discipline)
        p = float(dr["planned_headcount"].sum()) / day_count
        a = float(dr["actual_headcount"].sum()) / day_count
        pct = pct_text(a - p, p)
        breakdown.append(
            {
                "discipline": discipline,
                "planned_headcount": round_int(p),
                "actual_headcount": round_int(a),
                "variance": round_int(a - p),
                "variance_pct": f"{pct}%",
                "status": manpower_status(float(pct)),
            }
        )

    timeline = []
    for date in dates:
        dr = rows_for(df, "date", date)
        timeline.append(
            {
                "date": date,
                "planned_headcount": round_int(dr["planned_headcount"].sum()),
                "actual_headcount": round_int(dr["actual_headcount"].sum()),
            }
        )

    worst = pick_first(breakdown, key=lambda d: pct_value(d["variance_pct"]))
    best = pick_first(breakdown, key=lambda d: pct_value(d["variance_pct"]), descending=True)
    direction = "below" if float(variance_pct) < 0 else "above"

    insights = [
        f"Overall workforce is {variance_pct}% {direction} plan across {len(disciplines)} disciplines.",
        f"{worst['discipline']} is most understaffed at {worst['variance_pct']} vs planned." if worst else "",
        f"{best['discipline']} is best staffed at {best['variance_pct']} vs planned." if best and len(breakdown) > 1 else "",
        span_insight(dates),
    ]

    series = planned_actual_series("planned_headcount", "actual_headcount")
    kpis = [
        KPI("total_planned", "Avg Daily Planned", avg_planned, "neutral", sub_label="Planned headcount/day"),
        KPI("total_actual", "Avg Daily Actual", avg_actual, status, delta=f"{variance_pct}%", sub_label="Actual headcount/day"),
        KPI("variance_pct", "Overall Variance", f"{variance_pct}%", status, delta=f"{abs(round_int(variance))} workers", sub_label="Planned vs actual"),
        KPI("discipline_count", "Disciplines", len(disciplines), "neutral", sub_label="Reporting data"),
    ]
    visuals = [
        Visual("timeline", "line", "Planned vs Actual Over Time", x_key="date", series=series, data=records(timeline)),
        Visual("discipline_bar", "bar", "Headcount by Discipline", x_key="discipline", series=series, data=records(breakdown)),
        Visual(
            "detail_table",
            "table",
            "Discipline Detail",
            columns=(
                TableColumn("discipline", "Discipline"),
                TableColumn("planned_headcount", "Planned"),
                TableColumn("actual_headcount", "Actual"),
                TableColumn("variance", "Variance"),
                TableColumn("variance_pct", "Variance %"),
                TableColumn("status", "Status"),
            ),
            data=records(breakdown),
        ),
    ]
    logger.info("Manpower spec: %d rows, %d disciplines, %d dates", len(df), len(disciplines), len(dates))
    return assemble_spec(MODULE, kpis, visuals, insights, disciplines, dates, now)
