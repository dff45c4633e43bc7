from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from tracker.metrics import (
    as_number,
    distinct_dates,
    distinct_disciplines,
    pct_value,
    pick_first,
    planned_actual_series,
    records,
    rows_for,
    signed,
    slippage_label,
    slippage_status,
)
from tracker.modules import NUMERIC_FIELDS, REQUIRED_FIELDS
from tracker.normalize import numeric_frame
from tracker.spec import KPI, DashboardSpec, TableColumn, Visual, assemble_spec


logger = logging.getLogger(__name__)

MODULE = "progress"


def _mean(total: float, count: int) -> float:
    return total / max(count, 1)


def compute_progress(rows: Sequence[Mapping[str, str]], *, now: Optional[str] = None) -> DashboardSpec:
    df = numeric_frame(rows, REQUIRED_FIELDS[MODULE], NUMERIC_FIELDS[MODULE])

    planned = _mean(float(df["planned_progress_pct"].sum()), len(df))
    actual = _mean(float(df["actual_progress_pct"].sum()), len(df))
    slippage = actual - planned
    slip_status = slippage_status(slippage)

    disciplines = distinct_disciplines(df)
    dates = distinct_dates(df, "date")

    detail: List[Dict[str, Any]] = []
    chart: List[Dict[str, Any]] = []
    for discipline in disciplines:
        dr = rows_for(df, "discipline", discipline)
        p = _mean(float(dr["planned_progress_pct"].sum()), len(dr))
        a = _mean(float(dr["actual_progress_pct"].sum()), len(dr))
        slip = a - p
        detail.append(
            {
                "discipline": discipline,
                "planned_progress_pct": f"{p:.1f}%",
                "actual_progress_pct": f"{a:.1f}%",
                "slippage": f"{signed(slip)}%",
                "status": slippage_label(slip),
            }
        )
        chart.append({"discipline": discipline, "planned_progress_pct": as_number(p), "actual_progress_pct": as_number(a)})

    timeline = []
    for date in dates:
        dr = rows_for(df, "date", date)
        timeline.append(
            {
                "date": date,
                "planned_progress_pct": as_number(_mean(float(dr["planned_progress_pct"].sum()), len(dr))),
                "actual_progress_pct": as_number(_mean(float(dr["actual_progress_pct"].sum()), len(dr))),
            }
        )

    on_track = sum(1 for d in detail if d["status"] in ("On Track", "Ahead"))
    n = len(disciplines)
    if on_track == n:
        on_track_status = "good"
    elif on_track >= n / 2:
        on_track_status = "warning"
    else:
        on_track_status = "danger"

    worst = pick_first(detail, key=lambda d: pct_value(d["slippage"]))
    best = pick_first(detail, key=lambda d: pct_value(d["slippage"]), descending=True)

    insights = [
        f"Overall progress is {abs(slippage):.1f}% {'behind' if slippage < 0 else 'ahead of'} schedule.",
        f"{worst['discipline']} has the worst slippage at {worst['slippage']}; prioritize resources." if worst else "",
        f"{best['discipline']} is performing best at {best['slippage']} vs plan." if best and len(detail) > 1 else "",
        f"{on_track} of {n} disciplines are meeting schedule targets.",
    ]

    series = planned_actual_series("planned_progress_pct", "actual_progress_pct", "Planned %", "Actual %")
    kpis = [
        KPI("planned_avg", "Planned Progress", f"{planned:.1f}%", "neutral", sub_label="Schedule target"),
        KPI("actual_avg", "Actual Progress", f"{actual:.1f}%", slip_status, delta=f"{signed(slippage)}% vs plan", sub_label="Current completion"),
        KPI("slippage_pct", "Schedule Slippage", f"{signed(slippage)}%", slip_status, sub_label="vs planned schedule"),
        KPI("on_track", "On Track", f"{on_track}/{n}", on_track_status, sub_label="Disciplines meeting schedule"),
    ]
    visuals = [
        Visual("timeline", "line", "Planned vs Actual Progress Over Time", x_key="date", series=series, data=records(timeline)),
        Visual("disc_progress", "bar", "Progress by Discipline", x_key="discipline", series=series, data=records(chart)),
        Visual(
            "progress_table",
            "table",
            "Progress Detail by Discipline",
            columns=(
                TableColumn("discipline", "Discipline"),
                TableColumn("planned_progress_pct", "Planned %"),
                TableColumn("actual_progress_pct", "Actual %"),
                TableColumn("slippage", "Slippage"),
                TableColumn("status", "Status"),
            ),
            data=records(detail),
        ),
    ]
    logger.info("Progress spec: %d rows, %d disciplines, slippage %.1f", len(df), n, slippage)
    return assemble_spec(MODULE, kpis, visuals, insights, disciplines, dates, now)
