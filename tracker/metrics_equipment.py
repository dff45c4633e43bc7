from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from tracker.metrics import (
    ACTIVE_COLOR,
    BREAKDOWN_COLOR,
    IDLE_COLOR,
    as_number,
    distinct_dates,
    distinct_disciplines,
    pct_text,
    pick_first,
    records,
    rows_for,
    utilization_status,
)
from tracker.modules import NUMERIC_FIELDS, REQUIRED_FIELDS
from tracker.normalize import numeric_frame
from tracker.spec import KPI, ChartSeries, DashboardSpec, TableColumn, Visual, assemble_spec


logger = logging.getLogger(__name__)

MODULE = "equipment"
STATUSES = ("active", "idle", "breakdown")
TABLE_LIMIT = 50

STATUS_SERIES = (
    ChartSeries("Active", "Active", ACTIVE_COLOR),
    ChartSeries("Idle", "Idle", IDLE_COLOR),
    ChartSeries("Breakdown", "Breakdown", BREAKDOWN_COLOR),
)


def _status_counts(df: pd.DataFrame) -> Dict[str, int]:
    folded = df["status"].astype(str).str.strip().str.lower() if not df.empty else pd.Series(dtype=str)
    return {s: int((folded == s).sum()) for s in STATUSES}


def _title_case(status: str) -> str:
    status = str(status or "").strip()
    return status[:1].upper() + status[1:].lower()


def compute_equipment(rows: Sequence[Mapping[str, str]], *, now: Optional[str] = None) -> DashboardSpec:
    df = numeric_frame(rows, REQUIRED_FIELDS[MODULE], NUMERIC_FIELDS[MODULE])
    raw_idle = [str(r.get("hours_idle", "") or "") for r in rows]

    counts = _status_counts(df)
    active, idle, breakdown = counts["active"], counts["idle"], counts["breakdown"]
    total = len(df)
    util_pct = pct_text(active, total)
    status = utilization_status(float(util_pct))

    disciplines = distinct_disciplines(df)
    timestamps = distinct_dates(df, "timestamp")

    by_discipline: List[Dict[str, Any]] = []
    for discipline in disciplines:
        dr = rows_for(df, "discipline", discipline)
        c = _status_counts(dr)
        by_discipline.append(
            {
                "discipline": discipline,
                "Active": c["active"],
                "Idle": c["idle"],
                "Breakdown": c["breakdown"],
                "utilization_pct": f"{pct_text(c['active'], len(dr))}%",
            }
        )

    timeline = []
    for ts in timestamps:
        c = _status_counts(rows_for(df, "timestamp", ts))
        timeline.append({"timestamp": ts, "Active": c["active"], "Idle": c["idle"], "Breakdown": c["breakdown"]})

    table = [
        {
            "equipment_id": rec["equipment_id"],
            "discipline": rec["discipline"],
            "status": _title_case(rec["status"]),
            "hours_idle": raw or "0",
        }
        for rec, raw in zip(df.head(TABLE_LIMIT).to_dict(orient="records"), raw_idle)
    ]

    worst = pick_first(by_discipline, key=lambda d: d["Breakdown"], descending=True)
    idle_hours = as_number(df["hours_idle"].sum()) if total else 0

    insights = [
        f"Fleet utilization is {util_pct}% ({active} active, {idle} idle, {breakdown} breakdown).",
        f"{breakdown} unit(s) in breakdown status require immediate attention."
        if breakdown > 0
        else "No breakdown equipment; fleet health is good.",
        f"{worst['discipline']} has the most breakdown units ({worst['Breakdown']})." if worst and worst["Breakdown"] > 0 else "",
    ]

    kpis = [
        KPI("active_count", "Active Equipment", active, "good", sub_label="Currently operating"),
        KPI("idle_count", "Idle Equipment", idle, "warning" if idle > total * 0.3 else "neutral", delta=f"{idle_hours} idle hrs", sub_label="Standing by"),
        KPI("breakdown_count", "Breakdown", breakdown, "danger" if breakdown > 0 else "good", sub_label="Out of service"),
        KPI("utilization_pct", "Utilization Rate", f"{util_pct}%", status, sub_label="Of total fleet"),
    ]
    visuals = [
        Visual("timeline", "line", "Equipment Status Over Time", x_key="timestamp", series=STATUS_SERIES, data=records(timeline)),
        Visual("status_bar", "stackedBar", "Equipment Status by Discipline", x_key="discipline", series=STATUS_SERIES, data=records(by_discipline)),
        Visual(
            "eq_table",
            "table",
            "Equipment Detail",
            columns=(
                TableColumn("equipment_id", "Equipment ID"),
                TableColumn("discipline", "Discipline"),
                TableColumn("status", "Status"),
                TableColumn("hours_idle", "Idle Hours"),
            ),
            data=records(table),
        ),
    ]
    logger.info("Equipment spec: %d units, %d disciplines, utilization %s%%", total, len(disciplines), util_pct)
    return assemble_spec(MODULE, kpis, visuals, insights, disciplines, timestamps, now)
