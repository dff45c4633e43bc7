from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from tracker.spec import DashboardSpec, Visual

alt.data_transformers.disable_max_rows()

SERIES_FIELD = "series"
VALUE_FIELD = "value"


def long_frame(visual: Visual) -> pd.DataFrame:
    """One row per (x, series) pair, numeric values coerced; blanks become 0."""
    x_key = visual.x_key or "x"
    names = {s.key: s.name for s in visual.series}
    wide = pd.DataFrame([dict(r) for r in visual.data])
    if wide.empty or x_key not in wide.columns:
        return pd.DataFrame(columns=[x_key, SERIES_FIELD, VALUE_FIELD])
    for key in names:
        if key not in wide.columns:
            wide[key] = 0
    long = wide.melt(id_vars=[x_key], value_vars=list(names), var_name=SERIES_FIELD, value_name=VALUE_FIELD)
    long[SERIES_FIELD] = long[SERIES_FIELD].map(names)
    long[VALUE_FIELD] = pd.to_numeric(long[VALUE_FIELD], errors="coerce").fillna(0.0)
    return long


def build_chart(visual: Visual) -> Optional[alt.Chart]:
    if visual.type == "table" or not visual.series:
        return None
    x_key = visual.x_key or "x"
    df = long_frame(visual)
    color = alt.Color(
        f"{SERIES_FIELD}:N",
        title=None,
        scale=alt.Scale(domain=[s.name for s in visual.series], range=[s.color for s in visual.series]),
    )
    tooltip = [f"{x_key}:N", f"{SERIES_FIELD}:N", alt.Tooltip(f"{VALUE_FIELD}:Q", format=",")]
    x_title = x_key.replace("_", " ").title()

    if visual.type == "line":
        chart = (
            alt.Chart(df)
            .mark_line(point=True)
            .encode(x=alt.X(f"{x_key}:O", title=x_title), y=alt.Y(f"{VALUE_FIELD}:Q", title=None), color=color, tooltip=tooltip)
        )
    elif visual.type == "stackedBar":
        chart = (
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X(f"{x_key}:N", title=x_title),
                y=alt.Y(f"{VALUE_FIELD}:Q", title=None, stack="zero"),
                color=color,
                tooltip=tooltip,
            )
        )
    else:
        chart = (
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X(f"{x_key}:N", title=x_title),
                xOffset=alt.XOffset(f"{SERIES_FIELD}:N"),
                y=alt.Y(f"{VALUE_FIELD}:Q", title=None),
                color=color,
                tooltip=tooltip,
            )
        )
    return chart.properties(title=visual.title, height=260)


def to_vega_spec(visual: Visual) -> Optional[Dict[str, Any]]:
    """Vega-Lite dict (JSON-serializable) for a chart visual; None for tables."""
    chart = build_chart(visual)
    return chart.to_dict() if chart is not None else None


def spec_charts(spec: DashboardSpec) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {}
    for v in spec.visuals:
        vega = to_vega_spec(v)
        if vega is not None:
            out[v.id] = vega
    return out
