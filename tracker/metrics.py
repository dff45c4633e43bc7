from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

import pandas as pd

from tracker.spec import ChartSeries, Status


PLANNED_COLOR = "#4B9EFF"
ACTUAL_COLOR = "#FF6A00"
ACTIVE_COLOR = "#22c55e"
IDLE_COLOR = "#eab308"
BREAKDOWN_COLOR = "#ef4444"

T = TypeVar("T")


def planned_actual_series(planned_key: str, actual_key: str, planned_name: str = "Planned", actual_name: str = "Actual") -> tuple:
    return (
        ChartSeries(planned_key, planned_name, PLANNED_COLOR),
        ChartSeries(actual_key, actual_name, ACTUAL_COLOR),
    )


def round_half_up(value: object, ndigits: int = 0) -> float:
    if value is None or pd.isna(value):
        return 0.0
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def round_int(value: object) -> int:
    return int(round_half_up(value, 0))


def as_number(value: object) -> Union[int, float]:
    """Plain int when the value is integral, float otherwise (JSON friendly)."""
    out = float(value) if value is not None and not pd.isna(value) else 0.0
    return int(out) if out.is_integer() else out


def pct_text(numerator: float, denominator: float) -> str:
    """One-decimal percentage string; "0.0" when the denominator is not positive."""
    if denominator > 0:
        return f"{(numerator / denominator) * 100:.1f}"
    return "0.0"


def signed(value: float, decimals: int = 1) -> str:
    return f"{'+' if value >= 0 else ''}{value:.{decimals}f}"


def whole(value: float) -> str:
    """Zero-decimal text, halves rounded away from zero."""
    return f"{round_half_up(value, 0) + 0.0:.0f}"


def distinct_disciplines(df: pd.DataFrame) -> List[str]:
    """Distinct non-blank disciplines in first-seen order."""
    if df.empty or "discipline" not in df.columns:
        return []
    values = df["discipline"].astype(str)
    return [v for v in pd.unique(values) if v]


def distinct_dates(df: pd.DataFrame, column: str = "date") -> List[str]:
    """Distinct non-blank dates, sorted ascending (ISO strings sort chronologically)."""
    if df.empty or column not in df.columns:
        return []
    return sorted(v for v in pd.unique(df[column].astype(str)) if v)


def rows_for(df: pd.DataFrame, column: str, value: str) -> pd.DataFrame:
    return df[df[column].astype(str) == value]


def pick_first(items: Sequence[T], key: Callable[[T], float], *, descending: bool = False) -> Optional[T]:
    """Stable sort then first element; ties keep input order."""
    if not items:
        return None
    return sorted(items, key=key, reverse=descending)[0]


def pct_value(text: str) -> float:
    try:
        return float(str(text).rstrip("%"))
    except ValueError:
        return 0.0


def manpower_status(variance_pct: float) -> Status:
    if variance_pct >= -5:
        return "good"
    if variance_pct >= -15:
        return "warning"
    return "danger"


def utilization_status(utilization_pct: float) -> Status:
    if utilization_pct >= 70:
        return "good"
    if utilization_pct >= 55:
        return "warning"
    return "danger"


def cost_status(variance: float, variance_pct: float) -> Status:
    if variance >= 0:
        return "good"
    if variance_pct >= -5:
        return "warning"
    return "danger"


def slippage_status(slippage: float) -> Status:
    if slippage >= 0:
        return "good"
    if slippage >= -5:
        return "warning"
    return "danger"


def slippage_label(slippage: float) -> str:
    if slippage >= 0:
        return "Ahead" if slippage > 2 else "On Track"
    return "Minor Delay" if slippage > -5 else "Behind"


def span_insight(dates: Sequence[str]) -> str:
    first = dates[0] if dates else "N/A"
    last = dates[-1] if dates else "N/A"
    return f"Data spans {len(dates)} day(s) from {first} to {last}."


def records(rows: Sequence[Dict[str, Any]]) -> tuple:
    return tuple(dict(r) for r in rows)
