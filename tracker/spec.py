from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple, Union


Status = Literal["good", "warning", "danger", "neutral"]
VisualType = Literal["line", "bar", "stackedBar", "statusGrid", "table", "donut"]
KPIValue = Union[int, float, str]

# KPI ids per module, in display order.
KPI_IDS: Mapping[str, Tuple[str, ...]] = {
    "manpower": ("total_planned", "total_actual", "variance_pct", "discipline_count"),
    "equipment": ("active_count", "idle_count", "breakdown_count", "utilization_pct"),
    "progress": ("planned_avg", "actual_avg", "slippage_pct", "on_track"),
    "cost": ("total_budget", "total_spent", "cost_variance", "discipline_count"),
}


@dataclass(frozen=True)
class KPI:
    id: str
    label: str
    value: KPIValue
    status: Status = "neutral"
    delta: Optional[str] = None
    unit: Optional[str] = None
    sub_label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "label": self.label, "value": self.value}
        if self.delta is not None:
            out["delta"] = self.delta
        out["status"] = self.status
        if self.unit is not None:
            out["unit"] = self.unit
        if self.sub_label is not None:
            out["subLabel"] = self.sub_label
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "KPI":
        return cls(
            id=str(raw["id"]),
            label=str(raw.get("label", "")),
            value=raw.get("value", 0),
            status=raw.get("status") or "neutral",
            delta=raw.get("delta"),
            unit=raw.get("unit"),
            sub_label=raw.get("subLabel"),
        )


@dataclass(frozen=True)
class ChartSeries:
    key: str
    name: str
    color: str

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "name": self.name, "color": self.color}


@dataclass(frozen=True)
class TableColumn:
    key: str
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "label": self.label}


@dataclass(frozen=True)
class Visual:
    id: str
    type: VisualType
    title: str
    x_key: Optional[str] = None
    series: Tuple[ChartSeries, ...] = ()
    columns: Tuple[TableColumn, ...] = ()
    data: Tuple[Dict[str, Any], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "type": self.type, "title": self.title}
        if self.x_key is not None:
            out["xKey"] = self.x_key
        if self.series:
            out["series"] = [s.to_dict() for s in self.series]
        if self.columns:
            out["columns"] = [c.to_dict() for c in self.columns]
        out["data"] = [dict(row) for row in self.data]
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Visual":
        return cls(
            id=str(raw["id"]),
            type=raw.get("type", "table"),
            title=str(raw.get("title", "")),
            x_key=raw.get("xKey"),
            series=tuple(ChartSeries(str(s["key"]), str(s.get("name", s["key"])), str(s.get("color", ""))) for s in raw.get("series") or []),
            columns=tuple(TableColumn(str(c["key"]), str(c.get("label", c["key"]))) for c in raw.get("columns") or []),
            data=tuple(dict(row) for row in raw.get("data") or []),
        )


@dataclass(frozen=True)
class SpecMeta:
    disciplines: Tuple[str, ...] = ()
    date_min: str = ""
    date_max: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"disciplines": list(self.disciplines), "dateMin": self.date_min, "dateMax": self.date_max}


@dataclass(frozen=True)
class DashboardSpec:
    kpis: Tuple[KPI, ...]
    visuals: Tuple[Visual, ...]
    insights: Tuple[str, ...]
    meta: SpecMeta
    last_updated: str

    def kpi(self, kpi_id: str) -> Optional[KPI]:
        return next((k for k in self.kpis if k.id == kpi_id), None)

    def visual(self, visual_id: str) -> Optional[Visual]:
        return next((v for v in self.visuals if v.id == visual_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kpis": [k.to_dict() for k in self.kpis],
            "visuals": [v.to_dict() for v in self.visuals],
            "insights": list(self.insights),
            "meta": self.meta.to_dict(),
            "lastUpdated": self.last_updated,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "DashboardSpec":
        meta = raw.get("meta") or {}
        return cls(
            kpis=tuple(KPI.from_dict(k) for k in raw.get("kpis") or []),
            visuals=tuple(Visual.from_dict(v) for v in raw.get("visuals") or []),
            insights=tuple(str(s) for s in raw.get("insights") or []),
            meta=SpecMeta(
                disciplines=tuple(str(d) for d in meta.get("disciplines") or []),
                date_min=str(meta.get("dateMin") or ""),
                date_max=str(meta.get("dateMax") or ""),
            ),
            last_updated=str(raw.get("lastUpdated") or ""),
        )

    @classmethod
    def from_json(cls, text: str) -> "DashboardSpec":
        return cls.from_dict(json.loads(text))

    def with_visuals(self, visuals: Sequence[Visual]) -> "DashboardSpec":
        return replace(self, visuals=tuple(visuals))


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def assemble_spec(
    module: str,
    kpis: Sequence[KPI],
    visuals: Sequence[Visual],
    insights: Sequence[str],
    disciplines: Sequence[str],
    dates: Sequence[str],
    now: Optional[str] = None,
) -> DashboardSpec:
    """Package aggregator output into a DashboardSpec.

    `dates` must already be the sorted distinct date list; its first and last
    entries become the meta date range.
    """
    expected = KPI_IDS.get(module)
    got = tuple(k.id for k in kpis)
    if expected is not None and got != expected:
        raise ValueError(f"{module} KPIs out of order: {got} != {expected}")
    return DashboardSpec(
        kpis=tuple(kpis),
        visuals=tuple(visuals),
        insights=tuple(s for s in insights if s),
        meta=SpecMeta(
            disciplines=tuple(disciplines),
            date_min=dates[0] if dates else "",
            date_max=dates[-1] if dates else "",
        ),
        last_updated=now or utc_now_iso(),
    )

