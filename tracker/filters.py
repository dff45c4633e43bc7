from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tracker.spec import DashboardSpec, SpecMeta


DATE_KEYS = ("date", "timestamp")


@dataclass(frozen=True)
class SpecFilters:
    disciplines: List[str] = field(default_factory=list)
    date_from: str = ""
    date_to: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.disciplines and not self.date_from and not self.date_to


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return out


def normalize_filters(raw: Mapping[str, Any], *, meta: Optional[SpecMeta] = None) -> SpecFilters:
    disciplines = _as_str_list(raw.get("disciplines"))
    if meta is not None and meta.disciplines:
        known = set(meta.disciplines)
        disciplines = [d for d in disciplines if d in known]

    date_from = str(raw.get("date_from") or raw.get("dateFrom") or "").strip()
    date_to = str(raw.get("date_to") or raw.get("dateTo") or "").strip()
    if date_from and date_to and date_from > date_to:
        date_from, date_to = date_to, date_from

    # The full meta range is the same as no date filter.
    if meta is not None:
        if date_from == meta.date_min:
            date_from = ""
        if date_to == meta.date_max:
            date_to = ""

    return SpecFilters(disciplines=disciplines, date_from=date_from, date_to=date_to)


def _keep(row: Mapping[str, Any], filters: SpecFilters) -> bool:
    if filters.disciplines:
        disc = row.get("discipline")
        if disc and disc not in filters.disciplines:
            return False
    for key in DATE_KEYS:
        value = row.get(key)
        if not value:
            continue
        value = str(value)
        if filters.date_from and value[: len(filters.date_from)] < filters.date_from:
            return False
        if filters.date_to and value[: len(filters.date_to)] > filters.date_to:
            return False
    return True


def apply_filters(spec: DashboardSpec, filters: SpecFilters) -> DashboardSpec:
    """New spec whose visual rows honour the discipline and date filters.

    KPIs, insights and meta describe the whole upload and are left as-is.
    """
    if filters.is_empty:
        return spec
    visuals = [
        replace(v, data=tuple(dict(row) for row in v.data if _keep(row, filters)))
        for v in spec.visuals
    ]
    return spec.with_visuals(visuals)


def filters_to_dict(filters: SpecFilters) -> Dict[str, Any]:
    return {"disciplines": list(filters.disciplines), "dateFrom": filters.date_from, "dateTo": filters.date_to}
