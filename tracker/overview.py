"""Project-wide rollup of the latest spec of every loaded module."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from tracker.modules import MODULE_LABELS, MODULES
from tracker.spec import KPI, DashboardSpec, Status


logger = logging.getLogger(__name__)

KPI_LIMIT = 4
INSIGHT_LIMIT = 6

# Per loaded module: clean, warnings only, any danger.
CLEAN_POINTS = 25
WARNING_POINTS = 15
DANGER_POINTS = 5


@dataclass(frozen=True)
class Overview:
    health_score: int
    health_status: Status
    modules_loaded: Tuple[str, ...] = ()
    kpis: Tuple[KPI, ...] = ()
    insights: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthScore": self.health_score,
            "healthStatus": self.health_status,
            "modulesLoaded": list(self.modules_loaded),
            "totalModules": len(MODULES),
            "kpis": [k.to_dict() for k in self.kpis],
            "insights": list(self.insights),
        }


def module_points(spec: DashboardSpec) -> int:
    statuses = {k.status for k in spec.kpis}
    if "danger" in statuses:
        return DANGER_POINTS
    if "warning" in statuses:
        return WARNING_POINTS
    return CLEAN_POINTS


def health_status(score: int) -> Status:
    if score >= 80:
        return "good"
    if score >= 50:
        return "warning"
    return "danger"


def headline_kpi(module: str, spec: DashboardSpec) -> Optional[KPI]:
    """First danger KPI of the module, else its first KPI, relabelled for the rollup."""
    picked = next((k for k in spec.kpis if k.status == "danger"), None)
    if picked is None and spec.kpis:
        picked = spec.kpis[0]
    if picked is None:
        return None
    return KPI(
        id=f"{module}_{picked.id}",
        label=f"{MODULE_LABELS[module]}: {picked.label}",
        value=picked.value,
        status=picked.status,
        delta=picked.delta,
        unit=picked.unit,
        sub_label=picked.sub_label,
    )


def compute_overview(specs: Mapping[str, Optional[DashboardSpec]]) -> Overview:
    loaded = [(m, specs[m]) for m in MODULES if specs.get(m) is not None]
    if not loaded:
        return Overview(health_score=0, health_status="danger")

    score = min(100, sum(module_points(spec) for _, spec in loaded))
    kpis = [k for k in (headline_kpi(m, spec) for m, spec in loaded) if k is not None]
    insights = [s for _, spec in loaded for s in spec.insights]

    logger.info("Overview: %d module(s) loaded, health %d", len(loaded), score)
    return Overview(
        health_score=score,
        health_status=health_status(score),
        modules_loaded=tuple(m for m, _ in loaded),
        kpis=tuple(kpis[:KPI_LIMIT]),
        insights=tuple(insights[:INSIGHT_LIMIT]),
    )
