from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Tuple


MODULES: Tuple[str, ...] = ("manpower", "equipment", "progress", "cost")

MODULE_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "manpower": "Manpower",
        "equipment": "Equipment",
        "progress": "Work Progress",
        "cost": "Cost",
    }
)

# Fields each aggregator reads, in record order.
REQUIRED_FIELDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "manpower": ("date", "discipline", "planned_headcount", "actual_headcount"),
        "equipment": ("timestamp", "discipline", "equipment_id", "status", "hours_idle"),
        "progress": ("date", "discipline", "planned_progress_pct", "actual_progress_pct"),
        "cost": ("date", "discipline", "budget_amount", "actual_spend", "cost_code"),
    }
)

NUMERIC_FIELDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "manpower": ("planned_headcount", "actual_headcount"),
        "equipment": ("hours_idle",),
        "progress": ("planned_progress_pct", "actual_progress_pct"),
        "cost": ("budget_amount", "actual_spend"),
    }
)

# Synonym tables. Declaration order decides which canonical field wins when
# a header contains synonyms of more than one field. Date fields go last: their
# synonyms ("date", "day", "time") also turn up inside "Spend to Date" or
# "Idle Time".
_SYNONYMS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "manpower": {
        "discipline": ("discipline", "trade", "category", "dept", "department", "crew", "team"),
        "planned_headcount": ("planned_headcount", "planned headcount", "planned", "plan", "target", "budget", "required"),
        "actual_headcount": ("actual_headcount", "actual headcount", "actual", "act", "current", "present", "on_site", "onsite"),
        "company": ("company", "contractor", "vendor", "subcontractor", "firm", "org"),
        "nationality": ("nationality", "national", "country", "origin"),
        "date": ("date", "day", "period", "report_date", "shift_date"),
    },
    "equipment": {
        "discipline": ("discipline", "trade", "dept", "department", "crew", "team"),
        "hours_idle": ("hours_idle", "idle_hours", "idle", "standby", "waiting"),
        "status": ("status", "state", "condition", "availability"),
        "equipment_id": ("equipment_id", "equipment id", "asset_id", "asset", "tag_no", "tag number", "tag", "unit", "id"),
        "equipment_type": ("equipment_type", "equipment type", "type", "model", "category"),
        "timestamp": ("timestamp", "date", "time", "reading", "log_date"),
    },
    "progress": {
        "discipline": ("discipline", "trade", "dept", "department", "crew", "team"),
        "planned_progress_pct": ("planned_progress", "planned progress", "planned_pct", "target_progress", "planned", "plan", "baseline"),
        "actual_progress_pct": ("actual_progress", "actual progress", "actual_pct", "current_progress", "actual", "achieved", "complete"),
        "activity_id": ("activity_id", "activity id", "task_id", "task id", "code", "id"),
        "activity_name": ("activity", "activity_name", "activity name", "task", "task_name", "description", "name"),
        "wbs_code": ("wbs", "wbs_code", "wbs code", "work_breakdown"),
        "weight": ("weight", "weighted", "priority", "importance"),
        "date": ("date", "day", "period", "as_of", "week"),
    },
    "cost": {
        "discipline": ("discipline", "trade", "dept", "department", "package"),
        "cost_code": ("cost_code", "cost code", "code", "account", "gl_code"),
        "budget_amount": ("budget", "planned", "approved", "authorized", "baseline"),
        "actual_spend": ("actual_spend", "actual", "spent", "spend", "paid", "invoiced", "incurred"),
        "committed_amount": ("committed", "commitment", "po_amount", "po_value", "order", "contracted"),
        "forecast_amount": ("forecast", "projected", "estimate", "eac"),
        "description": ("description", "desc", "item", "name", "narrative"),
        "category": ("category", "type", "class", "group", "classification"),
        "currency": ("currency", "curr", "ccy"),
        "date": ("date", "day", "period", "month", "posting"),
    },
}


def _normalize_synonym(value: str) -> str:
    # Same folding as headers.normalize_header; kept local to avoid an import cycle.
    return "_".join(value.lower().replace("-", " ").replace("_", " ").split())


SYNONYMS: Mapping[str, Mapping[str, Tuple[str, ...]]] = MappingProxyType(
    {
        module: MappingProxyType(
            {field: tuple(_normalize_synonym(s) for s in synonyms) for field, synonyms in table.items()}
        )
        for module, table in _SYNONYMS.items()
    }
)


def is_module(value: object) -> bool:
    return isinstance(value, str) and value in MODULES
