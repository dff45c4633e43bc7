from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from tracker.ingest import IngestResult, Strategy, ingest_records, ingest_table, read_table, require_module
from tracker.metrics_cost import compute_cost
from tracker.metrics_equipment import compute_equipment
from tracker.metrics_manpower import compute_manpower
from tracker.metrics_progress import compute_progress
from tracker.spec import DashboardSpec


logger = logging.getLogger(__name__)

Aggregator = Callable[..., DashboardSpec]

AGGREGATORS: Dict[str, Aggregator] = {
    "manpower": compute_manpower,
    "equipment": compute_equipment,
    "progress": compute_progress,
    "cost": compute_cost,
}


def compute_spec(module: str, rows: Sequence[Mapping[str, str]], *, now: Optional[str] = None) -> DashboardSpec:
    module = require_module(module)
    return AGGREGATORS[module](rows, now=now)


def build_dashboard(
    module: str,
    content: bytes,
    filename: str,
    *,
    max_bytes: Optional[int] = None,
    strategy: Strategy = "headers",
    now: Optional[str] = None,
) -> Tuple[IngestResult, DashboardSpec]:
    """Parse an uploaded file and aggregate it into a dashboard spec."""
    module = require_module(module)
    headers, rows = read_table(content, filename, max_bytes=max_bytes)
    result = ingest_table(module, headers, rows, strategy=strategy)
    spec = compute_spec(module, result.rows, now=now)
    logger.info("Built %s dashboard from %s (%d rows)", module, filename, len(result.rows))
    return result, spec


def build_dashboard_from_records(
    module: str,
    records: Sequence[Mapping[str, object]],
    *,
    now: Optional[str] = None,
) -> Tuple[IngestResult, DashboardSpec]:
    result = ingest_records(module, records)
    return result, compute_spec(result.module, result.rows, now=now)
