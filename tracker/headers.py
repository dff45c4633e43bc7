from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from tracker.modules import SYNONYMS


logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s_-]+")


@dataclass(frozen=True)
class MappedRecord:
    """One spreadsheet row after header matching.

    `values` holds canonical fields only; `raw_row` keeps every cell under its
    original header so unmatched columns stay traceable.
    """

    values: Dict[str, str] = field(default_factory=dict)
    raw_row: Dict[str, str] = field(default_factory=dict)


def normalize_header(raw: object) -> str:
    return _SEPARATORS.sub("_", str(raw if raw is not None else "").strip().lower())


def match_column(raw_header: object, synonyms: Mapping[str, Sequence[str]]) -> Optional[str]:
    """Return the canonical field for a raw header, or None.

    An exact canonical name wins outright. Otherwise the first field, in table
    order, with a synonym equal to or contained in the header is returned.
    """
    header = normalize_header(raw_header)
    if not header:
        return None
    if header in synonyms:
        return header
    for canonical, candidates in synonyms.items():
        if any(header == s or s in header for s in candidates):
            return canonical
    return None


def synonyms_for(module: str) -> Mapping[str, Sequence[str]]:
    return SYNONYMS.get(module, {})


def build_column_map(headers: Sequence[object], module: str) -> Dict[str, str]:
    table = synonyms_for(module)
    column_map: Dict[str, str] = {}
    for header in headers:
        matched = match_column(header, table)
        if matched:
            column_map[str(header)] = matched
        else:
            logger.debug("No %s field for header %r", module, header)
    return column_map


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:
        return ""
    return str(value)


def map_table(
    headers: Sequence[object],
    rows: Sequence[Sequence[object]],
    module: str,
    column_map: Optional[Dict[str, str]] = None,
) -> Tuple[Dict[str, str], List[MappedRecord]]:
    column_map = build_column_map(headers, module) if column_map is None else column_map
    header_names = [str(h) for h in headers]
    records: List[MappedRecord] = []
    for row in rows:
        values: Dict[str, str] = {}
        raw_row: Dict[str, str] = {}
        for idx, header in enumerate(header_names):
            cell = _cell(row[idx]) if idx < len(row) else ""
            mapped = column_map.get(header)
            if mapped:
                values[mapped] = cell
            raw_row[header] = cell
        records.append(MappedRecord(values=values, raw_row=raw_row))
    return column_map, records
