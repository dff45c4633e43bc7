from __future__ import annotations

import logging
import math
import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from tracker.headers import MappedRecord


logger = logging.getLogger(__name__)

NormalizedRow = Dict[str, str]

PREFIX_LENGTH = 6


def normalize_key(header: object) -> str:
    key = re.sub(r"\s+", "_", str(header if header is not None else "").lower())
    return re.sub(r"[^a-z0-9_]", "", key)


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def normalize_row(raw_row: Mapping[object, object], fields: Sequence[str]) -> NormalizedRow:
    """Pick each field out of a loosely-keyed row.

    Keys match exactly after normalize_key, or when the key (underscores
    removed) contains the first six characters of the field name (underscores
    removed). Missing fields come back as "".
    """
    row_norm: Dict[str, str] = {}
    for key, value in raw_row.items():
        row_norm[normalize_key(key)] = _as_text(value)

    result: NormalizedRow = {}
    for field in fields:
        prefix = field.replace("_", "")[:PREFIX_LENGTH]
        match: Optional[str] = None
        for key in row_norm:
            if key == field or prefix in key.replace("_", ""):
                match = key
                break
        result[field] = row_norm[match] if match is not None else ""
    return result


def normalize_rows(raw_rows: Iterable[Mapping[object, object]], fields: Sequence[str]) -> List[NormalizedRow]:
    return [normalize_row(r, fields) for r in raw_rows]


def records_from_mapped(records: Iterable[MappedRecord], fields: Sequence[str]) -> List[NormalizedRow]:
    return [{f: rec.values.get(f, "") for f in fields} for rec in records]


def to_number(value: object) -> float:
    """Coerce a cell to float; blanks, text, NaN and infinities become 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        out = float(value)
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            out = float(text)
        except ValueError:
            return 0.0
    if math.isnan(out) or math.isinf(out):
        return 0.0
    return out


def numeric_frame(
    rows: Sequence[Mapping[str, str]],
    fields: Sequence[str],
    numeric: Iterable[str],
) -> pd.DataFrame:
    """DataFrame of the given rows with numeric columns coerced and NaN-free."""
    df = pd.DataFrame([{f: _as_text(r.get(f, "")) for f in fields} for r in rows], columns=list(fields))
    for col in numeric:
        if col in df.columns:
            df[col] = df[col].map(to_number).astype(float)
    return df
