from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Literal, Mapping, Optional, Sequence, Tuple

import pandas as pd

from tracker.headers import map_table
from tracker.modules import MODULES, REQUIRED_FIELDS, is_module
from tracker.normalize import NormalizedRow, normalize_row, normalize_rows, records_from_mapped


logger = logging.getLogger(__name__)

Strategy = Literal["headers", "prefix"]

EXCEL_SUFFIXES = {".xlsx"}
TEXT_SUFFIXES = {".csv", ".txt"}


class IngestError(ValueError):
    """Input problem the uploader can fix; the message is shown to them."""


class UnknownModuleError(IngestError):
    pass


@dataclass(frozen=True)
class IngestResult:
    module: str
    rows: List[NormalizedRow]
    column_map: Dict[str, str] = field(default_factory=dict)
    raw_rows: List[Dict[str, str]] = field(default_factory=list)
    strategy: Strategy = "headers"


def require_module(module: object) -> str:
    if not is_module(module):
        raise UnknownModuleError(f"Unknown module: {module}. Expected one of: {', '.join(MODULES)}.")
    return str(module)


def cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (pd.Timestamp, datetime)):
        if pd.isna(value):
            return ""
        if (value.hour, value.minute, value.second) == (0, 0, 0):
            return value.strftime("%Y-%m-%d")
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _read_frame(content: bytes, suffix: str) -> pd.DataFrame:
    buffer = BytesIO(content)
    if suffix in EXCEL_SUFFIXES:
        return pd.read_excel(buffer, sheet_name=0, header=None, dtype=object)
    options = dict(header=None, dtype=str, keep_default_na=False, encoding="utf-8-sig", skip_blank_lines=True, engine="python")
    # The header row fixes the width; cells past it are dropped, short rows are padded.
    width = pd.read_csv(buffer, nrows=1, **options).shape[1]
    buffer.seek(0)
    return pd.read_csv(buffer, on_bad_lines=lambda cells: cells[:width], **options)


def read_table(content: bytes, filename: str, *, max_bytes: Optional[int] = None) -> Tuple[List[str], List[List[str]]]:
    """Parse CSV or the first sheet of an Excel file into headers and string rows."""
    if not content:
        raise IngestError("File is empty or could not be parsed.")
    if max_bytes is not None and len(content) > max_bytes:
        raise IngestError(f"File exceeds {max_bytes / (1024 * 1024):g}MB limit.")

    suffix = Path(filename or "").suffix.lower()
    if suffix not in EXCEL_SUFFIXES | TEXT_SUFFIXES:
        raise IngestError(f"Unsupported file type '{suffix or filename}'. Upload a CSV or XLSX file.")

    try:
        raw = _read_frame(content, suffix)
    except (ValueError, UnicodeDecodeError, pd.errors.ParserError) as exc:
        logger.warning("Could not parse %s: %s", filename, exc)
        raise IngestError("File is empty or could not be parsed.") from exc

    if raw.empty or len(raw) < 2:
        raise IngestError("File appears to be empty or missing headers.")

    headers = [cell_text(v).strip("\"'") for v in raw.iloc[0].tolist()]
    if not any(headers):
        raise IngestError("File appears to be empty or missing headers.")

    rows: List[List[str]] = []
    for values in raw.iloc[1:].itertuples(index=False, name=None):
        cells = [cell_text(v) for v in values]
        if any(cells):
            rows.append(cells)
    if not rows:
        raise IngestError("File is empty or could not be parsed.")

    logger.info("Parsed %s: %d columns, %d rows", filename, len(headers), len(rows))
    return headers, rows


def ingest_table(
    module: str,
    headers: Sequence[str],
    rows: Sequence[Sequence[object]],
    *,
    strategy: Strategy = "headers",
) -> IngestResult:
    """Turn positional rows into normalized rows for `module`.

    `headers` uses the synonym tables (arbitrary spreadsheets); `prefix` uses
    the looser prefix-containment match on headers that resemble field names.
    """
    module = require_module(module)
    fields = REQUIRED_FIELDS[module]

    if strategy == "headers":
        column_map, mapped = map_table(headers, rows, module)
        result = IngestResult(
            module=module,
            rows=records_from_mapped(mapped, fields),
            column_map=column_map,
            raw_rows=[m.raw_row for m in mapped],
            strategy=strategy,
        )
    elif strategy == "prefix":
        raw_rows = [{str(h): cell_text(row[i]) if i < len(row) else "" for i, h in enumerate(headers)} for row in rows]
        result = IngestResult(
            module=module,
            rows=normalize_rows(raw_rows, fields),
            column_map=prefix_column_map(headers, fields),
            raw_rows=raw_rows,
            strategy=strategy,
        )
    else:
        raise IngestError(f"Unknown matching strategy: {strategy}")

    missing = [f for f in fields if f not in result.column_map.values()]
    if missing:
        logger.warning("%s upload has no column for: %s", module, ", ".join(missing))
    return result


def ingest_records(module: str, records: Sequence[Mapping[str, object]]) -> IngestResult:
    """Normalize already-keyed records (JSON uploads) with the prefix match."""
    module = require_module(module)
    if not records:
        raise IngestError("No records supplied.")
    fields = REQUIRED_FIELDS[module]
    headers: List[str] = []
    for rec in records:
        for key in rec:
            if str(key) not in headers:
                headers.append(str(key))
    raw_rows = [{str(k): cell_text(v) for k, v in rec.items()} for rec in records]
    return IngestResult(
        module=module,
        rows=normalize_rows(raw_rows, fields),
        column_map=prefix_column_map(headers, fields),
        raw_rows=raw_rows,
        strategy="prefix",
    )


def prefix_column_map(headers: Sequence[str], fields: Sequence[str]) -> Dict[str, str]:
    # Feed the headers through normalize_row as their own values to see which one each field picked.
    picked = normalize_row({h: h for h in headers}, fields)
    return {header: f for f, header in picked.items() if header}
