from __future__ import annotations

import hashlib
import hmac
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlencode

from tracker.filters import SpecFilters
from tracker.spec import DashboardSpec, utc_now_iso


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
EXPORT_MESSAGE = "CSV report generated. The download link expires after one hour."

_NAME_OK = re.compile(r"^[A-Za-z0-9_.-]+\.csv$")


def render_report(
    spec: Optional[DashboardSpec],
    module: str,
    filters: Optional[SpecFilters] = None,
    now: Optional[str] = None,
) -> str:
    """Flatten a spec into the plain CSV-ish report shared with site managers."""
    filters = filters or SpecFilters()
    lines: List[str] = [
        f"SITE TRACKER REPORT: {module.upper()} MODULE",
        f"Generated: {now or utc_now_iso()}",
        f"Disciplines: {', '.join(filters.disciplines) if filters.disciplines else 'All'}",
        f"Date Range: {filters.date_from or 'N/A'} to {filters.date_to or 'N/A'}",
        "",
        "KPIs:",
    ]
    if spec is not None:
        for k in spec.kpis:
            lines.append(f"{k.label},{k.value}{f',{k.delta}' if k.delta else ''}")
    lines += ["", "Insights:"]
    if spec is not None:
        lines.extend(spec.insights)
    return "\n".join(lines)


def report_name(module: str, now: Optional[str] = None) -> str:
    stamp = re.sub(r"[:.+]", "-", now or utc_now_iso())
    return f"{module}_{stamp}.csv"


def _signature(key: str, name: str, expires: int) -> str:
    msg = f"{name}:{expires}".encode("utf-8")
    return hmac.new(key.encode("utf-8"), msg, hashlib.sha256).hexdigest()


def sign_path(name: str, key: str, *, ttl_seconds: int = DEFAULT_TTL_SECONDS, now: Optional[float] = None) -> str:
    """Relative download URL for `name` that stops working after `ttl_seconds`."""
    expires = int((time.time() if now is None else now) + ttl_seconds)
    query = urlencode({"expires": expires, "signature": _signature(key, name, expires)})
    return f"/reports/{name}?{query}"


def verify_signature(name: str, expires: object, signature: str, key: str, *, now: Optional[float] = None) -> bool:
    try:
        exp = int(expires)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    if exp < (time.time() if now is None else now):
        return False
    return hmac.compare_digest(_signature(key, name, exp), str(signature or ""))


@dataclass
class ReportStore:
    root: Path

    def save(self, name: str, text: str) -> Path:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        logger.info("Wrote report %s", path)
        return path

    def path_for(self, name: str) -> Path:
        if not _NAME_OK.match(name or ""):
            raise ValueError(f"Invalid report name: {name}")
        return Path(self.root) / name

    def read(self, name: str) -> Optional[str]:
        path = self.path_for(name)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")
