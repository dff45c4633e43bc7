from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from tracker.ingest import require_module
from tracker.modules import is_module
from tracker.spec import DashboardSpec


logger = logging.getLogger(__name__)

DEFAULT_PROJECT = "default"

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


def _safe_name(value: str) -> str:
    cleaned = _UNSAFE.sub("_", str(value or "").strip()).strip("._")
    return cleaned or DEFAULT_PROJECT


class SpecStore:
    """In-memory store of the latest spec per (project, module)."""

    def __init__(self) -> None:
        self._specs: Dict[Tuple[str, str], DashboardSpec] = {}

    def save(self, module: str, spec: DashboardSpec, project_id: str = DEFAULT_PROJECT) -> None:
        self._specs[(project_id or DEFAULT_PROJECT, require_module(module))] = spec

    def get(self, module: str, project_id: str = DEFAULT_PROJECT) -> Optional[DashboardSpec]:
        return self._specs.get((project_id or DEFAULT_PROJECT, module))

    def modules(self, project_id: str = DEFAULT_PROJECT) -> List[str]:
        pid = project_id or DEFAULT_PROJECT
        return sorted(m for p, m in self._specs if p == pid)

    def specs(self, project_id: str = DEFAULT_PROJECT) -> Dict[str, DashboardSpec]:
        """Latest spec of every loaded module for a project, keyed by module."""
        loaded = {m: self.get(m, project_id) for m in self.modules(project_id)}
        return {m: s for m, s in loaded.items() if s is not None}


class JsonSpecStore(SpecStore):
    """Latest spec per (project, module) as JSON files under `root`.

    Layout: ``<root>/<project>/<module>.json`` plus ``<module>.rows.csv`` for the
    normalized rows of the same upload. A later save replaces the earlier one.
    """

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = Path(root)

    def _dir(self, project_id: str) -> Path:
        return self.root / _safe_name(project_id)

    def spec_path(self, module: str, project_id: str = DEFAULT_PROJECT) -> Path:
        return self._dir(project_id) / f"{require_module(module)}.json"

    def rows_path(self, module: str, project_id: str = DEFAULT_PROJECT) -> Path:
        return self._dir(project_id) / f"{require_module(module)}.rows.csv"

    def save(self, module: str, spec: DashboardSpec, project_id: str = DEFAULT_PROJECT) -> None:
        path = self.spec_path(module, project_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(spec.to_json(), encoding="utf-8")
        tmp.replace(path)
        logger.info("Saved %s spec for project %s to %s", module, project_id, path)

    def get(self, module: str, project_id: str = DEFAULT_PROJECT) -> Optional[DashboardSpec]:
        path = self.spec_path(module, project_id)
        if not path.exists():
            return None
        try:
            return DashboardSpec.from_json(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, KeyError) as exc:
            logger.warning("Ignoring unreadable spec %s: %s", path, exc)
            return None

    def modules(self, project_id: str = DEFAULT_PROJECT) -> List[str]:
        folder = self._dir(project_id)
        if not folder.exists():
            return []
        names = (p.name[: -len(".json")] for p in folder.glob("*.json"))
        return sorted(n for n in names if is_module(n))

    def save_records(
        self,
        module: str,
        rows: Sequence[Mapping[str, str]],
        fields: Sequence[str],
        project_id: str = DEFAULT_PROJECT,
    ) -> Path:
        path = self.rows_path(module, project_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame([dict(r) for r in rows], columns=list(fields)).to_csv(path, index=False)
        return path

    def load_records(self, module: str, project_id: str = DEFAULT_PROJECT) -> List[Dict[str, str]]:
        path = self.rows_path(module, project_id)
        if not path.exists():
            return []
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        return df.to_dict(orient="records")
