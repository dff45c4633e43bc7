from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, File, Form, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import AgentRequest, ExportRequest, ExportResponse, ModuleInfo, RecordsRequest, SpecFiltersModel
from tracker.charts import spec_charts
from tracker.config import Settings, configure_logging, get_settings
from tracker.filters import apply_filters, filters_to_dict, normalize_filters
from tracker.ingest import IngestError, require_module
from tracker.modules import MODULE_LABELS, MODULES, REQUIRED_FIELDS
from tracker.overview import compute_overview
from tracker.pipeline import build_dashboard, build_dashboard_from_records
from tracker.query import answer
from tracker.report import EXPORT_MESSAGE, ReportStore, render_report, report_name, sign_path, verify_signature
from tracker.spec import DashboardSpec
from tracker.store import DEFAULT_PROJECT, JsonSpecStore


settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Site Tracker API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> JsonSpecStore:
    return JsonSpecStore(get_settings().data_dir)


def get_reports() -> ReportStore:
    return ReportStore(get_settings().reports_dir)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _bad_request(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


def _server_error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/modules")
def meta_modules():
    modules = [ModuleInfo(module=m, label=MODULE_LABELS[m], fields=list(REQUIRED_FIELDS[m])).model_dump() for m in MODULES]
    return _json({"modules": modules})


@app.post("/upload")
async def upload(
    module: str = Form(...),
    project_id: str = Form(default=DEFAULT_PROJECT),
    file: UploadFile = File(...),
    store: JsonSpecStore = Depends(get_store),
    cfg: Settings = Depends(get_settings),
):
    try:
        content = await file.read()
        result, spec = build_dashboard(module, content, file.filename or "", max_bytes=cfg.max_upload_bytes)
        store.save(result.module, spec, project_id)
        store.save_records(result.module, result.rows, REQUIRED_FIELDS[result.module], project_id)
        return _json({"spec": spec.to_dict(), "columnMap": result.column_map, "rowCount": len(result.rows)})
    except IngestError as exc:
        return _bad_request(exc)
    except Exception as exc:
        logger.exception("upload failed")
        return _server_error(exc)


@app.post("/records/{module}")
def upload_records(module: str, body: RecordsRequest, store: JsonSpecStore = Depends(get_store)):
    try:
        result, spec = build_dashboard_from_records(module, body.records)
        store.save(result.module, spec, body.project_id)
        store.save_records(result.module, result.rows, REQUIRED_FIELDS[result.module], body.project_id)
        return _json({"spec": spec.to_dict(), "columnMap": result.column_map, "rowCount": len(result.rows)})
    except IngestError as exc:
        return _bad_request(exc)
    except Exception as exc:
        logger.exception("upload_records failed")
        return _server_error(exc)


@app.get("/dashboard/{module}")
def dashboard(module: str, project_id: str = Query(default=DEFAULT_PROJECT), store: JsonSpecStore = Depends(get_store)):
    try:
        spec = store.get(require_module(module), project_id)
        return _json({"spec": spec.to_dict() if spec else None})
    except IngestError as exc:
        return _bad_request(exc)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _server_error(exc)


@app.post("/dashboard/{module}/filtered")
def dashboard_filtered(
    module: str,
    filters: SpecFiltersModel,
    project_id: str = Query(default=DEFAULT_PROJECT),
    store: JsonSpecStore = Depends(get_store),
):
    try:
        spec = store.get(require_module(module), project_id)
        if spec is None:
            return _json({"spec": None})
        f = normalize_filters(filters.model_dump(), meta=spec.meta)
        return _json({"spec": apply_filters(spec, f).to_dict()})
    except IngestError as exc:
        return _bad_request(exc)
    except Exception as exc:
        logger.exception("dashboard_filtered failed")
        return _server_error(exc)


@app.get("/dashboard/{module}/charts")
def dashboard_charts(module: str, project_id: str = Query(default=DEFAULT_PROJECT), store: JsonSpecStore = Depends(get_store)):
    try:
        spec = store.get(require_module(module), project_id)
        return _json({"charts": spec_charts(spec) if spec else {}})
    except IngestError as exc:
        return _bad_request(exc)
    except Exception as exc:
        logger.exception("dashboard_charts failed")
        return _server_error(exc)


@app.get("/overview")
def overview(project_id: str = Query(default=DEFAULT_PROJECT), store: JsonSpecStore = Depends(get_store)):
    try:
        return _json(compute_overview(store.specs(project_id)).to_dict())
    except Exception as exc:
        logger.exception("overview failed")
        return _server_error(exc)


@app.post("/agent")
def agent(body: AgentRequest, store: JsonSpecStore = Depends(get_store)):
    try:
        spec: Optional[DashboardSpec] = None
        if body.dashboard_spec:
            spec = DashboardSpec.from_dict(body.dashboard_spec)
        elif body.module:
            spec = store.get(require_module(body.module), body.project_id)
        return _json(answer(body.question, spec, body.module).to_dict())
    except IngestError as exc:
        return _bad_request(exc)
    except Exception as exc:
        logger.exception("agent failed")
        return _server_error(exc)


@app.post("/export")
def export(
    body: ExportRequest,
    store: JsonSpecStore = Depends(get_store),
    reports: ReportStore = Depends(get_reports),
    cfg: Settings = Depends(get_settings),
):
    try:
        module = require_module(body.module)
        spec = DashboardSpec.from_dict(body.spec) if body.spec else store.get(module, body.project_id)
        f = normalize_filters(body.model_dump())
        name = report_name(module)
        reports.save(name, render_report(spec, module, f))
        url = sign_path(name, cfg.signing_key, ttl_seconds=cfg.report_ttl_seconds)
        return _json(ExportResponse(csv_url=url, message=EXPORT_MESSAGE, filters=filters_to_dict(f)).model_dump())
    except IngestError as exc:
        return _bad_request(exc)
    except Exception as exc:
        logger.exception("export failed")
        return _server_error(exc)


@app.get("/reports/{name}")
def download_report(
    name: str,
    expires: str = Query(default=""),
    signature: str = Query(default=""),
    reports: ReportStore = Depends(get_reports),
    cfg: Settings = Depends(get_settings),
):
    if not verify_signature(name, expires, signature, cfg.signing_key):
        return JSONResponse(status_code=403, content={"error": "Invalid or expired link."})
    try:
        text = reports.read(name)
    except ValueError as exc:
        return _bad_request(exc)
    if text is None:
        return JSONResponse(status_code=404, content={"error": "Report not found."})
    return Response(content=text.encode("utf-8"), media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={name}"})
