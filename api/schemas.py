from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SpecFiltersModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    disciplines: List[str] = Field(default_factory=list)
    date_from: str = Field(default="", alias="dateFrom")
    date_to: str = Field(default="", alias="dateTo")


class RecordsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    records: List[Dict[str, Any]] = Field(default_factory=list)
    project_id: str = Field(default="default", alias="projectId")


class AgentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    module: Optional[str] = None
    dashboard_spec: Optional[Dict[str, Any]] = Field(default=None, alias="dashboardSpec")
    project_id: str = Field(default="default", alias="projectId")


class ExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    module: str
    disciplines: List[str] = Field(default_factory=list)
    date_from: str = Field(default="", alias="dateFrom")
    date_to: str = Field(default="", alias="dateTo")
    spec: Optional[Dict[str, Any]] = None
    project_id: str = Field(default="default", alias="projectId")


class ExportResponse(BaseModel):
    csv_url: str
    message: str
    filters: Dict[str, Any] = Field(default_factory=dict)


class ModuleInfo(BaseModel):
    module: str
    label: str
    fields: List[str]
