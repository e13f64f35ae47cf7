"""Analysis request and report schemas."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from statelessor.services.action_service import ImpactType


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AnalyzeRequest(CamelModel):
    """Body of POST /analyze."""

    type: Literal["path", "git", "json"]
    path: Optional[str] = None
    git_url: Optional[str] = None
    json_data: Optional[str | dict[str, Any]] = None
    project_name: Optional[str] = None

    @model_validator(mode="after")
    def check_source(self) -> "AnalyzeRequest":
        required = {"path": self.path, "git": self.git_url, "json": self.json_data}[self.type]
        if not required:
            field = {"path": "path", "git": "gitUrl", "json": "jsonData"}[self.type]
            raise ValueError(f"{field} is required when type is {self.type!r}")
        return self


class FindingResponse(CamelModel):
    filename: str
    function: str
    line_num: int
    code: str
    category: str
    severity: str
    remediation: str


class DetailedFindingResponse(FindingResponse):
    id: int


class SummaryEntryResponse(CamelModel):
    id: int
    category: str
    severity: str
    remediation: str
    occurrences: int
    base_effort: float
    effort_score: float
    detail_ids: list[int]


class StatsResponse(CamelModel):
    total_files: int
    total_issues: int
    high_severity: int
    medium_severity: int
    low_severity: int
    complexity_factor: float
    total_effort_score: float


class AffectedFindingResponse(CamelModel):
    filename: str
    function: str
    line_num: int


class ActionResponse(CamelModel):
    id: str
    description: str
    category: str
    impact_type: ImpactType
    impact_severity: str
    base_weight: float
    adjusted_weight: float
    occurrences: int
    total_occurrences: int
    final_effort: float
    sub_actions: list[str]
    affected_findings: list[AffectedFindingResponse]


class ActionReportResponse(CamelModel):
    total_actions: int
    total_effort: float
    actions: list[ActionResponse]


class AnalysisResponse(CamelModel):
    """Scored report for one analysis run."""

    project_name: str
    session_id: Optional[str] = None
    project_type: Optional[str] = None
    scan_date: datetime
    complexity_factor: float
    stats: StatsResponse
    summary: list[SummaryEntryResponse]
    detailed: list[DetailedFindingResponse]
    actions: ActionReportResponse


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    code: str
