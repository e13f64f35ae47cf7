"""Analysis routes."""

import json
import logging
import os
from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status

from statelessor.analyzers.base import Finding
from statelessor.api.deps import AppSettings, Analysis, Cloner, SessionId
from statelessor.schemas.analysis import AnalysisResponse, AnalyzeRequest, ErrorResponse
from statelessor.services.analysis_service import AnalysisResult, UnsupportedProjectError
from statelessor.services.clone_service import CloneError
from statelessor.services.findings_store import FindingsStore

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {500: {"model": ErrorResponse, "description": "Catalog or scoring failure"}}


def _build_response(result: AnalysisResult, project_name: str, session_id: str | None) -> AnalysisResponse:
    report = asdict(result.summary)
    return AnalysisResponse.model_validate(
        {
            "project_name": project_name,
            "session_id": session_id,
            "project_type": result.project_type.value if result.project_type else None,
            "scan_date": datetime.now(timezone.utc),
            "complexity_factor": result.complexity_factor,
            "stats": report["stats"],
            "summary": report["summary"],
            "detailed": report["detailed"],
            "actions": asdict(result.actions),
        }
    )


def _parse_uploaded_findings(json_data: str | dict) -> tuple[dict, list[Finding]]:
    try:
        data = json.loads(json_data) if isinstance(json_data, str) else json_data
        raw_findings = data.get("findings") or []
        return data, [Finding.from_dict(f) for f in raw_findings]
    except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid findings JSON: {e}",
        )


def _check_source_path(path: str, settings: AppSettings) -> str:
    if settings.source_root is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Path analysis is disabled; set SOURCE_ROOT to enable it",
        )
    resolved = os.path.realpath(path)
    root = os.path.realpath(settings.source_root)
    if os.path.commonpath([root, resolved]) != root:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Path is outside the configured source root",
        )
    if not os.path.isdir(resolved):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Directory not found: {path}",
        )
    return resolved


@router.post("/analyze", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
async def analyze(
    request: AnalyzeRequest,
    service: Analysis,
    cloner: Cloner,
    settings: AppSettings,
    session_id: SessionId,
):
    """Analyze a source tree, a git repository, or uploaded script output."""
    if request.type == "json":
        data, findings = _parse_uploaded_findings(request.json_data)
        project_name = request.project_name or data.get("projectName") or "uploaded-json"
        result = service.score(findings, data.get("projectType"))
    else:
        clone_path = None
        try:
            if request.type == "git":
                project_name = request.project_name or cloner.project_name_from_url(request.git_url)
                clone_path = await cloner.clone_repo(request.git_url)
                source_dir = clone_path
            else:
                source_dir = _check_source_path(request.path, settings)
                project_name = request.project_name or os.path.basename(source_dir.rstrip(os.sep))

            result = await service.analyze_directory(source_dir)
        except CloneError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except UnsupportedProjectError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported project type")
        finally:
            if clone_path:
                cloner.cleanup(clone_path)

    store = FindingsStore(settings.data_dir, f"{project_name}-{session_id[:8]}")
    store.add_findings(result.findings)

    return _build_response(result, project_name, session_id)


@router.get("/findings/{project_name}", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
async def get_findings(
    project_name: str,
    service: Analysis,
    settings: AppSettings,
):
    """Re-score the stored findings of a project session."""
    store = FindingsStore(settings.data_dir, project_name)
    findings = store.get_findings()
    result = service.score(findings)
    return _build_response(result, project_name, None)
