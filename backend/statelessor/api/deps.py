"""API dependencies for dependency injection."""

import uuid
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from statelessor.analyzers.rules import RuleRegistry
from statelessor.config import Settings, get_settings
from statelessor.services.action_service import RemediationCatalog
from statelessor.services.analysis_service import AnalysisService
from statelessor.services.clone_service import CloneService
from statelessor.services.script_service import ScriptService


@lru_cache
def get_rule_registry() -> RuleRegistry:
    """Process-wide rule registry, shared read-only by every request."""
    return RuleRegistry(get_settings().rules_path)


@lru_cache
def get_remediation_catalog() -> RemediationCatalog:
    return RemediationCatalog.load(get_settings().remediation_actions_path)


def get_analysis_service(
    settings: Annotated[Settings, Depends(get_settings)],
    registry: Annotated[RuleRegistry, Depends(get_rule_registry)],
    catalog: Annotated[RemediationCatalog, Depends(get_remediation_catalog)],
) -> AnalysisService:
    return AnalysisService(
        registry,
        catalog,
        context_window=settings.context_window,
        max_workers=settings.max_workers,
        file_timeout=settings.file_timeout_seconds,
    )


def get_clone_service(settings: Annotated[Settings, Depends(get_settings)]) -> CloneService:
    return CloneService(settings.clone_base, timeout=settings.clone_timeout_seconds)


def get_script_service() -> ScriptService:
    return ScriptService()


def get_session_id(x_request_id: Annotated[Optional[str], Header()] = None) -> str:
    """Session id from the X-Request-ID header, generated when absent."""
    return x_request_id or str(uuid.uuid4())


# Type aliases for cleaner signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
Registry = Annotated[RuleRegistry, Depends(get_rule_registry)]
Analysis = Annotated[AnalysisService, Depends(get_analysis_service)]
Cloner = Annotated[CloneService, Depends(get_clone_service)]
Scripts = Annotated[ScriptService, Depends(get_script_service)]
SessionId = Annotated[str, Depends(get_session_id)]
