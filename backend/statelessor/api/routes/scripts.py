"""Analyzer script download routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from statelessor.api.deps import Registry, Scripts
from statelessor.schemas.analysis import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()

SCRIPT_KINDS = {
    "bash": ("analyze.sh", "application/x-sh"),
    "powershell": ("analyze.ps1", "application/x-powershell"),
}


@router.get(
    "/{kind}",
    response_class=PlainTextResponse,
    responses={500: {"model": ErrorResponse, "description": "Rule catalog unavailable"}},
)
async def download_script(kind: str, request: Request, registry: Registry, scripts: Scripts):
    """Download a standalone analyzer script built from the current rules."""
    if kind not in SCRIPT_KINDS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown script type: {kind}",
        )

    patterns = registry.all_patterns()
    if kind == "bash":
        script = scripts.generate_bash_script(patterns)
    else:
        script = scripts.generate_powershell_script(patterns)

    filename, media_type = SCRIPT_KINDS[kind]
    client = request.client.host if request.client else "unknown"
    logger.info(f"Script download: {kind} by {client} ({request.headers.get('user-agent', '')})")

    return PlainTextResponse(
        script,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        },
    )
