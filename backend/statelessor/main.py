"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statelessor import __version__
from statelessor.analyzers.base import ConfigLoadError
from statelessor.api.deps import get_remediation_catalog, get_rule_registry
from statelessor.api.routes import analysis, scripts
from statelessor.config import get_settings
from statelessor.schemas.analysis import ErrorResponse
from statelessor.services.effort import ComputationError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: an invalid catalog must stop the service before it takes traffic
    patterns = get_rule_registry().all_patterns()
    get_remediation_catalog()
    logger.info(f"Stateful Code Analyzer ready with {len(patterns)} rules")
    yield


app = FastAPI(
    title="Statelessor API",
    description="Detects stateful code patterns and plans their remediation",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analysis.router, tags=["Analysis"])
app.include_router(scripts.router, prefix="/api/script", tags=["Scripts"])


@app.exception_handler(ConfigLoadError)
async def config_load_error_handler(request: Request, exc: ConfigLoadError):
    logger.error(f"Catalog load failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Rule catalog unavailable", code="CONFIG_LOAD_FAILED").model_dump(by_alias=True),
    )


@app.exception_handler(ComputationError)
async def computation_error_handler(request: Request, exc: ComputationError):
    logger.error(f"Scoring failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Analysis failed", code="COMPUTATION_FAILED").model_dump(by_alias=True),
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
