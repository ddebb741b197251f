# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
FastAPI application exposing drift comparison, filtering and statistics.

Snapshots travel as JSON request bodies in the same shape the CLI reads
from disk. Malformed input (bad snapshot, bad filter expression) is a 400;
anything unexpected is a logged 500.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import settings
from .exceptions import InspectorError
from .filters import FILTER_PARSERS
from .models import HealthStatus, LogicOperator
from .services.drift_service import generate_drift_report
from .services.export_service import list_formats
from .services.filter_service import FilterService
from .services.snapshot_service import snapshot_from_data
from .utils.cloudwatch_logger import configure_logging
from .utils.correlation import CorrelationIDMiddleware, get_correlation_id_for_logging
from .utils.request_limits import BodySizeLimitMiddleware

logger = logging.getLogger(__name__)

filter_service = FilterService()


class CompareRequest(BaseModel):
    """Request body for drift comparison."""

    base: dict[str, Any] = Field(..., description="Older snapshot")
    compare: dict[str, Any] = Field(..., description="Newer snapshot")
    include_unchanged: Optional[bool] = Field(
        default=None,
        description="Include unchanged resources (defaults to DRIFT_INCLUDE_UNCHANGED)",
    )
    include_resources: bool = Field(
        default=True,
        description="Include full base/new resources on each modified entry",
    )


class FilterExpressions(BaseModel):
    """Filter expressions grouped by kind, in CLI syntax."""

    tags: list[str] = Field(default_factory=list)
    regex: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)
    states: list[str] = Field(default_factory=list)
    properties: list[str] = Field(default_factory=list)
    cost: Optional[str] = None
    types: list[str] = Field(default_factory=list)
    providers: list[str] = Field(default_factory=list)


class FilterRequest(BaseModel):
    """Request body for filtering a snapshot."""

    snapshot: dict[str, Any] = Field(..., description="Snapshot to filter")
    filters: FilterExpressions = Field(default_factory=FilterExpressions)
    logic: LogicOperator = Field(default=LogicOperator.AND)
    include_raw: bool = Field(default=False)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    app_settings = settings()
    configure_logging(app_settings)
    logger.info(
        f"Cloud Resource Inspector v{__version__} started "
        f"(environment={app_settings.environment}, duplicate_policy={app_settings.duplicate_policy.value})"
    )
    yield
    logger.info("Cloud Resource Inspector shut down")


app = FastAPI(
    title="Cloud Resource Inspector",
    description=(
        "Inspect snapshots of cloud and SaaS resources: filter them, "
        "summarize them and compare two snapshots for drift."
    ),
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(CorrelationIDMiddleware)


@app.exception_handler(InspectorError)
async def inspector_error_handler(request: Request, exc: InspectorError):
    """Input errors: bad snapshot, bad filter expression, unknown format."""
    logger.warning(
        f"Rejected {request.method} {request.url.path}: {exc.message}",
        extra=get_correlation_id_for_logging(),
    )
    return JSONResponse(
        status_code=400,
        content={"error": type(exc).__name__, "message": exc.message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Logs the error and returns a structured error response.
    """
    logger.error(
        f"Unhandled exception on {request.url.path}: {str(exc)}",
        exc_info=True,
        extra=get_correlation_id_for_logging(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc),
        },
    )


@app.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Health check endpoint for monitoring server status."""
    return HealthStatus(
        status="healthy",
        version=__version__,
        filter_kinds=sorted(FILTER_PARSERS),
        export_formats=list_formats(),
    )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Cloud Resource Inspector",
        "version": __version__,
        "health_check": "/health",
        "endpoints": {
            "compare": "/api/v1/compare",
            "filter": "/api/v1/filter",
            "stats": "/api/v1/stats",
        },
    }


@app.post("/api/v1/compare")
async def api_compare(body: CompareRequest):
    """Compare two snapshots and return the drift report."""
    policy = settings().duplicate_policy
    base = snapshot_from_data(body.base, source="base", duplicate_policy=policy)
    compare = snapshot_from_data(body.compare, source="compare", duplicate_policy=policy)

    report = generate_drift_report(base, compare)
    include_unchanged = body.include_unchanged
    if include_unchanged is None:
        include_unchanged = settings().include_unchanged
    return report.to_dict(
        include_unchanged=include_unchanged,
        include_resources=body.include_resources,
    )


@app.post("/api/v1/filter")
async def api_filter(body: FilterRequest):
    """Filter a snapshot and return the matching resources as a snapshot."""
    filters = filter_service.build_filters(**body.filters.model_dump())
    collection = snapshot_from_data(body.snapshot, source="snapshot")
    result = filter_service.apply_filters(collection, filters, logic=body.logic)
    return {
        **result.to_dict(include_raw=body.include_raw),
        "filters": [f.description() for f in filters],
    }


@app.post("/api/v1/stats")
async def api_stats(snapshot: dict[str, Any]):
    """Return the aggregate metadata of a snapshot."""
    collection = snapshot_from_data(snapshot, source="snapshot")
    return collection.metadata.model_dump(mode="json", exclude_none=True)
