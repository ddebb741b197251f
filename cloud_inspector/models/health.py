"""Health check data models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Health status response for the inspector API."""

    status: str = Field(
        ...,
        description="Overall health status",
        examples=["healthy"],
    )
    version: str = Field(
        ...,
        description="Version of the inspector",
        examples=["0.1.0"],
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when health check was performed",
    )
    filter_kinds: list[str] = Field(
        default_factory=list,
        description="Filter kinds accepted by the filter endpoint",
    )
    export_formats: list[str] = Field(
        default_factory=list,
        description="Formats accepted by the exporters",
    )
