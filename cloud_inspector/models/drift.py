"""Data models for drift reports between two collections."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from .resource import Resource


class PropertyChange(BaseModel):
    """Old and new value of one changed field. None means absent."""

    old: Any = Field(default=None, description="Value in the base snapshot")
    new: Any = Field(default=None, description="Value in the compare snapshot")


class ResourceDiff(BaseModel):
    """A resource present in both snapshots whose fields differ."""

    resource_id: str = Field(..., description="Shared resource id")
    resource_type: str = Field(..., description="Resource type in the base snapshot")
    name: str = Field(default="", description="Resource name in the base snapshot")
    changes: dict[str, PropertyChange] = Field(
        default_factory=dict,
        description="Changed field path -> old/new values (e.g. 'name', 'properties.size')",
    )
    base_resource: Optional[Resource] = Field(default=None)
    new_resource: Optional[Resource] = Field(default=None)


class DriftSummary(BaseModel):
    """Counts per drift category."""

    total_added: int = Field(default=0, ge=0)
    total_removed: int = Field(default=0, ge=0)
    total_modified: int = Field(default=0, ge=0)
    total_unchanged: int = Field(default=0, ge=0)


class DriftReport(BaseModel):
    """Differences between a base (older) and a compare (newer) collection."""

    base_timestamp: datetime = Field(..., description="Timestamp of the base snapshot")
    compare_timestamp: datetime = Field(..., description="Timestamp of the compare snapshot")
    added: list[Resource] = Field(default_factory=list)
    removed: list[Resource] = Field(default_factory=list)
    modified: list[ResourceDiff] = Field(default_factory=list)
    unchanged: list[Resource] = Field(default_factory=list)
    summary: DriftSummary = Field(default_factory=DriftSummary)

    @property
    def has_drift(self) -> bool:
        """True when anything was added, removed or modified."""
        return bool(self.added or self.removed or self.modified)

    def to_dict(
        self,
        include_unchanged: bool = False,
        include_resources: bool = True,
    ) -> dict[str, Any]:
        """
        Serialize the report to JSON-compatible values.

        Args:
            include_unchanged: Keep the list of unchanged resources
            include_resources: Keep full base/new resources on each diff
        """
        exclude: dict[str, Any] = {}
        if not include_unchanged:
            exclude["unchanged"] = True
        if not include_resources:
            exclude["modified"] = {"__all__": {"base_resource", "new_resource"}}
        data = self.model_dump(mode="json", exclude=exclude or None)
        resources = [r for item in ("added", "removed", "unchanged") for r in data.get(item, [])]
        for diff in data["modified"]:
            resources.extend(
                diff[key] for key in ("base_resource", "new_resource") if diff.get(key)
            )
        for resource in resources:
            resource.pop("raw_data", None)
        return data
