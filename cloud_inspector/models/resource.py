# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Normalized resource data model.

Every source adapter maps its payload into a ``Resource``. The type tag is
open-ended (``"<source>:<category>:<kind>"``) so new kinds of resource never
require model changes. ``properties`` is intentionally untyped: each source
exposes a different, unbounded attribute set made of JSON-like values.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from .enums import RelationType


def default_currency_code() -> str:
    from ..config import settings

    return settings().default_currency


class ResourceCost(BaseModel):
    """Estimated cost attached to a resource by a pricing collaborator."""

    monthly_estimate: float = Field(
        ...,
        description="Estimated monthly cost; negative for credits",
    )
    currency: str = Field(
        default_factory=default_currency_code,
        description="Currency code (USD, EUR, ...); defaults to DEFAULT_CURRENCY",
    )
    breakdown: dict[str, float] = Field(
        default_factory=dict,
        description="Cost breakdown by component (compute, storage, ...)",
    )
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the estimate was calculated",
    )


class Relationship(BaseModel):
    """A directed, typed edge from the owning resource to another resource.

    The target does not have to exist in the same collection.
    """

    type: Union[RelationType, str] = Field(
        ...,
        union_mode="left_to_right",
        description="Relationship semantics (contains, belongs_to, attached_to, ...)",
    )
    target_id: str = Field(..., description="Identifier of the target resource")
    target_type: str = Field(default="", description="Type tag of the target resource")
    properties: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form edge attributes",
    )

    @property
    def type_name(self) -> str:
        """Relationship type as a plain string, whether known or not."""
        return self.type.value if isinstance(self.type, RelationType) else str(self.type)


class Resource(BaseModel):
    """One discovered entity from any source system."""

    id: str = Field(..., description="Source-assigned identifier, unique within a collection")
    type: str = Field(..., description="Namespaced type tag (e.g., aws:ec2:instance)")
    name: str = Field(default="", description="Display name")
    provider: str = Field(default="", description="Source system (aws, github, okta, ...)")
    account: str = Field(default="", description="Account, organization or tenant")
    region: str = Field(default="", description="Region or location")
    arn: str = Field(default="", description="Provider-native unique identifier, when distinct from id")
    tags: dict[str, str] = Field(
        default_factory=dict,
        description="Labels attached by the origin system",
    )
    properties: dict[str, Any] = Field(
        default_factory=dict,
        description="Source-specific attributes (nested JSON-like values)",
    )
    raw_data: Optional[Any] = Field(
        default=None,
        description="Verbatim source payload; stripped from exports unless requested",
    )
    relationships: list[Relationship] = Field(
        default_factory=list,
        description="Declared edges to other resources, in discovery order",
    )
    cost: Optional[ResourceCost] = Field(
        default=None,
        description="Estimated cost, absent when no pricing data applies",
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="When the resource was created, as reported by its source",
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        description="When the resource was last modified, as reported by its source",
    )

    @property
    def monthly_cost(self) -> float:
        """Monthly estimate, or 0.0 when no cost is attached."""
        return self.cost.monthly_estimate if self.cost else 0.0

    def tag_pairs(self) -> list[str]:
        """Render tags as ``key=value`` strings."""
        return [f"{key}={value}" for key, value in self.tags.items()]

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        """Serialize to the snapshot shape (JSON-compatible values)."""
        exclude = None if include_raw else {"raw_data"}
        return self.model_dump(mode="json", exclude=exclude)
