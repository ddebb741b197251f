# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Resource collection with incrementally maintained aggregates.

A collection is populated once (by adapters or from a snapshot), then
handed read-only to the filter, graph and drift engines. Aggregate counters
and cost totals are updated on every insertion, never recomputed by scanning.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Iterator, Optional

from pydantic import BaseModel, Field

from ..exceptions import DuplicateResourceError
from .enums import DuplicatePolicy
from .resource import Resource, default_currency_code

logger = logging.getLogger(__name__)

# Float residue below this is treated as an emptied cost bucket
_COST_EPSILON = 1e-9


class CostSummary(BaseModel):
    """Cost aggregations for a collection."""

    total: float = Field(default=0.0, description="Total monthly cost estimate")
    currency: str = Field(default_factory=default_currency_code, description="Currency code")
    by_provider: dict[str, float] = Field(default_factory=dict)
    by_region: dict[str, float] = Field(default_factory=dict)
    by_type: dict[str, float] = Field(default_factory=dict)
    by_tag: dict[str, float] = Field(
        default_factory=dict,
        description="Cost per key=value tag pair; a resource counts toward each of its tags",
    )


class CollectionMetadata(BaseModel):
    """Aggregate statistics about a collection."""

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the collection was created",
    )
    total_count: int = Field(default=0, ge=0)
    by_type: dict[str, int] = Field(default_factory=dict)
    by_provider: dict[str, int] = Field(default_factory=dict)
    by_account: dict[str, int] = Field(default_factory=dict)
    by_region: dict[str, int] = Field(default_factory=dict)
    by_type_and_region: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="region -> resource type -> count",
    )
    total_cost: Optional[CostSummary] = Field(default=None)


def _bump(counter: dict, key: str, delta) -> None:
    """Add delta to counter[key], dropping the key once it empties."""
    value = counter.get(key, 0) + delta
    if abs(value) <= _COST_EPSILON:
        counter.pop(key, None)
    else:
        counter[key] = value


class Collection:
    """
    Ordered, indexed, aggregate-tracking set of resources.

    The id index is derived state. It is never serialized and is rebuilt
    whenever a collection is loaded from a snapshot.
    """

    def __init__(
        self,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPLACE,
        timestamp: Optional[datetime] = None,
    ):
        """
        Initialize an empty collection.

        Args:
            duplicate_policy: What to do when a resource id is added twice
            timestamp: Collection timestamp (defaults to now, UTC)
        """
        self.resources: list[Resource] = []
        self.metadata = CollectionMetadata()
        if timestamp is not None:
            self.metadata.timestamp = timestamp
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self._index: dict[str, Resource] = {}
        self._costed = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def add(self, resource: Resource) -> None:
        """
        Add a resource and update every aggregate dimension.

        Safe to call from several adapter threads at once.

        Args:
            resource: Resource to add

        Raises:
            DuplicateResourceError: If the id exists and the policy is REJECT
        """
        with self._lock:
            existing = self._index.get(resource.id)

            if existing is None:
                self.resources.append(resource)
            elif self.duplicate_policy == DuplicatePolicy.REJECT:
                raise DuplicateResourceError(resource.id)
            elif self.duplicate_policy == DuplicatePolicy.REPLACE:
                logger.warning(
                    f"Duplicate resource id {resource.id} ({resource.type}); "
                    f"replacing earlier entry"
                )
                position = next(
                    i for i, r in enumerate(self.resources) if r is existing
                )
                self._account(existing, -1)
                self.resources[position] = resource
            else:
                logger.warning(
                    f"Duplicate resource id {resource.id} ({resource.type}); "
                    f"keeping both entries, lookups return the latest"
                )
                self.resources.append(resource)

            self._index[resource.id] = resource
            self._account(resource, 1)

    def extend(self, resources: Iterable[Resource]) -> None:
        """Add several resources in order."""
        for resource in resources:
            self.add(resource)

    def _account(self, resource: Resource, sign: int) -> None:
        """Fold a resource into (sign=1) or out of (sign=-1) the aggregates."""
        meta = self.metadata
        meta.total_count += sign
        _bump(meta.by_type, resource.type, sign)
        _bump(meta.by_provider, resource.provider, sign)

        if resource.account:
            _bump(meta.by_account, resource.account, sign)

        if resource.region:
            _bump(meta.by_region, resource.region, sign)
            by_type = meta.by_type_and_region.setdefault(resource.region, {})
            _bump(by_type, resource.type, sign)
            if not by_type:
                del meta.by_type_and_region[resource.region]

        if resource.cost is not None and resource.cost.monthly_estimate > 0:
            self._account_cost(resource, sign)

    def _account_cost(self, resource: Resource, sign: int) -> None:
        if self.metadata.total_cost is None:
            self.metadata.total_cost = CostSummary(currency=resource.cost.currency)

        summary = self.metadata.total_cost
        cost = resource.cost.monthly_estimate * sign

        summary.total += cost
        _bump(summary.by_provider, resource.provider, cost)
        if resource.region:
            _bump(summary.by_region, resource.region, cost)
        _bump(summary.by_type, resource.type, cost)
        for pair in resource.tag_pairs():
            _bump(summary.by_tag, pair, cost)

        self._costed += sign
        if self._costed == 0:
            self.metadata.total_cost = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, resource_id: str) -> Optional[Resource]:
        """Look up a resource by id, or None when absent."""
        return self._index.get(resource_id)

    def filter(self, predicate: Callable[[Resource], bool]) -> list[Resource]:
        """
        Return the resources matching a predicate, in collection order.

        Accepts any Filter (filters are callable) or a plain function.
        This does not build a new Collection; use ``from_resources`` for that.
        """
        return [resource for resource in self.resources if predicate(resource)]

    def ids(self) -> list[str]:
        """Distinct resource ids in first-seen order."""
        return list(dict.fromkeys(r.id for r in self.resources))

    def __len__(self) -> int:
        return len(self.resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self.resources)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._index

    def __repr__(self) -> str:
        return f"Collection(resources={len(self.resources)}, timestamp={self.metadata.timestamp.isoformat()})"

    # ------------------------------------------------------------------
    # Construction and serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_resources(
        cls,
        resources: Iterable[Resource],
        timestamp: Optional[datetime] = None,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPLACE,
    ) -> "Collection":
        """Build a new collection by re-adding resources, re-deriving aggregates."""
        collection = cls(duplicate_policy=duplicate_policy, timestamp=timestamp)
        collection.extend(resources)
        return collection

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPLACE,
    ) -> "Collection":
        """
        Rebuild a collection from its snapshot shape.

        Aggregates and the id index are re-derived from the resources; only
        the snapshot timestamp is taken from the stored metadata.

        Raises:
            pydantic.ValidationError: If a resource or the metadata is malformed
        """
        timestamp = None
        metadata = data.get("metadata") or {}
        if metadata.get("timestamp"):
            timestamp = CollectionMetadata.model_validate(
                {"timestamp": metadata["timestamp"]}
            ).timestamp

        resources = [Resource.model_validate(item) for item in data.get("resources") or []]
        return cls.from_resources(resources, timestamp=timestamp, duplicate_policy=duplicate_policy)

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        """Serialize to ``{"resources": [...], "metadata": {...}}``."""
        return {
            "resources": [r.to_dict(include_raw=include_raw) for r in self.resources],
            "metadata": self.metadata.model_dump(mode="json", exclude_none=True),
        }
