# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Relationship graph over a resource collection."""

import logging
from typing import Iterable

from ..models.collection import Collection
from ..models.enums import RelationType
from ..models.resource import Relationship, Resource

logger = logging.getLogger(__name__)


class ResourceGraph:
    """
    Adjacency view of the relationships declared inside a collection.

    Edges are kept in declaration order, duplicates included. Targets are
    resolved lazily, so edges pointing outside the collection are kept in the
    adjacency but never returned by ``get_related``.
    """

    def __init__(self, collection: Collection):
        self.collection = collection
        self._edges: dict[str, list[str]] = {}
        self._build()

    def _build(self) -> None:
        for resource in self.collection:
            targets = self._edges.setdefault(resource.id, [])
            targets.extend(rel.target_id for rel in resource.relationships)
        logger.debug(
            f"Built resource graph: {len(self._edges)} nodes, "
            f"{sum(len(t) for t in self._edges.values())} edges"
        )

    @property
    def edges(self) -> dict[str, list[str]]:
        """Adjacency list: resource id -> target ids."""
        return self._edges

    def get_related(self, resource_id: str) -> list[Resource]:
        """Resources this one points at, skipping targets not in the collection."""
        related = []
        for target_id in self._edges.get(resource_id, []):
            target = self.collection.get(target_id)
            if target is not None:
                related.append(target)
        return related

    def get_inverse_related(self, resource_id: str) -> list[Resource]:
        """Resources that declare at least one edge pointing at ``resource_id``."""
        return [
            self.collection.get(source_id)
            for source_id, targets in self._edges.items()
            if resource_id in targets and self.collection.get(source_id) is not None
        ]

    def get_inverse_relationships(self, resource_id: str) -> list[Relationship]:
        """
        Inbound edges of ``resource_id``, seen from the target's side.

        Each edge declared by another resource toward ``resource_id`` becomes a
        relationship pointing back at its source. Types with a semantic
        inverse are relabeled (a ``contains`` edge reads as ``belongs_to``);
        other types keep their name and carry ``direction: inbound``.
        """
        inbound = []
        for source in self.collection:
            for rel in source.relationships:
                if rel.target_id != resource_id:
                    continue
                inverse = rel.type.inverse if isinstance(rel.type, RelationType) else None
                properties = dict(rel.properties)
                if inverse is None:
                    properties["direction"] = "inbound"
                inbound.append(
                    Relationship(
                        type=inverse or rel.type,
                        target_id=source.id,
                        target_type=source.type,
                        properties=properties,
                    )
                )
        return inbound

    def get_relationships(self, resource_id: str) -> list[Relationship]:
        """Raw relationship records of a resource; empty when unknown."""
        resource = self.collection.get(resource_id)
        if resource is None:
            return []
        return list(resource.relationships)

    def add_relationship(self, from_id: str, relationship: Relationship) -> bool:
        """
        Attach a new edge to an existing resource.

        Args:
            from_id: Source resource id
            relationship: Edge to append

        Returns:
            True if the edge was added, False if ``from_id`` is unknown
        """
        resource = self.collection.get(from_id)
        if resource is None:
            logger.warning(
                f"Cannot add {relationship.type_name} relationship: "
                f"source resource {from_id} not found"
            )
            return False

        resource.relationships.append(relationship)
        self._edges.setdefault(from_id, []).append(relationship.target_id)
        return True

    def get_subgraph(self, *types: str) -> "ResourceGraph":
        """
        Build a graph restricted to the given resource types.

        Resources of other types are dropped, and each kept resource keeps
        only the edges whose declared target type is allowed. The kept
        resources are copies; this graph is left untouched.
        """
        allowed = set(_flatten(types))
        subset = Collection(
            duplicate_policy=self.collection.duplicate_policy,
            timestamp=self.collection.metadata.timestamp,
        )
        for resource in self.collection:
            if resource.type not in allowed:
                continue
            kept = [rel for rel in resource.relationships if rel.target_type in allowed]
            subset.add(resource.model_copy(update={"relationships": kept}))
        return ResourceGraph(subset)

    def __len__(self) -> int:
        return len(self._edges)


def _flatten(types: Iterable) -> list[str]:
    flat = []
    for item in types:
        if isinstance(item, str):
            flat.append(item)
        else:
            flat.extend(item)
    return flat
