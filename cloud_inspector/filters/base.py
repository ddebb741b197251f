# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Filter capability and AND/OR composition."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ..models.enums import LogicOperator
from ..models.resource import Resource


class Filter(ABC):
    """
    A predicate over a single resource.

    Filters never mutate the resource they inspect, and a lookup miss
    (absent tag, property or timestamp) is a non-match rather than an error.
    Filters are callable, so they can be passed straight to
    ``Collection.filter``.
    """

    kind: str = ""

    @abstractmethod
    def apply(self, resource: Resource) -> bool:
        """Return True if the resource matches."""

    @abstractmethod
    def description(self) -> str:
        """Human-readable description for audit and logging."""

    def __call__(self, resource: Resource) -> bool:
        return self.apply(resource)

    def __and__(self, other: "Filter") -> "CompositeFilter":
        return CompositeFilter([self, other], LogicOperator.AND)

    def __or__(self, other: "Filter") -> "CompositeFilter":
        return CompositeFilter([self, other], LogicOperator.OR)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.description()})"


class CompositeFilter(Filter):
    """Combines filters with AND (default) or OR logic.

    An empty composite matches every resource.
    """

    kind = "composite"

    def __init__(
        self,
        filters: Optional[Iterable[Filter]] = None,
        logic: LogicOperator = LogicOperator.AND,
    ):
        self.filters: list[Filter] = list(filters or [])
        self.logic = LogicOperator(logic)

    def apply(self, resource: Resource) -> bool:
        if not self.filters:
            return True
        if self.logic == LogicOperator.OR:
            return any(f.apply(resource) for f in self.filters)
        return all(f.apply(resource) for f in self.filters)

    def description(self) -> str:
        if not self.filters:
            return "no filters"
        joiner = f" {self.logic.value} "
        return "(" + joiner.join(f.description() for f in self.filters) + ")"
