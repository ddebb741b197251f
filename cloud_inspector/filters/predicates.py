# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Concrete resource filters.

Each filter reads a single resource and answers match / no match. Missing
data (no such tag, property path or timestamp) is always a non-match; no
filter raises while being applied.
"""

import re
from datetime import datetime
from typing import Iterable, Optional, Union

from ..models.enums import CompareOperator, TagOperator
from ..models.resource import Resource
from ..utils.date_utils import ensure_utc
from ..utils.value_utils import MISSING, is_number, render_value, resolve_path, to_float
from .base import Filter

PatternLike = Union[str, "re.Pattern[str]"]


def _compile(pattern: PatternLike) -> "re.Pattern[str]":
    return pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)


class TagFilter(Filter):
    """Filters resources by a tag key and, optionally, its value."""

    kind = "tag"

    def __init__(
        self,
        key: str,
        operator: TagOperator = TagOperator.EXISTS,
        value: str = "",
    ):
        self.key = key
        self.operator = TagOperator(operator)
        self.value = value
        self._pattern = _compile(value) if self.operator == TagOperator.MATCHES else None

    def apply(self, resource: Resource) -> bool:
        exists = self.key in resource.tags
        if self.operator == TagOperator.NOT_EXISTS:
            return not exists
        if not exists:
            return False

        actual = resource.tags[self.key]
        if self.operator == TagOperator.EXISTS:
            return True
        if self.operator == TagOperator.EQUALS:
            return actual == self.value
        if self.operator == TagOperator.CONTAINS:
            return self.value in actual
        if self.operator == TagOperator.MATCHES:
            return self._pattern.search(actual) is not None
        return False

    def description(self) -> str:
        if self.operator == TagOperator.EXISTS:
            return f"tag[{self.key}] exists"
        if self.operator == TagOperator.NOT_EXISTS:
            return f"tag[{self.key}] not exists"
        if self.operator == TagOperator.EQUALS:
            return f"tag[{self.key}] = {self.value}"
        if self.operator == TagOperator.CONTAINS:
            return f"tag[{self.key}] contains {self.value}"
        return f"tag[{self.key}] matches /{self.value}/"


class RegexFilter(Filter):
    """
    Filters resources by a regular expression search.

    Known resource fields are matched directly; any other field name is
    looked up in ``properties`` and matched against its string rendering.
    """

    kind = "regex"

    RESOURCE_FIELDS = ("name", "id", "type", "provider", "region", "account")

    def __init__(self, field: str, pattern: PatternLike):
        self.field = field
        self.pattern = _compile(pattern)

    def _field_value(self, resource: Resource) -> Optional[str]:
        if self.field in self.RESOURCE_FIELDS:
            return getattr(resource, self.field)
        value = resource.properties.get(self.field)
        if value is None:
            return None
        return render_value(value)

    def apply(self, resource: Resource) -> bool:
        value = self._field_value(resource)
        if value is None:
            return False
        return self.pattern.search(value) is not None

    def description(self) -> str:
        return f"{self.field} matches /{self.pattern.pattern}/"


class DateRangeFilter(Filter):
    """Filters resources by creation or update timestamp.

    The start bound is inclusive. The end bound is inclusive unless
    ``end_inclusive`` is False (used for whole-day windows).
    """

    kind = "date"

    FIELDS = {
        "created": "created_at",
        "created_at": "created_at",
        "updated": "updated_at",
        "updated_at": "updated_at",
    }

    def __init__(
        self,
        field: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        end_inclusive: bool = True,
    ):
        self.field = field
        self.start = ensure_utc(start) if start else None
        self.end = ensure_utc(end) if end else None
        self.end_inclusive = end_inclusive

    def apply(self, resource: Resource) -> bool:
        attribute = self.FIELDS.get(self.field)
        if attribute is None:
            return False

        moment = getattr(resource, attribute)
        if moment is None:
            return False
        moment = ensure_utc(moment)

        if self.start is not None and moment < self.start:
            return False
        if self.end is not None:
            if self.end_inclusive and moment > self.end:
                return False
            if not self.end_inclusive and moment >= self.end:
                return False
        return True

    def description(self) -> str:
        parts = []
        if self.start is not None:
            parts.append(f"{self.field} >= {self.start.isoformat()}")
        if self.end is not None:
            symbol = "<=" if self.end_inclusive else "<"
            parts.append(f"{self.field} {symbol} {self.end.isoformat()}")
        return " AND ".join(parts) or f"{self.field} is set"


class StateFilter(Filter):
    """Filters resources by lifecycle state.

    The state is the first populated value among STATE_KEYS; membership is
    case-insensitive. An empty state list matches everything.
    """

    kind = "state"

    STATE_KEYS = ("state", "status", "provisioning_state", "lifecycle_state")

    def __init__(self, states: Iterable[str]):
        self.states = [s for s in states]
        self._normalized = {s.lower() for s in self.states}

    def current_state(self, resource: Resource) -> Optional[str]:
        for key in self.STATE_KEYS:
            value = resource.properties.get(key)
            if value is None or value == "":
                continue
            return render_value(value)
        return None

    def apply(self, resource: Resource) -> bool:
        if not self.states:
            return True
        state = self.current_state(resource)
        return state is not None and state.lower() in self._normalized

    def description(self) -> str:
        return f"state in [{', '.join(self.states)}]"


class PropertyFilter(Filter):
    """Filters resources by a value found at a dotted path in ``properties``."""

    kind = "property"

    def __init__(self, path: str, operator: CompareOperator, value):
        self.path = path
        self.operator = CompareOperator(operator)
        self.value = value

    def apply(self, resource: Resource) -> bool:
        actual = resolve_path(resource.properties, self.path)
        if actual is MISSING or actual is None:
            return False
        return self._compare(actual, self.value)

    def _compare(self, actual, expected) -> bool:
        op = self.operator
        if op.is_numeric:
            return self._compare_numeric(actual, expected)
        if op == CompareOperator.EQUALS:
            return _values_equal(actual, expected)
        if op == CompareOperator.NOT_EQUALS:
            return not _values_equal(actual, expected)

        actual_text = render_value(actual).lower()
        expected_text = render_value(expected).lower()
        if op == CompareOperator.CONTAINS:
            return expected_text in actual_text
        if op == CompareOperator.STARTS_WITH:
            return actual_text.startswith(expected_text)
        if op == CompareOperator.ENDS_WITH:
            return actual_text.endswith(expected_text)
        return False

    def _compare_numeric(self, actual, expected) -> bool:
        left = to_float(actual)
        right = to_float(expected)
        if left is None or right is None:
            return False

        op = self.operator
        if op == CompareOperator.GREATER_THAN:
            return left > right
        if op == CompareOperator.GREATER_THAN_OR_EQUAL:
            return left >= right
        if op == CompareOperator.LESS_THAN:
            return left < right
        return left <= right

    def description(self) -> str:
        return f"{self.path} {self.operator.value} {render_value(self.value)}"


def _values_equal(actual, expected) -> bool:
    if is_number(actual) and is_number(expected):
        return float(actual) == float(expected)
    return render_value(actual) == render_value(expected)


class CostFilter(Filter):
    """
    Filters resources by monthly cost within an inclusive range.

    Reads ``Resource.cost.monthly_estimate`` and falls back to a flattened
    ``properties["cost"]`` or ``properties["monthly_cost"]``. Resources
    without any cost data never match.
    """

    kind = "cost"

    PROPERTY_KEYS = ("cost", "monthly_cost")

    def __init__(self, min_cost: Optional[float] = None, max_cost: Optional[float] = None):
        self.min_cost = min_cost
        self.max_cost = max_cost

    @classmethod
    def resource_cost(cls, resource: Resource) -> Optional[float]:
        if resource.cost is not None:
            return resource.cost.monthly_estimate
        for key in cls.PROPERTY_KEYS:
            if key in resource.properties:
                return to_float(resource.properties[key])
        return None

    def apply(self, resource: Resource) -> bool:
        cost = self.resource_cost(resource)
        if cost is None:
            return False
        if self.min_cost is not None and cost < self.min_cost:
            return False
        if self.max_cost is not None and cost > self.max_cost:
            return False
        return True

    def description(self) -> str:
        parts = []
        if self.min_cost is not None:
            parts.append(f"cost >= {self.min_cost:.2f}")
        if self.max_cost is not None:
            parts.append(f"cost <= {self.max_cost:.2f}")
        return " AND ".join(parts) or "cost filter (any)"


class TypeFilter(Filter):
    """Filters resources by exact type. An empty list matches everything."""

    kind = "type"

    def __init__(self, types: Iterable[str] = ()):
        self.types = list(types)
        self._allowed = set(self.types)

    def apply(self, resource: Resource) -> bool:
        return not self._allowed or resource.type in self._allowed

    def description(self) -> str:
        if not self.types:
            return "any type"
        return f"type in [{', '.join(self.types)}]"


class ProviderFilter(Filter):
    """Filters resources by exact provider. An empty list matches everything."""

    kind = "provider"

    def __init__(self, providers: Iterable[str] = ()):
        self.providers = list(providers)
        self._allowed = set(self.providers)

    def apply(self, resource: Resource) -> bool:
        return not self._allowed or resource.provider in self._allowed

    def description(self) -> str:
        if not self.providers:
            return "any provider"
        return f"provider in [{', '.join(self.providers)}]"
