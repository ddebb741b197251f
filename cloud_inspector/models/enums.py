"""Enumerations shared by the resource model, filters and collections."""

from enum import Enum
from typing import Optional


class RelationType(str, Enum):
    """Directional semantics of a relationship between two resources."""

    CONTAINS = "contains"
    BELONGS_TO = "belongs_to"
    ATTACHED_TO = "attached_to"
    ASSUMES = "assumes"
    HAS_ACCESS = "has_access"
    REFERENCES = "references"
    DEPENDS_ON = "depends_on"

    @property
    def inverse(self) -> Optional["RelationType"]:
        """Semantic inverse, when one exists (contains <-> belongs_to)."""
        if self is RelationType.CONTAINS:
            return RelationType.BELONGS_TO
        if self is RelationType.BELONGS_TO:
            return RelationType.CONTAINS
        return None


class DuplicatePolicy(str, Enum):
    """What a collection does when a resource id is added twice."""

    REPLACE = "replace"
    KEEP_BOTH = "keep_both"
    REJECT = "reject"


class LogicOperator(str, Enum):
    """How a composite filter folds its children."""

    AND = "AND"
    OR = "OR"


class TagOperator(str, Enum):
    """How a tag filter compares tag values."""

    EXISTS = "exists"
    NOT_EXISTS = "not-exists"
    EQUALS = "equals"
    CONTAINS = "contains"
    MATCHES = "matches"


class CompareOperator(str, Enum):
    """Comparison operators supported by property filters."""

    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    CONTAINS = "contains"
    STARTS_WITH = "starts-with"
    ENDS_WITH = "ends-with"

    @property
    def is_numeric(self) -> bool:
        return self in (
            CompareOperator.GREATER_THAN,
            CompareOperator.GREATER_THAN_OR_EQUAL,
            CompareOperator.LESS_THAN,
            CompareOperator.LESS_THAN_OR_EQUAL,
        )
