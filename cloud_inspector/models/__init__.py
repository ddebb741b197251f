"""Data models for Cloud Resource Inspector."""

from .enums import (
    CompareOperator,
    DuplicatePolicy,
    LogicOperator,
    RelationType,
    TagOperator,
)
from .resource import Relationship, Resource, ResourceCost
from .collection import Collection, CollectionMetadata, CostSummary
from .drift import DriftReport, DriftSummary, PropertyChange, ResourceDiff
from .health import HealthStatus

__all__ = [
    "CompareOperator",
    "DuplicatePolicy",
    "LogicOperator",
    "RelationType",
    "TagOperator",
    "Relationship",
    "Resource",
    "ResourceCost",
    "Collection",
    "CollectionMetadata",
    "CostSummary",
    "DriftReport",
    "DriftSummary",
    "PropertyChange",
    "ResourceDiff",
    "HealthStatus",
]
