# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Drift detection between two snapshots of the same estate.

The base collection is the older snapshot and the compare collection the
newer one. Resources are matched by id; the comparison is a pure function
of the two collections and never mutates either.
"""

import logging

from ..models.collection import Collection
from ..models.drift import DriftReport, DriftSummary, PropertyChange, ResourceDiff
from ..models.resource import Resource
from ..utils.date_utils import ensure_utc
from ..utils.value_utils import deep_equal

logger = logging.getLogger(__name__)


def compare_resources(base: Resource, new: Resource) -> dict[str, PropertyChange]:
    """
    Collect field-level changes between two versions of a resource.

    Compared, in this order: ``name``, ``region``, the whole ``tags`` map,
    every property key of the base version, every property key only present
    in the new version, and ``updated_at`` when both versions carry it.

    Args:
        base: Resource as it appears in the older snapshot
        new: Resource as it appears in the newer snapshot

    Returns:
        Mapping of changed field path (``name``, ``properties.size``, ...) to
        its old and new value. Empty when nothing changed.
    """
    changes: dict[str, PropertyChange] = {}

    if base.name != new.name:
        changes["name"] = PropertyChange(old=base.name, new=new.name)
    if base.region != new.region:
        changes["region"] = PropertyChange(old=base.region, new=new.region)
    if not deep_equal(base.tags, new.tags):
        changes["tags"] = PropertyChange(old=dict(base.tags), new=dict(new.tags))

    for key, old_value in base.properties.items():
        if key not in new.properties:
            changes[f"properties.{key}"] = PropertyChange(old=old_value, new=None)
        elif not deep_equal(old_value, new.properties[key]):
            changes[f"properties.{key}"] = PropertyChange(old=old_value, new=new.properties[key])

    for key, new_value in new.properties.items():
        if key not in base.properties:
            changes[f"properties.{key}"] = PropertyChange(old=None, new=new_value)

    if base.updated_at is not None and new.updated_at is not None:
        if ensure_utc(base.updated_at) != ensure_utc(new.updated_at):
            changes["updated_at"] = PropertyChange(old=base.updated_at, new=new.updated_at)

    return changes


def generate_drift_report(base: Collection, compare: Collection) -> DriftReport:
    """
    Compare two collections and classify every resource id.

    Removed resources are listed in base order; added, modified and
    unchanged resources follow compare order. When a collection holds the
    same id more than once, the entry its index resolves to is used.

    Args:
        base: Older snapshot
        compare: Newer snapshot

    Returns:
        DriftReport with per-category lists and counts
    """
    base_ids = base.ids()
    compare_ids = compare.ids()
    base_set = set(base_ids)
    compare_set = set(compare_ids)

    removed = [base.get(rid) for rid in base_ids if rid not in compare_set]
    added = []
    modified = []
    unchanged = []

    for rid in compare_ids:
        new_resource = compare.get(rid)
        if rid not in base_set:
            added.append(new_resource)
            continue

        base_resource = base.get(rid)
        changes = compare_resources(base_resource, new_resource)
        if not changes:
            unchanged.append(new_resource)
            continue

        modified.append(
            ResourceDiff(
                resource_id=rid,
                resource_type=base_resource.type,
                name=base_resource.name,
                changes=changes,
                base_resource=base_resource,
                new_resource=new_resource,
            )
        )

    summary = DriftSummary(
        total_added=len(added),
        total_removed=len(removed),
        total_modified=len(modified),
        total_unchanged=len(unchanged),
    )
    logger.info(
        f"Drift report: {summary.total_added} added, {summary.total_removed} removed, "
        f"{summary.total_modified} modified, {summary.total_unchanged} unchanged"
    )

    return DriftReport(
        base_timestamp=base.metadata.timestamp,
        compare_timestamp=compare.metadata.timestamp,
        added=added,
        removed=removed,
        modified=modified,
        unchanged=unchanged,
        summary=summary,
    )
