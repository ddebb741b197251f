# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Loading and saving collection snapshots.

A snapshot is the serialized collection shape,
``{"resources": [...], "metadata": {...}}``, stored as JSON or YAML. The
format follows the file extension unless given explicitly.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import settings
from ..exceptions import SnapshotError
from ..models.collection import Collection
from ..models.enums import DuplicatePolicy

logger = logging.getLogger(__name__)

SNAPSHOT_FORMATS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}

PathLike = Union[str, Path]


def detect_format(path: PathLike) -> str:
    """Snapshot format for a path, from its extension."""
    suffix = Path(path).suffix.lower()
    fmt = SNAPSHOT_FORMATS.get(suffix)
    if fmt is None:
        raise SnapshotError(
            str(path),
            f"unsupported file extension '{suffix}' (use .json, .yaml or .yml)",
        )
    return fmt


def snapshot_from_data(
    data: Any,
    source: str = "<data>",
    duplicate_policy: Optional[DuplicatePolicy] = None,
) -> Collection:
    """
    Build a collection from an already decoded snapshot document.

    Raises:
        SnapshotError: If the document is not a snapshot or a resource is invalid
    """
    if not isinstance(data, dict):
        raise SnapshotError(source, "snapshot must be a mapping with a 'resources' list")
    if not isinstance(data.get("resources", []), list):
        raise SnapshotError(source, "'resources' must be a list")
    if not isinstance(data.get("metadata") or {}, dict):
        raise SnapshotError(source, "'metadata' must be a mapping")

    policy = duplicate_policy or settings().duplicate_policy
    try:
        collection = Collection.from_dict(data, duplicate_policy=policy)
    except ValidationError as e:
        raise SnapshotError(source, f"invalid resource data: {e}") from e

    logger.debug(f"Loaded snapshot {source} with {len(collection)} resources")
    return collection


def loads_snapshot(
    text: str,
    fmt: str = "json",
    source: str = "<string>",
    duplicate_policy: Optional[DuplicatePolicy] = None,
) -> Collection:
    """
    Parse snapshot text in the given format.

    Args:
        text: Snapshot document
        fmt: ``json`` or ``yaml``
        source: Name used in error messages
        duplicate_policy: Overrides the configured duplicate policy

    Raises:
        SnapshotError: On malformed text or an unknown format
    """
    try:
        if fmt == "json":
            data = json.loads(text)
        elif fmt == "yaml":
            data = yaml.safe_load(text)
        else:
            raise SnapshotError(source, f"unsupported snapshot format '{fmt}'")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SnapshotError(source, f"failed to decode {fmt.upper()}: {e}") from e

    return snapshot_from_data(data, source=source, duplicate_policy=duplicate_policy)


def load_snapshot(
    path: PathLike,
    duplicate_policy: Optional[DuplicatePolicy] = None,
) -> Collection:
    """
    Read a snapshot file.

    Raises:
        SnapshotError: If the file is missing, too large, or malformed
    """
    path = Path(path)
    fmt = detect_format(path)

    try:
        size = path.stat().st_size
    except OSError as e:
        raise SnapshotError(str(path), f"failed to open file: {e}") from e

    limit = settings().max_snapshot_bytes
    if size > limit:
        raise SnapshotError(str(path), f"file is {size} bytes, limit is {limit} bytes")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError(str(path), f"failed to read file: {e}") from e

    return loads_snapshot(text, fmt=fmt, source=str(path), duplicate_policy=duplicate_policy)


def dumps_snapshot(
    collection: Collection,
    fmt: str = "json",
    include_raw: bool = False,
    pretty: bool = True,
) -> str:
    """Serialize a collection to snapshot text."""
    data = collection.to_dict(include_raw=include_raw)
    if fmt == "json":
        return json.dumps(data, indent=2 if pretty else None) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    raise SnapshotError("<string>", f"unsupported snapshot format '{fmt}'")


def dump_snapshot(
    collection: Collection,
    path: PathLike,
    fmt: Optional[str] = None,
    include_raw: bool = False,
) -> Path:
    """
    Write a collection to a snapshot file.

    Args:
        collection: Collection to write
        path: Destination file
        fmt: ``json`` or ``yaml``; taken from the extension when omitted
        include_raw: Keep raw source payloads

    Returns:
        The written path
    """
    path = Path(path)
    fmt = fmt or detect_format(path)
    text = dumps_snapshot(collection, fmt=fmt, include_raw=include_raw)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise SnapshotError(str(path), f"failed to write file: {e}") from e

    logger.info(f"Wrote {len(collection)} resources to {path} ({fmt})")
    return path
