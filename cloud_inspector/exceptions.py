# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Exception types raised by the inspector.

Lookup misses (dangling relationship targets, absent tags, missing
timestamps) are never errors; they simply do not match. Everything here
is scoped to a single expression, resource, snapshot or export.
"""


class InspectorError(Exception):
    """Base class for all inspector errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class FilterParseError(InspectorError):
    """Raised when a filter expression cannot be parsed."""

    def __init__(self, kind: str, expression: str, message: str):
        """
        Initialize filter parse error.

        Args:
            kind: Filter kind being parsed (tag, regex, date, ...)
            expression: The offending expression as supplied
            message: Human-readable reason
        """
        self.kind = kind
        self.expression = expression
        super().__init__(f"Invalid {kind} filter '{expression}': {message}")
        self.reason = message


class DuplicateResourceError(InspectorError):
    """Raised when a collection rejects a resource whose id already exists."""

    def __init__(self, resource_id: str):
        self.resource_id = resource_id
        super().__init__(f"Resource with id '{resource_id}' already exists in collection")


class SnapshotError(InspectorError):
    """Raised when a snapshot cannot be read, parsed or written."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Snapshot '{source}': {message}")


class UnknownExporterError(InspectorError):
    """Raised when no exporter is registered for a format."""

    def __init__(self, format_name: str, available: list[str]):
        self.format_name = format_name
        self.available = available
        super().__init__(
            f"Exporter not found for format: {format_name} "
            f"(available: {', '.join(sorted(available))})"
        )
