# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Exporters writing a collection to JSON, YAML or GraphViz DOT."""

import io
import json
import logging
from abc import ABC, abstractmethod
from typing import TextIO

import yaml

from ..exceptions import UnknownExporterError
from ..models.collection import Collection
from ..models.resource import Resource

logger = logging.getLogger(__name__)


class Exporter(ABC):
    """Writes a collection to a text stream in one output format."""

    format: str = ""

    @abstractmethod
    def export(
        self,
        collection: Collection,
        stream: TextIO,
        pretty: bool = True,
        include_raw: bool = False,
    ) -> None:
        """Write ``collection`` to ``stream``."""

    def exports(self, collection: Collection, pretty: bool = True, include_raw: bool = False) -> str:
        """Export to a string."""
        buffer = io.StringIO()
        self.export(collection, buffer, pretty=pretty, include_raw=include_raw)
        return buffer.getvalue()


class JSONExporter(Exporter):
    format = "json"

    def export(self, collection, stream, pretty=True, include_raw=False):
        json.dump(collection.to_dict(include_raw=include_raw), stream, indent=2 if pretty else None)
        stream.write("\n")


class YAMLExporter(Exporter):
    format = "yaml"

    def export(self, collection, stream, pretty=True, include_raw=False):
        yaml.safe_dump(
            collection.to_dict(include_raw=include_raw),
            stream,
            sort_keys=False,
            default_flow_style=not pretty,
        )


class DOTExporter(Exporter):
    """
    GraphViz export: one node per resource, one edge per relationship.

    Edges are written even when their target is not part of the collection,
    so dangling references stay visible in the rendered graph.
    """

    format = "dot"

    DEFAULT_COLOR = "#E0E0E0"

    TYPE_COLORS = {
        "aws:iam:user": "#FFE4B5",
        "aws:iam:role": "#FFD700",
        "aws:account": "#87CEEB",
        "aws:ec2:vpc": "#98FB98",
        "aws:ec2:subnet": "#90EE90",
        "aws:ec2:security-group": "#FFA07A",
        "aws:ecr:repository": "#DDA0DD",
    }

    def export(self, collection, stream, pretty=True, include_raw=False):
        stream.write("digraph cloud_resources {\n")
        stream.write("  rankdir=LR;\n")
        stream.write("  node [shape=box, style=rounded];\n\n")

        for resource in collection:
            stream.write(
                f"  {self.sanitize_id(resource.id)} [label=\"{self.format_label(resource)}\", "
                f"fillcolor=\"{self.color_for_type(resource.type)}\", style=\"filled,rounded\"];\n"
            )
        stream.write("\n")

        for resource in collection:
            source = self.sanitize_id(resource.id)
            for rel in resource.relationships:
                stream.write(
                    f"  {source} -> {self.sanitize_id(rel.target_id)} "
                    f"[label=\"{_escape(rel.type_name)}\"];\n"
                )

        stream.write("}\n")

    @staticmethod
    def sanitize_id(resource_id: str) -> str:
        """Quoted DOT node id with ``: / - .`` replaced by underscores."""
        for char in (":", "/", "-", "."):
            resource_id = resource_id.replace(char, "_")
        return f"\"{_escape(resource_id)}\""

    @staticmethod
    def format_label(resource: Resource) -> str:
        label = f"{_escape(resource.name)}\\n{_escape(resource.type)}"
        if resource.region:
            label += f"\\n{_escape(resource.region)}"
        return label

    def color_for_type(self, resource_type: str) -> str:
        return self.TYPE_COLORS.get(resource_type, self.DEFAULT_COLOR)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\"", "\\\"")


_EXPORTERS: dict[str, Exporter] = {}


def register_exporter(exporter: Exporter) -> None:
    """Register an exporter under its format name, replacing any previous one."""
    _EXPORTERS[exporter.format] = exporter
    logger.debug(f"Registered exporter for format '{exporter.format}'")


def get_exporter(format_name: str) -> Exporter:
    """
    Look up the exporter for a format.

    Raises:
        UnknownExporterError: If no exporter is registered for ``format_name``
    """
    exporter = _EXPORTERS.get(format_name)
    if exporter is None:
        raise UnknownExporterError(format_name, list(_EXPORTERS))
    return exporter


def list_formats() -> list[str]:
    """Registered format names, sorted."""
    return sorted(_EXPORTERS)


for _exporter in (JSONExporter(), YAMLExporter(), DOTExporter()):
    register_exporter(_exporter)
