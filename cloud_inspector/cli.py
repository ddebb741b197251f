# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Command line interface.

Usage:
    python -m cloud_inspector compare -b old.json -c new.json [-t detailed]
    python -m cloud_inspector filter snapshot.json --filter-tag Environment=prod
    python -m cloud_inspector graph snapshot.json --type aws:ec2:vpc --type aws:ec2:subnet
    python -m cloud_inspector serve
"""

import argparse
import json
import logging
import sys
from typing import Optional, TextIO

from . import __version__
from .config import settings
from .exceptions import InspectorError
from .models import DriftReport, LogicOperator
from .services.drift_service import generate_drift_report
from .services.export_service import get_exporter, list_formats
from .services.filter_service import FilterService
from .services.graph_service import ResourceGraph
from .services.snapshot_service import load_snapshot
from .utils.cloudwatch_logger import configure_logging
from .utils.value_utils import render_value

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 2


def format_change_value(value) -> str:
    if value is None:
        return "<nil>"
    return render_value(value)


def print_summary(report: DriftReport, out: TextIO) -> None:
    """Write the summary view of a drift report."""
    summary = report.summary
    out.write("=== Cloud Resource Drift Report ===\n")
    out.write(f"Base snapshot:    {report.base_timestamp.isoformat()}\n")
    out.write(f"Compare snapshot: {report.compare_timestamp.isoformat()}\n\n")

    out.write("Summary:\n")
    out.write(f"  Added:     {summary.total_added} resources\n")
    out.write(f"  Removed:   {summary.total_removed} resources\n")
    out.write(f"  Modified:  {summary.total_modified} resources\n")
    out.write(f"  Unchanged: {summary.total_unchanged} resources\n\n")

    if report.added:
        out.write(f"Added Resources ({len(report.added)}):\n")
        for res in report.added:
            out.write(f"  + [{res.type}] {res.name} ({res.id})\n")
        out.write("\n")

    if report.removed:
        out.write(f"Removed Resources ({len(report.removed)}):\n")
        for res in report.removed:
            out.write(f"  - [{res.type}] {res.name} ({res.id})\n")
        out.write("\n")

    if report.modified:
        out.write(f"Modified Resources ({len(report.modified)}):\n")
        for diff in report.modified:
            out.write(
                f"  ~ [{diff.resource_type}] {diff.name} ({diff.resource_id}) "
                f"- {len(diff.changes)} changes\n"
            )
        out.write("\n")


def print_detailed(report: DriftReport, out: TextIO) -> None:
    """Write the summary followed by every field-level change."""
    print_summary(report, out)
    if not report.modified:
        return

    out.write("=== Detailed Changes ===\n")
    for i, diff in enumerate(report.modified, start=1):
        out.write(f"\n{i}. [{diff.resource_type}] {diff.name} ({diff.resource_id})\n")
        for field, change in diff.changes.items():
            out.write(f"   {field}:\n")
            out.write(f"     - Old: {format_change_value(change.old)}\n")
            out.write(f"     + New: {format_change_value(change.new)}\n")


def cmd_compare(args: argparse.Namespace, out: TextIO) -> int:
    base = load_snapshot(args.base)
    compare = load_snapshot(args.compare)
    report = generate_drift_report(base, compare)

    if args.type == "json":
        data = report.to_dict(include_unchanged=args.include_unchanged or settings().include_unchanged)
        out.write(json.dumps(data, indent=2) + "\n")
    elif args.type == "detailed":
        print_detailed(report, out)
    else:
        print_summary(report, out)
    return EXIT_OK


def _write_output(args: argparse.Namespace, out: TextIO, collection, include_raw: bool) -> None:
    exporter = get_exporter(args.format)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as handle:
            exporter.export(collection, handle, pretty=not args.compact, include_raw=include_raw)
        logger.info(f"Wrote {len(collection)} resources to {args.output}")
    else:
        exporter.export(collection, out, pretty=not args.compact, include_raw=include_raw)


def cmd_filter(args: argparse.Namespace, out: TextIO) -> int:
    service = FilterService()
    # parse before loading so a bad expression fails fast
    filters = service.build_filters(
        tags=args.filter_tag,
        regex=args.filter_regex,
        dates=args.filter_date,
        states=args.filter_state,
        properties=args.filter_property,
        cost=args.filter_cost,
        types=args.filter_type,
        providers=args.filter_provider,
    )
    collection = load_snapshot(args.snapshot)
    result = service.apply_filters(collection, filters, logic=LogicOperator(args.logic))
    include_raw = args.include_raw or settings().include_raw_data
    _write_output(args, out, result, include_raw)
    return EXIT_OK


def cmd_graph(args: argparse.Namespace, out: TextIO) -> int:
    collection = load_snapshot(args.snapshot)
    graph = ResourceGraph(collection)
    if args.type:
        graph = graph.get_subgraph(*args.type)
    _write_output(args, out, graph.collection, args.include_raw)
    return EXIT_OK


def cmd_serve(args: argparse.Namespace, out: TextIO) -> int:
    import uvicorn

    config = settings()
    uvicorn.run(
        "cloud_inspector.main:app",
        host=args.host or config.host,
        port=args.port or config.port,
        log_level=config.log_level.lower(),
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloud-inspector",
        description="Inspect, filter and compare cloud resource snapshots",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare = subparsers.add_parser(
        "compare",
        help="Compare two snapshots and show drift",
        description="Show added, removed and modified resources between two snapshots",
    )
    compare.add_argument("-b", "--base", required=True, help="Base snapshot (older)")
    compare.add_argument("-c", "--compare", required=True, help="Compare snapshot (newer)")
    compare.add_argument(
        "-t",
        "--type",
        default="summary",
        choices=["summary", "detailed", "json"],
        help="Output type (default: summary)",
    )
    compare.add_argument(
        "--include-unchanged",
        action="store_true",
        help="List unchanged resources in JSON output",
    )
    compare.set_defaults(handler=cmd_compare)

    filter_cmd = subparsers.add_parser(
        "filter",
        help="Filter a snapshot",
        description="Keep the resources of a snapshot that match the given filters",
    )
    filter_cmd.add_argument("snapshot", help="Snapshot file (.json, .yaml, .yml)")
    filter_cmd.add_argument("--filter-tag", action="append", default=[], metavar="EXPR",
                            help="KEY, KEY=VALUE, KEY~VALUE, KEY=/REGEX/ or KEY!=")
    filter_cmd.add_argument("--filter-regex", action="append", default=[], metavar="EXPR",
                            help="FIELD:/REGEX/")
    filter_cmd.add_argument("--filter-date", action="append", default=[], metavar="EXPR",
                            help="created:FROM..TO, created:>DATE, updated:<DATE, created:DATE")
    filter_cmd.add_argument("--filter-state", action="append", default=[], metavar="STATES",
                            help="Comma-separated states, e.g. running,stopped")
    filter_cmd.add_argument("--filter-property", action="append", default=[], metavar="EXPR",
                            help="PATH<op>VALUE with op one of = != > >= < <= ~ ^= $=")
    filter_cmd.add_argument("--filter-cost", default=None, metavar="EXPR",
                            help="MIN..MAX, >MIN or <MAX (monthly)")
    filter_cmd.add_argument("--filter-type", action="append", default=[], metavar="TYPE",
                            help="Resource type (repeatable or comma-separated)")
    filter_cmd.add_argument("--filter-provider", action="append", default=[], metavar="PROVIDER",
                            help="Provider (repeatable or comma-separated)")
    filter_cmd.add_argument("--logic", default="AND", choices=["AND", "OR"],
                            help="Combine filters with AND (default) or OR")
    _add_output_arguments(filter_cmd, default_format="json")
    filter_cmd.set_defaults(handler=cmd_filter)

    graph = subparsers.add_parser(
        "graph",
        help="Export the relationship graph of a snapshot",
        description="Export resources and relationships, optionally restricted to some types",
    )
    graph.add_argument("snapshot", help="Snapshot file (.json, .yaml, .yml)")
    graph.add_argument("--type", action="append", default=[], metavar="TYPE",
                       help="Keep only this resource type (repeatable)")
    _add_output_arguments(graph, default_format="dot")
    graph.set_defaults(handler=cmd_graph)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: INSPECTOR_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: INSPECTOR_PORT)")
    serve.set_defaults(handler=cmd_serve)

    return parser


def _add_output_arguments(parser: argparse.ArgumentParser, default_format: str) -> None:
    parser.add_argument("--format", default=default_format, choices=list_formats(),
                        help=f"Output format (default: {default_format})")
    parser.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    parser.add_argument("--compact", action="store_true", help="Disable pretty printing")
    parser.add_argument("--include-raw", action="store_true", help="Keep raw source payloads")


def main(argv: Optional[list[str]] = None, out: Optional[TextIO] = None) -> int:
    """
    Run the CLI.

    Returns:
        0 on success, 2 on invalid input (bad snapshot, filter or format)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    out = out or sys.stdout

    configure_logging(settings(), level=args.log_level)

    try:
        return args.handler(args, out)
    except InspectorError as e:
        logger.debug(f"Command {args.command} failed: {e.message}")
        sys.stderr.write(f"Error: {e.message}\n")
        return EXIT_INPUT_ERROR
