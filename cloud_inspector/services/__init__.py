"""Services for the Cloud Resource Inspector."""

from .cost_service import CostEstimator, EstimatorRegistry, FixedRateEstimator
from .drift_service import compare_resources, generate_drift_report
from .export_service import (
    DOTExporter,
    Exporter,
    JSONExporter,
    YAMLExporter,
    get_exporter,
    list_formats,
    register_exporter,
)
from .filter_service import FilterService
from .graph_service import ResourceGraph
from .snapshot_service import (
    detect_format,
    dump_snapshot,
    dumps_snapshot,
    load_snapshot,
    loads_snapshot,
    snapshot_from_data,
)

__all__ = [
    "CostEstimator",
    "EstimatorRegistry",
    "FixedRateEstimator",
    "compare_resources",
    "generate_drift_report",
    "Exporter",
    "JSONExporter",
    "YAMLExporter",
    "DOTExporter",
    "get_exporter",
    "list_formats",
    "register_exporter",
    "FilterService",
    "ResourceGraph",
    "detect_format",
    "load_snapshot",
    "loads_snapshot",
    "dump_snapshot",
    "dumps_snapshot",
    "snapshot_from_data",
]
