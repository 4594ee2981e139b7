"""Core data structures for kubereports."""

from kubereports.models.config import ExporterConfig
from kubereports.models.reports import (
    ClusterIndex,
    CollectionResult,
    CollectionRun,
    CycleMetadata,
    ReportItem,
    ReportPage,
    ReportResource,
    summarize_results,
)

__all__ = [
    "ClusterIndex",
    "CollectionResult",
    "CollectionRun",
    "CycleMetadata",
    "ExporterConfig",
    "ReportItem",
    "ReportPage",
    "ReportResource",
    "summarize_results",
]
