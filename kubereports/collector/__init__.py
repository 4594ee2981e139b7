"""Collector package for kubereports.

Pulls Trivy report custom resources from the Kubernetes API and streams them
into per-resource JSON documents.

Submodules
----------
lister     -- ReportLister protocol and the kubernetes-asyncio implementation.
paginator  -- PaginatedCollector: bounded-memory paging into a scratch file.
"""

from kubereports.collector.lister import (
    KubernetesReportLister,
    ListError,
    ReportLister,
    ResourceNotFoundError,
)
from kubereports.collector.paginator import PaginatedCollector

__all__ = [
    "KubernetesReportLister",
    "ListError",
    "PaginatedCollector",
    "ReportLister",
    "ResourceNotFoundError",
]
