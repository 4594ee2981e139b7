"""Report resource descriptors and per-cycle result structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Raw report item exactly as returned by the API. Never inspected.
ReportItem = dict[str, Any]

REPORT_API_GROUP = "aquasecurity.github.io"
REPORT_API_VERSION = "v1alpha1"


@dataclass(frozen=True)
class ReportResource:
    """One collectible report kind.

    ``name`` is the plural resource name used for API addressing,
    ``file_name`` the stem of every artifact written for it.
    """

    name: str
    kind: str
    file_name: str
    group: str = REPORT_API_GROUP
    version: str = REPORT_API_VERSION
    enabled: bool = True

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"

    @property
    def document_name(self) -> str:
        return f"{self.file_name}.json"


@dataclass(frozen=True)
class ReportPage:
    """One page of a paginated list call."""

    items: list[ReportItem]
    continue_token: str = ""


@dataclass(frozen=True)
class CollectionResult:
    """Outcome of collecting one resource type.

    Exactly one of ``count`` (success) and ``error`` (failure) is meaningful.
    ``not_found`` marks a zero-count success for kinds the cluster lacks.
    """

    resource: str
    count: int = 0
    error: str | None = None
    not_found: bool = False
    skipped: int = 0
    failed_sinks: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls,
        resource: str,
        count: int,
        *,
        skipped: int = 0,
        failed_sinks: dict[str, str] | None = None,
    ) -> CollectionResult:
        return cls(resource=resource, count=count, skipped=skipped, failed_sinks=failed_sinks or {})

    @classmethod
    def missing(cls, resource: str) -> CollectionResult:
        return cls(resource=resource, count=0, not_found=True)

    @classmethod
    def failure(cls, resource: str, error: str) -> CollectionResult:
        return cls(resource=resource, error=error)


def summarize_results(results: list[CollectionResult]) -> dict[str, int]:
    """Map resource name to item count for every successful result.

    Failed resources are absent. Later results for the same resource win.
    """
    return {r.resource: r.count for r in results if r.ok}


@dataclass
class CollectionRun:
    """One collection cycle. Discarded once its index has been published."""

    started_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    results: list[CollectionResult] = field(default_factory=list)
    finished_at: datetime | None = None
    cancelled: bool = False

    @property
    def label(self) -> str:
        """Timestamp label used for history snapshot paths."""
        return self.started_at.strftime("%Y%m%d-%H%M%S")

    @property
    def collection_stats(self) -> dict[str, int]:
        return summarize_results(self.results)

    @property
    def failures(self) -> dict[str, str]:
        return {r.resource: r.error for r in self.results if r.error is not None}

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


def format_timestamp(ts: datetime) -> str:
    """RFC 3339 UTC timestamp with second precision and a ``Z`` suffix."""
    return ts.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class ClusterIndex:
    """Summary of the most recent cycle, overwritten at ``<cluster>/index.json``."""

    cluster: str
    last_updated: datetime
    collection_stats: dict[str, int]

    def to_dict(self) -> dict[str, object]:
        return {
            "cluster": self.cluster,
            "lastUpdated": format_timestamp(self.last_updated),
            "collectionStats": dict(self.collection_stats),
        }


@dataclass(frozen=True)
class CycleMetadata:
    """Timestamp-qualified record of one cycle, written only when snapshots are on."""

    cluster: str
    timestamp: str
    collected_at: datetime
    report_types: list[str]
    collection_stats: dict[str, int]

    def to_dict(self) -> dict[str, object]:
        return {
            "cluster": self.cluster,
            "timestamp": self.timestamp,
            "collectedAt": format_timestamp(self.collected_at),
            "reportTypes": list(self.report_types),
            "collectionStats": dict(self.collection_stats),
        }
