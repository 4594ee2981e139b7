"""Collection orchestrator: one full pass over the report catalog.

Resources are collected sequentially in catalog order. A failing resource is
recorded and the cycle moves on; the cluster index is always published with
whatever was collected. No exception escapes ``run_cycle``.
"""

from __future__ import annotations

import asyncio
import io
import json
from collections.abc import Callable
from datetime import UTC, datetime

from kubereports.catalog import REPORT_RESOURCES, enabled_resources, report_type_names
from kubereports.collector.paginator import PaginatedCollector
from kubereports.models.config import ExporterConfig
from kubereports.models.reports import (
    ClusterIndex,
    CollectionResult,
    CollectionRun,
    CycleMetadata,
    ReportResource,
)
from kubereports.observability.logging import get_logger
from kubereports.observability.metrics import (
    cycle_duration_seconds,
    cycles_total,
    last_cycle_timestamp_seconds,
    resource_failures_total,
    resource_items,
)
from kubereports.sinks.base import METADATA_NAME, Artifact
from kubereports.sinks.manager import SinkWriter, WriteOutcome

_log = get_logger("orchestrator")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def encode_json(payload: dict[str, object]) -> bytes:
    """Indented, key-sorted JSON used for the index and cycle metadata."""
    return (json.dumps(payload, indent=2, sort_keys=True) + "\n").encode("utf-8")


class CollectionOrchestrator:
    """Drives collection cycles for one cluster.

    Args:
        config:    Exporter configuration (cluster name, snapshot toggle).
        collector: Per-resource collector.
        writer:    Sink fan-out used for the index and cycle metadata.
        catalog:   Report resources; disabled entries are skipped.
        clock:     Source of "now", injectable for tests.
    """

    def __init__(
        self,
        config: ExporterConfig,
        collector: PaginatedCollector,
        writer: SinkWriter,
        catalog: tuple[ReportResource, ...] = REPORT_RESOURCES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._collector = collector
        self._writer = writer
        self._resources = enabled_resources(catalog)
        self._clock = clock
        self.last_run: CollectionRun | None = None
        self.last_index: ClusterIndex | None = None

    @property
    def resources(self) -> tuple[ReportResource, ...]:
        return self._resources

    async def run_cycle(self, stop_event: asyncio.Event | None = None) -> CollectionRun:
        """Run one cycle and publish the cluster index.

        If *stop_event* becomes set, no further resource is started; the index
        is still published, see ``build_index`` for skipped resources.
        """
        run = CollectionRun(started_at=self._clock())
        snapshot_label = run.label if self._config.collection.snapshots_enabled else None
        _log.info("collection cycle starting", cluster=self._config.cluster_name, label=run.label)

        for resource in self._resources:
            if stop_event is not None and stop_event.is_set():
                run.cancelled = True
                _log.info("shutdown requested, skipping remaining resources", next_resource=resource.name)
                break
            _log.debug("fetching", resource=resource.name)
            result = await self._collect_one(resource, snapshot_label)
            run.results.append(result)
            if result.ok:
                resource_items.labels(resource=result.resource).set(result.count)
            else:
                resource_failures_total.labels(resource=result.resource).inc()
                _log.warning("failed to collect", resource=result.resource, error=result.error)

        index = self.build_index(run)
        try:
            await self._publish_index(index)
            if snapshot_label:
                await self._publish_metadata(run, index)
        except Exception as exc:  # noqa: BLE001
            _log.error("unexpected error publishing cycle index", error=str(exc))

        run.finished_at = self._clock()
        self.last_run = run
        self.last_index = index

        cycles_total.inc()
        cycle_duration_seconds.observe(run.duration_seconds)
        last_cycle_timestamp_seconds.set(run.finished_at.timestamp())
        _log.info(
            "collection cycle complete",
            duration_seconds=round(run.duration_seconds, 3),
            collection_stats=run.collection_stats,
            failures=sorted(run.failures),
            cancelled=run.cancelled,
        )
        return run

    async def _collect_one(self, resource: ReportResource, snapshot_label: str | None) -> CollectionResult:
        try:
            return await self._collector.collect(resource, snapshot_label=snapshot_label)
        except Exception as exc:  # noqa: BLE001
            _log.error("unexpected collector error", resource=resource.name, error=str(exc))
            return CollectionResult.failure(resource.name, f"unexpected error: {exc}")

    def build_index(self, run: CollectionRun) -> ClusterIndex:
        """Index for *run*.

        Resources a cancelled run never reached keep their count from the
        previous index, since their previous documents are still published.
        """
        stats = run.collection_stats
        if run.cancelled and self.last_index is not None:
            attempted = {r.resource for r in run.results}
            for resource in self._resources:
                previous = self.last_index.collection_stats.get(resource.name)
                if resource.name not in attempted and previous is not None:
                    stats[resource.name] = previous
        return ClusterIndex(
            cluster=self._config.cluster_name,
            last_updated=self._clock(),
            collection_stats=stats,
        )

    async def _publish_index(self, index: ClusterIndex) -> WriteOutcome:
        outcome = await self._writer.write(Artifact.index(), io.BytesIO(encode_json(index.to_dict())))
        if outcome.failures:
            _log.warning("index publication incomplete", failures=outcome.failures)
        return outcome

    async def _publish_metadata(self, run: CollectionRun, index: ClusterIndex) -> WriteOutcome:
        metadata = CycleMetadata(
            cluster=self._config.cluster_name,
            timestamp=run.label,
            collected_at=index.last_updated,
            report_types=report_type_names(self._resources),
            collection_stats=run.collection_stats,
        )
        outcome = await self._writer.write(
            Artifact.snapshot(run.label, METADATA_NAME),
            io.BytesIO(encode_json(metadata.to_dict())),
        )
        if outcome.failures:
            _log.warning("cycle metadata snapshot incomplete", failures=outcome.failures)
        return outcome
