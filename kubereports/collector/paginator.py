"""Paginated, bounded-memory collection of one report resource type.

Items are pulled one page at a time and encoded straight into a scratch file,
so memory use is bounded by the page size rather than the result set. The
finished document is then streamed from the scratch file to every sink.
"""

from __future__ import annotations

import json
import tempfile
from typing import IO

from kubereports.collector.lister import ListError, ReportLister, ResourceNotFoundError
from kubereports.models.reports import CollectionResult, ReportResource
from kubereports.observability.logging import get_logger
from kubereports.observability.metrics import items_skipped_total, list_requests_total
from kubereports.sinks.base import Artifact
from kubereports.sinks.manager import SinkWriter

_log = get_logger("collector.paginator")

DEFAULT_PAGE_SIZE = 20

_ITEM_SEPARATOR = b",\n"


def document_header(api_version: str) -> bytes:
    return ('{\n  "apiVersion": ' + json.dumps(api_version) + ',\n  "items": [\n').encode("utf-8")


DOCUMENT_FOOTER = b"\n  ]\n}\n"


def encode_item(item: object) -> bytes:
    """Encode one report item as compact JSON.

    Raises:
        TypeError, ValueError: the item is not JSON-serialisable.
    """
    return json.dumps(item, ensure_ascii=False, allow_nan=False, separators=(",", ":")).encode("utf-8")


class PaginatedCollector:
    """Collects one resource type per call and publishes it through a SinkWriter.

    Args:
        lister:      Control-plane page source.
        writer:      Destination fan-out.
        page_size:   Maximum items per list call.
    """

    def __init__(
        self,
        lister: ReportLister,
        writer: SinkWriter,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._lister = lister
        self._writer = writer
        self._page_size = page_size if page_size > 0 else DEFAULT_PAGE_SIZE

    @property
    def page_size(self) -> int:
        return self._page_size

    async def collect(
        self,
        resource: ReportResource,
        snapshot_label: str | None = None,
    ) -> CollectionResult:
        """Collect *resource* and write its document to every sink.

        With *snapshot_label* set, the document is also written as a history
        snapshot for that cycle. Never raises for API, encoding or sink
        failures; they are returned as a failed CollectionResult. Unknown
        resource types yield a zero count and nothing is written.
        """
        log = _log.bind(resource=resource.name)
        with tempfile.TemporaryFile(prefix=f"{resource.file_name}-", suffix=".json") as scratch:
            try:
                count, skipped = await self._fill(resource, scratch)
            except ResourceNotFoundError:
                log.info("resource not found in cluster (CRD missing?)")
                return CollectionResult.missing(resource.name)
            except ListError as exc:
                log.warning("list failed", error=str(exc.cause))
                return CollectionResult.failure(resource.name, str(exc))
            except OSError as exc:
                log.warning("scratch file write failed", error=str(exc))
                return CollectionResult.failure(resource.name, f"scratch file: {exc}")

            log.info("collected", count=count, skipped=skipped)

            outcome = await self._writer.write(Artifact.report(resource.document_name), scratch)
            if not outcome.ok:
                error = outcome.failures.get(outcome.primary, "primary sink write failed")
                return CollectionResult.failure(resource.name, error)

            if snapshot_label:
                snap = await self._writer.write(
                    Artifact.snapshot(snapshot_label, resource.document_name), scratch
                )
                if snap.failures:
                    log.warning("snapshot write failed", failures=snap.failures)

        return CollectionResult.success(
            resource.name, count, skipped=skipped, failed_sinks=outcome.failures
        )

    async def _fill(self, resource: ReportResource, out: IO[bytes]) -> tuple[int, int]:
        """Page through *resource*, writing the complete document to *out*.

        Returns:
            (items written, items skipped because they failed to encode)
        """
        out.write(document_header(resource.api_version))
        count = 0
        skipped = 0
        continue_token = ""

        while True:
            list_requests_total.labels(resource=resource.name).inc()
            page = await self._lister.list_page(resource, self._page_size, continue_token)

            for item in page.items:
                try:
                    encoded = encode_item(item)
                except (TypeError, ValueError) as exc:
                    skipped += 1
                    items_skipped_total.labels(resource=resource.name).inc()
                    _log.warning("failed to encode item", resource=resource.name, error=str(exc))
                    continue
                if count:
                    out.write(_ITEM_SEPARATOR)
                out.write(encoded)
                count += 1

            continue_token = page.continue_token
            if not continue_token:
                break

        out.write(DOCUMENT_FOOTER)
        out.flush()
        return count, skipped
