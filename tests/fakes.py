"""In-memory stand-ins for the control plane and the sinks.

Used by unit and integration tests so that no test touches a real cluster or
object store.
"""

from __future__ import annotations

import asyncio
from typing import BinaryIO

from kubereports.collector.lister import ListError, ResourceNotFoundError
from kubereports.models.reports import ReportItem, ReportPage, ReportResource
from kubereports.sinks.base import Artifact, Sink, SinkError


def make_report(name: str, namespace: str = "default", kind: str = "VulnerabilityReport", **extra: object) -> ReportItem:
    """Build a raw report object shaped like the Trivy operator's output."""
    item: ReportItem = {
        "apiVersion": "aquasecurity.github.io/v1alpha1",
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}"},
        "report": {
            "summary": {"criticalCount": 1, "highCount": 2, "mediumCount": 0, "lowCount": 3},
            "vulnerabilities": [{"vulnerabilityID": "CVE-2024-0001", "severity": "CRITICAL"}],
        },
    }
    item.update(extra)
    return item


class FakeLister:
    """Serves pre-loaded items in pages; continuation tokens are string offsets.

    Args:
        data:           resource name -> items.
        missing:        resource names that raise ResourceNotFoundError.
        failing:        resource name -> exception raised as ListError.
        fail_on_page:   resource name -> zero-based page index that raises ListError.
        on_call:        hook invoked with the resource name before each call.
    """

    def __init__(
        self,
        data: dict[str, list[ReportItem]] | None = None,
        missing: tuple[str, ...] = (),
        failing: dict[str, Exception] | None = None,
        fail_on_page: dict[str, int] | None = None,
        on_call: object = None,
    ) -> None:
        self.data = data or {}
        self.missing = set(missing)
        self.failing = failing or {}
        self.fail_on_page = fail_on_page or {}
        self.on_call = on_call
        self.calls: list[tuple[str, int, str]] = []
        self._pages_served: dict[str, int] = {}
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    def calls_for(self, resource: str) -> list[tuple[str, int, str]]:
        return [c for c in self.calls if c[0] == resource]

    async def list_page(self, resource: ReportResource, limit: int, continue_token: str = "") -> ReportPage:
        self.calls.append((resource.name, limit, continue_token))
        if callable(self.on_call):
            self.on_call(resource.name)
        await asyncio.sleep(0)

        if resource.name in self.missing:
            raise ResourceNotFoundError(resource.name)
        if resource.name in self.failing:
            raise ListError(resource.name, self.failing[resource.name])

        page_index = self._pages_served.get(resource.name, 0)
        self._pages_served[resource.name] = page_index + 1
        if self.fail_on_page.get(resource.name) == page_index:
            raise ListError(resource.name, ConnectionError("connection reset by peer"))

        items = self.data.get(resource.name, [])
        start = int(continue_token) if continue_token else 0
        end = start + limit
        token = str(end) if end < len(items) else ""
        return ReportPage(items=items[start:end], continue_token=token)


class MemorySink(Sink):
    """Keeps written artifacts in a dict keyed by cluster-relative path."""

    def __init__(self, name: str = "memory", fail: bool = False) -> None:
        self._name = name
        self.fail = fail
        self.objects: dict[str, bytes] = {}
        self.attempts: list[str] = []

    @property
    def sink_name(self) -> str:
        return self._name

    def location(self, artifact: Artifact) -> str:
        return artifact.cluster_relative()

    async def write(self, artifact: Artifact, stream: BinaryIO) -> str:
        location = self.location(artifact)
        self.attempts.append(location)
        if self.fail:
            raise SinkError(self._name, location, OSError("disk quota exceeded"))
        self.objects[location] = stream.read()
        return location
