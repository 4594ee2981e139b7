"""Fan-out writer over every configured sink.

Sinks are attempted in order and independently: a failure in one never
prevents the attempt at the next. The first sink is the primary one; an
artifact counts as published when the primary write succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO

import structlog

from kubereports.observability.metrics import sink_failures_total
from kubereports.sinks.base import Artifact, Sink, SinkError

_log = structlog.get_logger(component="sinks.manager")


@dataclass
class WriteOutcome:
    """Per-sink result of one artifact write."""

    primary: str
    written: dict[str, str] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.primary in self.written


class SinkWriter:
    """Writes one stream to every sink, rewinding it before each write."""

    def __init__(self, sinks: list[Sink]) -> None:
        if not sinks:
            raise ValueError("at least one sink is required")
        self._sinks = list(sinks)

    @property
    def sinks(self) -> list[Sink]:
        return list(self._sinks)

    @property
    def primary(self) -> Sink:
        return self._sinks[0]

    async def write(self, artifact: Artifact, stream: BinaryIO) -> WriteOutcome:
        outcome = WriteOutcome(primary=self.primary.sink_name)
        for sink in self._sinks:
            stream.seek(0)
            try:
                location = await sink.write(artifact, stream)
            except SinkError as exc:
                outcome.failures[sink.sink_name] = str(exc)
                sink_failures_total.labels(sink=sink.sink_name).inc()
                _log.warning(
                    "sink_write_failed",
                    sink=sink.sink_name,
                    artifact=artifact.name,
                    kind=artifact.kind.value,
                    error=str(exc.cause),
                )
                continue
            outcome.written[sink.sink_name] = location
            _log.debug("sink_write_ok", sink=sink.sink_name, location=location)
        return outcome
