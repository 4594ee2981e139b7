"""Durable destinations for published report documents.

Exports:
    Sink           -- Abstract base for all destinations.
    S3Sink         -- Object-store destination (boto3).
    FilesystemSink -- Local directory destination.
    SinkWriter     -- Fans one stream out to every configured sink.
    build_sink_writer -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kubereports.sinks.base import Artifact, ArtifactKind, Sink, SinkError
from kubereports.sinks.filesystem import FilesystemSink
from kubereports.sinks.manager import SinkWriter, WriteOutcome
from kubereports.sinks.s3 import S3Sink

if TYPE_CHECKING:
    from kubereports.models.config import ExporterConfig

_log = structlog.get_logger(component="sinks")

__all__ = [
    "Artifact",
    "ArtifactKind",
    "FilesystemSink",
    "S3Sink",
    "Sink",
    "SinkError",
    "SinkWriter",
    "WriteOutcome",
    "build_sink_writer",
]


def build_sink_writer(config: ExporterConfig) -> SinkWriter:
    """Build a SinkWriter with S3 first (primary) and the filesystem second.

    Raises:
        ValueError: if no sink is enabled.
        OSError:    if the filesystem output directory cannot be created.
    """
    sinks: list[Sink] = []

    if config.s3.enabled:
        sinks.append(
            S3Sink(
                bucket=config.s3.bucket,
                cluster=config.cluster_name,
                prefix=config.s3.prefix,
                region=config.s3.region or None,
                endpoint_url=config.s3.endpoint_url or None,
            )
        )
        _log.info("s3_sink_enabled", bucket=config.s3.bucket, prefix=config.s3.prefix)
    else:
        _log.info("s3_sink_disabled", reason="S3_BUCKET not set")

    if config.filesystem.enabled:
        fs_sink = FilesystemSink(config.filesystem.output_dir, config.cluster_name)
        fs_sink.prepare()
        sinks.append(fs_sink)
        _log.info("filesystem_sink_enabled", root=config.filesystem.output_dir)

    return SinkWriter(sinks)
