"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class S3Config:
    """Object-store sink configuration. An empty bucket disables the sink."""

    bucket: str = ""
    prefix: str = "vuln"
    region: str = "eu-west-1"
    endpoint_url: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.bucket)


@dataclass(frozen=True)
class FilesystemConfig:
    """Local filesystem sink configuration. An empty output_dir disables the sink."""

    output_dir: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.output_dir)


@dataclass(frozen=True)
class CollectionConfig:
    """Collection cycle configuration."""

    page_size: int = 20
    interval_seconds: float = 300.0
    snapshots_enabled: bool = False


@dataclass(frozen=True)
class APIConfig:
    """Probe/status API configuration."""

    enabled: bool = True
    port: int = 8080


@dataclass(frozen=True)
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass(frozen=True)
class ExporterConfig:
    """Top-level exporter configuration."""

    cluster_name: str = "dev"
    s3: S3Config = field(default_factory=S3Config)
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def summary(self) -> dict[str, object]:
        """Flat view used for the startup log line and the status endpoint."""
        return {
            "cluster": self.cluster_name,
            "bucket": self.s3.bucket,
            "prefix": self.s3.prefix,
            "region": self.s3.region,
            "fs_dir": self.filesystem.output_dir,
            "page_size": self.collection.page_size,
            "interval_seconds": self.collection.interval_seconds,
            "snapshots": self.collection.snapshots_enabled,
        }
