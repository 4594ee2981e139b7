"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from kubereports.models.config import (
    APIConfig,
    CollectionConfig,
    ExporterConfig,
    FilesystemConfig,
    LogConfig,
    S3Config,
)
from kubereports.observability.logging import get_logger

_log = get_logger("config")

DEFAULT_INTERVAL_SECONDS = 300.0
DEFAULT_PAGE_SIZE = 20

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(ValueError):
    """Raised when the environment cannot produce a usable configuration."""


def parse_duration(value: str) -> float:
    """Parse a Go-style duration (``90s``, ``5m``, ``1h30m``) into seconds.

    Raises:
        ValueError: if *value* is not a positive duration.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    if total <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return total


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config(environ: Mapping[str, str] | None = None) -> ExporterConfig:
    """Load configuration from the process environment (or *environ*).

    Empty variables count as unset.

    Raises:
        ConfigError: if neither ``S3_BUCKET`` nor ``FS_OUTPUT_DIR`` is set.
        ValueError:  if ``LOG_LEVEL`` is not a known level.
    """
    env = os.environ if environ is None else environ

    def _env(key: str, default: str = "") -> str:
        return env.get(key) or default

    def _env_bool(key: str, default: bool = False) -> bool:
        return _env(key, str(default).lower()).lower() in ("true", "1", "yes")

    def _env_interval(key: str) -> float:
        raw = _env(key, "5m")
        try:
            return parse_duration(raw)
        except ValueError:
            _log.warning("invalid duration, using default", key=key, value=raw, default="5m")
            return DEFAULT_INTERVAL_SECONDS

    def _env_page_size(key: str) -> int:
        try:
            val = int(_env(key, str(DEFAULT_PAGE_SIZE)))
        except ValueError:
            return DEFAULT_PAGE_SIZE
        return val if val > 0 else DEFAULT_PAGE_SIZE

    def _env_port(key: str, default: int) -> int:
        raw = _env(key, str(default))
        try:
            val = int(raw)
        except ValueError:
            _log.warning("invalid port, using default", key=key, value=raw, default=default)
            return default
        return min(max(val, 1024), 65535)

    config = ExporterConfig(
        cluster_name=_env("CLUSTER_NAME", "dev"),
        s3=S3Config(
            bucket=_env("S3_BUCKET"),
            prefix=_env("S3_PREFIX", "vuln").strip("/"),
            region=_env("AWS_REGION", "eu-west-1"),
            endpoint_url=_env("S3_ENDPOINT_URL"),
        ),
        filesystem=FilesystemConfig(output_dir=_env("FS_OUTPUT_DIR")),
        collection=CollectionConfig(
            page_size=_env_page_size("PAGE_SIZE"),
            interval_seconds=_env_interval("SYNC_INTERVAL"),
            snapshots_enabled=_env_bool("SNAPSHOTS_ENABLED", False),
        ),
        api=APIConfig(
            enabled=_env_bool("API_ENABLED", True),
            port=_env_port("API_PORT", 8080),
        ),
        log=LogConfig(level=_validate_log_level(_env("LOG_LEVEL", "info"))),
    )

    if not config.s3.enabled and not config.filesystem.enabled:
        raise ConfigError("Either S3_BUCKET or FS_OUTPUT_DIR environment variable is required")

    return config
