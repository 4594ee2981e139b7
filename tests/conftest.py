"""Shared fixtures for kubereports tests."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from kubereports.models.config import CollectionConfig, ExporterConfig, FilesystemConfig, S3Config
from kubereports.models.reports import ReportResource
from kubereports.sinks.manager import SinkWriter
from tests.fakes import MemorySink

VULNS = ReportResource("vulnerabilityreports", "VulnerabilityReport", "vulnerability-reports")
AUDITS = ReportResource("configauditreports", "ConfigAuditReport", "config-audit-reports")
SECRETS = ReportResource("exposedsecretreports", "ExposedSecretReport", "exposed-secret-reports")

FIXED_NOW = datetime(2026, 3, 1, 12, 30, 45, tzinfo=UTC)


@pytest.fixture()
def exporter_config() -> ExporterConfig:
    return ExporterConfig(
        cluster_name="test-cluster",
        s3=S3Config(bucket="reports-bucket", prefix="vuln"),
        collection=CollectionConfig(page_size=2, interval_seconds=300.0),
    )


@pytest.fixture()
def fs_config(tmp_path) -> ExporterConfig:
    return ExporterConfig(
        cluster_name="test-cluster",
        filesystem=FilesystemConfig(output_dir=str(tmp_path / "out")),
        collection=CollectionConfig(page_size=2, interval_seconds=300.0),
    )


@pytest.fixture()
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture()
def writer(memory_sink: MemorySink) -> SinkWriter:
    return SinkWriter([memory_sink])
