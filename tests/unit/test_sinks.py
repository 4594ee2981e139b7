"""Tests for the S3 and filesystem sinks and the fan-out writer."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from kubereports.models.config import ExporterConfig, FilesystemConfig, S3Config
from kubereports.sinks import build_sink_writer
from kubereports.sinks.base import Artifact, ArtifactKind, SinkError
from kubereports.sinks.filesystem import FilesystemSink
from kubereports.sinks.manager import SinkWriter
from kubereports.sinks.s3 import S3Sink
from tests.fakes import MemorySink

_DOC = Artifact.report("vulnerability-reports.json")


class TestArtifact:
    def test_kinds(self) -> None:
        assert _DOC.kind is ArtifactKind.REPORT
        assert Artifact.index().name == "index.json"
        assert Artifact.snapshot("20260301-120000", "metadata.json").cluster_relative() == (
            "history/20260301-120000/metadata.json"
        )


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class TestFilesystemSink:
    def test_report_path_is_flat(self, tmp_path: Path) -> None:
        sink = FilesystemSink(tmp_path, "prod")
        assert sink.path_for(_DOC) == tmp_path / "prod-vulnerability-reports.json"

    def test_index_path_is_nested(self, tmp_path: Path) -> None:
        sink = FilesystemSink(tmp_path, "prod")
        assert sink.path_for(Artifact.index()) == tmp_path / "prod" / "index.json"

    async def test_write_replaces_existing_file(self, tmp_path: Path) -> None:
        sink = FilesystemSink(tmp_path, "prod")
        await sink.write(_DOC, io.BytesIO(b'{"items": [1]}'))
        location = await sink.write(_DOC, io.BytesIO(b'{"items": []}'))

        assert Path(location).read_bytes() == b'{"items": []}'
        assert sorted(p.name for p in tmp_path.iterdir()) == ["prod-vulnerability-reports.json"]

    async def test_write_creates_missing_directories(self, tmp_path: Path) -> None:
        sink = FilesystemSink(tmp_path / "deep" / "root", "prod")
        location = await sink.write(Artifact.snapshot("20260301-120000", "metadata.json"), io.BytesIO(b"{}"))
        assert Path(location).read_bytes() == b"{}"

    async def test_unwritable_root_raises_sink_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        sink = FilesystemSink(blocker, "prod")
        with pytest.raises(SinkError) as excinfo:
            await sink.write(Artifact.index(), io.BytesIO(b"{}"))
        assert excinfo.value.sink == "filesystem"

    def test_prepare_creates_cluster_dir(self, tmp_path: Path) -> None:
        FilesystemSink(tmp_path / "out", "prod").prepare()
        assert (tmp_path / "out" / "prod").is_dir()


# ---------------------------------------------------------------------------
# S3
# ---------------------------------------------------------------------------


class TestS3Sink:
    async def test_put_object_key_and_content_type(self) -> None:
        client = MagicMock()
        sink = S3Sink(bucket="reports", cluster="prod", prefix="vuln", client=client)
        location = await sink.write(_DOC, io.BytesIO(b"{}"))

        assert location == "s3://reports/vuln/prod/vulnerability-reports.json"
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "reports"
        assert kwargs["Key"] == "vuln/prod/vulnerability-reports.json"
        assert kwargs["ContentType"] == "application/json"
        assert kwargs["Body"].read() == b"{}"

    def test_empty_prefix(self) -> None:
        sink = S3Sink(bucket="reports", cluster="prod", prefix="", client=MagicMock())
        assert sink.location(Artifact.index()) == "prod/index.json"

    def test_snapshot_key(self) -> None:
        sink = S3Sink(bucket="reports", cluster="prod", prefix="vuln/", client=MagicMock())
        assert sink.location(Artifact.snapshot("20260301-120000", "x.json")) == (
            "vuln/prod/history/20260301-120000/x.json"
        )

    async def test_client_error_becomes_sink_error(self) -> None:
        client = MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        sink = S3Sink(bucket="reports", cluster="prod", client=client)
        with pytest.raises(SinkError) as excinfo:
            await sink.write(_DOC, io.BytesIO(b"{}"))
        assert excinfo.value.sink == "s3"

    async def test_connection_error_becomes_sink_error(self) -> None:
        client = MagicMock()
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.example")
        sink = S3Sink(bucket="reports", cluster="prod", client=client)
        with pytest.raises(SinkError):
            await sink.write(_DOC, io.BytesIO(b"{}"))

    def test_empty_bucket_rejected(self) -> None:
        with pytest.raises(ValueError):
            S3Sink(bucket="", cluster="prod", client=MagicMock())

    def test_default_client_uses_region_and_endpoint(self) -> None:
        with patch("kubereports.sinks.s3.boto3.client") as factory:
            S3Sink(bucket="reports", cluster="prod", region="eu-west-1", endpoint_url="http://minio:9000")
        factory.assert_called_once_with("s3", region_name="eu-west-1", endpoint_url="http://minio:9000")


# ---------------------------------------------------------------------------
# SinkWriter
# ---------------------------------------------------------------------------


class TestSinkWriter:
    async def test_every_sink_gets_full_stream(self) -> None:
        a, b = MemorySink("a"), MemorySink("b")
        stream = io.BytesIO(b"payload")
        stream.seek(3)
        outcome = await SinkWriter([a, b]).write(_DOC, stream)

        assert outcome.ok
        assert a.objects[_DOC.name] == b"payload"
        assert b.objects[_DOC.name] == b"payload"

    async def test_failure_does_not_stop_next_sink(self) -> None:
        a, b = MemorySink("a", fail=True), MemorySink("b")
        outcome = await SinkWriter([a, b]).write(_DOC, io.BytesIO(b"x"))

        assert not outcome.ok
        assert set(outcome.failures) == {"a"}
        assert set(outcome.written) == {"b"}

    async def test_ok_tracks_primary_only(self) -> None:
        outcome = await SinkWriter([MemorySink("a"), MemorySink("b", fail=True)]).write(_DOC, io.BytesIO(b"x"))
        assert outcome.ok
        assert outcome.primary == "a"

    def test_requires_a_sink(self) -> None:
        with pytest.raises(ValueError):
            SinkWriter([])


class TestBuildSinkWriter:
    def test_filesystem_only_never_builds_s3_client(self, tmp_path: Path) -> None:
        config = ExporterConfig(cluster_name="prod", filesystem=FilesystemConfig(output_dir=str(tmp_path)))
        with patch("kubereports.sinks.s3.boto3.client") as factory:
            writer = build_sink_writer(config)
        factory.assert_not_called()
        assert [s.sink_name for s in writer.sinks] == ["filesystem"]
        assert (tmp_path / "prod").is_dir()

    def test_s3_is_primary_when_both_configured(self, tmp_path: Path) -> None:
        config = ExporterConfig(
            cluster_name="prod",
            s3=S3Config(bucket="reports"),
            filesystem=FilesystemConfig(output_dir=str(tmp_path)),
        )
        with patch("kubereports.sinks.s3.boto3.client"):
            writer = build_sink_writer(config)
        assert [s.sink_name for s in writer.sinks] == ["s3", "filesystem"]
        assert writer.primary.sink_name == "s3"
