"""S3 object-store sink.

Objects are keyed ``{prefix}/{cluster}/{name}`` and overwritten on every write
(last writer wins; bucket versioning is not relied upon).
"""

from __future__ import annotations

import asyncio
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from kubereports.sinks.base import Artifact, Sink, SinkError

CONTENT_TYPE = "application/json"


class S3Sink(Sink):
    """Uploads artifacts with ``put_object``.

    Args:
        bucket:       Target bucket.
        cluster:      Cluster identifier, second key segment.
        prefix:       Leading key segment (e.g. ``vuln``). May be empty.
        region:       AWS region for the default client.
        endpoint_url: Endpoint override for S3-compatible stores.
        client:       Pre-built boto3 S3 client (tests, custom sessions).
    """

    def __init__(
        self,
        bucket: str,
        cluster: str,
        prefix: str = "",
        region: str | None = None,
        endpoint_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("S3 bucket must not be empty")
        self.bucket = bucket
        self.cluster = cluster
        self.prefix = prefix.strip("/")

        if client is not None:
            self._client = client
        else:
            client_kwargs: dict[str, Any] = {}
            if region:
                client_kwargs["region_name"] = region
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            self._client = boto3.client("s3", **client_kwargs)

    @property
    def sink_name(self) -> str:
        return "s3"

    def base_path(self) -> str:
        if self.prefix:
            return f"{self.prefix}/{self.cluster}"
        return self.cluster

    def location(self, artifact: Artifact) -> str:
        return f"{self.base_path()}/{artifact.cluster_relative()}"

    async def write(self, artifact: Artifact, stream: BinaryIO) -> str:
        key = self.location(artifact)
        try:
            # boto3 is blocking; keep the event loop free for signal handling.
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=stream,
                ContentType=CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SinkError(self.sink_name, f"s3://{self.bucket}/{key}", exc) from exc
        return f"s3://{self.bucket}/{key}"
