"""Local filesystem sink.

Layout under the output root, as expected by the dashboard's data mount:

    <root>/<cluster>-<stem>.json             per-resource documents
    <root>/<cluster>/index.json              cluster index
    <root>/<cluster>/history/<ts>/<name>     optional snapshots

Files are written to a sibling temp file and renamed into place, so a reader
never sees a half-written document.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from kubereports.sinks.base import Artifact, ArtifactKind, Sink, SinkError


class FilesystemSink(Sink):
    """Writes artifacts below a local directory (typically a PVC mount)."""

    def __init__(self, root: str | Path, cluster: str) -> None:
        self.root = Path(root)
        self.cluster = cluster

    @property
    def sink_name(self) -> str:
        return "filesystem"

    def cluster_dir(self) -> Path:
        return self.root / self.cluster

    def path_for(self, artifact: Artifact) -> Path:
        if artifact.kind is ArtifactKind.REPORT:
            return self.root / f"{self.cluster}-{artifact.name}"
        return self.cluster_dir() / artifact.cluster_relative()

    def location(self, artifact: Artifact) -> str:
        return str(self.path_for(artifact))

    def prepare(self) -> None:
        """Create the output root and cluster directory."""
        self.cluster_dir().mkdir(parents=True, exist_ok=True)

    async def write(self, artifact: Artifact, stream: BinaryIO) -> str:
        dest = self.path_for(artifact)
        try:
            await asyncio.to_thread(_replace_file, dest, stream)
        except OSError as exc:
            raise SinkError(self.sink_name, str(dest), exc) from exc
        return str(dest)


def _replace_file(dest: Path, stream: BinaryIO) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
    try:
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(stream, out)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, dest)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
