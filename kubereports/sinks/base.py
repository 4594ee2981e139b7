"""Sink abstraction and logical artifact paths.

Every artifact the exporter publishes is addressed by an ``Artifact`` value;
each sink translates it into its own physical location. Writes replace any
existing artifact at that location.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import BinaryIO

INDEX_NAME = "index.json"
METADATA_NAME = "metadata.json"
HISTORY_DIR = "history"


class ArtifactKind(StrEnum):
    """Where an artifact lives in the cluster's path space."""

    REPORT = "report"
    INDEX = "index"
    SNAPSHOT = "snapshot"


@dataclass(frozen=True)
class Artifact:
    """Logical path of one published file.

    ``label`` is the cycle timestamp and only applies to snapshots.
    """

    kind: ArtifactKind
    name: str
    label: str = ""

    @classmethod
    def report(cls, document_name: str) -> Artifact:
        return cls(ArtifactKind.REPORT, document_name)

    @classmethod
    def index(cls) -> Artifact:
        return cls(ArtifactKind.INDEX, INDEX_NAME)

    @classmethod
    def snapshot(cls, label: str, name: str) -> Artifact:
        return cls(ArtifactKind.SNAPSHOT, name, label)

    def cluster_relative(self) -> str:
        """Path below the cluster directory, shared by both sink layouts."""
        if self.kind is ArtifactKind.SNAPSHOT:
            return f"{HISTORY_DIR}/{self.label}/{self.name}"
        return self.name


class SinkError(Exception):
    """Raised by a sink when an artifact could not be written."""

    def __init__(self, sink: str, location: str, cause: Exception) -> None:
        super().__init__(f"{sink}: failed to write {location}: {cause}")
        self.sink = sink
        self.location = location
        self.cause = cause


class Sink(ABC):
    """Abstract base class for durable destinations."""

    @property
    @abstractmethod
    def sink_name(self) -> str:
        """Short identifier used in logs, metrics and write outcomes."""

    @abstractmethod
    def location(self, artifact: Artifact) -> str:
        """Physical location (object key or file path) for *artifact*."""

    @abstractmethod
    async def write(self, artifact: Artifact, stream: BinaryIO) -> str:
        """Copy *stream* (positioned at its start) to the artifact's location.

        Returns:
            The location written.

        Raises:
            SinkError: the write did not complete.
        """
