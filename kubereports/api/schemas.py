"""Response models for the probe/status API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"


class CycleStatus(BaseModel):
    """Outcome of the most recent collection cycle."""

    started_at: str = Field(serialization_alias="startedAt")
    last_updated: str | None = Field(default=None, serialization_alias="lastUpdated")
    duration_seconds: float = Field(serialization_alias="durationSeconds")
    collection_stats: dict[str, int] = Field(serialization_alias="collectionStats")
    failures: dict[str, str] = Field(default_factory=dict)
    cancelled: bool = False


class StatusResponse(BaseModel):
    cluster: str
    version: str
    state: str
    cycles_completed: int = Field(serialization_alias="cyclesCompleted")
    interval_seconds: float = Field(serialization_alias="intervalSeconds")
    sinks: list[str]
    last_cycle: CycleStatus | None = Field(default=None, serialization_alias="lastCycle")
