"""FastAPI application factory for the exporter's probe/status API.

Usage::

    from kubereports.api.app import create_app

    app = create_app(scheduler=scheduler, config=config, sinks=["s3"])

Routes:
    GET /health   liveness probe
    GET /status   last cycle summary
    GET /metrics  Prometheus exposition
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from kubereports.api.schemas import CycleStatus, HealthResponse, StatusResponse
from kubereports.models.reports import format_timestamp

_log = structlog.get_logger(component="api.app")


def create_app(
    scheduler: Any,
    config: Any = None,
    sinks: list[str] | None = None,
) -> FastAPI:
    """Create the probe/status application.

    Args:
        scheduler: CollectionScheduler whose state and last cycle are reported.
        config:    ExporterConfig, used for the cluster name.
        sinks:     Names of the configured sinks.
    """
    from kubereports import __version__

    cluster = getattr(config, "cluster_name", "") if config is not None else ""

    app = FastAPI(
        title="kubereports",
        summary="Trivy report exporter status API",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.scheduler = scheduler

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse()

    @app.get("/status", response_model=StatusResponse, response_model_by_alias=True)
    async def status() -> StatusResponse:
        sched = app.state.scheduler
        orchestrator = sched.orchestrator
        run = orchestrator.last_run
        index = orchestrator.last_index

        last_cycle: CycleStatus | None = None
        if run is not None:
            last_cycle = CycleStatus(
                started_at=format_timestamp(run.started_at),
                last_updated=format_timestamp(index.last_updated) if index is not None else None,
                duration_seconds=run.duration_seconds,
                collection_stats=run.collection_stats,
                failures=run.failures,
                cancelled=run.cancelled,
            )

        return StatusResponse(
            cluster=cluster,
            version=__version__,
            state=str(sched.state),
            cycles_completed=sched.cycles_completed,
            interval_seconds=sched.interval_seconds,
            sinks=list(sinks or []),
            last_cycle=last_cycle,
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    _log.debug("api app created", cluster=cluster)
    return app
