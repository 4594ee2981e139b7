"""Application bootstrap for kubereports.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → sinks → collector
              → orchestrator → scheduler → status API

Shutdown is graceful: the scheduler is asked to stop, the cycle in progress
finishes the resource it is writing, then the API server and the Kubernetes
client are closed.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

from kubereports.collector.lister import KubernetesReportLister, ReportLister
from kubereports.collector.paginator import PaginatedCollector
from kubereports.config import load_config
from kubereports.models.config import ExporterConfig
from kubereports.observability.logging import get_logger, setup_logging
from kubereports.orchestrator import CollectionOrchestrator
from kubereports.scheduler import CollectionScheduler
from kubereports.sinks import SinkWriter, build_sink_writer

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 120


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


async def load_kube_client_config() -> str:
    """Configure kubernetes-asyncio from the service account, else kubeconfig.

    Returns the source used (``in-cluster`` or ``kubeconfig``).
    """
    # Imported lazily: some kubernetes-asyncio versions probe the cluster on import.
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    try:
        # load_incluster_config() is synchronous in kubernetes-asyncio
        k8s_config.load_incluster_config()
        return "in-cluster"
    except k8s_config.ConfigException:
        # load_kube_config() is async in kubernetes-asyncio
        await k8s_config.load_kube_config()
        return "kubeconfig"


def build_orchestrator(
    config: ExporterConfig,
    lister: ReportLister,
    writer: SinkWriter,
) -> CollectionOrchestrator:
    """Assemble collector and orchestrator from already-started dependencies."""
    collector = PaginatedCollector(lister, writer, page_size=config.collection.page_size)
    return CollectionOrchestrator(config, collector, writer)


class ExporterApp:
    """Application root. Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that never started or already stopped.
    """

    def __init__(self, config: ExporterConfig | None = None) -> None:
        self.config = config
        self._lister: KubernetesReportLister | None = None
        self._writer: SinkWriter | None = None
        self._orchestrator: CollectionOrchestrator | None = None
        self._scheduler: CollectionScheduler | None = None
        self._scheduler_task: asyncio.Task[None] | None = None
        self._rest_server: Any = None
        self._rest_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._running = False
        self._stopped = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises:
            ConfigError:     no sink is configured.
            ValueError:      LOG_LEVEL is not a known level.
            _ComponentError: a mandatory component could not start.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, cluster=self.config.cluster_name)
        self._log = get_logger("app")
        self._log.info("kubereports starting", version=_kubereports_version(), **self.config.summary())

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Sinks ----------------------------------------------------
        self._start_sinks()

        # --- 5. Collector, orchestrator, scheduler -----------------------
        assert self._lister is not None
        assert self._writer is not None
        self._orchestrator = build_orchestrator(self.config, self._lister, self._writer)
        self._scheduler = CollectionScheduler(
            self._orchestrator,
            interval_seconds=self.config.collection.interval_seconds,
            stop_event=self._stop_event,
        )

        # --- 6. Status API (optional) ------------------------------------
        await self._start_rest()

        self._scheduler_task = asyncio.create_task(self._scheduler.run(), name="collection-scheduler")
        self._running = True
        self._log.info("kubereports started")

    async def _start_k8s_client(self) -> None:
        assert self._log is not None
        self._log.debug("starting k8s client")
        try:
            source = await load_kube_client_config()
            self._lister = KubernetesReportLister()
            self._log.info("k8s client configured", source=source)
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _start_sinks(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            self._writer = build_sink_writer(self.config)
        except Exception as exc:
            raise _ComponentError("sinks", exc) from exc
        self._log.info("sinks ready", sinks=[s.sink_name for s in self._writer.sinks])

    async def _start_rest(self) -> None:
        """Start the uvicorn status server; failure is logged, not fatal."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.api.enabled:
            self._log.info("status api disabled (API_ENABLED=false)")
            return
        try:
            import uvicorn  # type: ignore[import-untyped]

            from kubereports.api import create_app

            assert self._writer is not None
            fastapi_app = create_app(
                scheduler=self._scheduler,
                config=self.config,
                sinks=[s.sink_name for s in self._writer.sinks],
            )
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            self._rest_task = asyncio.create_task(server.serve(), name="rest-server")
            self._rest_server = server
            self._log.info("status api started", port=self.config.api.port)
        except Exception as exc:
            self._log.warning("status api failed to start; continuing without it", error=str(exc))
            self._rest_server = None

    # ------------------------------------------------------------------
    # Running / shutdown
    # ------------------------------------------------------------------

    def request_stop(self) -> None:
        """Signal-safe stop request: the scheduler exits before its next cycle."""
        if self._log is not None and not self._stop_event.is_set():
            self._log.info("shutdown requested")
        self._stop_event.set()

    async def wait(self) -> None:
        """Block until the scheduler loop has exited."""
        if self._scheduler_task is not None:
            await asyncio.shield(self._scheduler_task)

    async def stop(self) -> None:
        """Stop the scheduler, then the API server and the Kubernetes client."""
        if self._stopped or (not self._running and self._log is None):
            return
        self._stopped = True

        log = self._log or get_logger("app")
        log.info("kubereports shutting down")
        self._running = False
        self._stop_event.set()

        if self._scheduler_task is not None and not self._scheduler_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._scheduler_task), timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("cycle did not finish within grace period; cancelling", timeout=_SHUTDOWN_GRACE_SECONDS)
                self._scheduler_task.cancel()
                await asyncio.gather(self._scheduler_task, return_exceptions=True)

        if self._rest_server is not None:
            self._rest_server.should_exit = True
        if self._rest_task is not None:
            await asyncio.gather(self._rest_task, return_exceptions=True)
            self._rest_task = None

        await self._stop_k8s_client()
        log.info("kubereports stopped")

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        lister, self._lister = self._lister, None
        if lister is None:
            return
        log = self._log or get_logger("app")
        try:
            await lister.close()
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))


def _kubereports_version() -> str:
    from kubereports import __version__

    return __version__


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


async def run_once(config: ExporterConfig | None = None) -> int:
    """Run a single collection cycle and return the number of failed resources.

    Raises:
        ConfigError:     no sink is configured.
        _ComponentError: the Kubernetes client or a sink could not start.
    """
    config = config or load_config()
    setup_logging(config.log.level, cluster=config.cluster_name)
    log = get_logger("app")
    try:
        await load_kube_client_config()
    except Exception as exc:
        raise _ComponentError("k8s_client", exc) from exc
    try:
        writer = build_sink_writer(config)
    except Exception as exc:
        raise _ComponentError("sinks", exc) from exc

    lister = KubernetesReportLister()
    orchestrator = build_orchestrator(config, lister, writer)
    try:
        run = await orchestrator.run_cycle()
    finally:
        await lister.close()
    log.info("single collection finished", failures=len(run.failures))
    return len(run.failures)


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = ExporterApp()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, app.request_stop)

    try:
        await app.start()
        await app.wait()
    except ValueError as exc:  # ConfigError included
        # Raised before logging was configured from the environment.
        setup_logging()
        log = get_logger("app")
        log.critical("fatal configuration error", error=str(exc))
        raise SystemExit(1) from exc
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc
    finally:
        await app.stop()
