"""Fixed-interval scheduler for collection cycles.

State machine: IDLE -> RUNNING -> IDLE -> ... -> STOPPED.

One cycle runs immediately on start, then one per interval tick. Cycles never
overlap. A stop request ends the wait for the next tick at once; a cycle in
progress finishes the resource it is writing and starts no new one.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum

from kubereports.observability.logging import get_logger
from kubereports.orchestrator import CollectionOrchestrator

_log = get_logger("scheduler")


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class CollectionScheduler:
    """Runs ``orchestrator.run_cycle`` on a fixed interval until stopped.

    Args:
        orchestrator:     Cycle driver.
        interval_seconds: Tick period. Ticks missed while a cycle overran are
                          dropped, as with a Go ticker.
        stop_event:       Shared shutdown flag; created when omitted.
    """

    def __init__(
        self,
        orchestrator: CollectionOrchestrator,
        interval_seconds: float,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._orchestrator = orchestrator
        self._interval = interval_seconds
        self._stop = stop_event or asyncio.Event()
        self.state = SchedulerState.IDLE
        self.cycles_completed = 0

    @property
    def orchestrator(self) -> CollectionOrchestrator:
        return self._orchestrator

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        """Ask the loop to exit before the next cycle (idempotent)."""
        self._stop.set()

    async def run(self) -> None:
        """Run until ``request_stop`` is called. Never exits because a cycle failed."""
        loop = asyncio.get_running_loop()
        try:
            if self._stop.is_set():
                return
            _log.info("running initial collection")
            await self._run_cycle()

            next_tick = loop.time() + self._interval
            _log.info("starting periodic collection", interval_seconds=self._interval)

            while not self._stop.is_set():
                delay = max(0.0, next_tick - loop.time())
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=delay)
                except TimeoutError:
                    pass
                if self._stop.is_set():
                    break

                _log.info("running scheduled collection")
                await self._run_cycle()

                next_tick += self._interval
                now = loop.time()
                if next_tick <= now:
                    # Overran one or more ticks: run once more right away, then realign.
                    next_tick = now
        finally:
            self.state = SchedulerState.STOPPED
            _log.info("scheduler stopped", cycles_completed=self.cycles_completed)

    async def _run_cycle(self) -> None:
        self.state = SchedulerState.RUNNING
        try:
            await self._orchestrator.run_cycle(self._stop)
        except Exception as exc:  # noqa: BLE001
            _log.error("collection cycle failed", error=str(exc))
        finally:
            self.cycles_completed += 1
            self.state = SchedulerState.IDLE
