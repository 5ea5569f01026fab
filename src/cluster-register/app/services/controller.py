"""Background controller loop.

Hosts the reconciler: keeps one schedule entry per Generator, runs a pass
when it is due, and reschedules it from the outcome. A successful pass is
repeated after its ``requeue_after`` delay; a failed one is retried with
exponential backoff. Passes for one Generator never overlap; passes for
different Generators run concurrently.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from shared.models import Generator, GeneratorStatus, PassResult
from shared.observability import get_logger

from ..clients.kube import KubeClient
from ..errors import ReconcileError
from .reconciler import Reconciler

logger = get_logger(__name__)


@dataclass
class _Schedule:
    namespace: str
    name: str
    next_run: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    failures: int = 0
    last_result: PassResult | None = None
    last_error: str | None = None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


class GeneratorController:
    """Schedules reconcile passes for every Generator in the cluster."""

    def __init__(
        self,
        kube: KubeClient,
        reconciler: Reconciler,
        resync_interval: float = 30.0,
        retry_base: float = 5.0,
        retry_max: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._kube = kube
        self.reconciler = reconciler
        self.resync_interval = resync_interval
        self.retry_base = retry_base
        self.retry_max = retry_max
        self._clock = clock
        self._schedules: dict[str, _Schedule] = {}
        self._next_resync = 0.0
        self._running = False
        self._wakeup = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._running

    def backoff(self, failures: int) -> float:
        """Delay before retrying after ``failures`` consecutive failed passes."""
        if failures <= 0:
            return 0.0
        return min(self.retry_base * 2 ** (failures - 1), self.retry_max)

    def _schedule_for(self, namespace: str, name: str) -> _Schedule:
        key = f"{namespace}/{name}"
        if key not in self._schedules:
            self._schedules[key] = _Schedule(namespace=namespace, name=name, next_run=self._clock())
        return self._schedules[key]

    async def resync(self) -> None:
        """Refresh the set of Generators from the API server."""
        generators = [Generator.from_k8s(obj) for obj in await self._kube.list_generators()]
        seen = set()
        for generator in generators:
            seen.add(generator.key)
            if generator.key not in self._schedules:
                logger.info("Tracking generator", generator=generator.key)
                self._schedule_for(generator.namespace, generator.name)

        for key in list(self._schedules):
            if key not in seen and not self._schedules[key].lock.locked():
                logger.info("Generator removed, no longer tracking", generator=key)
                del self._schedules[key]

        self._next_resync = self._clock() + self.resync_interval

    async def run_pass(self, namespace: str, name: str) -> PassResult:
        """Run one pass now, waiting for any pass already in flight."""
        schedule = self._schedule_for(namespace, name)

        async with schedule.lock:
            try:
                result = await self.reconciler.reconcile(namespace, name)
            except Exception as e:
                schedule.failures += 1
                schedule.last_error = str(e)
                if isinstance(e, ReconcileError) and e.result is not None:
                    schedule.last_result = e.result
                delay = self.backoff(schedule.failures)
                schedule.next_run = self._clock() + delay
                logger.error(
                    "Reconcile pass failed",
                    generator=schedule.key,
                    error=str(e),
                    failures=schedule.failures,
                    retry_in=delay,
                )
                raise

            schedule.failures = 0
            schedule.last_error = None
            schedule.last_result = result
            schedule.next_run = self._clock() + (result.requeue_after or self.resync_interval)
            return result

    async def trigger(self, namespace: str, name: str) -> PassResult:
        """Run a pass out of schedule, e.g. after a change notification."""
        try:
            return await self.run_pass(namespace, name)
        finally:
            # The loop skipped this schedule while it was locked
            self._wakeup.set()

    async def run_once(self) -> None:
        """Resync if due, then run every pass that is due."""
        now = self._clock()
        if now >= self._next_resync:
            await self.resync()

        due = [
            s for s in self._schedules.values() if s.next_run <= now and not s.lock.locked()
        ]
        if not due:
            return

        results = await asyncio.gather(
            *(self.run_pass(s.namespace, s.name) for s in due),
            return_exceptions=True,
        )
        for schedule, result in zip(due, results):
            # Cancellation and other non-Exception errors stop the loop
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            # Exceptions were logged and rescheduled by run_pass
            logger.debug("Pass finished", generator=schedule.key, ok=not isinstance(result, Exception))

    def _seconds_until_next(self) -> float:
        now = self._clock()
        # Locked schedules are rescheduled by the pass holding the lock
        deadlines = [self._next_resync] + [
            s.next_run for s in self._schedules.values() if not s.lock.locked()
        ]
        return max(0.0, min(deadlines) - now)

    async def run(self) -> None:
        """Run the controller loop until stopped or cancelled."""
        self._running = True
        logger.info("Starting generator controller")

        while self._running:
            try:
                await self.run_once()
                self._wakeup.clear()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self._seconds_until_next())
                except asyncio.TimeoutError:
                    pass
            except asyncio.CancelledError:
                logger.info("Generator controller cancelled")
                break
            except Exception as e:
                logger.error("Error in generator controller loop", error=str(e))
                self._next_resync = self._clock() + self.retry_base
                await asyncio.sleep(self.retry_base)

        self._running = False

    def stop(self) -> None:
        self._running = False
        self._wakeup.set()

    def status(self) -> list[GeneratorStatus]:
        """Current scheduling state of every tracked Generator."""
        now = self._clock()
        wall = datetime.now(timezone.utc)
        return [
            GeneratorStatus(
                generator=s.key,
                last_result=s.last_result,
                last_error=s.last_error,
                consecutive_failures=s.failures,
                next_run_at=wall + timedelta(seconds=max(0.0, s.next_run - now)),
            )
            for s in sorted(self._schedules.values(), key=lambda s: s.key)
        ]
