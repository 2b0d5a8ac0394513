"""
Per-view polling of a run's live progress.

A PollingController refreshes one run while its effective status (the live
status when a refresh has produced one, else the stored status) is active:
one refresh immediately, then one per interval. At most one refresh is in
flight; a tick that finds one pending is skipped. After stop() and a new
start(), a refresh from the earlier session may still be outstanding while
the new session issues its own; the late result is discarded by generation
number. Timers come from an injected Scheduler so tests can drive time with
a VirtualScheduler.
"""

from __future__ import annotations

import heapq
import itertools
import threading
from concurrent.futures import Executor, Future
from typing import Callable, List, Literal, Optional, Tuple

from pipelinelens.runstore.models import ProgressSnapshot
from pipelinelens.runstore.status import is_active_status
from pipelinelens.util.logging import get_logger

logger = get_logger("engine.polling")

DEFAULT_POLL_INTERVAL_MS = 5000

PollingState = Literal["idle", "polling", "stopped"]
Fetch = Callable[[str], "Future[Optional[ProgressSnapshot]]"]


class TimerHandle:
    def cancel(self) -> None:
        raise NotImplementedError


class Scheduler:
    def schedule_interval(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class _ThreadTimer(TimerHandle):
    def __init__(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self._interval_s = interval_ms / 1000.0
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        while not self._stop.wait(self._interval_s):
            try:
                self._callback()
            except Exception:
                logger.exception("Scheduled callback failed")

    def cancel(self) -> None:
        self._stop.set()


class ThreadScheduler(Scheduler):
    def schedule_interval(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        return _ThreadTimer(interval_ms, callback)


class _VirtualTimer(TimerHandle):
    def __init__(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self.interval_ms = interval_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler(Scheduler):
    """Manual clock: timers fire only when advance() moves time past them."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._queue: List[Tuple[int, int, _VirtualTimer]] = []
        self._seq = itertools.count()

    def schedule_interval(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        timer = _VirtualTimer(interval_ms, callback)
        heapq.heappush(self._queue, (self.now_ms + interval_ms, next(self._seq), timer))
        return timer

    @property
    def active_timers(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now_ms = due
            timer.callback()
            if not timer.cancelled:
                heapq.heappush(self._queue, (due + timer.interval_ms, next(self._seq), timer))
        self.now_ms = target


def executor_fetcher(executor: Executor, load: Callable[[str], Optional[ProgressSnapshot]]) -> Fetch:
    """Adapt a blocking loader to the future-returning fetch a controller expects."""

    def _fetch(run_id: str) -> "Future[Optional[ProgressSnapshot]]":
        return executor.submit(load, run_id)

    return _fetch


class PollingController:
    def __init__(
        self,
        run_id: str,
        stored_status: Optional[str],
        fetch: Fetch,
        scheduler: Scheduler,
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        on_update: Optional[Callable[[ProgressSnapshot], None]] = None,
    ) -> None:
        if not run_id:
            raise ValueError("run_id is empty")
        self.run_id = run_id
        self._stored_status = stored_status
        self._fetch = fetch
        self._scheduler = scheduler
        self._interval_ms = interval_ms
        self._on_update = on_update
        self._lock = threading.RLock()
        self._state: PollingState = "idle"
        self._handle: Optional[TimerHandle] = None
        self._in_flight = False
        self._generation = 0
        self._latest: Optional[ProgressSnapshot] = None
        self.refresh_count = 0
        self.skipped_ticks = 0
        self.failed_ticks = 0
        self._log = logger.bind(run_id=run_id)

    @property
    def state(self) -> PollingState:
        with self._lock:
            return self._state

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    @property
    def latest(self) -> Optional[ProgressSnapshot]:
        with self._lock:
            return self._latest

    @property
    def effective_status(self) -> Optional[str]:
        with self._lock:
            if self._latest is not None and self._latest.status:
                return self._latest.status
            return self._stored_status

    def set_stored_status(self, status: Optional[str]) -> None:
        with self._lock:
            self._stored_status = status

    def sync(self) -> PollingState:
        """Start or stop polling to follow the effective status. A closed controller stays closed."""
        start = False
        with self._lock:
            active = is_active_status(self.effective_status)
            if active and self._state == "idle":
                start = True
            elif not active and self._state == "polling":
                self._stop_locked("idle")
        if start:
            self.start()
        return self.state

    def start(self) -> None:
        with self._lock:
            if self._state == "polling":
                return
            self._state = "polling"
            self._generation += 1
            self._in_flight = False
            self._handle = self._scheduler.schedule_interval(self._interval_ms, self.tick)
            self._log.info("Polling started", interval_ms=self._interval_ms)
        self.tick()

    def stop(self) -> None:
        with self._lock:
            self._stop_locked("idle")

    def close(self) -> None:
        with self._lock:
            self._stop_locked("stopped")

    def _stop_locked(self, state: PollingState) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        was_polling = self._state == "polling"
        self._in_flight = False
        self._generation += 1
        self._state = state
        if was_polling:
            self._log.info("Polling stopped", state=state, status=self.effective_status)

    def tick(self) -> None:
        with self._lock:
            if self._state != "polling":
                return
            if self._in_flight:
                self.skipped_ticks += 1
                self._log.debug("Refresh still in flight, skipping tick")
                return
            self._in_flight = True
            self.refresh_count += 1
            generation = self._generation
        try:
            future = self._fetch(self.run_id)
        except Exception as err:
            self._finish(generation, None, err)
            return
        future.add_done_callback(lambda done: self._on_done(generation, done))

    def _on_done(self, generation: int, future: "Future[Optional[ProgressSnapshot]]") -> None:
        if future.cancelled():
            self._finish(generation, None, RuntimeError("refresh cancelled"))
            return
        err = future.exception()
        if err is not None:
            self._finish(generation, None, err)
            return
        self._finish(generation, future.result(), None)

    def _finish(self, generation: int, snapshot: Optional[ProgressSnapshot], err: Optional[BaseException]) -> None:
        with self._lock:
            if generation != self._generation:
                self._log.debug("Discarding refresh from a previous polling session")
                return
            self._in_flight = False
            if err is not None or snapshot is None:
                self.failed_ticks += 1
                self._log.warning("Progress refresh failed", error=str(err) if err else "no data")
                return
            self._latest = snapshot
            if not is_active_status(self.effective_status):
                self._stop_locked("idle")
            callback = self._on_update
        if callback is not None:
            callback(snapshot)
