from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from loguru import logger

from shred.models.progress import TimerCheckpoint
from .storage import (
    KeyValueStore,
    WORKOUT_ELAPSED_SECONDS,
    WORKOUT_START_TIME,
    WORKOUT_TIMER_RUNNING,
    WORKOUT_WAS_STARTED,
)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


class Ticker:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread until stopped."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self._callback = callback
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop,), name="workout-ticker", daemon=True)
        self._thread.start()

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self.interval):
            self._callback()

    def stop(self) -> None:
        """Stop ticking. Stopping a stopped ticker does nothing."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval + 1)


class WorkoutTimer:
    """Elapsed workout time that survives the process being killed.

    While running, elapsed time is always derived from the persisted start
    time, so a relaunch computes ``now - start_time`` instead of trusting a
    counter that stopped with the old process.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock = local_now,
        tick_seconds: float = 1.0,
        on_tick: Optional[Callable[[float], None]] = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._on_tick = on_tick
        self._ticker = Ticker(tick_seconds, self._tick)
        self.elapsed_seconds = 0.0
        self._checkpoint = self.restore()

    # -- persistence -------------------------------------------------------

    def restore(self) -> TimerCheckpoint:
        start_raw = self._store.get(WORKOUT_START_TIME)
        start_time: Optional[datetime] = None
        if isinstance(start_raw, str):
            try:
                start_time = datetime.fromisoformat(start_raw)
            except ValueError:
                logger.warning(f"Ignoring invalid stored workout start time {start_raw!r}")
        elapsed = self._store.get(WORKOUT_ELAPSED_SECONDS, 0)
        cp = TimerCheckpoint(
            running=self._store.get(WORKOUT_TIMER_RUNNING) is True and start_time is not None,
            elapsed_seconds=float(elapsed) if isinstance(elapsed, (int, float)) and not isinstance(elapsed, bool) else 0.0,
            was_started=self._store.get(WORKOUT_WAS_STARTED) is True,
            start_time=start_time,
        )
        self._checkpoint = cp
        self.elapsed_seconds = self._compute_elapsed(cp)
        return cp

    def _save(self, cp: TimerCheckpoint) -> None:
        self._checkpoint = cp
        with self._store.batch():
            self._store.set(WORKOUT_TIMER_RUNNING, cp.running)
            self._store.set(WORKOUT_ELAPSED_SECONDS, int(cp.elapsed_seconds))
            self._store.set(WORKOUT_WAS_STARTED, cp.was_started)
            if cp.start_time is not None:
                self._store.set(WORKOUT_START_TIME, cp.start_time.isoformat())
            else:
                self._store.remove(WORKOUT_START_TIME)

    def _compute_elapsed(self, cp: TimerCheckpoint) -> float:
        if cp.running and cp.start_time is not None:
            return max(0.0, (self._clock() - cp.start_time).total_seconds())
        return cp.elapsed_seconds

    # -- state ---------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._checkpoint.running

    @property
    def was_started(self) -> bool:
        return self._checkpoint.was_started

    def current_elapsed(self) -> float:
        self.elapsed_seconds = self._compute_elapsed(self._checkpoint)
        return self.elapsed_seconds

    def _tick(self) -> None:
        elapsed = self.current_elapsed()
        if self._on_tick is not None:
            self._on_tick(elapsed)

    def _start_ticking(self) -> None:
        # No listener, no thread
        if self._on_tick is not None:
            self._ticker.start()

    # -- controls ----------------------------------------------------------

    def start(self) -> None:
        """Start or resume. Resuming backdates the start time by the time already banked."""
        if self._checkpoint.running:
            self._start_ticking()
            return
        banked = self._checkpoint.elapsed_seconds
        start_time = self._clock() - timedelta(seconds=banked)
        self._save(TimerCheckpoint(running=True, elapsed_seconds=banked, was_started=True, start_time=start_time))
        self._start_ticking()
        logger.debug(f"Workout timer started (banked {banked:.0f}s)")

    def pause(self) -> float:
        elapsed = self.current_elapsed()
        self._ticker.stop()
        if self._checkpoint.running:
            self._save(TimerCheckpoint(running=False, elapsed_seconds=elapsed, was_started=True, start_time=None))
        return elapsed

    def stop(self) -> float:
        """Stop and clear the checkpoint, returning the final elapsed seconds. Safe to repeat."""
        elapsed = self.current_elapsed()
        self._ticker.stop()
        self._save(TimerCheckpoint())
        self.elapsed_seconds = 0.0
        return elapsed

    def clear(self) -> None:
        self._ticker.stop()
        self._checkpoint = TimerCheckpoint()
        self.elapsed_seconds = 0.0
        for key in (WORKOUT_TIMER_RUNNING, WORKOUT_ELAPSED_SECONDS, WORKOUT_WAS_STARTED, WORKOUT_START_TIME):
            self._store.remove(key)
