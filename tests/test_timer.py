from __future__ import annotations

import threading

import pytest

from shred.services.storage import (
    MemoryStore,
    WORKOUT_ELAPSED_SECONDS,
    WORKOUT_START_TIME,
    WORKOUT_TIMER_RUNNING,
    WORKOUT_WAS_STARTED,
)
from shred.services.timer import Ticker, WorkoutTimer
from tests.conftest import FakeClock


def test_elapsed_follows_wall_clock(store: MemoryStore, clock: FakeClock) -> None:
    timer = WorkoutTimer(store, clock=clock, tick_seconds=0.01)
    timer.start()
    clock.advance(seconds=90)
    assert timer.current_elapsed() == pytest.approx(90)
    assert store.get(WORKOUT_TIMER_RUNNING) is True
    assert store.get(WORKOUT_WAS_STARTED) is True
    assert store.get(WORKOUT_START_TIME) is not None
    timer.stop()


def test_relaunch_reconstructs_elapsed_from_start_time(store: MemoryStore, clock: FakeClock) -> None:
    timer = WorkoutTimer(store, clock=clock, tick_seconds=0.01)
    timer.start()
    clock.advance(seconds=30)
    timer._ticker.stop()  # process killed; the checkpoint stays behind

    clock.advance(minutes=10)
    relaunched = WorkoutTimer(store, clock=clock, tick_seconds=0.01)
    assert relaunched.running
    assert relaunched.elapsed_seconds == pytest.approx(630)
    relaunched.stop()


def test_pause_banks_time_and_resume_continues(store: MemoryStore, clock: FakeClock) -> None:
    timer = WorkoutTimer(store, clock=clock, tick_seconds=0.01)
    timer.start()
    clock.advance(seconds=100)
    assert timer.pause() == pytest.approx(100)
    assert not timer.running
    assert store.get(WORKOUT_ELAPSED_SECONDS) == 100
    assert store.get(WORKOUT_START_TIME) is None

    clock.advance(hours=1)  # paused time does not count
    assert timer.current_elapsed() == pytest.approx(100)

    timer.start()
    clock.advance(seconds=20)
    assert timer.current_elapsed() == pytest.approx(120)
    timer.stop()


def test_stop_is_idempotent(store: MemoryStore, clock: FakeClock) -> None:
    timer = WorkoutTimer(store, clock=clock, tick_seconds=0.01)
    timer.start()
    clock.advance(seconds=5)
    assert timer.stop() == pytest.approx(5)
    assert timer.stop() == 0
    assert not timer.running and not timer.was_started
    assert store.get(WORKOUT_TIMER_RUNNING) is False


def test_corrupt_checkpoint_is_ignored(clock: FakeClock) -> None:
    store = MemoryStore({
        WORKOUT_TIMER_RUNNING: True,
        WORKOUT_START_TIME: "yesterday-ish",
        WORKOUT_ELAPSED_SECONDS: "lots",
    })
    timer = WorkoutTimer(store, clock=clock)
    assert not timer.running
    assert timer.elapsed_seconds == 0


def test_ticker_calls_back_until_stopped() -> None:
    ticks = threading.Semaphore(0)
    ticker = Ticker(0.01, ticks.release)
    ticker.start()
    assert ticks.acquire(timeout=2)
    assert ticks.acquire(timeout=2)
    ticker.stop()
    assert not ticker.running
    ticker.stop()


def test_timer_reports_ticks(store: MemoryStore, clock: FakeClock) -> None:
    seen = []
    got_tick = threading.Event()

    def on_tick(elapsed: float) -> None:
        seen.append(elapsed)
        if elapsed >= 3:
            got_tick.set()

    timer = WorkoutTimer(store, clock=clock, tick_seconds=0.01, on_tick=on_tick)
    timer.start()
    clock.advance(seconds=3)
    assert got_tick.wait(timeout=2)
    timer.stop()
    assert seen[-1] == pytest.approx(3)


def test_no_ticker_thread_without_listener(store: MemoryStore, clock: FakeClock) -> None:
    timer = WorkoutTimer(store, clock=clock, tick_seconds=0.01)
    timer.start()
    assert timer.running
    assert not timer._ticker.running
    clock.advance(seconds=12)
    assert timer.current_elapsed() == pytest.approx(12)
    timer.stop()
