from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict

import pytest

from shred.services.storage import MemoryStore


def make_day(focus: str, titles: list[str]) -> Dict[str, Any]:
    return {
        "Focus": focus,
        "Description": f"{focus} session",
        "Exercises": [{"title": t, "sets": 3, "reps": 10} for t in titles],
    }


# Two weeks: "Week 1" has Day A and Day B, "Week 2" has Day C. Listed out of order on purpose.
SMALL_PROGRAM: Dict[str, Any] = {
    "Week 2": {"Day C": make_day("Conditioning", ["Run", "Burpees"])},
    "Week 1": {
        "Day B": make_day("Lower", ["Squat", "Lunge"]),
        "Day A": make_day("Upper", ["Push-Up", "Row", "Press"]),
    },
}


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def program_file(tmp_path: Path) -> Path:
    path = tmp_path / "workouts.json"
    path.write_text(json.dumps(SMALL_PROGRAM), encoding="utf-8")
    return path
