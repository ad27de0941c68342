from __future__ import annotations

from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExerciseKey(NamedTuple):
    """Positional address of one exercise slot in the program."""

    week_index: int
    day_index: int
    exercise_index: int


class CursorPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_index: int = Field(0, ge=0)
    day_index: int = Field(0, ge=0)

    def as_tuple(self) -> tuple[int, int]:
        return (self.week_index, self.day_index)


class TimerCheckpoint(BaseModel):
    running: bool = False
    elapsed_seconds: float = 0.0
    was_started: bool = False
    start_time: Optional[datetime] = None
