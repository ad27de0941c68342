from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .program import Exercise


class CompletedWorkout(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    week_name: str
    day_name: str
    completion_date: datetime
    exercises: List[Exercise] = Field(default_factory=list, description="Snapshot at completion time")
    duration: Optional[float] = Field(None, ge=0, description="Seconds")
    photo_id: Optional[str] = None

    @field_validator("completion_date")
    @classmethod
    def _aware_completion_date(cls, v: datetime) -> datetime:
        # Naive timestamps are local wall-clock time
        return v if v.tzinfo is not None else v.astimezone()

    @property
    def completed_exercises(self) -> int:
        return sum(1 for ex in self.exercises if ex.is_completed)

    @property
    def total_exercises(self) -> int:
        return len(self.exercises)

    @property
    def formatted_duration(self) -> Optional[str]:
        if self.duration is None:
            return None
        return format_seconds(self.duration)


def format_seconds(seconds: float) -> str:
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
