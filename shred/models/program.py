from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Exercise(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: Optional[str] = None
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[str] = None
    duration: Optional[str] = None
    is_completed: bool = Field(False, validation_alias=AliasChoices("is_completed", "isCompleted"))

    @field_validator("reps", mode="before")
    @classmethod
    def _reps_int_or_none(cls, v):
        # Some program entries use ranges like "8-12"; those carry no rep count.
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        return None


class Day(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    focus: str
    description: str
    exercises: List[Exercise] = Field(default_factory=list)


class Week(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    days: List[Day] = Field(default_factory=list)


class Program(BaseModel):
    model_config = ConfigDict(frozen=True)

    weeks: List[Week] = Field(default_factory=list)

    @property
    def total_days(self) -> int:
        return sum(len(w.days) for w in self.weeks)


class DayDefinition(BaseModel):
    """Raw day entry as it appears in the bundled program file."""

    focus: str = Field(..., alias="Focus")
    description: str = Field("", alias="Description")
    exercises: List[Exercise] = Field(default_factory=list, alias="Exercises")
