from .program import Exercise, Day, Week, Program, DayDefinition
from .history import CompletedWorkout, format_seconds
from .progress import ExerciseKey, CursorPosition, TimerCheckpoint

__all__ = [
    "Exercise",
    "Day",
    "Week",
    "Program",
    "DayDefinition",
    "CompletedWorkout",
    "format_seconds",
    "ExerciseKey",
    "CursorPosition",
    "TimerCheckpoint",
]
