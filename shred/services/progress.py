from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from shred.models.program import Day, Program, Week
from shred.models.progress import CursorPosition
from .storage import CURRENT_DAY_INDEX, CURRENT_WEEK_INDEX, KeyValueStore

START = CursorPosition(week_index=0, day_index=0)


def is_in_bounds(cursor: CursorPosition, program: Program) -> bool:
    if cursor.week_index >= len(program.weeks):
        return False
    return cursor.day_index < len(program.weeks[cursor.week_index].days)


def week_at(program: Optional[Program], cursor: CursorPosition) -> Optional[Week]:
    if program is None or cursor.week_index >= len(program.weeks):
        return None
    return program.weeks[cursor.week_index]


def day_at(program: Optional[Program], cursor: CursorPosition) -> Optional[Day]:
    week = week_at(program, cursor)
    if week is None or cursor.day_index >= len(week.days):
        return None
    return week.days[cursor.day_index]


def advance(cursor: CursorPosition, program: Program) -> CursorPosition:
    """Next day of the week, else first day of the next week, else back to the start.

    A cursor that no longer fits the program (e.g. the definition shrank) also
    restarts at the beginning.
    """
    if not program.weeks or not is_in_bounds(cursor, program):
        return START
    week = program.weeks[cursor.week_index]
    if cursor.day_index < len(week.days) - 1:
        return CursorPosition(week_index=cursor.week_index, day_index=cursor.day_index + 1)
    # Skip weeks without days so the cursor always lands on a real day
    for w in range(cursor.week_index + 1, len(program.weeks)):
        if program.weeks[w].days:
            return CursorPosition(week_index=w, day_index=0)
    return START


def find_position(program: Program, week_name: str, day_name: str) -> Optional[CursorPosition]:
    for w, week in enumerate(program.weeks):
        if week.name != week_name:
            continue
        for d, day in enumerate(week.days):
            if day.name == day_name:
                return CursorPosition(week_index=w, day_index=d)
    return None


def _as_index(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        if value is not None:
            logger.warning(f"Ignoring invalid stored cursor index {value!r}")
        return 0
    return value


def load_cursor(store: KeyValueStore) -> CursorPosition:
    return CursorPosition(
        week_index=_as_index(store.get(CURRENT_WEEK_INDEX)),
        day_index=_as_index(store.get(CURRENT_DAY_INDEX)),
    )


def save_cursor(store: KeyValueStore, cursor: CursorPosition) -> None:
    with store.batch():
        store.set(CURRENT_WEEK_INDEX, cursor.week_index)
        store.set(CURRENT_DAY_INDEX, cursor.day_index)
