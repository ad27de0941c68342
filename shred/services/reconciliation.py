"""Decides where the cursor belongs each time the app (re)activates.

The raw persisted cursor and the workout history are stored independently and
can disagree: the app may be killed between recording a workout and moving the
cursor, or the history may have been cleared on its own. History wins when it
points at a day that still exists in the program.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from loguru import logger

from shred.models.program import Program
from shred.models.progress import CursorPosition
from .history import HistoryLedger
from .progress import START, day_at, find_position, is_in_bounds, week_at


def resolve(program: Program, ledger: HistoryLedger, raw_cursor: Optional[CursorPosition]) -> CursorPosition:
    """Authoritative cursor for ``program``.

    With history, the cursor lands on the day of the most recent workout (not
    past it). Otherwise, or when that day is no longer in the program, the raw
    persisted cursor is used. Calling this again with unchanged inputs returns
    the same position.
    """
    latest = ledger.most_recent()
    if latest is not None:
        pos = find_position(program, latest.week_name, latest.day_name)
        if pos is not None:
            return pos
        logger.debug(f"Latest workout {latest.week_name} / {latest.day_name} is not in the program; using stored cursor")

    cursor = raw_cursor or START
    if program.weeks and not is_in_bounds(cursor, program):
        logger.warning(f"Stored cursor {cursor.as_tuple()} is outside the program; restarting at the beginning")
        return START
    return cursor


def is_same_local_day(a: datetime, b: datetime) -> bool:
    if a.tzinfo is not None and b.tzinfo is not None:
        a = a.astimezone(b.tzinfo)
    return a.date() == b.date()


def should_auto_unlock(
    program: Program,
    cursor: CursorPosition,
    ledger: HistoryLedger,
    now: datetime,
    unlocked_record_id: Optional[UUID] = None,
) -> bool:
    """True when the day under the cursor is done and the next one should open.

    That is the case once the calendar day of its latest completion has passed,
    or when the user already unlocked past that completion by hand.
    """
    week = week_at(program, cursor)
    day = day_at(program, cursor)
    if week is None or day is None:
        return False
    record = ledger.find_latest_by_week_day(week.name, day.name)
    if record is None:
        return False
    if unlocked_record_id is not None and record.id == unlocked_record_id:
        return True
    return not is_same_local_day(record.completion_date, now)
