from __future__ import annotations

from typing import Iterator, List, Optional
from uuid import UUID

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from shred.models.history import CompletedWorkout
from .storage import COMPLETED_WORKOUTS_HISTORY, KeyValueStore

_HISTORY_ADAPTER = TypeAdapter(List[CompletedWorkout])


class HistoryLedger:
    """Completed workouts in append order, persisted as one list under a single key.

    Entries are never edited except to attach a photo id. Looking up a program
    day uses its logical key (week name, day name), not its position.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._entries: List[CompletedWorkout] = []
        self.load()

    def load(self) -> None:
        raw = self._store.get(COMPLETED_WORKOUTS_HISTORY)
        if raw is None:
            self._entries = []
            return
        try:
            self._entries = _HISTORY_ADAPTER.validate_python(raw)
        except ValidationError as exc:
            logger.warning(f"Workout history could not be decoded, treating it as empty: {exc.error_count()} errors")
            self._entries = []

    def _persist(self) -> None:
        self._store.set(COMPLETED_WORKOUTS_HISTORY, _HISTORY_ADAPTER.dump_python(self._entries, mode="json"))

    @property
    def entries(self) -> List[CompletedWorkout]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CompletedWorkout]:
        return iter(list(self._entries))

    def __bool__(self) -> bool:
        return bool(self._entries)

    def append(self, record: CompletedWorkout) -> None:
        self._entries.append(record)
        self._persist()
        logger.info(f"Recorded workout {record.week_name} / {record.day_name} ({record.completed_exercises}/{record.total_exercises})")

    def get(self, record_id: UUID) -> Optional[CompletedWorkout]:
        return next((r for r in self._entries if r.id == record_id), None)

    def find_by_week_day(self, week_name: str, day_name: str) -> Optional[CompletedWorkout]:
        """First record for the program day. A re-completed day keeps its older record first."""
        return next((r for r in self._entries if r.week_name == week_name and r.day_name == day_name), None)

    def find_latest_by_week_day(self, week_name: str, day_name: str) -> Optional[CompletedWorkout]:
        matches = [r for r in self._entries if r.week_name == week_name and r.day_name == day_name]
        if not matches:
            return None
        return max(reversed(matches), key=lambda r: r.completion_date)

    def most_recent(self) -> Optional[CompletedWorkout]:
        if not self._entries:
            return None
        # Ties go to the entry appended last
        return max(reversed(self._entries), key=lambda r: r.completion_date)

    def clear(self) -> None:
        self._entries = []
        self._store.remove(COMPLETED_WORKOUTS_HISTORY)

    def attach_photo(self, record_id: UUID, photo_id: str) -> Optional[CompletedWorkout]:
        for i, r in enumerate(self._entries):
            if r.id == record_id:
                updated = r.model_copy(update={"photo_id": photo_id})
                self._entries[i] = updated
                self._persist()
                return updated
        logger.debug(f"attach_photo: no workout with id {record_id}")
        return None
