from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional
from uuid import UUID

from loguru import logger

from shred.config import Settings, get_settings
from shred.models.history import CompletedWorkout
from shred.models.program import Day, Program, Week
from shred.models.progress import CursorPosition, ExerciseKey
from .catalog import CatalogLoadError, load_program
from .completion import (
    apply_completion,
    clear_completion,
    decode_flags,
    encode_flags,
    extract_completion,
    program_fingerprint,
    set_exercise_completed,
)
from .history import HistoryLedger
from .motivation import daily_phrase
from .photos import HttpPhotoStore, PhotoStore, PhotoStoreError, PhotoUploadResult
from .progress import START, advance, day_at, load_cursor, save_cursor, week_at
from .reconciliation import is_same_local_day, resolve, should_auto_unlock
from .storage import (
    EXERCISE_COMPLETION_FINGERPRINT,
    EXERCISE_COMPLETION_STATUS,
    HAS_COMPLETED_INITIAL_SETUP,
    INITIAL_PHOTO_ID,
    JsonFileStore,
    KeyValueStore,
    UNLOCKED_WORKOUT_ID,
)
from .timer import Clock, WorkoutTimer, local_now


class NoCurrentDayError(LookupError):
    pass


class WorkoutSession:
    """Owns the program, cursor, completion flags and history for one app session.

    Every mutation is written to the store before the method returns. The store
    is the source of truth: ``activate()`` re-reads it, so several sessions on
    the same store converge on the same state.
    """

    def __init__(
        self,
        store: KeyValueStore,
        program_path: Optional[Path | str] = None,
        photo_store: Optional[PhotoStore] = None,
        clock: Clock = local_now,
        tick_seconds: float = 1.0,
    ) -> None:
        self._store = store
        self._program_path = program_path
        self._photo_store = photo_store
        self._clock = clock
        self._lock = threading.RLock()

        self.timer = WorkoutTimer(store, clock=clock, tick_seconds=tick_seconds)
        self.ledger = HistoryLedger(store)
        self.program: Optional[Program] = None
        self.load_error: Optional[str] = None
        self.cursor: CursorPosition = START
        self.reload()

    # -- loading and reconciliation -----------------------------------------

    def _stored_flags(self, program: Program) -> Dict[ExerciseKey, bool]:
        stored_fp = self._store.get(EXERCISE_COMPLETION_FINGERPRINT)
        if stored_fp is not None and stored_fp != program_fingerprint(program):
            logger.warning("Program definition changed since completion flags were saved; discarding them")
            return {}
        return decode_flags(self._store.get(EXERCISE_COMPLETION_STATUS))

    def _persist(self) -> None:
        with self._store.batch():
            save_cursor(self._store, self.cursor)
            if self.program is not None:
                self._store.set(EXERCISE_COMPLETION_STATUS, encode_flags(extract_completion(self.program)))
                self._store.set(EXERCISE_COMPLETION_FINGERPRINT, program_fingerprint(self.program))

    def _set_cursor(self, cursor: CursorPosition) -> None:
        self.cursor = cursor
        self._persist()

    def reload(self) -> Optional[Program]:
        """Re-parse the program definition and reconcile against stored state.

        A load failure leaves ``program`` as None and ``load_error`` set; calling
        ``reload()`` again is the retry.
        """
        with self._lock:
            try:
                catalog = load_program(self._program_path)
            except CatalogLoadError as exc:
                logger.error(f"Program could not be loaded: {exc}")
                self.program = None
                self.load_error = str(exc)
                return None
            self.load_error = None
            self.program = apply_completion(catalog, self._stored_flags(catalog))
            self.ledger.load()
            self._set_cursor(resolve(self.program, self.ledger, load_cursor(self._store)))
            return self.program

    def activate(self) -> CursorPosition:
        """Run on every screen activation: reconcile, then open the next day if it is due."""
        with self._lock:
            reread = getattr(self._store, "reload", None)
            if callable(reread):
                reread()
            self.ledger.load()
            if self.program is None:
                return self.cursor
            self.program = apply_completion(self.program, self._stored_flags(self.program))
            self._set_cursor(resolve(self.program, self.ledger, load_cursor(self._store)))
            if should_auto_unlock(self.program, self.cursor, self.ledger, self._clock(), self._unlocked_record_id()):
                nxt = advance(self.cursor, self.program)
                logger.info(f"Unlocking next workout: {self.cursor.as_tuple()} -> {nxt.as_tuple()}")
                self._set_cursor(nxt)
            return self.cursor

    def _unlocked_record_id(self) -> Optional[UUID]:
        raw = self._store.get(UNLOCKED_WORKOUT_ID)
        if not isinstance(raw, str):
            return None
        try:
            return UUID(raw)
        except ValueError:
            return None

    # -- read accessors -----------------------------------------------------

    @property
    def current_week(self) -> Optional[Week]:
        return week_at(self.program, self.cursor)

    @property
    def current_day(self) -> Optional[Day]:
        return day_at(self.program, self.cursor)

    @property
    def current_exercise_titles(self) -> List[str]:
        day = self.current_day
        return [ex.title for ex in day.exercises] if day else []

    def is_day_completed(self, week_name: str, day_name: str) -> bool:
        return self.ledger.find_by_week_day(week_name, day_name) is not None

    @property
    def current_day_completed(self) -> bool:
        week, day = self.current_week, self.current_day
        if week is None or day is None:
            return False
        return self.is_day_completed(week.name, day.name)

    @property
    def completed_today(self) -> bool:
        week, day = self.current_week, self.current_day
        if week is None or day is None:
            return False
        record = self.ledger.find_latest_by_week_day(week.name, day.name)
        return record is not None and is_same_local_day(record.completion_date, self._clock())

    @property
    def has_completed_initial_setup(self) -> bool:
        return self._store.get(HAS_COMPLETED_INITIAL_SETUP) is True

    def motivational_phrase(self) -> str:
        return daily_phrase(self._store, self._clock().date())

    # -- mutations ----------------------------------------------------------

    def complete_initial_setup(self) -> None:
        with self._lock:
            self._store.set(HAS_COMPLETED_INITIAL_SETUP, True)

    def set_exercise_completed(self, exercise_index: int, completed: bool) -> Optional[bool]:
        """Set one exercise of the current day. Returns the new flag, or None if there is no such exercise."""
        with self._lock:
            day = self.current_day
            if self.program is None or day is None or not 0 <= exercise_index < len(day.exercises):
                logger.warning(f"No exercise {exercise_index} at cursor {self.cursor.as_tuple()}")
                return None
            key = ExerciseKey(self.cursor.week_index, self.cursor.day_index, exercise_index)
            self.program = set_exercise_completed(self.program, key, completed)
            self._persist()
            return completed

    def toggle_exercise(self, exercise_index: int) -> Optional[bool]:
        with self._lock:
            day = self.current_day
            if day is None or not 0 <= exercise_index < len(day.exercises):
                logger.warning(f"No exercise {exercise_index} at cursor {self.cursor.as_tuple()}")
                return None
            return self.set_exercise_completed(exercise_index, not day.exercises[exercise_index].is_completed)

    def advance(self) -> CursorPosition:
        with self._lock:
            if self.program is None:
                return self.cursor
            nxt = advance(self.cursor, self.program)
            logger.info(f"Advancing cursor {self.cursor.as_tuple()} -> {nxt.as_tuple()}")
            self._set_cursor(nxt)
            return self.cursor

    def unlock_next_day(self) -> CursorPosition:
        """Open the next workout now instead of waiting for midnight."""
        with self._lock:
            week, day = self.current_week, self.current_day
            if week is not None and day is not None:
                record = self.ledger.find_latest_by_week_day(week.name, day.name)
                if record is not None:
                    self._store.set(UNLOCKED_WORKOUT_ID, str(record.id))
            return self.advance()

    def start_timer(self) -> None:
        with self._lock:
            self.timer.start()

    def pause_timer(self) -> float:
        with self._lock:
            return self.timer.pause()

    def reset_cursor(self) -> CursorPosition:
        with self._lock:
            self._set_cursor(START)
            return self.cursor

    def complete_workout(self, duration: Optional[float] = None) -> CompletedWorkout:
        """Record the current day as completed and return the new history entry.

        The cursor stays on the completed day; the next day opens after midnight
        or through ``unlock_next_day()``. Without an explicit ``duration`` the
        workout timer's elapsed time is used when it was started.
        """
        with self._lock:
            week, day = self.current_week, self.current_day
            if week is None or day is None:
                raise NoCurrentDayError(f"No workout day at cursor {self.cursor.as_tuple()}")
            timed = self.timer.was_started
            elapsed = self.timer.stop()
            if duration is None and timed:
                duration = elapsed
            record = CompletedWorkout(
                week_name=week.name,
                day_name=day.name,
                completion_date=self._clock(),
                exercises=list(day.exercises),
                duration=duration,
            )
            self.ledger.append(record)
            self._store.remove(UNLOCKED_WORKOUT_ID)
            return record

    def full_reset(self) -> None:
        """Back to week 1 day 1 with no completed exercises and an empty history."""
        with self._lock, self._store.batch():
            if self.program is not None:
                self.program = clear_completion(self.program)
            else:
                # No catalog loaded: drop the stored flags wholesale
                self._store.remove(EXERCISE_COMPLETION_STATUS)
                self._store.remove(EXERCISE_COMPLETION_FINGERPRINT)
            self.ledger.clear()
            self._store.remove(UNLOCKED_WORKOUT_ID)
            self.timer.clear()
            self._set_cursor(START)
        logger.info("Progress reset")

    # -- photos ---------------------------------------------------------------

    @property
    def photos_enabled(self) -> bool:
        return self._photo_store is not None

    def _save_photo(self, owner_id: str, image_bytes: bytes) -> PhotoUploadResult:
        if self._photo_store is None:
            return PhotoUploadResult(ok=False, message="Photo storage is not configured.")
        try:
            photo_id = self._photo_store.save(owner_id, image_bytes)
        except PhotoStoreError as exc:
            logger.warning(f"Photo upload failed for {owner_id}: {exc}")
            return PhotoUploadResult(ok=False, message=f"Failed to save photo. Continuing: {exc}")
        return PhotoUploadResult(ok=True, photo_id=photo_id)

    def attach_photo(self, record_id: UUID, image_bytes: bytes) -> PhotoUploadResult:
        """Upload a progress photo and link it to a history entry. Never raises on store failure."""
        result = self._save_photo(str(record_id), image_bytes)
        if not result.ok or result.photo_id is None:
            return result
        with self._lock:
            updated = self.ledger.attach_photo(record_id, result.photo_id)
        if updated is None:
            return PhotoUploadResult(ok=True, photo_id=result.photo_id,
                                     message="Photo saved, but the workout is no longer in history.")
        return result

    def attach_photo_async(
        self,
        record_id: UUID,
        image_bytes: bytes,
        callback: Optional[Callable[[PhotoUploadResult], None]] = None,
    ) -> threading.Thread:
        def run() -> None:
            result = self.attach_photo(record_id, image_bytes)
            if callback is not None:
                callback(result)

        thread = threading.Thread(target=run, name=f"photo-upload-{record_id}", daemon=True)
        thread.start()
        return thread

    def fetch_photo(self, photo_id: str) -> Optional[bytes]:
        if self._photo_store is None:
            return None
        try:
            return self._photo_store.fetch(photo_id)
        except PhotoStoreError as exc:
            logger.warning(f"Could not fetch photo {photo_id}: {exc}")
            return None

    def save_initial_photo(self, image_bytes: bytes) -> PhotoUploadResult:
        result = self._save_photo("initial", image_bytes)
        if result.ok and result.photo_id is not None:
            with self._lock:
                self._store.set(INITIAL_PHOTO_ID, result.photo_id)
        return result

    def fetch_initial_photo(self) -> Optional[bytes]:
        photo_id = self._store.get(INITIAL_PHOTO_ID)
        if not isinstance(photo_id, str):
            return None
        return self.fetch_photo(photo_id)


def build_session(settings: Optional[Settings] = None) -> WorkoutSession:
    s = settings or get_settings()
    photo_store: Optional[PhotoStore] = None
    if s.PHOTO_STORE_URL:
        photo_store = HttpPhotoStore(s.PHOTO_STORE_URL, token=s.PHOTO_STORE_TOKEN, timeout=s.PHOTO_STORE_TIMEOUT)
    return WorkoutSession(
        JsonFileStore(s.STATE_FILE),
        program_path=s.PROGRAM_PATH,
        photo_store=photo_store,
        tick_seconds=s.TIMER_TICK_SECONDS,
    )
