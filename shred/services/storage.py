from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, Iterator, Protocol

from loguru import logger

# Persisted keys
HAS_COMPLETED_INITIAL_SETUP = "hasCompletedInitialSetup"
CURRENT_WEEK_INDEX = "currentWeekIndex"
CURRENT_DAY_INDEX = "currentDayIndex"
EXERCISE_COMPLETION_STATUS = "exerciseCompletionStatus"
EXERCISE_COMPLETION_FINGERPRINT = "exerciseCompletionFingerprint"
COMPLETED_WORKOUTS_HISTORY = "completedWorkoutsHistory"
SELECTED_MOTIVATIONAL_PHRASE = "selectedMotivationalPhrase"
MOTIVATIONAL_PHRASE_DATE = "motivationalPhraseDate"
WORKOUT_TIMER_RUNNING = "workoutTimerRunning"
WORKOUT_ELAPSED_SECONDS = "workoutElapsedSeconds"
WORKOUT_WAS_STARTED = "workoutWasStarted"
WORKOUT_START_TIME = "workoutStartTime"
UNLOCKED_WORKOUT_ID = "unlockedWorkoutID"
INITIAL_PHOTO_ID = "initialPhotoID"


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def batch(self) -> Any: ...


class MemoryStore:
    """Dict-backed store. Values are round-tripped through JSON so tests see
    exactly what a file-backed store would return."""

    def __init__(self, initial: Dict[str, Any] | None = None) -> None:
        self._data: Dict[str, Any] = {}
        for k, v in (initial or {}).items():
            self.set(k, v)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    @contextmanager
    def batch(self) -> Iterator["MemoryStore"]:
        yield self

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def raw(self) -> Dict[str, str]:
        return dict(self._data)


class JsonFileStore:
    """Single JSON document on disk, rewritten atomically on every mutation.

    Writes are synchronous: when ``set`` returns the value is on disk, unless the
    call happens inside ``batch()``, in which case the flush happens once on exit.
    An unreadable or corrupt file is treated as an empty store. Access is
    serialized, so background threads may write alongside the UI thread; a
    thread inside ``batch()`` holds the store until the batch is flushed.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.RLock()
        self._depth = 0
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8").strip()
            data = json.loads(raw) if raw else {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning(f"State file {self.path} is unreadable, starting empty: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"State file {self.path} must contain a JSON object, starting empty")
            return {}
        return data

    def _flush(self) -> None:
        if self._depth:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self._data, indent=2, sort_keys=True) + "\n"
        with NamedTemporaryFile("w", dir=self.path.parent, delete=False, encoding="utf-8") as tmp:
            tmp.write(payload)
            temp_path = Path(tmp.name)
        temp_path.replace(self.path)

    def reload(self) -> None:
        """Re-read the file, picking up writes made by another instance."""
        with self._lock:
            self._data = self._read()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        # Round-trip so in-memory values match what a fresh read would produce
        encoded = json.loads(json.dumps(value))
        with self._lock:
            self._data[key] = encoded
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._flush()

    @contextmanager
    def batch(self) -> Iterator["JsonFileStore"]:
        with self._lock:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            self._flush()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data
