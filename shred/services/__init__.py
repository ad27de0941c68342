from .catalog import CatalogLoadError, load_program, parse_program, week_number
from .completion import apply_completion, extract_completion, encode_flags, decode_flags, program_fingerprint
from .history import HistoryLedger
from .photos import HttpPhotoStore, MemoryPhotoStore, PhotoStore, PhotoStoreError, PhotoUploadResult
from .progress import advance, day_at, find_position, load_cursor, save_cursor
from .reconciliation import resolve, should_auto_unlock
from .session import NoCurrentDayError, WorkoutSession, build_session
from .storage import JsonFileStore, KeyValueStore, MemoryStore
from .timer import Ticker, WorkoutTimer

__all__ = [
    "CatalogLoadError",
    "load_program",
    "parse_program",
    "week_number",
    "apply_completion",
    "extract_completion",
    "encode_flags",
    "decode_flags",
    "program_fingerprint",
    "HistoryLedger",
    "HttpPhotoStore",
    "MemoryPhotoStore",
    "PhotoStore",
    "PhotoStoreError",
    "PhotoUploadResult",
    "advance",
    "day_at",
    "find_position",
    "load_cursor",
    "save_cursor",
    "resolve",
    "should_auto_unlock",
    "NoCurrentDayError",
    "WorkoutSession",
    "build_session",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "Ticker",
    "WorkoutTimer",
]
