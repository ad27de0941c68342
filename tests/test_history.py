from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from shred.models import CompletedWorkout, Exercise
from shred.services.history import HistoryLedger
from shred.services.storage import COMPLETED_WORKOUTS_HISTORY, MemoryStore

T0 = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


def make_record(week: str = "Week 1", day: str = "Day A", at: datetime = T0, **kw) -> CompletedWorkout:
    exercises = [Exercise(title="Push-Up", is_completed=True), Exercise(title="Row")]
    return CompletedWorkout(week_name=week, day_name=day, completion_date=at, exercises=exercises, **kw)


def test_append_then_lookup_by_logical_key() -> None:
    ledger = HistoryLedger(MemoryStore())
    record = make_record(duration=125)
    ledger.append(record)

    found = ledger.find_by_week_day("Week 1", "Day A")
    assert found == record
    assert ledger.find_by_week_day("Week 1", "Day B") is None
    assert found.completed_exercises == 1
    assert found.total_exercises == 2
    assert found.formatted_duration == "2:05"


def test_persists_whole_collection() -> None:
    store = MemoryStore()
    ledger = HistoryLedger(store)
    a, b = make_record(), make_record(day="Day B", at=T0 + timedelta(days=1))
    ledger.append(a)
    ledger.append(b)

    stored = store.get(COMPLETED_WORKOUTS_HISTORY)
    assert isinstance(stored, list) and len(stored) == 2

    reloaded = HistoryLedger(store)
    assert reloaded.entries == [a, b]


def test_duplicates_first_wins_for_lookup_latest_wins_for_recent() -> None:
    ledger = HistoryLedger(MemoryStore())
    first = make_record(at=T0)
    again = make_record(at=T0 + timedelta(days=14))
    ledger.append(first)
    ledger.append(again)

    assert ledger.find_by_week_day("Week 1", "Day A") == first
    assert ledger.find_latest_by_week_day("Week 1", "Day A") == again
    assert ledger.most_recent() == again


def test_most_recent_uses_date_not_insertion_order() -> None:
    ledger = HistoryLedger(MemoryStore())
    newer = make_record(day="Day B", at=T0 + timedelta(hours=5))
    older = make_record(day="Day A", at=T0)
    ledger.append(newer)
    ledger.append(older)
    assert ledger.most_recent() == newer


def test_empty_ledger() -> None:
    ledger = HistoryLedger(MemoryStore())
    assert ledger.most_recent() is None
    assert len(ledger) == 0
    assert not ledger


def test_attach_photo_replaces_entry() -> None:
    store = MemoryStore()
    ledger = HistoryLedger(store)
    record = make_record()
    ledger.append(record)

    updated = ledger.attach_photo(record.id, "photo-123")
    assert updated is not None and updated.photo_id == "photo-123"
    assert record.photo_id is None
    assert HistoryLedger(store).get(record.id).photo_id == "photo-123"

    # logical lookup still finds the same workout
    found = ledger.find_by_week_day("Week 1", "Day A")
    assert found.model_copy(update={"photo_id": None}) == record


def test_attach_photo_unknown_id_is_noop() -> None:
    ledger = HistoryLedger(MemoryStore())
    record = make_record()
    ledger.append(record)
    assert ledger.attach_photo(uuid4(), "photo-x") is None
    assert ledger.entries == [record]


def test_clear_removes_storage() -> None:
    store = MemoryStore()
    ledger = HistoryLedger(store)
    ledger.append(make_record())
    ledger.clear()
    assert ledger.most_recent() is None
    assert COMPLETED_WORKOUTS_HISTORY not in store


def test_corrupt_history_is_treated_as_empty() -> None:
    store = MemoryStore({COMPLETED_WORKOUTS_HISTORY: [{"week_name": "Week 1"}]})
    assert len(HistoryLedger(store)) == 0

    store = MemoryStore({COMPLETED_WORKOUTS_HISTORY: "garbage"})
    assert len(HistoryLedger(store)) == 0


def test_naive_completion_dates_are_made_aware() -> None:
    record = CompletedWorkout(week_name="Week 1", day_name="Day A", completion_date=datetime(2026, 3, 10, 9, 0))
    assert record.completion_date.tzinfo is not None
    ledger = HistoryLedger(MemoryStore())
    ledger.append(record)
    ledger.append(make_record(day="Day B"))
    assert ledger.most_recent() is not None


def test_formatted_duration() -> None:
    assert make_record().formatted_duration is None
    assert make_record(duration=59).formatted_duration == "0:59"
    assert make_record(duration=3725).formatted_duration == "1:02:05"


def test_same_timestamp_ties_go_to_last_appended() -> None:
    ledger = HistoryLedger(MemoryStore())
    a = make_record(day="Day A")
    b = make_record(day="Day B")
    ledger.append(a)
    ledger.append(b)
    assert ledger.most_recent() == b
