from __future__ import annotations

import hashlib
import re
from typing import Any, Dict, Mapping

from loguru import logger

from shred.models.program import Program
from shred.models.progress import ExerciseKey

_KEY_PATTERN = re.compile(r"^exercise_(\d+)_(\d+)_(\d+)$")


def encode_key(key: ExerciseKey) -> str:
    return f"exercise_{key.week_index}_{key.day_index}_{key.exercise_index}"


def decode_key(raw: str) -> ExerciseKey | None:
    m = _KEY_PATTERN.match(raw)
    if not m:
        return None
    return ExerciseKey(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def encode_flags(flags: Mapping[ExerciseKey, bool]) -> Dict[str, bool]:
    return {encode_key(k): bool(v) for k, v in flags.items()}


def decode_flags(raw: Any) -> Dict[ExerciseKey, bool]:
    """Decode the persisted ``exercise_{w}_{d}_{e}`` mapping.

    Anything that is not a mapping decodes to no flags; unparseable keys and
    non-boolean values are skipped.
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning("Stored exercise completion status is not a mapping; ignoring it")
        return {}
    out: Dict[ExerciseKey, bool] = {}
    for k, v in raw.items():
        key = decode_key(str(k))
        if key is None or not isinstance(v, bool):
            continue
        out[key] = v
    return out


def apply_completion(program: Program, flags: Mapping[ExerciseKey, bool]) -> Program:
    """Return a new Program with completion flags overlaid by position.

    Positions absent from ``flags`` keep the catalog value. ``program`` is not
    modified.
    """
    weeks = []
    for w, week in enumerate(program.weeks):
        days = []
        for d, day in enumerate(week.days):
            exercises = []
            for e, ex in enumerate(day.exercises):
                flag = flags.get(ExerciseKey(w, d, e))
                if flag is None or flag == ex.is_completed:
                    exercises.append(ex)
                else:
                    exercises.append(ex.model_copy(update={"is_completed": flag}))
            days.append(day.model_copy(update={"exercises": exercises}))
        weeks.append(week.model_copy(update={"days": days}))
    return program.model_copy(update={"weeks": weeks})


def extract_completion(program: Program) -> Dict[ExerciseKey, bool]:
    return {
        ExerciseKey(w, d, e): ex.is_completed
        for w, week in enumerate(program.weeks)
        for d, day in enumerate(week.days)
        for e, ex in enumerate(day.exercises)
    }


def set_exercise_completed(program: Program, key: ExerciseKey, completed: bool) -> Program:
    """Return a new Program with one exercise flag changed. Out-of-range keys raise IndexError."""
    week = program.weeks[key.week_index]
    day = week.days[key.day_index]
    ex = day.exercises[key.exercise_index]

    exercises = list(day.exercises)
    exercises[key.exercise_index] = ex.model_copy(update={"is_completed": completed})
    days = list(week.days)
    days[key.day_index] = day.model_copy(update={"exercises": exercises})
    weeks = list(program.weeks)
    weeks[key.week_index] = week.model_copy(update={"days": days})
    return program.model_copy(update={"weeks": weeks})


def clear_completion(program: Program) -> Program:
    return apply_completion(program, {k: False for k in extract_completion(program)})


def program_fingerprint(program: Program) -> str:
    """Hash of the catalog shape that positional keys depend on."""
    h = hashlib.sha256()
    for week in program.weeks:
        h.update(b"W" + week.name.encode("utf-8"))
        for day in week.days:
            h.update(b"D" + day.name.encode("utf-8"))
            for ex in day.exercises:
                h.update(b"E" + ex.title.encode("utf-8"))
    return h.hexdigest()[:16]
