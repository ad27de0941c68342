from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, List, Mapping, Optional

from loguru import logger
from pydantic import ValidationError

from shred.config import DEFAULT_PROGRAM_PATH
from shred.models.program import Day, DayDefinition, Program, Week

_WEEK_NUMBER = re.compile(r"Week (\d+)")


class CatalogLoadError(RuntimeError):
    pass


def week_number(name: str) -> int:
    m = _WEEK_NUMBER.search(name)
    return int(m.group(1)) if m else 0


def parse_program(raw: Mapping[str, Any]) -> Program:
    """Build a Program from the ``week -> day -> {Focus, Description, Exercises}`` mapping.

    Weeks are ordered by the number in their name (unnumbered names count as 0,
    ties go by name); days are ordered by name. Neither depends on the
    iteration order of ``raw``.
    """
    if not isinstance(raw, Mapping):
        raise CatalogLoadError("Program definition must be a mapping of week name to days.")

    weeks: List[Week] = []
    for week_name, days_raw in raw.items():
        if not isinstance(days_raw, Mapping):
            raise CatalogLoadError(f"{week_name!r} must map day names to day definitions.")
        days: List[Day] = []
        for day_name, day_raw in days_raw.items():
            try:
                d = DayDefinition.model_validate(day_raw)
            except ValidationError as exc:
                raise CatalogLoadError(f"Invalid definition for {week_name} / {day_name}: {exc}") from exc
            days.append(Day(name=str(day_name), focus=d.focus, description=d.description, exercises=d.exercises))
        days.sort(key=lambda day: day.name)
        weeks.append(Week(name=str(week_name), days=days))

    weeks.sort(key=lambda w: (week_number(w.name), w.name))
    return Program(weeks=weeks)


def load_program(path: Optional[Path | str] = None) -> Program:
    """Parse the program definition from disk. Always re-reads; nothing is cached."""
    target = Path(path) if path is not None else DEFAULT_PROGRAM_PATH
    try:
        with target.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as exc:
        raise CatalogLoadError(f"Program definition not found: {target}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(f"Could not read program definition {target}: {exc}") from exc

    program = parse_program(raw)
    logger.info(f"Loaded program from {target.name}: {len(program.weeks)} weeks, {program.total_days} days")
    return program
