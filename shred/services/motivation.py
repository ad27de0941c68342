from __future__ import annotations

import random
from datetime import date
from typing import Optional, Sequence

from .storage import KeyValueStore, MOTIVATIONAL_PHRASE_DATE, SELECTED_MOTIVATIONAL_PHRASE

PHRASES = [
    "Transform your body starting today.",
    "Discipline beats motivation. Show up.",
    "One workout closer to ripped.",
    "You don't have to be extreme, just consistent.",
    "Sweat now, shine later.",
    "The only bad workout is the one you skipped.",
    "Ten weeks. No excuses.",
    "Strong is earned, one rep at a time.",
]


def daily_phrase(store: KeyValueStore, today: date, phrases: Sequence[str] = PHRASES,
                 rng: Optional[random.Random] = None) -> str:
    """Same phrase all day; a new one is drawn the first time it is asked for on a new day."""
    cached = store.get(SELECTED_MOTIVATIONAL_PHRASE)
    cached_date = store.get(MOTIVATIONAL_PHRASE_DATE)
    if isinstance(cached, str) and cached_date == today.isoformat():
        return cached
    phrase = (rng or random).choice(list(phrases))
    with store.batch():
        store.set(SELECTED_MOTIVATIONAL_PHRASE, phrase)
        store.set(MOTIVATIONAL_PHRASE_DATE, today.isoformat())
    return phrase
