"""Expand a card pool into the full list of exercises for a session."""
import random

from flashlearn.exercises import build_exercise
from flashlearn.models import ExerciseType


def expand_tasks(pool: list, types, cards: list | None = None,
                 rng: random.Random | None = None) -> list:
    """One task per (card, type) pair, in pool order then type order.

    ``cards`` supplies distractors and synonym answers and defaults to the
    pool itself. Repeated entries in ``types`` are ignored.
    """
    requested = []
    for t in types:
        t = ExerciseType(t)
        if t not in requested:
            requested.append(t)
    if not requested:
        raise ValueError("At least one exercise type is required")
    rng = rng or random.Random()
    source = list(cards) if cards is not None else list(pool)
    return [
        build_exercise(card, source, exercise_type, rng)
        for card in pool
        for exercise_type in requested
    ]
