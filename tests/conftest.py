import random

import pytest

from flashlearn.db import init_db
from flashlearn.models import Card, StudyState, StudyStatus
from flashlearn.store import FlashcardStore


class MemoryStore:
    """In-memory stand-in for FlashcardStore with the same study-state rules."""

    def __init__(self, cards=(), states=None):
        self.cards = list(cards)
        if states is None:
            states = [StudyState(card_id=c.id, set_id=c.set_id) for c in self.cards]
        self.states = {s.card_id: s for s in states}
        self.updates = []

    def get_cards(self, set_id):
        return [c for c in self.cards if c.set_id == set_id]

    def get_study_states(self, set_id):
        return [s for s in self.states.values() if s.set_id == set_id]

    def update_study_state(self, card_id, is_correct):
        self.updates.append((card_id, is_correct))
        state = self.states.get(card_id)
        if state is None:
            return
        if is_correct:
            state.correct_count += 1
            state.status = StudyStatus.LEARNED
        else:
            state.wrong_count += 1
            state.status = StudyStatus.NOT_LEARNED


def make_cards(n, set_id="s1", prefix="term"):
    return [
        Card(id=f"c{i}", set_id=set_id, front=f"{prefix} {i}", back=f"meaning {i}", order_index=i)
        for i in range(n)
    ]


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_flashlearn.db")
    return db_path


@pytest.fixture
def store(tmp_db):
    init_db(tmp_db)
    return FlashcardStore(tmp_db)


@pytest.fixture
def rng():
    return random.Random(1234)


SAMPLE_CARDS = [
    {"front": "hund", "back": "dog"},
    {"front": "katze", "back": "cat"},
    {"front": "maus", "back": "mouse"},
    {"front": "vogel", "back": "bird"},
    {"front": "fisch", "back": "fish"},
    {"front": "pferd", "back": "horse"},
]
