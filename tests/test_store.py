# tests/test_store.py
import pytest

from conftest import SAMPLE_CARDS
from flashlearn.db import get_connection
from flashlearn.models import StudyStatus
from flashlearn.store import SetNotFoundError


def test_add_set_creates_cards_and_states(store):
    set_id = store.add_set("Animals", "German animals", SAMPLE_CARDS, tags=["german"])
    cards = store.get_cards(set_id)
    assert [c.front for c in cards] == [c["front"] for c in SAMPLE_CARDS]
    assert [c.order_index for c in cards] == list(range(len(SAMPLE_CARDS)))
    states = store.get_study_states(set_id)
    assert len(states) == len(SAMPLE_CARDS)
    assert all(s.status is StudyStatus.NOT_LEARNED for s in states)
    assert all(s.correct_count == 0 and s.wrong_count == 0 for s in states)
    assert store.get_set(set_id).tags == ["german"]


def test_get_set_missing_raises(store):
    with pytest.raises(SetNotFoundError):
        store.get_set("nope")


def test_update_study_state_correct_marks_learned(store):
    set_id = store.add_set("Animals", "", SAMPLE_CARDS)
    card = store.get_cards(set_id)[0]
    store.update_study_state(card.id, True)
    state = next(s for s in store.get_study_states(set_id) if s.card_id == card.id)
    assert state.status is StudyStatus.LEARNED
    assert state.correct_count == 1
    assert state.wrong_count == 0
    assert state.last_seen_at is not None


def test_update_study_state_wrong_flips_back(store):
    set_id = store.add_set("Animals", "", SAMPLE_CARDS)
    card = store.get_cards(set_id)[0]
    store.update_study_state(card.id, True)
    store.update_study_state(card.id, False)
    state = next(s for s in store.get_study_states(set_id) if s.card_id == card.id)
    assert state.status is StudyStatus.NOT_LEARNED
    assert state.correct_count == 1
    assert state.wrong_count == 1


def test_update_study_state_unknown_card_is_noop(store):
    store.add_set("Animals", "", SAMPLE_CARDS)
    store.update_study_state("missing", True)
    assert all(s.correct_count == 0 for s in store.get_study_states())


def test_update_set_replaces_cards_and_resets_progress(store):
    set_id = store.add_set("Animals", "", SAMPLE_CARDS)
    old = store.get_cards(set_id)
    store.update_study_state(old[0].id, True)
    store.update_set(set_id, "Tiere", "renamed", [{"front": "kuh", "back": "cow"}])
    cards = store.get_cards(set_id)
    assert len(cards) == 1
    assert cards[0].id not in {c.id for c in old}
    assert store.get_set(set_id).title == "Tiere"
    states = store.get_study_states(set_id)
    assert len(states) == 1
    assert states[0].status is StudyStatus.NOT_LEARNED


def test_update_missing_set_raises(store):
    with pytest.raises(SetNotFoundError):
        store.update_set("nope", "x", "", [])


def test_delete_set_removes_everything(store, tmp_db):
    keep = store.add_set("Keep", "", SAMPLE_CARDS[:2])
    gone = store.add_set("Gone", "", SAMPLE_CARDS)
    store.delete_set(gone)
    assert [s.id for s in store.get_sets()] == [keep]
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0] == 2
    assert conn.execute("SELECT COUNT(*) FROM study_states").fetchone()[0] == 2
    conn.close()


def test_toggle_favorite(store):
    set_id = store.add_set("Animals", "", SAMPLE_CARDS)
    assert store.toggle_favorite(set_id) is True
    assert store.get_set(set_id).is_favorite is True
    assert store.toggle_favorite(set_id) is False


def test_set_summaries_count_learned(store):
    set_id = store.add_set("Animals", "", SAMPLE_CARDS)
    cards = store.get_cards(set_id)
    store.update_study_state(cards[0].id, True)
    store.update_study_state(cards[1].id, True)
    store.update_study_state(cards[2].id, False)
    [summary] = store.get_set_summaries()
    assert summary["title"] == "Animals"
    assert summary["card_count"] == len(SAMPLE_CARDS)
    assert summary["learned_count"] == 2


def test_settings_roundtrip(store):
    assert store.get_setting("default_mode") is None
    assert store.get_setting("default_mode", "learn") == "learn"
    store.set_setting("default_mode", "tf")
    store.set_setting("default_mode", "mcq")
    assert store.get_setting("default_mode") == "mcq"


def _set_updated_at(tmp_db, set_id, stamp):
    conn = get_connection(tmp_db)
    conn.execute("UPDATE sets SET updated_at = ? WHERE id = ?", (stamp, set_id))
    conn.commit()
    conn.close()


def test_sets_listed_most_recently_updated_first(store, tmp_db):
    old = store.add_set("Animals", "", SAMPLE_CARDS[:1])
    new = store.add_set("Colors", "", SAMPLE_CARDS[:1])
    _set_updated_at(tmp_db, old, "2024-05-01T10:00:00")
    _set_updated_at(tmp_db, new, "2024-01-01T10:00:00")
    assert [s.id for s in store.get_sets()] == [old, new]
    assert [s["id"] for s in store.get_set_summaries()] == [old, new]


def test_sets_filtered_by_title_and_favorite(store):
    animals = store.add_set("German Animals", "", SAMPLE_CARDS[:1])
    colors = store.add_set("German Colors", "", SAMPLE_CARDS[:1])
    store.add_set("Spanish", "", SAMPLE_CARDS[:1])
    store.toggle_favorite(colors)
    assert {s.id for s in store.get_sets(search="german")} == {animals, colors}
    assert [s.id for s in store.get_sets(favorites_only=True)] == [colors]
    assert [s.id for s in store.get_sets(search="ANIMAL")] == [animals]
    [summary] = store.get_set_summaries("german", favorites_only=True)
    assert summary["id"] == colors


def test_search_cards_matches_front_or_back_across_sets(store):
    store.add_set("Animals", "", SAMPLE_CARDS)
    store.add_set("More", "", [{"front": "hundert", "back": "hundred"}, {"front": "rot", "back": "red"}])
    found = {(card.front, title) for card, title in store.search_cards("HUND")}
    assert found == {("hund", "Animals"), ("hundert", "More")}
    assert [c.front for c, _ in store.search_cards("mouse")] == ["maus"]
    assert store.search_cards("zebra") == []
    assert len(store.search_cards("")) == len(SAMPLE_CARDS) + 2
