# tests/test_exercises.py
import random

from conftest import make_cards
from flashlearn.exercises import (
    build_exercise, grade, normalize_answer, valid_answers,
)
from flashlearn.models import Card, ExerciseType


def _card(id, front, back):
    return Card(id=id, set_id="s1", front=front, back=back)


def test_normalize_answer_strips_case_punctuation_spacing():
    assert normalize_answer(" The Cat! ") == "thecat"
    assert normalize_answer("thecat") == "thecat"
    assert normalize_answer("Größe 2") == normalize_answer("größe-2")


def test_valid_answers_collects_backs_sharing_front():
    cards = [_card("a", "bank", "bench"), _card("b", "bank", "money place"), _card("c", "baum", "tree")]
    assert valid_answers(cards[0], cards) == frozenset({"bench", "money place"})
    assert valid_answers(cards[2], cards) == frozenset({"tree"})


def test_valid_answers_match_fronts_exactly():
    cards = [_card("a", "Bank", "bench"), _card("b", "bank", "money place"), _card("c", "bank ", "shore")]
    assert valid_answers(cards[0], cards) == frozenset({"bench"})
    assert valid_answers(cards[1], cards) == frozenset({"money place"})


def test_free_type_grading_is_normalized():
    cards = [_card("a", "katze", "the cat")]
    task = build_exercise(cards[0], cards, ExerciseType.FREE_TYPE)
    assert grade(task, " The Cat! ")
    assert grade(task, "thecat")
    assert not grade(task, "the dog")
    assert not grade(task, "")


def test_free_type_accepts_synonyms():
    cards = [_card("a", "bank", "bench"), _card("b", "bank", "money place")]
    task = build_exercise(cards[0], cards, ExerciseType.FREE_TYPE)
    assert grade(task, "Money-Place")
    assert task.options == ()
    assert task.statement is None


def test_true_false_statement_matches_truth():
    cards = make_cards(6)
    for seed in range(30):
        task = build_exercise(cards[0], cards, ExerciseType.TRUE_FALSE, random.Random(seed))
        assert task.is_true == (task.statement in task.valid_answers)
        assert grade(task, task.is_true)
        assert not grade(task, not task.is_true)


def test_true_false_produces_both_outcomes():
    cards = make_cards(6)
    outcomes = {
        build_exercise(cards[0], cards, ExerciseType.TRUE_FALSE, random.Random(seed)).is_true
        for seed in range(40)
    }
    assert outcomes == {True, False}


def test_true_false_never_uses_synonym_as_distractor():
    cards = [_card("a", "bank", "bench"), _card("b", "bank", "money place")]
    for seed in range(20):
        task = build_exercise(cards[0], cards, ExerciseType.TRUE_FALSE, random.Random(seed))
        assert task.is_true is True


def test_true_false_single_card_degrades_to_true():
    cards = make_cards(1)
    for seed in range(10):
        task = build_exercise(cards[0], cards, ExerciseType.TRUE_FALSE, random.Random(seed))
        assert task.statement == cards[0].back
        assert task.is_true is True


def test_multiple_choice_has_correct_answer_and_up_to_four_options(rng):
    cards = make_cards(8)
    task = build_exercise(cards[3], cards, ExerciseType.MULTIPLE_CHOICE, rng)
    assert len(task.options) == 4
    assert task.options.count(cards[3].back) == 1
    assert len(set(task.options)) == 4
    assert grade(task, cards[3].back)
    wrong = next(o for o in task.options if o != cards[3].back)
    assert not grade(task, wrong)


def test_multiple_choice_small_pool_has_fewer_options(rng):
    cards = make_cards(2)
    task = build_exercise(cards[0], cards, ExerciseType.MULTIPLE_CHOICE, rng)
    assert sorted(task.options) == sorted([cards[0].back, cards[1].back])


def test_multiple_choice_single_card(rng):
    cards = make_cards(1)
    task = build_exercise(cards[0], cards, ExerciseType.MULTIPLE_CHOICE, rng)
    assert task.options == (cards[0].back,)


def test_multiple_choice_colliding_backs_are_deduplicated(rng):
    cards = [
        _card("a", "one", "same"),
        _card("b", "two", "same"),
        _card("c", "three", "same"),
        _card("d", "four", "other"),
    ]
    task = build_exercise(cards[0], cards, ExerciseType.MULTIPLE_CHOICE, rng)
    assert len(task.options) < 4
    assert task.options.count("same") == 1
    assert set(task.options) == {"same", "other"}


def test_multiple_choice_repeated_distractor_texts_are_dropped():
    cards = [
        _card("a", "one", "right"),
        _card("b", "two", "wrong"),
        _card("c", "three", "wrong"),
        _card("d", "four", "wrong"),
    ]
    for seed in range(10):
        task = build_exercise(cards[0], cards, ExerciseType.MULTIPLE_CHOICE, random.Random(seed))
        assert sorted(task.options) == ["right", "wrong"]


def test_multiple_choice_excludes_synonyms_from_distractors(rng):
    cards = [
        _card("a", "bank", "bench"),
        _card("b", "bank", "money place"),
        _card("c", "baum", "tree"),
    ]
    task = build_exercise(cards[0], cards, ExerciseType.MULTIPLE_CHOICE, rng)
    assert "money place" not in task.options
    assert set(task.options) == {"bench", "tree"}


def test_build_exercise_accepts_type_value():
    cards = make_cards(3)
    task = build_exercise(cards[0], cards, "type")
    assert task.type is ExerciseType.FREE_TYPE
