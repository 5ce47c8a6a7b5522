"""Build single exercises from a card and grade the answers to them."""
import logging
import random

from flashlearn.models import ExerciseType, Task

logger = logging.getLogger(__name__)

MAX_DISTRACTORS = 3


def normalize_answer(text: str) -> str:
    """Casefold and keep only letters and digits, so " The Cat! " == "thecat"."""
    return "".join(ch for ch in text.casefold() if ch.isalnum())


def valid_answers(card, cards: list) -> frozenset:
    """Every back in ``cards`` whose front is exactly ``card``'s front.

    Fronts are compared as stored: "Bank" and "bank" are different terms.
    """
    answers = {c.back for c in cards if c.front == card.front}
    answers.add(card.back)
    return frozenset(answers)


def _distractor_cards(valid: frozenset, cards: list) -> list:
    return [c for c in cards if c.back not in valid]


def build_true_false(card, cards: list, rng: random.Random) -> Task:
    valid = valid_answers(card, cards)
    statement = card.back
    if rng.random() < 0.5:
        candidates = _distractor_cards(valid, cards)
        if candidates:
            statement = rng.choice(candidates).back
        else:
            logger.debug("No true/false distractor for card %s, showing the real answer", card.id)
    return Task(
        card=card,
        type=ExerciseType.TRUE_FALSE,
        valid_answers=valid,
        statement=statement,
        is_true=statement in valid,
    )


def build_multiple_choice(card, cards: list, rng: random.Random) -> Task:
    """Correct back plus up to three distractors, shuffled, duplicates dropped.

    Options may number fewer than four when the set is small or when
    distractor texts repeat.
    """
    valid = valid_answers(card, cards)
    candidates = _distractor_cards(valid, cards)
    distractors = rng.sample(candidates, min(MAX_DISTRACTORS, len(candidates)))
    combined = [card.back] + [d.back for d in distractors]
    rng.shuffle(combined)
    options = []
    for text in combined:
        if text not in options:
            options.append(text)
    if len(options) < MAX_DISTRACTORS + 1:
        logger.debug("Card %s gets %d multiple-choice options", card.id, len(options))
    return Task(
        card=card,
        type=ExerciseType.MULTIPLE_CHOICE,
        valid_answers=valid,
        options=tuple(options),
    )


def build_free_type(card, cards: list) -> Task:
    return Task(card=card, type=ExerciseType.FREE_TYPE, valid_answers=valid_answers(card, cards))


def build_exercise(card, cards: list, exercise_type: ExerciseType,
                   rng: random.Random | None = None) -> Task:
    """Produce one task for ``card``.

    ``cards`` is where distractors and synonym answers are looked up;
    it normally is the whole set the card belongs to.
    """
    rng = rng or random.Random()
    exercise_type = ExerciseType(exercise_type)
    if exercise_type is ExerciseType.TRUE_FALSE:
        return build_true_false(card, cards, rng)
    if exercise_type is ExerciseType.MULTIPLE_CHOICE:
        return build_multiple_choice(card, cards, rng)
    return build_free_type(card, cards)


def grade(task: Task, answer) -> bool:
    """Check an answer against a task.

    True/false tasks take a bool (the user's claim that the statement is
    true), multiple-choice tasks take the chosen option text and free-type
    tasks take whatever was typed.
    """
    if task.type is ExerciseType.TRUE_FALSE:
        return bool(answer) == task.is_true
    if task.type is ExerciseType.MULTIPLE_CHOICE:
        return answer in task.valid_answers
    typed = normalize_answer(answer or "")
    return any(typed == normalize_answer(v) for v in task.valid_answers)
