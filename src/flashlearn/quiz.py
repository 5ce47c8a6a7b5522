"""One-shot practice test: a fixed list of questions, no blocks."""
import random
import uuid
from dataclasses import dataclass, field
from typing import Optional

from flashlearn.models import ALL_EXERCISE_TYPES, ExerciseType

ANSWER_WITH = ("term", "meaning", "both")

_TYPE_ORDER = {
    ExerciseType.TRUE_FALSE: 0,
    ExerciseType.MULTIPLE_CHOICE: 1,
    ExerciseType.FREE_TYPE: 2,
}


@dataclass
class PracticeQuestion:
    id: str
    card_id: str
    type: ExerciseType
    prompt: str
    correct_answer: str
    options: list = field(default_factory=list)
    statement: Optional[str] = None
    is_true: Optional[bool] = None


def _sides(card, prompt_side: str) -> tuple[str, str]:
    if prompt_side == "front":
        return card.front, card.back
    return card.back, card.front


def _answer_side(card, prompt_side: str) -> str:
    return card.back if prompt_side == "front" else card.front


def generate_test(cards: list, count: int | None = None, types=ALL_EXERCISE_TYPES,
                  answer_with: str = "both", group_types: bool = False,
                  rng: random.Random | None = None) -> list[PracticeQuestion]:
    """Build a practice test from ``cards``.

    Types are handed out round-robin. ``answer_with="term"`` shows the
    meaning and asks for the term, ``"meaning"`` the other way round and
    ``"both"`` picks per question.
    """
    if answer_with not in ANSWER_WITH:
        raise ValueError(f"answer_with must be one of {ANSWER_WITH}")
    types = [ExerciseType(t) for t in types]
    if not types:
        raise ValueError("At least one question type is required")
    if not cards:
        return []
    rng = rng or random.Random()
    count = len(cards) if count is None else max(1, min(count, len(cards)))

    shuffled = list(cards)
    rng.shuffle(shuffled)
    questions = []
    for i, card in enumerate(shuffled[:count]):
        qtype = types[i % len(types)]
        if answer_with == "term":
            prompt_side = "back"
        elif answer_with == "meaning":
            prompt_side = "front"
        else:
            prompt_side = "front" if rng.random() < 0.5 else "back"
        prompt, correct = _sides(card, prompt_side)
        q = PracticeQuestion(
            id=str(uuid.uuid4()), card_id=card.id, type=qtype,
            prompt=prompt, correct_answer=correct,
        )
        others = [c for c in cards if c.id != card.id]
        if qtype is ExerciseType.TRUE_FALSE:
            statement = correct
            if rng.random() < 0.5 and others:
                statement = _answer_side(rng.choice(others), prompt_side)
            q.statement = statement
            q.is_true = statement == correct
        elif qtype is ExerciseType.MULTIPLE_CHOICE:
            picked = rng.sample(others, min(3, len(others)))
            options = [correct] + [_answer_side(o, prompt_side) for o in picked]
            rng.shuffle(options)
            q.options = options
        questions.append(q)

    if group_types:
        questions.sort(key=lambda q: _TYPE_ORDER[q.type])
    else:
        rng.shuffle(questions)
    return questions


def grade_test_answer(question: PracticeQuestion, answer) -> bool:
    if question.type is ExerciseType.TRUE_FALSE:
        return bool(answer) == question.is_true
    return str(answer).strip().lower() == question.correct_answer.strip().lower()


def score_test(results: list) -> dict:
    """Summarize a list of booleans, one per answered question."""
    total = len(results)
    correct = sum(1 for r in results if r)
    percent = round(correct / total * 100, 1) if total else 0.0
    return {"correct": correct, "total": total, "percent": percent}
