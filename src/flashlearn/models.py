"""Data classes for the flashcard domain model."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class StudyStatus(str, Enum):
    LEARNED = "learned"
    NOT_LEARNED = "not_learned"


class ExerciseType(str, Enum):
    TRUE_FALSE = "tf"
    MULTIPLE_CHOICE = "mcq"
    FREE_TYPE = "type"


ALL_EXERCISE_TYPES = (
    ExerciseType.TRUE_FALSE,
    ExerciseType.MULTIPLE_CHOICE,
    ExerciseType.FREE_TYPE,
)


class LearnMode(str, Enum):
    """Drill mode picked by the user: one locked type, or everything mixed."""

    TF = "tf"
    MCQ = "mcq"
    TYPE = "type"
    LEARN = "learn"

    def exercise_types(self) -> tuple:
        if self is LearnMode.LEARN:
            return ALL_EXERCISE_TYPES
        return (ExerciseType(self.value),)


@dataclass
class CardSet:
    id: str
    title: str
    created_at: str
    updated_at: str
    description: str = ""
    is_favorite: bool = False
    tags: list = field(default_factory=list)


@dataclass(frozen=True)
class Card:
    id: str
    set_id: str
    front: str
    back: str
    order_index: int = 0


@dataclass
class StudyState:
    card_id: str
    set_id: str
    status: StudyStatus = StudyStatus.NOT_LEARNED
    correct_count: int = 0
    wrong_count: int = 0
    last_seen_at: Optional[str] = None


@dataclass(frozen=True)
class Task:
    """One exercise built from a card for the current session only.

    ``statement``/``is_true`` are set for true/false tasks and ``options``
    for multiple-choice tasks. ``valid_answers`` holds every back sharing
    the card's front.
    """

    card: Card
    type: ExerciseType
    valid_answers: frozenset
    statement: Optional[str] = None
    is_true: Optional[bool] = None
    options: tuple = ()

    @property
    def is_free_type(self) -> bool:
        return self.type is ExerciseType.FREE_TYPE
