"""Flip-card review: show a card, reveal it, say whether you knew it."""
import random
from dataclasses import dataclass

from flashlearn.models import StudyStatus


@dataclass
class ReviewTally:
    learned: int = 0
    review_needed: int = 0

    @property
    def total(self) -> int:
        return self.learned + self.review_needed


def get_review_cards(store, set_id: str, pool: str = "all", shuffle: bool = True,
                     rng: random.Random | None = None) -> list:
    """Cards to flip through; ``pool="not_learned"`` skips cards already learned."""
    if pool not in ("all", "not_learned"):
        raise ValueError(f"Unknown review pool {pool!r}")
    cards = store.get_cards(set_id)
    if pool == "not_learned":
        learned = {
            s.card_id for s in store.get_study_states(set_id)
            if s.status == StudyStatus.LEARNED
        }
        cards = [c for c in cards if c.id not in learned]
    if shuffle:
        (rng or random.Random()).shuffle(cards)
    return cards


def record_review(store, tally: ReviewTally, card_id: str, knew_it: bool) -> None:
    store.update_study_state(card_id, knew_it)
    if knew_it:
        tally.learned += 1
    else:
        tally.review_needed += 1
