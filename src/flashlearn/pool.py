"""Choose which cards of a set go into a drill session."""
import logging
import random

from flashlearn.models import StudyStatus

logger = logging.getLogger(__name__)


def select_pool(cards: list, states: list, rng: random.Random | None = None) -> list:
    """Return the shuffled working pool for a session.

    Unlearned cards are preferred. A card with no study state counts as
    unlearned. When every card is learned the whole set is used instead, so
    a non-empty set always yields a non-empty pool. An empty set yields an
    empty list and it is up to the caller to report that.
    """
    rng = rng or random.Random()
    learned = {s.card_id for s in states if s.status == StudyStatus.LEARNED}
    pool = [c for c in cards if c.id not in learned]
    if not pool:
        if cards:
            logger.debug("All %d cards learned, falling back to the full set", len(cards))
        pool = list(cards)
    rng.shuffle(pool)
    return pool
