"""Plan a mixed drill session: pool, tasks, blocks."""
import logging
import random
from dataclasses import dataclass, field

from flashlearn.blocks import arrange_blocks
from flashlearn.models import ALL_EXERCISE_TYPES
from flashlearn.pool import select_pool
from flashlearn.session import SessionRunner
from flashlearn.tasks import expand_tasks

logger = logging.getLogger(__name__)


@dataclass
class SessionPlan:
    set_id: str
    pool: list = field(default_factory=list)
    tasks: list = field(default_factory=list)
    blocks: list = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.blocks)

    @property
    def task_count(self) -> int:
        return sum(len(b) for b in self.blocks)


def plan_session(store, set_id: str, types=ALL_EXERCISE_TYPES,
                 rng: random.Random | None = None) -> SessionPlan:
    """Build a fresh session plan. A set without cards gives an empty plan."""
    rng = rng or random.Random()
    cards = store.get_cards(set_id)
    if not cards:
        logger.info("Set %s has no cards to study", set_id)
        return SessionPlan(set_id=set_id)
    pool = select_pool(cards, store.get_study_states(set_id), rng)
    tasks = expand_tasks(pool, types, cards=cards, rng=rng)
    blocks = arrange_blocks(tasks, rng)
    logger.info(
        "Planned session for set %s: %d cards, %d tasks, %d blocks",
        set_id, len(pool), len(tasks), len(blocks),
    )
    return SessionPlan(set_id=set_id, pool=pool, tasks=tasks, blocks=blocks)


def start_session(store, set_id: str, types=ALL_EXERCISE_TYPES,
                  rng: random.Random | None = None) -> SessionRunner:
    plan = plan_session(store, set_id, types, rng)
    return SessionRunner(plan.blocks, store)
