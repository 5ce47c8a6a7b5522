"""Group a session's tasks into short blocks with a pacing break between them.

Typing exercises are the heaviest, so they are pushed to the end of the
session. Every block that holds typing exercises also carries at least one
lighter exercise, and never more than ``MAX_FREE_TYPE_PER_BLOCK`` typing
exercises. Inside a block the same card should not come up twice in a row.

Blocks only reorder and regroup: the number of tasks in equals the number
of tasks out.
"""
import logging
import math
import random

logger = logging.getLogger(__name__)

BLOCK_SIZE = 5
MAX_FREE_TYPE_PER_BLOCK = 4


def _chunk(items, size: int = BLOCK_SIZE) -> list:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def _free_type_count(block) -> int:
    return sum(1 for t in block if t.is_free_type)


def build_blocks(other_tasks, free_type_tasks) -> tuple:
    """Shape already-shuffled tasks into blocks, typing-heavy blocks last.

    Each late block opens with one "breather" taken from the front of
    ``other_tasks`` and is filled with up to four typing tasks. What is left
    of ``other_tasks`` becomes the early blocks. A short last early block is
    folded into the first late block.
    """
    others = tuple(other_tasks)
    free = tuple(free_type_tasks)

    late_count = math.ceil(len(free) / MAX_FREE_TYPE_PER_BLOCK)
    breathers = others[:late_count]
    remaining = others[len(breathers):]

    late_blocks = []
    taken = 0
    for i in range(late_count):
        block = list(breathers[i:i + 1])
        room = min(MAX_FREE_TYPE_PER_BLOCK, BLOCK_SIZE - len(block))
        block.extend(free[taken:taken + room])
        taken += room
        late_blocks.append(block)

    early_blocks = _chunk(remaining)
    if early_blocks and late_blocks and len(early_blocks[-1]) < BLOCK_SIZE:
        late_blocks[0] = early_blocks.pop() + late_blocks[0]

    return tuple(tuple(b) for b in early_blocks + late_blocks)


def _same_card(a, b) -> bool:
    return a.card.id == b.card.id


def _clashes(block: list, pos: int) -> bool:
    return any(
        0 <= n < len(block) and _same_card(block[pos], block[n])
        for n in (pos - 1, pos + 1)
    )


def repair_repeats(block) -> list:
    """Break up back-to-back tasks for the same card, best effort.

    For each clash at most one swap is made: the second task of the pair
    (failing that, the first) trades places with another position, as long
    as neither touched position ends up next to its own card. If no such
    swap exists the clash stays.
    """
    block = list(block)
    for i in range(len(block) - 1):
        if not _same_card(block[i], block[i + 1]):
            continue
        swap = _find_swap(block, i)
        if swap is None:
            logger.debug("Could not separate repeated card %s in block", block[i].card.id)
            continue
        a, b = swap
        block[a], block[b] = block[b], block[a]
    return block


def _find_swap(block: list, i: int):
    for moved in (i + 1, i):
        for j in range(len(block)):
            if j in (i, i + 1):
                continue
            trial = block[:]
            trial[moved], trial[j] = trial[j], trial[moved]
            if not _clashes(trial, moved) and not _clashes(trial, j):
                return moved, j
    return None


def arrange_blocks(tasks, rng: random.Random | None = None) -> list:
    """Turn the raw task list into the ordered list of blocks for a session."""
    rng = rng or random.Random()
    free = [t for t in tasks if t.is_free_type]
    others = [t for t in tasks if not t.is_free_type]
    rng.shuffle(free)
    rng.shuffle(others)

    mixed = bool(free) and bool(others)
    if mixed:
        blocks = [list(b) for b in build_blocks(others, free)]
    else:
        everything = others + free
        rng.shuffle(everything)
        blocks = _chunk(everything)

    for n, block in enumerate(blocks):
        rng.shuffle(block)
        blocks[n] = repair_repeats(block)

    if len(blocks) > 1 and len(blocks[-1]) < BLOCK_SIZE:
        merged = blocks[-2] + blocks[-1]
        if mixed and _free_type_count(merged) > MAX_FREE_TYPE_PER_BLOCK:
            logger.debug("Keeping short final block of %d tasks", len(blocks[-1]))
        else:
            blocks[-2:] = [repair_repeats(merged)]

    return [tuple(b) for b in blocks]
