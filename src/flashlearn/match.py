"""Matching game: pair each term with its meaning while the clock runs."""
import logging
import random
import time
import uuid
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

MATCH_PAIRS = 6


class TileSide(str, Enum):
    FRONT = "front"
    BACK = "back"


class PickResult(str, Enum):
    SELECTED = "selected"
    DESELECTED = "deselected"
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    IGNORED = "ignored"


@dataclass
class Tile:
    id: str
    card_id: str
    text: str
    side: TileSide
    is_matched: bool = False


class MatchGame:
    """One round of up to ``MATCH_PAIRS`` cards, each split into two tiles.

    Picking two tiles of the same card (one front, one back) matches them
    and records a correct answer for that card. Any other pair counts as a
    mistake and clears the selection.
    """

    def __init__(self, cards, store, rng: random.Random | None = None,
                 clock=time.monotonic, pairs: int = MATCH_PAIRS):
        rng = rng or random.Random()
        cards = list(cards)
        chosen = rng.sample(cards, min(pairs, len(cards)))
        self.tiles = []
        for card in chosen:
            self.tiles.append(Tile(str(uuid.uuid4()), card.id, card.front, TileSide.FRONT))
            self.tiles.append(Tile(str(uuid.uuid4()), card.id, card.back, TileSide.BACK))
        rng.shuffle(self.tiles)
        self.store = store
        self.selected = None
        self.mistakes = 0
        self.clock = clock
        self.started_at = clock()
        self.finished_at = None

    @property
    def has_content(self) -> bool:
        return bool(self.tiles)

    @property
    def is_finished(self) -> bool:
        return self.has_content and all(t.is_matched for t in self.tiles)

    @property
    def elapsed_seconds(self) -> int:
        end = self.finished_at if self.finished_at is not None else self.clock()
        return int(end - self.started_at)

    def remaining(self) -> list[Tile]:
        return [t for t in self.tiles if not t.is_matched]

    def pick(self, tile_id: str) -> PickResult:
        tile = next((t for t in self.tiles if t.id == tile_id), None)
        if tile is None:
            raise LookupError(f"No tile with id {tile_id!r}")
        if tile.is_matched:
            return PickResult.IGNORED
        if self.selected is None:
            self.selected = tile
            return PickResult.SELECTED
        if self.selected.id == tile.id:
            self.selected = None
            return PickResult.DESELECTED

        first, self.selected = self.selected, None
        if first.card_id == tile.card_id and first.side != tile.side:
            first.is_matched = tile.is_matched = True
            self.store.update_study_state(tile.card_id, True)
            if self.is_finished:
                self.finished_at = self.clock()
                logger.debug("Match finished in %ds with %d mistakes",
                             self.elapsed_seconds, self.mistakes)
            return PickResult.MATCHED
        self.mistakes += 1
        return PickResult.MISMATCHED
