"""Persistence for sets, cards and per-card study state."""
import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Protocol

from flashlearn.db import DEFAULT_DB_PATH, get_connection
from flashlearn.models import Card, CardSet, StudyState, StudyStatus

logger = logging.getLogger(__name__)


class SetNotFoundError(LookupError):
    """Raised when a set id does not exist in the store."""


class StudyStore(Protocol):
    """What the drill scheduler needs from persistence."""

    def get_cards(self, set_id: str) -> list: ...

    def get_study_states(self, set_id: str) -> list: ...

    def update_study_state(self, card_id: str, is_correct: bool) -> None: ...


def _row_to_set(row) -> CardSet:
    return CardSet(
        id=row["id"],
        title=row["title"],
        description=row["description"] or "",
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        is_favorite=bool(row["is_favorite"]),
        tags=json.loads(row["tags"] or "[]"),
    )


def _row_to_card(row) -> Card:
    return Card(
        id=row["id"],
        set_id=row["set_id"],
        front=row["front"],
        back=row["back"],
        order_index=row["order_index"],
    )


def _row_to_state(row) -> StudyState:
    return StudyState(
        card_id=row["card_id"],
        set_id=row["set_id"],
        status=StudyStatus(row["status"]),
        correct_count=row["correct_count"],
        wrong_count=row["wrong_count"],
        last_seen_at=row["last_seen_at"],
    )


def _filter_sets(rows, search: str, favorites_only: bool) -> list:
    needle = search.strip().lower()
    return [
        r for r in rows
        if needle in r["title"].lower() and (r["is_favorite"] or not favorites_only)
    ]


class FlashcardStore:
    """SQLite-backed store. Each call opens and closes its own connection."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    # -- sets --

    def get_sets(self, search: str = "", favorites_only: bool = False) -> list[CardSet]:
        """Sets whose title contains ``search``, most recently updated first."""
        conn = get_connection(self.db_path)
        rows = conn.execute("SELECT * FROM sets ORDER BY updated_at DESC, title").fetchall()
        conn.close()
        return [_row_to_set(r) for r in _filter_sets(rows, search, favorites_only)]

    def get_set(self, set_id: str) -> CardSet:
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT * FROM sets WHERE id = ?", (set_id,)).fetchone()
        conn.close()
        if row is None:
            raise SetNotFoundError(f"No set with id {set_id!r}")
        return _row_to_set(row)

    def get_set_summaries(self, search: str = "", favorites_only: bool = False) -> list[dict]:
        """Sets with their card count and learned count, filtered like ``get_sets``."""
        conn = get_connection(self.db_path)
        rows = conn.execute(
            """SELECT s.*,
                (SELECT COUNT(*) FROM cards c WHERE c.set_id = s.id) as card_count,
                (SELECT COUNT(*) FROM study_states st
                    WHERE st.set_id = s.id AND st.status = ?) as learned_count
            FROM sets s
            ORDER BY s.updated_at DESC, s.title""",
            (StudyStatus.LEARNED.value,),
        ).fetchall()
        conn.close()
        summaries = []
        for r in _filter_sets(rows, search, favorites_only):
            summary = vars(_row_to_set(r))
            summary["card_count"] = r["card_count"]
            summary["learned_count"] = r["learned_count"]
            summaries.append(summary)
        return summaries

    def add_set(self, title: str, description: str, cards: list, tags: list | None = None) -> str:
        """Create a set from ``{"front", "back"}`` pairs. Returns the new set id."""
        set_id = str(uuid.uuid4())
        now = datetime.now().isoformat()
        conn = get_connection(self.db_path)
        conn.execute(
            """INSERT INTO sets (id, title, description, created_at, updated_at, is_favorite, tags)
            VALUES (?, ?, ?, ?, ?, 0, ?)""",
            (set_id, title, description, now, now, json.dumps(tags or [])),
        )
        self._insert_cards(conn, set_id, cards)
        conn.commit()
        conn.close()
        logger.info("Created set %s (%r) with %d cards", set_id, title, len(cards))
        return set_id

    def update_set(self, set_id: str, title: str, description: str, cards: list,
                   tags: list | None = None) -> str:
        """Rename a set and replace all of its cards; study progress starts over."""
        self.get_set(set_id)
        conn = get_connection(self.db_path)
        conn.execute(
            "UPDATE sets SET title = ?, description = ?, updated_at = ?, tags = ? WHERE id = ?",
            (title, description, datetime.now().isoformat(), json.dumps(tags or []), set_id),
        )
        conn.execute("DELETE FROM study_states WHERE set_id = ?", (set_id,))
        conn.execute("DELETE FROM cards WHERE set_id = ?", (set_id,))
        self._insert_cards(conn, set_id, cards)
        conn.commit()
        conn.close()
        return set_id

    def delete_set(self, set_id: str) -> None:
        conn = get_connection(self.db_path)
        conn.execute("DELETE FROM study_states WHERE set_id = ?", (set_id,))
        conn.execute("DELETE FROM cards WHERE set_id = ?", (set_id,))
        conn.execute("DELETE FROM sets WHERE id = ?", (set_id,))
        conn.commit()
        conn.close()
        logger.info("Deleted set %s", set_id)

    def toggle_favorite(self, set_id: str) -> bool:
        """Flip the favorite flag and return the new value."""
        current = self.get_set(set_id).is_favorite
        conn = get_connection(self.db_path)
        conn.execute("UPDATE sets SET is_favorite = ? WHERE id = ?", (int(not current), set_id))
        conn.commit()
        conn.close()
        return not current

    @staticmethod
    def _insert_cards(conn, set_id: str, cards: list) -> None:
        for i, c in enumerate(cards):
            card_id = str(uuid.uuid4())
            conn.execute(
                "INSERT INTO cards (id, set_id, front, back, order_index) VALUES (?, ?, ?, ?, ?)",
                (card_id, set_id, c["front"], c["back"], i),
            )
            conn.execute(
                "INSERT INTO study_states (card_id, set_id, status) VALUES (?, ?, ?)",
                (card_id, set_id, StudyStatus.NOT_LEARNED.value),
            )

    # -- cards and study state --

    def get_cards(self, set_id: str | None = None) -> list[Card]:
        conn = get_connection(self.db_path)
        if set_id is None:
            rows = conn.execute("SELECT * FROM cards ORDER BY set_id, order_index").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM cards WHERE set_id = ? ORDER BY order_index", (set_id,)
            ).fetchall()
        conn.close()
        return [_row_to_card(r) for r in rows]

    def search_cards(self, query: str) -> list[tuple[Card, str]]:
        """Cards of every set whose front or back contains ``query``, with their set title."""
        needle = query.strip().lower()
        conn = get_connection(self.db_path)
        rows = conn.execute(
            """SELECT c.*, s.title as set_title FROM cards c
            JOIN sets s ON c.set_id = s.id
            ORDER BY s.title, c.order_index"""
        ).fetchall()
        conn.close()
        return [
            (_row_to_card(r), r["set_title"]) for r in rows
            if needle in r["front"].lower() or needle in r["back"].lower()
        ]

    def get_study_states(self, set_id: str | None = None) -> list[StudyState]:
        conn = get_connection(self.db_path)
        if set_id is None:
            rows = conn.execute("SELECT * FROM study_states").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM study_states WHERE set_id = ?", (set_id,)
            ).fetchall()
        conn.close()
        return [_row_to_state(r) for r in rows]

    def update_study_state(self, card_id: str, is_correct: bool) -> None:
        """Record one answer. The status only reflects the latest result."""
        conn = get_connection(self.db_path)
        row = conn.execute(
            "SELECT card_id FROM study_states WHERE card_id = ?", (card_id,)
        ).fetchone()
        if row is None:
            conn.close()
            logger.warning("No study state for card %s, answer not recorded", card_id)
            return
        if is_correct:
            conn.execute(
                """UPDATE study_states SET correct_count = correct_count + 1,
                status = ?, last_seen_at = ? WHERE card_id = ?""",
                (StudyStatus.LEARNED.value, datetime.now().isoformat(), card_id),
            )
        else:
            conn.execute(
                """UPDATE study_states SET wrong_count = wrong_count + 1,
                status = ?, last_seen_at = ? WHERE card_id = ?""",
                (StudyStatus.NOT_LEARNED.value, datetime.now().isoformat(), card_id),
            )
        conn.commit()
        conn.close()

    def replace_all(self, sets: list, cards: list, states: list) -> None:
        """Drop every set, card and study state and load the given ones instead.

        Runs as one transaction: if any row is rejected nothing changes and
        the ``sqlite3.IntegrityError`` propagates.
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM study_states")
            conn.execute("DELETE FROM cards")
            conn.execute("DELETE FROM sets")
            for s in sets:
                conn.execute(
                    """INSERT INTO sets (id, title, description, created_at, updated_at, is_favorite, tags)
                    VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (s.id, s.title, s.description, s.created_at, s.updated_at,
                     int(s.is_favorite), json.dumps(s.tags)),
                )
            for c in cards:
                conn.execute(
                    "INSERT INTO cards (id, set_id, front, back, order_index) VALUES (?, ?, ?, ?, ?)",
                    (c.id, c.set_id, c.front, c.back, c.order_index),
                )
            for st in states:
                conn.execute(
                    """INSERT INTO study_states
                    (card_id, set_id, status, correct_count, wrong_count, last_seen_at)
                    VALUES (?, ?, ?, ?, ?, ?)""",
                    (st.card_id, st.set_id, st.status.value, st.correct_count,
                     st.wrong_count, st.last_seen_at),
                )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    # -- settings --

    def get_setting(self, key: str, default: str = None) -> str | None:
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
        conn.close()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str) -> None:
        conn = get_connection(self.db_path)
        conn.execute(
            "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
            (key, value, value),
        )
        conn.commit()
        conn.close()
