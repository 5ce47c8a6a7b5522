"""Full backup and restore of sets, cards and study progress as JSON."""
import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from flashlearn.models import Card, CardSet, StudyState, StudyStatus

logger = logging.getLogger(__name__)

BACKUP_SIGNATURE = "FLASHLEARN_BACKUP_V1"
BACKUP_VERSION = 1


class BackupError(ValueError):
    """Raised for files that are not a usable backup."""


def _epoch_ms(iso: str | None) -> int | None:
    if not iso:
        return None
    return int(datetime.fromisoformat(iso).timestamp() * 1000)


def _iso(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000).isoformat()
    return str(value)


def build_payload(store) -> dict:
    """The backup document, with keys matching the browser app's export."""
    return {
        "signature": BACKUP_SIGNATURE,
        "version": BACKUP_VERSION,
        "data": {
            "sets": [
                {
                    "id": s.id,
                    "title": s.title,
                    "description": s.description,
                    "createdAt": _epoch_ms(s.created_at),
                    "updatedAt": _epoch_ms(s.updated_at),
                    "isFavorite": s.is_favorite,
                    "tags": s.tags,
                }
                for s in store.get_sets()
            ],
            "cards": [
                {
                    "id": c.id,
                    "setId": c.set_id,
                    "front": c.front,
                    "back": c.back,
                    "orderIndex": c.order_index,
                }
                for c in store.get_cards()
            ],
            "states": [
                {
                    "cardId": st.card_id,
                    "setId": st.set_id,
                    "status": st.status.value,
                    "lastSeenAt": _epoch_ms(st.last_seen_at),
                    "correctCount": st.correct_count,
                    "wrongCount": st.wrong_count,
                }
                for st in store.get_study_states()
            ],
        },
        "exportedAt": int(datetime.now().timestamp() * 1000),
    }


def export_data(store, directory: str) -> Path:
    """Write a dated backup file into ``directory`` and remember it in settings."""
    payload = build_payload(store)
    filename = f"flashlearn_backup_{date.today().isoformat()}.json"
    path = Path(directory) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    store.set_setting(
        "backup_info",
        json.dumps({"timestamp": payload["exportedAt"], "filename": filename}),
    )
    logger.info("Exported backup to %s", path)
    return path


def get_backup_info(store) -> dict | None:
    raw = store.get_setting("backup_info")
    return json.loads(raw) if raw else None


def _first_by(items, key) -> list:
    """Drop repeated ids, keeping the first occurrence."""
    seen = {}
    for item in items:
        seen.setdefault(key(item), item)
    return list(seen.values())


def parse_payload(payload) -> tuple[list, list, list]:
    """Validate a backup document and turn it into model objects.

    Repeated set, card or state ids keep their first entry. A state always
    belongs to its card's set, whatever set id the file gives it.
    """
    if not isinstance(payload, dict) or payload.get("signature") != BACKUP_SIGNATURE:
        raise BackupError("Invalid backup file signature.")
    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("sets"), list):
        raise BackupError("Corrupted backup data.")
    try:
        sets = _first_by((
            CardSet(
                id=s["id"],
                title=s["title"],
                description=s.get("description") or "",
                created_at=_iso(s.get("createdAt")) or datetime.now().isoformat(),
                updated_at=_iso(s.get("updatedAt")) or datetime.now().isoformat(),
                is_favorite=bool(s.get("isFavorite", False)),
                tags=list(s.get("tags") or []),
            )
            for s in data["sets"]
        ), key=lambda s: s.id)
        set_ids = {s.id for s in sets}
        cards = _first_by((
            Card(
                id=c["id"],
                set_id=c["setId"],
                front=c["front"],
                back=c["back"],
                order_index=int(c.get("orderIndex", 0)),
            )
            for c in data.get("cards") or []
            if c.get("setId") in set_ids
        ), key=lambda c: c.id)
        card_sets = {c.id: c.set_id for c in cards}
        states = _first_by((
            StudyState(
                card_id=st["cardId"],
                set_id=card_sets[st["cardId"]],
                status=StudyStatus(st.get("status", StudyStatus.NOT_LEARNED.value)),
                correct_count=int(st.get("correctCount", 0)),
                wrong_count=int(st.get("wrongCount", 0)),
                last_seen_at=_iso(st.get("lastSeenAt")),
            )
            for st in data.get("states") or []
            if st.get("cardId") in card_sets
        ), key=lambda st: st.card_id)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise BackupError(f"Corrupted backup data: {e}") from e
    # every card needs a state row or its answers are never recorded
    tracked = {st.card_id for st in states}
    states.extend(StudyState(card_id=c.id, set_id=c.set_id) for c in cards if c.id not in tracked)
    return sets, cards, states


def import_data(store, file_path: str) -> dict:
    """Replace everything in the store with the contents of a backup file.

    A backup the database rejects leaves the current data untouched.
    """
    try:
        payload = json.loads(Path(file_path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise BackupError(f"Not a JSON file: {e}") from e
    sets, cards, states = parse_payload(payload)
    try:
        store.replace_all(sets, cards, states)
    except sqlite3.IntegrityError as e:
        raise BackupError(f"Backup data is inconsistent: {e}") from e
    logger.info("Restored %d sets and %d cards from %s", len(sets), len(cards), file_path)
    return {"sets": len(sets), "cards": len(cards), "states": len(states)}
