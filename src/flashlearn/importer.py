"""Import term/definition pairs from pasted text or files."""
import json
from pathlib import Path


class ImportFormatError(ValueError):
    """Raised when a file holds nothing that can become a card."""


def _delimiter_for(line: str) -> str:
    if ";" in line:
        return ";"
    if "," in line:
        return ","
    return "-"


def parse_bulk_text(text: str) -> list[dict]:
    """One card per line: ``front;back``, ``front,back`` or ``front-back``.

    Only the first delimiter splits; the rest stays in the back. Lines
    without both a front and a back are skipped.
    """
    cards = []
    for line in text.splitlines():
        if not line.strip():
            continue
        delimiter = _delimiter_for(line)
        parts = line.split(delimiter)
        if len(parts) < 2:
            continue
        front = parts[0].strip()
        back = delimiter.join(parts[1:]).strip()
        if front and back:
            cards.append({"front": front, "back": back})
    return cards


def read_cards(file_path: str) -> list[dict]:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ImportFormatError(f"{path.name}: expected a list of cards")
        cards = []
        for item in data:
            if not isinstance(item, dict):
                continue
            front = str(item.get("front", "")).strip()
            back = str(item.get("back", "")).strip()
            if front and back:
                cards.append({"front": front, "back": back})
        return cards
    # .txt, .md, .csv and anything else are read line by line
    return parse_bulk_text(path.read_text(encoding="utf-8"))


def import_file(store, file_path: str, title: str | None = None, description: str = "") -> dict:
    """Create a new set from a file. Title defaults to the file name without extension."""
    cards = read_cards(file_path)
    if not cards:
        raise ImportFormatError(f"No cards found in {Path(file_path).name}")
    title = title or Path(file_path).stem
    set_id = store.add_set(title, description, cards)
    return {"set_id": set_id, "title": title, "card_count": len(cards)}
