"""Progress summaries per set and across all sets."""
from flashlearn.models import StudyStatus


def get_progress_label(percent: float) -> str:
    if percent >= 90:
        return "MASTERED"
    elif percent >= 60:
        return "ALMOST THERE"
    elif percent > 0:
        return "IN PROGRESS"
    return "NOT STARTED"


def get_progress_color(percent: float) -> str:
    if percent >= 90:
        return "green"
    elif percent >= 60:
        return "yellow"
    elif percent > 0:
        return "dark_orange"
    return "red"


def learned_percent(learned_count: int, card_count: int) -> float:
    if not card_count:
        return 0.0
    return round(learned_count / card_count * 100, 1)


def get_set_progress(store, search: str = "", favorites_only: bool = False) -> list[dict]:
    """One row per set: counts, learned percentage and its label."""
    results = []
    for s in store.get_set_summaries(search, favorites_only):
        pct = learned_percent(s["learned_count"], s["card_count"])
        results.append({
            "set_id": s["id"],
            "title": s["title"],
            "is_favorite": s["is_favorite"],
            "card_count": s["card_count"],
            "learned_count": s["learned_count"],
            "percent": pct,
            "label": get_progress_label(pct),
        })
    return results


def get_study_stats(store) -> dict:
    states = store.get_study_states()
    correct = sum(s.correct_count for s in states)
    wrong = sum(s.wrong_count for s in states)
    answered = correct + wrong
    return {
        "sets": len(store.get_sets()),
        "cards": len(states),
        "learned": sum(1 for s in states if s.status == StudyStatus.LEARNED),
        "answers": answered,
        "accuracy": round(correct / answered * 100, 1) if answered else 0.0,
    }
