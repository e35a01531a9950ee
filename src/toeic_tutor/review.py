"""Weak area identification and review statistics derived from mastery records."""
from toeic_tutor.models import KIND_PROFILES
from toeic_tutor.repository import ContentRepository
from toeic_tutor.tracker import MasteryTracker


def get_stats_by_kind(repository: ContentRepository, tracker: MasteryTracker) -> dict:
    """Answered items, correct/incorrect answers and accuracy per item kind."""
    stats: dict[str, dict] = {}
    for item_id, record in tracker.records().items():
        kind = repository.get_item(item_id).kind
        entry = stats.setdefault(kind, {"items": 0, "correct": 0, "incorrect": 0})
        entry["items"] += 1
        entry["correct"] += record.correct_count
        entry["incorrect"] += record.incorrect_count
    for entry in stats.values():
        answered = entry["correct"] + entry["incorrect"]
        entry["accuracy"] = round(entry["correct"] / answered * 100, 1) if answered else 0.0
    return stats


def get_weak_areas(
    repository: ContentRepository, tracker: MasteryTracker, threshold: float = 70.0
) -> list[dict]:
    """Get item kinds whose accuracy is below threshold (sorted worst first)."""
    weak = [
        {
            "kind": kind,
            "name": KIND_PROFILES[kind].name,
            "accuracy": round(entry["accuracy"]),
            "recommendation": KIND_PROFILES[kind].recommendation,
        }
        for kind, entry in get_stats_by_kind(repository, tracker).items()
        if entry["accuracy"] < threshold
    ]
    return sorted(weak, key=lambda w: w["accuracy"])


def get_passage_stats(repository: ContentRepository, tracker: MasteryTracker) -> list[dict]:
    """Read counts and comprehension per passage, aggregated over its linked items."""
    results = []
    for passage in repository.passages():
        records = [r for r in (tracker.record_for(i) for i in passage.item_ids) if r is not None]
        times_read = sum(r.times_answered for r in records)
        correct = sum(r.correct_count for r in records)
        total_time = sum(r.average_time_ms * r.times_answered for r in records)
        last_read = max((r.last_answered for r in records if r.last_answered), default=None)
        results.append({
            "passage_id": passage.id,
            "title": passage.title,
            "category": passage.category,
            "difficulty": passage.difficulty,
            "word_count": passage.word_count,
            "times_read": times_read,
            "comprehension_score": round(correct / times_read * 100, 1) if times_read else 0.0,
            "average_time_ms": total_time / times_read if times_read else 0.0,
            "last_read": last_read,
        })
    return results


def get_reading_speed_analysis(repository: ContentRepository, tracker: MasteryTracker) -> list[dict]:
    """Words per minute for each passage read at least once, slowest first."""
    speeds = []
    for stats in get_passage_stats(repository, tracker):
        if stats["times_read"] == 0 or stats["average_time_ms"] <= 0:
            continue
        minutes = stats["average_time_ms"] / 60000
        speeds.append({
            "passage_id": stats["passage_id"],
            "title": stats["title"],
            "word_count": stats["word_count"],
            "average_time_ms": stats["average_time_ms"],
            "words_per_minute": round(stats["word_count"] / minutes),
            "comprehension_score": stats["comprehension_score"],
        })
    return sorted(speeds, key=lambda s: s["words_per_minute"])


def get_missed_items(
    repository: ContentRepository, tracker: MasteryTracker, item_ids: list | None = None
) -> list[dict]:
    """Items whose most recent answer was wrong, with the chosen and correct options."""
    ids = item_ids if item_ids is not None else [i.id for i in repository.items()]
    missed = []
    for item_id in ids:
        record = tracker.record_for(item_id)
        item = repository.get_item(item_id)
        if record is None or item is None or record.last_correct is not False:
            continue
        selected = record.last_selected
        missed.append({
            "item_id": item.id,
            "prompt": item.prompt,
            "selected": item.options[selected] if isinstance(selected, int) and 0 <= selected < len(item.options) else None,
            "correct": item.options[item.correct_index],
            "explanation": item.explanation,
        })
    return missed
