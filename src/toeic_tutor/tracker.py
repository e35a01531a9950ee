"""Per-item mastery statistics: correctness counts, answer latency, last answer."""
import json
from dataclasses import asdict, replace
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from toeic_tutor.models import ItemId, MasteryRecord
from toeic_tutor.repository import ContentRepository
from toeic_tutor.storage import MemoryProgressStore, ProgressStore

NEUTRAL_ACCURACY = 0.5


def record_from_dict(raw: dict) -> MasteryRecord:
    """Rebuild a record from its saved form. Raises ValueError if it is inconsistent."""
    try:
        record = MasteryRecord(
            times_answered=int(raw["times_answered"]),
            correct_count=int(raw["correct_count"]),
            incorrect_count=int(raw["incorrect_count"]),
            average_time_ms=float(raw.get("average_time_ms", 0.0)),
            last_answered=raw.get("last_answered"),
            last_selected=raw.get("last_selected"),
            last_correct=raw.get("last_correct"),
        )
    except (AttributeError, KeyError, TypeError) as e:
        raise ValueError(f"malformed record {raw!r}") from e
    if record.correct_count + record.incorrect_count != record.times_answered:
        raise ValueError(f"record counts do not add up: {raw!r}")
    if min(record.times_answered, record.correct_count, record.incorrect_count) < 0:
        raise ValueError(f"negative counts in record: {raw!r}")
    return record


class MasteryTracker:
    """Sole owner of MasteryRecords. Every change is handed to the store."""

    def __init__(
        self,
        repository: ContentRepository,
        store: ProgressStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.store = store if store is not None else MemoryProgressStore()
        self._clock = clock
        self._records: dict[ItemId, MasteryRecord] = {}

    def load(self) -> "MasteryTracker":
        """Replace in-memory records with whatever the store holds."""
        self.restore(self.store.load())
        logger.info(f"Loaded progress for {len(self._records)} items")
        return self

    def restore(self, data: dict) -> int:
        """Replace records from a serialized mapping, skipping malformed entries."""
        records = {}
        for item_id, raw in data.items():
            try:
                records[ItemId(str(item_id))] = record_from_dict(raw)
            except ValueError as e:
                logger.warning(f"Skipping saved progress for {item_id}: {e}")
        self._records = records
        return len(records)

    def to_dict(self) -> dict:
        return {item_id: asdict(record) for item_id, record in self._records.items()}

    def _persist(self) -> None:
        # Fire and forget: nothing here reads back what the store wrote.
        self.store.save(self.to_dict())

    def record_answer(
        self, item_id: str, selected_index: int, response_time_ms: float = 0
    ) -> Optional[MasteryRecord]:
        """Record one answer and return a copy of the updated record.

        Returns None, changing nothing, when the item is unknown or the selected
        index is not one of its options.
        """
        item = self.repository.get_item(item_id)
        if item is None:
            logger.debug(f"record_answer: unknown item {item_id}")
            return None
        if not 0 <= selected_index < len(item.options):
            logger.debug(f"record_answer: option {selected_index} out of range for {item_id}")
            return None

        record = self._records.setdefault(item.id, MasteryRecord())
        is_correct = selected_index == item.correct_index
        record.times_answered += 1
        if is_correct:
            record.correct_count += 1
        else:
            record.incorrect_count += 1
        n = record.times_answered
        record.average_time_ms = (record.average_time_ms * (n - 1) + max(response_time_ms, 0)) / n
        record.last_answered = self._clock().isoformat()
        record.last_selected = selected_index
        record.last_correct = is_correct

        logger.debug(f"Recorded answer for {item_id}: {'correct' if is_correct else 'incorrect'}")
        self._persist()
        return replace(record)

    def accuracy_of(self, item_id: str) -> float:
        record = self._records.get(ItemId(item_id))
        if record is None:
            return NEUTRAL_ACCURACY
        return record.accuracy

    def record_for(self, item_id: str) -> Optional[MasteryRecord]:
        record = self._records.get(ItemId(item_id))
        return replace(record) if record is not None else None

    def records(self) -> dict:
        """Copies of the records for items that exist in the repository."""
        return {
            item_id: replace(record)
            for item_id, record in self._records.items()
            if item_id in self.repository
        }

    def answered_count(self) -> int:
        return len(self.records())

    def reset(self) -> None:
        self._records.clear()
        self._persist()
        logger.info("Progress reset")

    def export_progress(self) -> str:
        return json.dumps(
            {"user_progress": self.to_dict(), "export_date": self._clock().isoformat()},
            indent=2,
        )

    def import_progress(self, payload: str) -> bool:
        """Replace records from an export_progress() document. False on bad input."""
        try:
            data = json.loads(payload)
        except ValueError as e:
            logger.error(f"Could not import progress: {e}")
            return False
        progress = data.get("user_progress") if isinstance(data, dict) else None
        if not isinstance(progress, dict):
            logger.error("Could not import progress: no user_progress mapping")
            return False
        self.restore(progress)
        self._persist()
        logger.info(f"Imported progress for {len(self._records)} items")
        return True
