"""Session generation: pick items, weakest first."""
from loguru import logger

from toeic_tutor.models import ANY, ContentItem, ItemId
from toeic_tutor.repository import ContentRepository
from toeic_tutor.tracker import MasteryTracker


class SessionGenerator:
    def __init__(self, repository: ContentRepository, tracker: MasteryTracker):
        self.repository = repository
        self.tracker = tracker

    def eligible(self, kind: str = ANY, difficulty: str = ANY) -> list[ContentItem]:
        items = self.repository.items()
        if kind != ANY:
            items = [i for i in items if i.kind == kind]
        if difficulty != ANY:
            items = [i for i in items if i.difficulty == difficulty]
        return items

    def generate(self, kind: str = ANY, difficulty: str = ANY, count: int = 20) -> list[ItemId]:
        """Return up to `count` item ids ordered by ascending historical accuracy.

        Unseen items rank as 0.5. Ties keep repository order (sorted() is stable).
        An empty list means no session is available for these filters.
        """
        if count <= 0:
            return []
        items = sorted(self.eligible(kind, difficulty), key=lambda i: self.tracker.accuracy_of(i.id))
        sequence = [i.id for i in items[:count]]
        logger.debug(f"Generated {len(sequence)} of {count} requested items (kind={kind}, difficulty={difficulty})")
        return sequence
