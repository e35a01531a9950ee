"""Engine facade consumed by the presentation layer.

Build one PracticeEngine with build_engine() and pass it to whatever needs it.
All calls return None or False for requests that make no sense in the current
state (no active session, option out of range) instead of raising.
"""
import time
from typing import Callable, Optional

from loguru import logger

from toeic_tutor import review
from toeic_tutor.config import Settings
from toeic_tutor.estimator import ScoreEstimator
from toeic_tutor.generator import SessionGenerator
from toeic_tutor.models import (
    ANY,
    AggregateStats,
    AnswerResult,
    PresentedItem,
    ScoreEstimate,
    SessionStats,
    SessionSummary,
)
from toeic_tutor.repository import ContentRepository
from toeic_tutor.session import PracticeSession
from toeic_tutor.storage import ProgressStore, SqliteProgressStore
from toeic_tutor.tracker import MasteryTracker


class PracticeEngine:
    def __init__(
        self,
        repository: ContentRepository,
        tracker: MasteryTracker,
        session_size: int = 20,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.tracker = tracker
        self.generator = SessionGenerator(repository, tracker)
        self.estimator = ScoreEstimator(repository, tracker)
        self.session_size = session_size
        self._clock = clock
        self.session: Optional[PracticeSession] = None

    # --- session lifecycle ---

    def start_session(
        self, kind: str = ANY, difficulty: str = ANY, count: Optional[int] = None
    ) -> Optional[PracticeSession]:
        """Generate and start a session. None when no item matches the filters."""
        sequence = self.generator.generate(kind, difficulty, self.session_size if count is None else count)
        if not sequence:
            logger.info(f"No questions available for kind={kind}, difficulty={difficulty}")
            return None
        if self.session is not None and self.session.in_progress:
            logger.debug("Discarding unfinished session")
        session = PracticeSession(self.repository, self.tracker, clock=self._clock)
        session.start(sequence)
        self.session = session
        return session

    def get_current_item(self) -> Optional[PresentedItem]:
        return self.session.current() if self.session is not None else None

    def submit_answer(
        self, selected_index: int, response_time_ms: Optional[float] = None
    ) -> Optional[AnswerResult]:
        if self.session is None:
            logger.debug("submit_answer: no session")
            return None
        return self.session.answer(selected_index, response_time_ms)

    def go_to_next_item(self) -> bool:
        return self.session.advance() if self.session is not None else False

    def go_to_previous_item(self) -> bool:
        return self.session.retreat() if self.session is not None else False

    def get_session_stats(self) -> SessionStats:
        if self.session is None:
            return SessionStats(correct=0, incorrect=0, elapsed_ms=0, remaining=0)
        return self.session.stats()

    def end_session(self) -> Optional[SessionSummary]:
        if self.session is None:
            return None
        return self.session.end()

    # --- overall progress ---

    def get_overall_stats(self) -> AggregateStats:
        return self.estimator.overall_stats()

    def get_score_estimate(self) -> ScoreEstimate:
        return self.estimator.estimate()

    def get_stats_by_kind(self) -> dict:
        return review.get_stats_by_kind(self.repository, self.tracker)

    def get_weak_areas(self, threshold: float = 70.0) -> list[dict]:
        return review.get_weak_areas(self.repository, self.tracker, threshold)

    def get_passage_stats(self) -> list[dict]:
        return review.get_passage_stats(self.repository, self.tracker)

    def get_reading_speed_analysis(self) -> list[dict]:
        return review.get_reading_speed_analysis(self.repository, self.tracker)

    def get_missed_items(self, item_ids: Optional[list] = None) -> list[dict]:
        """Review details for wrongly answered items, e.g. a SessionSummary.missed list."""
        return review.get_missed_items(self.repository, self.tracker, item_ids)

    def search_passages(self, query: str) -> list:
        return self.repository.search_passages(query)

    def reset_progress(self) -> None:
        self.tracker.reset()

    def export_progress(self) -> str:
        return self.tracker.export_progress()

    def import_progress(self, payload: str) -> bool:
        return self.tracker.import_progress(payload)


def build_engine(settings: Settings, store: Optional[ProgressStore] = None) -> PracticeEngine:
    """Wire repository, tracker and persistence once for the whole process."""
    repository = ContentRepository().load(settings.content_path)
    if store is None:
        store = SqliteProgressStore(settings.db_path, settings.storage_key)
    tracker = MasteryTracker(repository, store).load()
    return PracticeEngine(repository, tracker, session_size=settings.session_size)
