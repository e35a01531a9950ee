"""Practice session state machine: cursor, navigation and answer submission.

A session moves NOT_STARTED -> IN_PROGRESS -> COMPLETED. It holds item ids
only; content comes from the repository and every answer is forwarded to the
mastery tracker. Answering never moves the cursor, so a screen can show
feedback first and navigate when the learner asks. Reaching the last item
and getting False back from advance() is the caller's cue to call end().
"""
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from toeic_tutor.models import (
    KIND_PROFILES,
    AnswerResult,
    ItemId,
    PresentedItem,
    SessionStats,
    SessionSummary,
)
from toeic_tutor.repository import ContentRepository
from toeic_tutor.tracker import MasteryTracker

WEAK_KIND_THRESHOLD = 70.0


class SessionState(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PracticeSession:
    def __init__(
        self,
        repository: ContentRepository,
        tracker: MasteryTracker,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.tracker = tracker
        self._clock = clock
        self.state = SessionState.NOT_STARTED
        self.sequence: tuple = ()
        self.cursor = 0
        self.correct = 0
        self.incorrect = 0
        self.started_at: Optional[float] = None
        self._ended_at: Optional[float] = None
        self._presented_at: Optional[float] = None
        self._answers: dict[int, AnswerResult] = {}
        self._attempts: list[tuple[ItemId, bool]] = []
        self._summary: Optional[SessionSummary] = None

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def in_progress(self) -> bool:
        return self.state is SessionState.IN_PROGRESS

    @property
    def at_last_item(self) -> bool:
        return bool(self.sequence) and self.cursor == len(self.sequence) - 1

    def start(self, sequence: list) -> bool:
        """Begin a run over `sequence`. Any unfinished state of this object is discarded.

        Unknown and repeated ids are dropped. Returns False, leaving the session
        untouched, when nothing answerable remains.
        """
        ordered = []
        seen = set()
        for item_id in sequence:
            if item_id in seen or self.repository.get_item(item_id) is None:
                logger.debug(f"start: dropping item {item_id}")
                continue
            seen.add(item_id)
            ordered.append(ItemId(item_id))
        if not ordered:
            logger.debug("start: no answerable items, session not started")
            return False

        self.sequence = tuple(ordered)
        self.cursor = 0
        self.correct = 0
        self.incorrect = 0
        self.started_at = self._presented_at = self._clock()
        self._ended_at = None
        self._answers = {}
        self._attempts = []
        self._summary = None
        self.state = SessionState.IN_PROGRESS
        logger.info(f"Started session with {len(self.sequence)} questions")
        return True

    def current(self) -> Optional[PresentedItem]:
        if not self.in_progress or not 0 <= self.cursor < len(self.sequence):
            return None
        item = self.repository.get_item(self.sequence[self.cursor])
        if item is None:
            return None
        passage = self.repository.get_passage(item.passage_id) if item.passage_id else None
        return PresentedItem(
            item=item,
            passage=passage,
            position=self.cursor,
            total=len(self.sequence),
            record=self.tracker.record_for(item.id),
        )

    def advance(self) -> bool:
        if not self.in_progress or self.cursor + 1 >= len(self.sequence):
            return False
        self.cursor += 1
        self._presented_at = self._clock()
        return True

    def retreat(self) -> bool:
        if not self.in_progress or self.cursor <= 0:
            return False
        self.cursor -= 1
        self._presented_at = self._clock()
        return True

    def is_answered(self, position: Optional[int] = None) -> bool:
        return (self.cursor if position is None else position) in self._answers

    def answer_at(self, position: int) -> Optional[AnswerResult]:
        return self._answers.get(position)

    def answer(
        self,
        selected_index: int,
        response_time_ms: Optional[float] = None,
        reattempt: bool = False,
    ) -> Optional[AnswerResult]:
        """Grade the item at the cursor and record it with the tracker.

        Returns None, changing nothing, when the session is not in progress,
        the index is not one of the item's options, or the item was already
        answered in this run (pass reattempt=True to count a fresh attempt).
        """
        presented = self.current()
        if presented is None:
            logger.debug(f"answer: no current item (state={self.state.value})")
            return None
        item = presented.item
        if not 0 <= selected_index < len(item.options):
            logger.debug(f"answer: option {selected_index} out of range for {item.id}")
            return None
        if self.cursor in self._answers and not reattempt:
            logger.debug(f"answer: {item.id} already answered in this session")
            return None

        if response_time_ms is None:
            response_time_ms = (self._clock() - self._presented_at) * 1000
        is_correct = selected_index == item.correct_index
        if is_correct:
            self.correct += 1
        else:
            self.incorrect += 1
        self.tracker.record_answer(item.id, selected_index, response_time_ms)

        result = AnswerResult(
            correct=is_correct,
            selected_index=selected_index,
            correct_index=item.correct_index,
            explanation=item.explanation,
            points=item.profile.points if is_correct else 0,
        )
        self._answers[self.cursor] = result
        self._attempts.append((item.id, is_correct))
        logger.debug(f"Question {self.cursor + 1}: {'correct' if is_correct else 'incorrect'}")
        return result

    def elapsed_ms(self) -> int:
        if self.started_at is None:
            return 0
        end = self._ended_at if self._ended_at is not None else self._clock()
        return int((end - self.started_at) * 1000)

    def stats(self) -> SessionStats:
        return SessionStats(
            correct=self.correct,
            incorrect=self.incorrect,
            elapsed_ms=self.elapsed_ms(),
            remaining=len(self.sequence) - len(self._answers),
        )

    def end(self) -> SessionSummary:
        """Complete the session, even mid-sequence, and return its frozen summary."""
        if self._summary is not None:
            return self._summary
        if self.started_at is not None:
            self._ended_at = self._clock()
        self.state = SessionState.COMPLETED
        self._summary = self._build_summary()
        logger.info(
            f"Session ended: {self.correct} correct, {self.incorrect} incorrect "
            f"of {len(self.sequence)} questions"
        )
        return self._summary

    def _build_summary(self) -> SessionSummary:
        kind_performance: dict[str, dict] = {}
        for item_id, is_correct in self._attempts:
            item = self.repository.get_item(item_id)
            perf = kind_performance.setdefault(item.kind, {"correct": 0, "total": 0})
            perf["total"] += 1
            perf["correct"] += int(is_correct)
        recommendations = []
        for kind, perf in kind_performance.items():
            perf["accuracy"] = round(perf["correct"] / perf["total"] * 100, 1)
            if perf["accuracy"] < WEAK_KIND_THRESHOLD:
                profile = KIND_PROFILES[kind]
                recommendations.append({
                    "kind": kind,
                    "name": profile.name,
                    "accuracy": round(perf["accuracy"]),
                    "suggestion": f"Focus on {profile.name} - accuracy is {round(perf['accuracy'])}%",
                })

        attempted = self.correct + self.incorrect
        return SessionSummary(
            total_questions=len(self.sequence),
            answered=len(self._answers),
            correct=self.correct,
            incorrect=self.incorrect,
            accuracy=round(self.correct / attempted * 100) if attempted else 0,
            elapsed_ms=self.elapsed_ms(),
            kind_performance=kind_performance,
            recommendations=recommendations,
            missed=[self.sequence[pos] for pos, r in sorted(self._answers.items()) if not r.correct],
            completed_at=datetime.now().isoformat(),
        )
