"""Proficiency estimate from accumulated practice history.

The estimate approximates a TOEIC reading sub-score (5-495) so learners get a
sense of progress. It is a motivational heuristic, not a certified score:
components are added and the raw sum is clamped at the ceiling, so it does
not scale linearly toward 495.
"""
from toeic_tutor.models import ESTIMATE_DISCLAIMER, AggregateStats, ScoreEstimate
from toeic_tutor.repository import ContentRepository
from toeic_tutor.tracker import MasteryTracker

MAX_SCORE = 495
MIN_SCORE = 5
ACCURACY_WEIGHT = 400
COVERAGE_WEIGHT = 200
# difficulty tag -> (accuracy that must be exceeded, bonus points)
DIFFICULTY_BONUS = {
    "B2": (0.7, 2),
    "B1": (0.8, 1),
}
MAX_DIFFICULTY_BONUS = 100


def get_readiness_label(score: float) -> str:
    if score >= 400:
        return "ADVANCED"
    elif score >= 300:
        return "INTERMEDIATE"
    elif score >= 200:
        return "DEVELOPING"
    return "BEGINNER"


def get_readiness_color(score: float) -> str:
    if score >= 400:
        return "green"
    elif score >= 300:
        return "yellow"
    elif score >= 200:
        return "dark_orange"
    return "red"


class ScoreEstimator:
    def __init__(self, repository: ContentRepository, tracker: MasteryTracker):
        self.repository = repository
        self.tracker = tracker

    def _totals(self) -> tuple[int, int, int]:
        records = self.tracker.records()
        correct = sum(r.correct_count for r in records.values())
        incorrect = sum(r.incorrect_count for r in records.values())
        return len(records), correct, incorrect

    def difficulty_bonus(self) -> int:
        bonus = 0
        for item_id, record in self.tracker.records().items():
            item = self.repository.get_item(item_id)
            rule = DIFFICULTY_BONUS.get(item.difficulty)
            if rule is None or record.times_answered == 0:
                continue
            threshold, points = rule
            if record.correct_count / record.times_answered > threshold:
                bonus += points
        return min(bonus, MAX_DIFFICULTY_BONUS)

    def estimate(self) -> ScoreEstimate:
        """Estimated reading score in [0, 495]; 0 until something is answered.

        Turning any one recorded answer from incorrect to correct never lowers
        the score. The difficulty bonus is earned per item, so two histories
        compared only by overall accuracy can rank the other way round.

        See ESTIMATE_DISCLAIMER: callers must present this as an approximation.
        """
        answered_items, correct, incorrect = self._totals()
        if answered_items == 0 or correct + incorrect == 0:
            return ScoreEstimate(score=0)
        accuracy_component = correct / (correct + incorrect) * ACCURACY_WEIGHT
        coverage_pct = round(answered_items / len(self.repository) * 100)
        coverage_component = coverage_pct / 100 * COVERAGE_WEIGHT
        bonus = self.difficulty_bonus()
        score = min(round(accuracy_component + coverage_component + bonus), MAX_SCORE)
        return ScoreEstimate(
            score=max(score, MIN_SCORE),
            accuracy_component=round(accuracy_component, 1),
            coverage_component=round(coverage_component, 1),
            difficulty_bonus=bonus,
            disclaimer=ESTIMATE_DISCLAIMER,
        )

    def overall_stats(self) -> AggregateStats:
        answered_items, correct, incorrect = self._totals()
        total = len(self.repository)
        attempted = correct + incorrect
        return AggregateStats(
            total_questions=total,
            answered_questions=answered_items,
            total_correct=correct,
            total_incorrect=incorrect,
            overall_accuracy=round(correct / attempted * 100) if attempted else 0,
            progress_percentage=round(answered_items / total * 100) if total else 0,
            estimated_score=self.estimate().score,
        )
