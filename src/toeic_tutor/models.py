"""Data classes for the practice engine domain model."""
from dataclasses import dataclass, field
from typing import NewType, Optional

ItemId = NewType("ItemId", str)
PassageId = NewType("PassageId", str)

ANY = "any"

ESTIMATE_DISCLAIMER = (
    "Estimated score for motivation only. It approximates a TOEIC reading "
    "sub-score from practice history and is not a certified result."
)


@dataclass(frozen=True)
class KindProfile:
    name: str
    description: str
    time_limit: int  # seconds per question
    points: int
    recommendation: str


KIND_PROFILES = {
    "short_answer": KindProfile(
        name="Incomplete Sentences",
        description="Choose the word or phrase that best completes the sentence",
        time_limit=30,
        points=1,
        recommendation="Focus on grammar rules, especially prepositions, conjunctions, and verb forms.",
    ),
    "cloze": KindProfile(
        name="Text Completion",
        description="Read the text and choose the word or phrase that best fits each blank",
        time_limit=45,
        points=1,
        recommendation="Practice reading comprehension and understanding context clues.",
    ),
    "comprehension": KindProfile(
        name="Reading Comprehension",
        description="Read the passage and answer questions about it",
        time_limit=60,
        points=2,
        recommendation="Improve reading speed and practice identifying main ideas and details.",
    ),
}


@dataclass(frozen=True)
class Passage:
    id: PassageId
    title: str
    body: str
    word_count: int
    difficulty: str
    category: str
    genre: str = ""
    item_ids: list = field(default_factory=list)


@dataclass(frozen=True)
class ContentItem:
    id: ItemId
    kind: str
    prompt: str
    options: tuple
    correct_index: int
    explanation: str = ""
    difficulty: str = "B1"
    passage_id: Optional[PassageId] = None

    @property
    def profile(self) -> KindProfile:
        return KIND_PROFILES[self.kind]


@dataclass
class MasteryRecord:
    times_answered: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    average_time_ms: float = 0.0
    last_answered: Optional[str] = None
    last_selected: Optional[int] = None
    last_correct: Optional[bool] = None

    @property
    def accuracy(self) -> float:
        answered = self.correct_count + self.incorrect_count
        if answered == 0:
            return 0.5
        return self.correct_count / answered


@dataclass
class PresentedItem:
    """The item at the session cursor, with everything a screen needs to show it."""

    item: ContentItem
    passage: Optional[Passage]
    position: int
    total: int
    record: Optional[MasteryRecord] = None

    @property
    def time_limit(self) -> int:
        return self.item.profile.time_limit

    @property
    def points(self) -> int:
        return self.item.profile.points


@dataclass
class AnswerResult:
    correct: bool
    selected_index: int
    correct_index: int
    explanation: str = ""
    points: int = 0


@dataclass
class SessionStats:
    correct: int
    incorrect: int
    elapsed_ms: int
    remaining: int


@dataclass
class SessionSummary:
    total_questions: int
    answered: int
    correct: int
    incorrect: int
    accuracy: int
    elapsed_ms: int
    kind_performance: dict = field(default_factory=dict)
    recommendations: list = field(default_factory=list)
    missed: list = field(default_factory=list)
    completed_at: Optional[str] = None


@dataclass
class ScoreEstimate:
    score: int
    accuracy_component: float = 0.0
    coverage_component: float = 0.0
    difficulty_bonus: int = 0
    disclaimer: str = ESTIMATE_DISCLAIMER


@dataclass
class AggregateStats:
    total_questions: int
    answered_questions: int
    total_correct: int
    total_incorrect: int
    overall_accuracy: int
    progress_percentage: int
    estimated_score: int

    @property
    def total_answered(self) -> int:
        return self.total_correct + self.total_incorrect
