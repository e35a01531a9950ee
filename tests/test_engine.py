# tests/test_engine.py
import json

import pytest

from toeic_tutor.config import Settings
from toeic_tutor.engine import PracticeEngine, build_engine
from toeic_tutor.storage import MemoryProgressStore
from toeic_tutor.tracker import MasteryTracker


@pytest.fixture
def engine(repository, tracker):
    return PracticeEngine(repository, tracker, session_size=20)


def play(engine, answers):
    """Answer the session items in order, moving on after each answer."""
    results = []
    for selected in answers:
        results.append(engine.submit_answer(selected))
        engine.go_to_next_item()
    return results


def test_no_session_calls_are_harmless(engine):
    assert engine.get_current_item() is None
    assert engine.submit_answer(0) is None
    assert engine.go_to_next_item() is False
    assert engine.go_to_previous_item() is False
    stats = engine.get_session_stats()
    assert (stats.correct, stats.incorrect, stats.elapsed_ms, stats.remaining) == (0, 0, 0, 0)
    assert engine.end_session() is None


def test_start_session_uses_session_size(engine):
    session = engine.start_session()
    assert len(session) == 10
    engine.session_size = 4
    assert len(engine.start_session()) == 4


def test_start_session_with_no_match_returns_none(engine):
    assert engine.start_session(kind="cloze") is None
    assert engine.start_session(count=0) is None
    assert engine.session is None


def test_empty_request_keeps_running_session(engine):
    engine.start_session(kind="comprehension")
    assert engine.start_session(kind="cloze") is None
    assert engine.get_current_item().item.kind == "comprehension"


def test_ten_item_walkthrough(engine):
    engine.start_session(count=10)
    play(engine, [0, 0, 0, 1, 1])
    stats = engine.get_session_stats()
    assert stats.correct == 3
    assert stats.incorrect == 2
    assert stats.remaining == 5

    overall = engine.get_overall_stats()
    assert overall.answered_questions == 5
    assert overall.total_correct == 3
    assert overall.overall_accuracy == 60
    assert overall.progress_percentage == 50
    assert 0 <= engine.get_score_estimate().score <= 495


def test_full_session_and_summary(engine):
    engine.start_session(kind="comprehension")
    results = play(engine, [0, 1, 0])
    assert [r.correct for r in results] == [True, False, True]
    assert engine.go_to_next_item() is False
    summary = engine.end_session()
    assert summary.answered == 3
    assert summary.accuracy == 67
    assert len(summary.missed) == 1
    missed = engine.get_missed_items(summary.missed)
    assert missed[0]["item_id"] == summary.missed[0]


def test_go_to_previous_item(engine):
    engine.start_session(count=3)
    first = engine.get_current_item().item.id
    engine.go_to_next_item()
    assert engine.go_to_previous_item() is True
    assert engine.get_current_item().item.id == first


def test_next_session_puts_missed_items_first(engine):
    engine.start_session(kind="short_answer", count=3)
    play(engine, [0, 1, 0])
    engine.end_session()
    engine.start_session(kind="short_answer", count=3)
    assert engine.get_current_item().item.id == "short_answer_1"


def test_progress_queries(engine):
    engine.start_session(kind="comprehension", count=1)
    engine.submit_answer(1, response_time_ms=30000)
    assert engine.get_stats_by_kind()["comprehension"]["accuracy"] == 0.0
    assert engine.get_weak_areas()[0]["kind"] == "comprehension"
    assert engine.get_passage_stats()[0]["times_read"] == 1
    assert engine.get_reading_speed_analysis()[0]["words_per_minute"] == 200
    assert [p.id for p in engine.search_passages("quarterly")] == ["p1"]


def test_reset_progress(engine):
    engine.start_session(count=2)
    engine.submit_answer(0)
    engine.reset_progress()
    assert engine.get_overall_stats().answered_questions == 0
    assert engine.get_score_estimate().score == 0


def test_export_import_round_trip(engine, repository):
    engine.start_session(count=2)
    engine.submit_answer(0)
    payload = engine.export_progress()
    assert json.loads(payload)["user_progress"]

    other = PracticeEngine(repository, MasteryTracker(repository, MemoryProgressStore()))
    assert other.import_progress(payload) is True
    assert other.tracker.to_dict() == engine.tracker.to_dict()
    assert other.import_progress("{") is False


def test_build_engine_with_memory_store():
    store = MemoryProgressStore({
        "q_incomplete_001": {"times_answered": 1, "correct_count": 0, "incorrect_count": 1},
    })
    engine = build_engine(Settings(session_size=5), store=store)
    assert engine.session_size == 5
    assert not engine.repository.using_fallback
    assert engine.tracker.accuracy_of("q_incomplete_001") == 0.0
    session = engine.start_session()
    assert session.sequence[0] == "q_incomplete_001"


def test_build_engine_with_custom_content(tmp_path, definitions):
    path = tmp_path / "bank.json"
    path.write_text(json.dumps(definitions(short_answer=2, comprehension=1)))
    engine = build_engine(Settings(content_path=str(path)), store=MemoryProgressStore())
    assert len(engine.repository) == 3
