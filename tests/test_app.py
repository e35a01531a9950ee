import pytest
from unittest.mock import patch

from toeic_tutor.app import (
    SessionExitRequested, cmd_dashboard, cmd_reset, cmd_review, run_practice_session, session_prompt,
)
from toeic_tutor.engine import PracticeEngine


@pytest.fixture
def engine(repository, tracker):
    return PracticeEngine(repository, tracker)


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("toeic_tutor.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("toeic_tutor.app.Prompt.ask", return_value="MENU "):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("toeic_tutor.app.Prompt.ask", return_value="b"):
        result = session_prompt("test prompt")
        assert result == "b"


def test_run_practice_session_answers_every_item(engine):
    with patch("toeic_tutor.app.Prompt.ask", side_effect=["a", "b", "a"]):
        summary = run_practice_session(engine, kind="comprehension")
    assert summary.answered == 3
    assert summary.correct == 2
    assert summary.incorrect == 1
    assert engine.get_overall_stats().answered_questions == 3


def test_run_practice_session_stops_on_exit(engine):
    with patch("toeic_tutor.app.Prompt.ask", side_effect=["a", "q"]):
        summary = run_practice_session(engine, count=5)
    assert summary.total_questions == 5
    assert summary.answered == 1
    assert engine.get_overall_stats().answered_questions == 1


def test_run_practice_session_without_items(engine):
    assert run_practice_session(engine, kind="cloze") is None


def test_cmd_dashboard_renders(engine):
    engine.tracker.record_answer("short_answer_0", 0)
    cmd_dashboard(engine)


def test_cmd_review_without_history(engine):
    with patch("toeic_tutor.app.Prompt.ask") as ask:
        cmd_review(engine)
    ask.assert_not_called()


def test_cmd_review_drills_weakest_kind(engine):
    engine.tracker.record_answer("comprehension_0", 1)
    with patch("toeic_tutor.app.Prompt.ask", side_effect=["a", "a", "a"]):
        cmd_review(engine)
    assert engine.session.sequence[0] == "comprehension_0"
    assert engine.tracker.accuracy_of("comprehension_0") == 0.5


def test_cmd_reset_confirmed(engine):
    engine.tracker.record_answer("short_answer_0", 0)
    with patch("toeic_tutor.app.Confirm.ask", return_value=True):
        cmd_reset(engine)
    assert engine.get_overall_stats().answered_questions == 0


def test_cmd_reset_declined(engine):
    engine.tracker.record_answer("short_answer_0", 0)
    with patch("toeic_tutor.app.Confirm.ask", return_value=False):
        cmd_reset(engine)
    assert engine.get_overall_stats().answered_questions == 1
