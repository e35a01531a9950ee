"""End-to-end: a practice session persisted to SQLite and picked up by a new engine."""
from toeic_tutor.config import Settings
from toeic_tutor.engine import build_engine


def test_progress_survives_restart(tmp_db):
    settings = Settings(db_path=tmp_db, session_size=3)
    engine = build_engine(settings)
    session = engine.start_session(kind="short_answer")
    first = session.sequence[0]
    item = engine.get_current_item().item
    wrong = (item.correct_index + 1) % len(item.options)
    result = engine.submit_answer(wrong, response_time_ms=1500)
    assert result.correct is False
    engine.go_to_next_item()
    engine.submit_answer(engine.get_current_item().item.correct_index)
    summary = engine.end_session()
    assert summary.correct == 1
    assert summary.missed == [first]

    restarted = build_engine(settings)
    stats = restarted.get_overall_stats()
    assert stats.answered_questions == 2
    assert stats.total_correct == 1
    assert restarted.tracker.record_for(first).average_time_ms == 1500
    assert restarted.get_missed_items()[0]["item_id"] == first
    # the missed item leads the next session
    assert restarted.start_session(kind="short_answer").sequence[0] == first


def test_reset_survives_restart(tmp_db):
    settings = Settings(db_path=tmp_db)
    engine = build_engine(settings)
    engine.start_session()
    engine.submit_answer(0)
    engine.reset_progress()
    assert build_engine(settings).get_overall_stats().answered_questions == 0


def test_estimate_after_full_pass(tmp_db):
    engine = build_engine(Settings(db_path=tmp_db, session_size=100))
    engine.start_session()
    while True:
        engine.submit_answer(engine.get_current_item().item.correct_index)
        if not engine.go_to_next_item():
            break
    summary = engine.end_session()
    assert summary.accuracy == 100
    assert summary.recommendations == []
    estimate = build_engine(Settings(db_path=tmp_db)).get_score_estimate()
    assert estimate.score == 495
