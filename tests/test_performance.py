# tests/test_performance.py
import pytest

from edufinder.models import ClassLevel, QuizOutcome
from edufinder.performance import PerformanceEngine, mastery_label, mastery_color
from edufinder.store import MemoryProgressStore, SqliteProgressStore


def _outcome(pct, subject="Mathematics", chapter="Ch1", level=ClassLevel.CLASS_10):
    return QuizOutcome(
        class_level=level, subject=subject, chapter=chapter,
        score=0, total=10, percentage=float(pct), timestamp="2026-05-01T09:00:00",
    )


def test_record_creates_entry(engine):
    perf = engine.record(_outcome(60))
    assert len(perf.attempts) == 1
    assert perf.average_percentage == 60.0
    stored = engine.get(ClassLevel.CLASS_10, "Mathematics", "Ch1")
    assert stored == perf


def test_record_rolling_average(engine):
    for pct in (60, 70, 90):
        perf = engine.record(_outcome(pct))
    assert perf.average_percentage == pytest.approx(73.33, abs=0.01)
    perf = engine.record(_outcome(40))
    assert len(perf.attempts) == 4
    assert perf.average_percentage == pytest.approx(65.0)


def test_record_window_keeps_last_ten(engine):
    for pct in range(0, 110, 10):  # 11 outcomes: 0..100
        perf = engine.record(_outcome(pct))
        assert len(perf.attempts) <= 10
        assert perf.average_percentage == pytest.approx(
            sum(a.percentage for a in perf.attempts) / len(perf.attempts)
        )
    assert [a.percentage for a in perf.attempts] == [float(p) for p in range(10, 110, 10)]
    assert perf.average_percentage == pytest.approx(55.0)


def test_record_separates_topics(engine):
    engine.record(_outcome(50, chapter="Ch1"))
    engine.record(_outcome(90, chapter="Ch2"))
    engine.record(_outcome(70, chapter="Ch1", level=ClassLevel.CLASS_9))
    assert len(engine.all()) == 3


def test_suggestions_filter_and_order(engine):
    engine.record(_outcome(55, subject="Mathematics", chapter="Ch1"))
    engine.record(_outcome(90, subject="Science", chapter="Ch2"))
    engine.record(_outcome(79.9, subject="Mathematics", chapter="Ch2"))
    result = engine.suggestions(limit=3)
    assert [(p.subject, p.chapter) for p in result] == [
        ("Mathematics", "Ch1"), ("Mathematics", "Ch2"),
    ]


def test_suggestions_respect_limit(engine):
    for i, pct in enumerate((10, 20, 30, 40, 50)):
        engine.record(_outcome(pct, chapter=f"Ch{i}"))
    result = engine.suggestions(limit=2)
    assert [p.average_percentage for p in result] == [10.0, 20.0]
    assert engine.suggestions(limit=0) == []


def test_suggestions_exclude_exactly_eighty(engine):
    engine.record(_outcome(80))
    assert engine.suggestions() == []


def test_suggestions_stable_on_ties(engine):
    engine.record(_outcome(40, chapter="First"))
    engine.record(_outcome(40, chapter="Second"))
    assert [p.chapter for p in engine.suggestions()] == ["First", "Second"]


def test_global_stats_empty(engine):
    assert engine.global_stats() == {"avg": 0.0, "total_quizzes": 0}


def test_global_stats(engine):
    engine.record(_outcome(60, chapter="Ch1"))
    engine.record(_outcome(80, chapter="Ch1"))
    engine.record(_outcome(40, chapter="Ch2"))
    stats = engine.global_stats()
    assert stats["total_quizzes"] == 3
    assert stats["avg"] == pytest.approx((70.0 + 40.0) / 2)


def test_reset_all(engine):
    engine.record(_outcome(60))
    engine.reset_all()
    assert engine.all() == []
    assert engine.global_stats()["total_quizzes"] == 0


def test_history_survives_new_engine(tmp_db):
    PerformanceEngine(SqliteProgressStore(tmp_db)).record(_outcome(45))
    engine = PerformanceEngine(SqliteProgressStore(tmp_db))
    assert engine.suggestions()[0].average_percentage == 45.0


def test_mastery_label():
    assert mastery_label(85) == "MASTERED"
    assert mastery_label(70) == "ALMOST"
    assert mastery_label(55) == "NEEDS WORK"
    assert mastery_label(40) == "WEAK"


def test_mastery_color():
    assert mastery_color(80) == "green"
    assert mastery_color(0) == "red"
