# tests/test_integration.py
"""End-to-end test of the core workflow."""
import pytest

from conftest import FakeGenerator, make_questions
from edufinder.models import ClassLevel, ContentGoal, Step
from edufinder.navigation import NavigationController
from edufinder.performance import PerformanceEngine
from edufinder.store import SqliteProgressStore


@pytest.mark.asyncio
async def test_full_session_workflow(tmp_db):
    """Take two quizzes on one chapter and check the home screen across restarts."""
    engine = PerformanceEngine(SqliteProgressStore(tmp_db))
    nav = NavigationController(FakeGenerator(questions=make_questions(5, correct_index=1)), engine)

    await nav.advance()
    await nav.advance(class_level=ClassLevel.CLASS_10)
    await nav.advance(subject="Mathematics")
    await nav.advance(chapter=nav.chapters[0])
    await nav.advance(content_goal=ContentGoal.MCQS)
    assert nav.step == Step.RESULTS

    # First pass: 3 of 5 correct
    quiz = nav.quiz
    for i in range(5):
        quiz.select_answer(1 if i < 3 else 0)
        quiz.advance_or_finish()
    assert quiz.percentage() == 60.0

    # Retry: all correct
    quiz.restart()
    for _ in range(5):
        quiz.select_answer(1)
        quiz.advance_or_finish()

    nav.reset()
    assert nav.step == Step.HOME

    # Fresh process reading the same database
    reopened = PerformanceEngine(SqliteProgressStore(tmp_db))
    stats = reopened.global_stats()
    assert stats["total_quizzes"] == 2
    assert stats["avg"] == pytest.approx(80.0)
    assert reopened.suggestions() == []

    perf = reopened.get(ClassLevel.CLASS_10, "Mathematics", "Motion")
    assert [a.percentage for a in perf.attempts] == [60.0, 100.0]
