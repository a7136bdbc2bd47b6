import pytest

from edufinder.errors import GenerationError
from edufinder.models import ContentGoal, Question, TopicContent
from edufinder.performance import PerformanceEngine
from edufinder.store import MemoryProgressStore


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_edufinder.db")
    return db_path


def make_questions(n: int = 5, correct_index: int = 0) -> list:
    return [
        Question(
            text=f"Question {i + 1}?",
            options=("w", "x", "y", "z"),
            correct_index=correct_index,
            explanation=f"Because {i + 1}",
        )
        for i in range(n)
    ]


class FakeGenerator:
    """Scriptable content generator; set ``gate`` to hold a fetch open."""

    def __init__(self, chapters=None, questions=None, revision_points=None):
        self.chapters = chapters if chapters is not None else ["Motion", "Force", "Energy"]
        self.questions = questions if questions is not None else make_questions()
        self.revision_points = revision_points if revision_points is not None else ["Point A", "Point B"]
        self.fail_chapters = False
        self.fail_content = False
        self.gate = None
        self.calls = []

    async def _wait(self):
        if self.gate is not None:
            await self.gate.wait()

    async def fetch_chapter_list(self, class_level, subject):
        self.calls.append(("chapters", class_level, subject))
        await self._wait()
        if self.fail_chapters:
            raise GenerationError("provider down")
        return list(self.chapters)

    async def fetch_topic_content(self, selection):
        self.calls.append(("content", selection.chapter, selection.content_goal))
        await self._wait()
        if self.fail_content:
            raise GenerationError("provider down")
        if selection.content_goal == ContentGoal.MCQS:
            return TopicContent(questions=tuple(self.questions))
        return TopicContent(revision_points=tuple(self.revision_points))


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def engine():
    return PerformanceEngine(MemoryProgressStore())
