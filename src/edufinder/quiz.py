"""Quiz engine for one set of generated questions."""
from datetime import datetime
from typing import Callable, Optional

from edufinder.models import QuizOutcome, Question


class QuizSession:
    """One question at a time; answers are final once given.

    In teacher mode nothing is answered: the session only pages through the
    answer key and never reports an outcome.
    """

    def __init__(
        self,
        questions: list,
        topic: tuple,
        teacher_mode: bool = False,
        on_complete: Optional[Callable[[QuizOutcome], object]] = None,
    ):
        if not questions:
            raise ValueError("A quiz needs at least one question")
        self.questions: tuple = tuple(questions)
        self.topic = topic
        self.teacher_mode = teacher_mode
        self.on_complete = on_complete
        self.answers: list = [None] * len(self.questions)
        self.current_index = 0
        self.is_score_view = False

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    def is_answered(self, index: int = None) -> bool:
        if index is None:
            index = self.current_index
        return self.answers[index] is not None

    def is_last(self) -> bool:
        return self.current_index == self.total - 1

    def select_answer(self, option_index: int) -> bool:
        """Record an answer for the current question; later calls are ignored."""
        if self.teacher_mode or self.is_score_view or self.is_answered():
            return False
        if not 0 <= option_index < len(self.current_question.options):
            return False
        self.answers[self.current_index] = option_index
        return True

    def advance_or_finish(self) -> Optional[QuizOutcome]:
        """Move to the next question, or to the score view after the last one.

        Returns the outcome when this call completes a student quiz.
        """
        if self.is_score_view:
            return None
        if not self.teacher_mode and not self.is_answered():
            return None
        if not self.is_last():
            self.current_index += 1
            return None
        self.is_score_view = True
        if self.teacher_mode:
            return None
        outcome = self._build_outcome()
        if self.on_complete is not None:
            self.on_complete(outcome)
        return outcome

    def _build_outcome(self) -> QuizOutcome:
        class_level, subject, chapter = self.topic
        score = self.score()
        return QuizOutcome(
            class_level=class_level,
            subject=subject,
            chapter=chapter,
            score=score,
            total=self.total,
            percentage=100 * score / self.total,
            timestamp=datetime.now().isoformat(),
        )

    def score(self) -> int:
        return sum(
            1 for answer, q in zip(self.answers, self.questions)
            if answer == q.correct_index
        )

    def percentage(self) -> float:
        return 100 * self.score() / self.total

    def restart(self) -> None:
        """Retry the same questions from the start."""
        self.answers = [None] * self.total
        self.current_index = 0
        self.is_score_view = False

    def answer_key(self) -> list[tuple]:
        return [(q, q.options[q.correct_index]) for q in self.questions]

    def snapshot(self) -> dict:
        return {
            "current_index": self.current_index,
            "total": self.total,
            "score": self.score(),
            "is_score_view": self.is_score_view,
            "teacher_mode": self.teacher_mode,
            "questions": [
                {
                    "index": i,
                    "answered": answer is not None,
                    "selected": answer,
                    "correct": answer is not None and answer == q.correct_index,
                }
                for i, (answer, q) in enumerate(zip(self.answers, self.questions))
            ],
        }
