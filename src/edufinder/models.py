"""Data classes for the study-finder domain model."""
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Optional

from edufinder.errors import IllegalTransition

MAX_ATTEMPTS = 10


class ClassLevel(str, Enum):
    CLASS_6 = "Class 6"
    CLASS_7 = "Class 7"
    CLASS_8 = "Class 8"
    CLASS_9 = "Class 9"
    CLASS_10 = "Class 10"
    CLASS_11 = "Class 11"
    CLASS_12 = "Class 12"


class ContentGoal(str, Enum):
    MCQS = "MCQs"
    QUICK_REVISION = "Quick Revision"


class Step(IntEnum):
    HOME = 0
    CLASS_SELECT = 1
    SUBJECT_SELECT = 2
    CHAPTER_SELECT = 3
    CONTENT_TYPE_SELECT = 4
    RESULTS = 5


# Wizard order; each field requires every field before it.
SELECTION_FIELDS = ("class_level", "subject", "chapter", "content_goal")


@dataclass
class Selection:
    class_level: Optional[ClassLevel] = None
    subject: Optional[str] = None
    chapter: Optional[str] = None
    content_goal: Optional[ContentGoal] = None
    is_teacher_mode: bool = False

    def merged(self, **update) -> "Selection":
        """Return a copy with ``update`` applied and dependent fields cleared.

        Raises IllegalTransition if a field is set while an earlier one is
        missing.
        """
        unknown = set(update) - set(SELECTION_FIELDS)
        if unknown:
            raise IllegalTransition(f"Unknown selection field(s): {sorted(unknown)}")
        values = {name: getattr(self, name) for name in SELECTION_FIELDS}
        for pos, name in enumerate(SELECTION_FIELDS):
            if name not in update:
                continue
            values[name] = update[name]
            for later in SELECTION_FIELDS[pos + 1:]:
                if later not in update:
                    values[later] = None
        for pos, name in enumerate(SELECTION_FIELDS):
            if values[name] is None:
                continue
            missing = [prev for prev in SELECTION_FIELDS[:pos] if values[prev] is None]
            if missing:
                raise IllegalTransition(f"Cannot set {name} before {', '.join(missing)}")
        return replace(self, **values)

    def cleared(self) -> "Selection":
        """Empty selection that keeps the teacher mode flag."""
        return Selection(is_teacher_mode=self.is_teacher_mode)

    def topic(self) -> tuple:
        return (self.class_level, self.subject, self.chapter)

    def choices(self) -> tuple:
        return (self.class_level, self.subject, self.chapter, self.content_goal)


@dataclass(frozen=True)
class Question:
    text: str
    options: tuple
    correct_index: int
    explanation: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        """Build a question from the provider's JSON object."""
        if not isinstance(data, dict):
            raise ValueError(f"Question must be an object, got {type(data).__name__}")
        text = data.get("question") or data.get("text")
        options = data.get("options")
        correct = data.get("correctIndex", data.get("correct_index"))
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Question text is missing")
        if not isinstance(options, (list, tuple)) or len(options) != 4:
            raise ValueError("Question needs exactly 4 options")
        if not all(isinstance(opt, str) for opt in options):
            raise ValueError("Question options must be strings")
        if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct <= 3:
            raise ValueError(f"correctIndex out of range: {correct!r}")
        return cls(
            text=text.strip(),
            options=tuple(options),
            correct_index=correct,
            explanation=str(data.get("explanation") or ""),
        )


@dataclass(frozen=True)
class QuizOutcome:
    class_level: ClassLevel
    subject: str
    chapter: str
    score: int
    total: int
    percentage: float
    timestamp: str

    def topic(self) -> tuple:
        return (self.class_level, self.subject, self.chapter)

    def to_dict(self) -> dict:
        return {
            "classLevel": self.class_level.value,
            "subject": self.subject,
            "chapter": self.chapter,
            "score": self.score,
            "total": self.total,
            "percentage": self.percentage,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizOutcome":
        return cls(
            class_level=ClassLevel(data["classLevel"]),
            subject=str(data["subject"]),
            chapter=str(data["chapter"]),
            score=int(data["score"]),
            total=int(data["total"]),
            percentage=float(data["percentage"]),
            timestamp=str(data["timestamp"]),
        )


@dataclass
class ChapterPerformance:
    class_level: ClassLevel
    subject: str
    chapter: str
    attempts: list = field(default_factory=list)
    average_percentage: float = 0.0

    def topic(self) -> tuple:
        return (self.class_level, self.subject, self.chapter)

    def add_attempt(self, outcome: QuizOutcome) -> None:
        self.attempts.append(outcome)
        if len(self.attempts) > MAX_ATTEMPTS:
            del self.attempts[: len(self.attempts) - MAX_ATTEMPTS]
        self.average_percentage = sum(a.percentage for a in self.attempts) / len(self.attempts)

    def to_dict(self) -> dict:
        return {
            "classLevel": self.class_level.value,
            "subject": self.subject,
            "chapter": self.chapter,
            "attempts": [a.to_dict() for a in self.attempts],
            "averagePercentage": self.average_percentage,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChapterPerformance":
        attempts = [QuizOutcome.from_dict(a) for a in data["attempts"]]
        if not attempts:
            raise ValueError("Chapter performance has no attempts")
        perf = cls(
            class_level=ClassLevel(data["classLevel"]),
            subject=str(data["subject"]),
            chapter=str(data["chapter"]),
        )
        # Rebuild the average from the retained window rather than trusting the stored value.
        for attempt in attempts[-MAX_ATTEMPTS:]:
            perf.add_attempt(attempt)
        return perf


@dataclass(frozen=True)
class TopicContent:
    questions: tuple = ()
    revision_points: tuple = ()
