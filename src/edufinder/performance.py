"""Rolling chapter mastery, weak-topic suggestions and overall stats."""
import threading

from loguru import logger

from edufinder.models import ChapterPerformance, QuizOutcome
from edufinder.store import ProgressStore

MASTERY_THRESHOLD = 80.0


def mastery_label(pct: float) -> str:
    if pct >= 80:
        return "MASTERED"
    elif pct >= 65:
        return "ALMOST"
    elif pct >= 50:
        return "NEEDS WORK"
    return "WEAK"


def mastery_color(pct: float) -> str:
    if pct >= 80:
        return "green"
    elif pct >= 65:
        return "yellow"
    elif pct >= 50:
        return "dark_orange"
    return "red"


class PerformanceEngine:
    """Turns quiz outcomes into per-chapter averages kept in a ProgressStore."""

    def __init__(self, store: ProgressStore):
        self.store = store
        self._lock = threading.Lock()

    def record(self, outcome: QuizOutcome) -> ChapterPerformance:
        """Add an outcome to its chapter's window and persist the result."""
        with self._lock:
            mapping = self.store.load()
            perf = mapping.get(outcome.topic())
            if perf is None:
                perf = ChapterPerformance(
                    class_level=outcome.class_level,
                    subject=outcome.subject,
                    chapter=outcome.chapter,
                )
                mapping[outcome.topic()] = perf
            perf.add_attempt(outcome)
            self.store.save(mapping)
        logger.info(
            f"Recorded {outcome.score}/{outcome.total} for {outcome.class_level.value} "
            f"{outcome.subject} / {outcome.chapter} (avg {perf.average_percentage:.1f}%)"
        )
        return perf

    def get(self, class_level, subject: str, chapter: str):
        return self.store.load().get((class_level, subject, chapter))

    def all(self) -> list[ChapterPerformance]:
        return list(self.store.load().values())

    def suggestions(self, limit: int = 3) -> list[ChapterPerformance]:
        """Chapters below mastery, worst average first."""
        weak = [p for p in self.all() if p.average_percentage < MASTERY_THRESHOLD]
        weak.sort(key=lambda p: p.average_percentage)
        return weak[:max(limit, 0)]

    def global_stats(self) -> dict:
        entries = self.all()
        if not entries:
            return {"avg": 0.0, "total_quizzes": 0}
        return {
            "avg": sum(p.average_percentage for p in entries) / len(entries),
            "total_quizzes": sum(len(p.attempts) for p in entries),
        }

    def reset_all(self) -> None:
        """Wipe all stored history. Callers confirm with the user first."""
        with self._lock:
            self.store.clear()
        logger.info("Performance history cleared")
