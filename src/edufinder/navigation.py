"""Wizard step machine: grade -> subject -> chapter -> goal -> results.

The controller owns the current Step and Selection, calls the content
generator when entering CHAPTER_SELECT and RESULTS, and hands MCQs to a
QuizSession whose outcome is recorded by the PerformanceEngine.
"""
from dataclasses import replace
from typing import Optional

from loguru import logger

from edufinder.curriculum import PLACEHOLDER_CHAPTERS, get_subjects
from edufinder.errors import GenerationError, IllegalTransition
from edufinder.generator import ContentGenerator
from edufinder.models import ClassLevel, ContentGoal, Selection, Step
from edufinder.performance import PerformanceEngine
from edufinder.quiz import QuizSession

IDLE = "idle"
LOADING = "loading"

FORWARD_TRANSITIONS = {
    Step.HOME: Step.CLASS_SELECT,
    Step.CLASS_SELECT: Step.SUBJECT_SELECT,
    Step.SUBJECT_SELECT: Step.CHAPTER_SELECT,
    Step.CHAPTER_SELECT: Step.CONTENT_TYPE_SELECT,
    Step.CONTENT_TYPE_SELECT: Step.RESULTS,
}

# RESULTS goes back to the goal picker, not to CHAPTER_SELECT.
BACK_TRANSITIONS = {
    Step.HOME: Step.HOME,
    Step.CLASS_SELECT: Step.HOME,
    Step.SUBJECT_SELECT: Step.CLASS_SELECT,
    Step.CHAPTER_SELECT: Step.SUBJECT_SELECT,
    Step.CONTENT_TYPE_SELECT: Step.CHAPTER_SELECT,
    Step.RESULTS: Step.CONTENT_TYPE_SELECT,
}

# Selection field chosen on each screen.
STEP_FIELD = {
    Step.HOME: None,
    Step.CLASS_SELECT: "class_level",
    Step.SUBJECT_SELECT: "subject",
    Step.CHAPTER_SELECT: "chapter",
    Step.CONTENT_TYPE_SELECT: "content_goal",
}

CONTENT_ERROR_MESSAGE = (
    "Unable to generate content for this topic. "
    "Please try again or pick a different chapter."
)


def _coerce(name: str, value):
    if name == "class_level":
        return ClassLevel(value)
    if name == "content_goal":
        return ContentGoal(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    return value


class NavigationController:
    def __init__(self, generator: ContentGenerator, performance: PerformanceEngine):
        self.generator = generator
        self.performance = performance
        self.step = Step.HOME
        self.selection = Selection()
        self.chapters: list[str] = []
        self.quiz: Optional[QuizSession] = None
        self.revision_points: tuple = ()
        self.error: Optional[str] = None
        self.status = IDLE
        self._fetch_token = 0

    @property
    def is_loading(self) -> bool:
        return self.status == LOADING

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _validated_update(self, update: dict) -> dict:
        """Check ``update`` carries exactly the field the current step picks."""
        if self.step not in FORWARD_TRANSITIONS:
            raise IllegalTransition(f"No step after {self.step.name}")
        required = STEP_FIELD[self.step]
        if required is None:
            if update:
                raise IllegalTransition(f"{self.step.name} takes no selection")
            return {}
        if set(update) != {required} or update[required] is None:
            raise IllegalTransition(f"{self.step.name} requires {required}")
        try:
            value = _coerce(required, update[required])
        except ValueError as e:
            raise IllegalTransition(str(e)) from e
        if required == "subject" and value not in self.subjects():
            raise IllegalTransition(f"{value!r} is not offered for this grade")
        if required == "chapter" and value not in self.chapters:
            raise IllegalTransition(f"{value!r} is not in the chapter list")
        return {required: value}

    async def advance(self, **update) -> bool:
        """Apply the current screen's choice and move forward one step.

        Returns False, changing nothing, when the move is not allowed.
        """
        if self.is_loading:
            logger.debug(f"Ignoring advance from {self.step.name} while loading")
            return False
        try:
            clean = self._validated_update(update)
            selection = self.selection.merged(**clean)
        except IllegalTransition as e:
            logger.warning(f"Illegal transition from {self.step.name}: {e}")
            return False

        self.selection = selection
        self.error = None
        self.step = FORWARD_TRANSITIONS[self.step]
        if self.step == Step.CHAPTER_SELECT:
            await self._load_chapters()
        elif self.step == Step.RESULTS:
            return await self._load_content()
        return True

    def back(self) -> Step:
        target = BACK_TRANSITIONS[self.step]
        if target == self.step:
            return self.step
        self._cancel_fetch()
        if self.step == Step.RESULTS:
            self._discard_results()
        self.step = target
        self.error = None
        return self.step

    def reset(self) -> None:
        """Back to HOME with a fresh selection; teacher mode is kept."""
        self._cancel_fetch()
        self._discard_results()
        self.step = Step.HOME
        self.selection = self.selection.cleared()
        self.chapters = []
        self.error = None

    def toggle_teacher_mode(self) -> bool:
        self.selection = replace(self.selection, is_teacher_mode=not self.selection.is_teacher_mode)
        return self.selection.is_teacher_mode

    # ------------------------------------------------------------------
    # Fetches
    # ------------------------------------------------------------------

    def _begin_fetch(self) -> int:
        self._fetch_token += 1
        self.status = LOADING
        return self._fetch_token

    def _cancel_fetch(self) -> None:
        if self.is_loading:
            logger.debug(f"Abandoning fetch for {self.step.name}")
            self._fetch_token += 1
            self.status = IDLE

    def _finish_fetch(self, token: int) -> bool:
        """Mark the fetch done; False if it was abandoned."""
        if token != self._fetch_token:
            return False
        self.status = IDLE
        return True

    def _still_wanted(self, token: int, step: Step, requested: Selection) -> bool:
        current = (
            self._finish_fetch(token)
            and self.step == step
            and self.selection.choices() == requested.choices()
        )
        if not current:
            logger.debug(f"Dropping stale result for {step.name}")
        return current

    async def _load_chapters(self) -> None:
        requested = self.selection
        token = self._begin_fetch()
        logger.info(f"Fetching chapters for {requested.class_level.value} {requested.subject}")
        try:
            chapters = await self.generator.fetch_chapter_list(
                requested.class_level, requested.subject
            )
        except GenerationError as e:
            logger.warning(f"Chapter list unavailable, using placeholders: {e}")
            chapters = list(PLACEHOLDER_CHAPTERS)
        except BaseException:
            self._finish_fetch(token)
            raise
        if self._still_wanted(token, Step.CHAPTER_SELECT, requested):
            self.chapters = list(chapters)

    async def _load_content(self) -> bool:
        requested = self.selection
        token = self._begin_fetch()
        logger.info(f"Fetching {requested.content_goal.value} for {requested.chapter}")
        content = None
        try:
            content = await self.generator.fetch_topic_content(requested)
        except GenerationError as e:
            logger.warning(f"Content generation failed: {e}")
        except BaseException:
            self._finish_fetch(token)
            raise
        if not self._still_wanted(token, Step.RESULTS, requested):
            return False

        is_mcq = requested.content_goal == ContentGoal.MCQS
        usable = content is not None and (
            content.questions if is_mcq else content.revision_points
        )
        if not usable:
            self.step = Step.CONTENT_TYPE_SELECT
            self.selection = requested.merged(content_goal=None)
            self.error = CONTENT_ERROR_MESSAGE
            return False

        if is_mcq:
            self.quiz = QuizSession(
                content.questions,
                topic=requested.topic(),
                teacher_mode=requested.is_teacher_mode,
                on_complete=self.performance.record,
            )
        else:
            self.revision_points = tuple(content.revision_points)
        return True

    def _discard_results(self) -> None:
        self.quiz = None
        self.revision_points = ()

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def subjects(self) -> list[str]:
        if self.selection.class_level is None:
            return []
        return get_subjects(self.selection.class_level)

    def loading_message(self) -> str:
        if self.step == Step.CHAPTER_SELECT:
            return "Analyzing Chapters..."
        if self.step == Step.RESULTS:
            if self.selection.content_goal == ContentGoal.MCQS:
                return "Generating MCQs..."
            return "Preparing Revision Guide..."
        return "Cooking for you..."

    def snapshot(self) -> dict:
        """State for rendering; the selection is a copy."""
        return {
            "step": self.step,
            "selection": replace(self.selection),
            "chapters": list(self.chapters),
            "quiz": self.quiz,
            "revision_points": self.revision_points,
            "error": self.error,
            "status": self.status,
            "home": self.home_summary(),
        }

    def home_summary(self, limit: int = 3) -> dict:
        return {
            "suggestions": self.performance.suggestions(limit),
            "stats": self.performance.global_stats(),
        }
