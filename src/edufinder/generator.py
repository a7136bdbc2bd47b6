"""Gemini-backed generation of chapter lists, MCQs and revision notes."""
import json
import re
from typing import Protocol

from google import genai
from google.genai import types as genai_types
from loguru import logger

from edufinder.config import AppConfig
from edufinder.errors import GenerationError
from edufinder.models import ClassLevel, ContentGoal, Question, Selection, TopicContent

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

_STRING_LIST_SCHEMA = genai_types.Schema(
    type=genai_types.Type.ARRAY,
    items=genai_types.Schema(type=genai_types.Type.STRING),
)

_MCQ_SCHEMA = genai_types.Schema(
    type=genai_types.Type.ARRAY,
    items=genai_types.Schema(
        type=genai_types.Type.OBJECT,
        properties={
            "question": genai_types.Schema(type=genai_types.Type.STRING),
            "options": genai_types.Schema(
                type=genai_types.Type.ARRAY,
                items=genai_types.Schema(type=genai_types.Type.STRING),
            ),
            "correctIndex": genai_types.Schema(type=genai_types.Type.INTEGER),
            "explanation": genai_types.Schema(type=genai_types.Type.STRING),
        },
        required=["question", "options", "correctIndex", "explanation"],
    ),
)


class ContentGenerator(Protocol):
    async def fetch_chapter_list(self, class_level: ClassLevel, subject: str) -> list[str]: ...

    async def fetch_topic_content(self, selection: Selection) -> TopicContent: ...


def parse_json_response(text: str):
    """Parse model output, unwrapping a markdown code fence if present."""
    if not text or not text.strip():
        raise GenerationError("Empty response from model")
    match = _FENCE_RE.search(text)
    body = match.group(1) if match else text
    try:
        return json.loads(body.strip())
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model returned invalid JSON: {e}") from e


def parse_chapters(data) -> list[str]:
    if not isinstance(data, list):
        raise GenerationError("Chapter list is not an array")
    chapters = [str(c).strip() for c in data if isinstance(c, str) and c.strip()]
    if not chapters:
        raise GenerationError("No chapters were generated")
    return chapters


def parse_questions(data) -> tuple:
    """Keep well-formed questions; an empty result is a failure."""
    if not isinstance(data, list):
        raise GenerationError("Question set is not an array")
    questions = []
    for item in data:
        try:
            questions.append(Question.from_dict(item))
        except ValueError as e:
            logger.debug(f"Skipping malformed question: {e}")
    if not questions:
        raise GenerationError("No questions were generated")
    return tuple(questions)


def parse_revision_points(data) -> tuple:
    if not isinstance(data, list):
        raise GenerationError("Revision points are not an array")
    points = tuple(str(p).strip() for p in data if isinstance(p, str) and p.strip())
    if not points:
        raise GenerationError("No revision points were generated")
    return points


def chapter_prompt(class_level: ClassLevel, subject: str, count: int) -> str:
    return (
        f"List exactly {count} main chapters for {class_level.value} {subject} "
        "(latest syllabus). Return ONLY a JSON array of strings. No extra text."
    )


def content_prompt(selection: Selection, question_count: int, point_count: int) -> str:
    topic = f"{selection.class_level.value} {selection.subject}, Chapter: {selection.chapter}"
    if selection.content_goal == ContentGoal.MCQS:
        return (
            f"Create {question_count} unique MCQs for {topic}. "
            "Format: array of objects with 'question', 'options' (4 strings), "
            "'correctIndex' (0-3), and 'explanation'. "
            "Target difficulty: competitive exam level."
        )
    return (
        f"Generate {point_count} crucial revision bullet points for {topic}. "
        "Return as a JSON array of strings."
    )


class GeminiContentGenerator:
    """Content provider backed by the google-genai async client."""

    def __init__(self, config: AppConfig, client=None):
        self.config = config
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.config.api_key:
                raise GenerationError("GEMINI_API_KEY is not set; content generation is offline")
            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    async def _generate_json(self, prompt: str, schema):
        client = self.client
        try:
            response = await client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=genai_types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except Exception as e:
            logger.warning(f"Gemini call failed ({self.config.model}): {e}")
            raise GenerationError(str(e)) from e
        return parse_json_response(response.text or "")

    async def fetch_chapter_list(self, class_level: ClassLevel, subject: str) -> list[str]:
        prompt = chapter_prompt(class_level, subject, self.config.chapter_count)
        return parse_chapters(await self._generate_json(prompt, _STRING_LIST_SCHEMA))

    async def fetch_topic_content(self, selection: Selection) -> TopicContent:
        prompt = content_prompt(
            selection, self.config.question_count, self.config.revision_point_count
        )
        if selection.content_goal == ContentGoal.MCQS:
            data = await self._generate_json(prompt, _MCQ_SCHEMA)
            return TopicContent(questions=parse_questions(data))
        data = await self._generate_json(prompt, _STRING_LIST_SCHEMA)
        return TopicContent(revision_points=parse_revision_points(data))
