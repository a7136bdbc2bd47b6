# tests/test_generator.py
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from edufinder.config import AppConfig
from edufinder.errors import GenerationError
from edufinder.generator import (
    GeminiContentGenerator, content_prompt, parse_chapters, parse_json_response,
    parse_questions, parse_revision_points,
)
from edufinder.models import ClassLevel, ContentGoal, Selection

GOOD_QUESTION = {
    "question": "Unit of force?", "options": ["Newton", "Joule", "Watt", "Pascal"],
    "correctIndex": 0, "explanation": "F = ma, measured in newtons.",
}


def _selection(goal):
    return Selection(
        class_level=ClassLevel.CLASS_9, subject="Science", chapter="Force", content_goal=goal,
    )


def _generator(response_text=None, error=None):
    client = MagicMock()
    if error is not None:
        client.aio.models.generate_content = AsyncMock(side_effect=error)
    else:
        client.aio.models.generate_content = AsyncMock(
            return_value=SimpleNamespace(text=response_text)
        )
    return GeminiContentGenerator(AppConfig(api_key="test-key"), client=client), client


def test_parse_json_plain():
    assert parse_json_response('["a", "b"]') == ["a", "b"]


def test_parse_json_strips_code_fence():
    assert parse_json_response('```json\n["a"]\n```') == ["a"]


@pytest.mark.parametrize("text", ["", "   ", "not json at all", "```json\n{broken\n```"])
def test_parse_json_failures(text):
    with pytest.raises(GenerationError):
        parse_json_response(text)


def test_parse_chapters_drops_blanks():
    assert parse_chapters(["Motion", " ", 3, "Force "]) == ["Motion", "Force"]


def test_parse_chapters_empty_is_error():
    with pytest.raises(GenerationError):
        parse_chapters([])
    with pytest.raises(GenerationError):
        parse_chapters({"chapters": ["x"]})


def test_parse_questions_skips_malformed():
    bad = dict(GOOD_QUESTION, options=["only", "two"])
    questions = parse_questions([GOOD_QUESTION, bad])
    assert len(questions) == 1
    assert questions[0].options[0] == "Newton"


def test_parse_questions_empty_is_error():
    with pytest.raises(GenerationError):
        parse_questions([])
    with pytest.raises(GenerationError):
        parse_questions([{"question": "no options"}])


def test_parse_revision_points():
    assert parse_revision_points(["One", "", "Two"]) == ("One", "Two")
    with pytest.raises(GenerationError):
        parse_revision_points([])


def test_content_prompt_by_goal():
    mcq = content_prompt(_selection(ContentGoal.MCQS), 20, 10)
    rev = content_prompt(_selection(ContentGoal.QUICK_REVISION), 20, 10)
    assert "20 unique MCQs" in mcq
    assert "Class 9 Science, Chapter: Force" in mcq
    assert "10 crucial revision bullet points" in rev


@pytest.mark.asyncio
async def test_fetch_chapter_list():
    gen, client = _generator(json.dumps(["Motion", "Force"]))
    chapters = await gen.fetch_chapter_list(ClassLevel.CLASS_9, "Science")
    assert chapters == ["Motion", "Force"]
    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-2.0-flash"
    assert "15 main chapters for Class 9 Science" in kwargs["contents"]


@pytest.mark.asyncio
async def test_fetch_mcq_content():
    gen, _ = _generator(json.dumps([GOOD_QUESTION, GOOD_QUESTION]))
    content = await gen.fetch_topic_content(_selection(ContentGoal.MCQS))
    assert len(content.questions) == 2
    assert content.revision_points == ()


@pytest.mark.asyncio
async def test_fetch_revision_content():
    gen, _ = _generator(json.dumps(["Newton's first law", "Inertia"]))
    content = await gen.fetch_topic_content(_selection(ContentGoal.QUICK_REVISION))
    assert content.revision_points == ("Newton's first law", "Inertia")
    assert content.questions == ()


@pytest.mark.asyncio
async def test_empty_question_set_raises():
    gen, _ = _generator("[]")
    with pytest.raises(GenerationError):
        await gen.fetch_topic_content(_selection(ContentGoal.MCQS))


@pytest.mark.asyncio
async def test_provider_error_becomes_generation_error():
    gen, _ = _generator(error=RuntimeError("503 unavailable"))
    with pytest.raises(GenerationError):
        await gen.fetch_chapter_list(ClassLevel.CLASS_9, "Science")


@pytest.mark.asyncio
async def test_missing_api_key_raises_generation_error():
    gen = GeminiContentGenerator(AppConfig(api_key=""))
    with pytest.raises(GenerationError):
        await gen.fetch_chapter_list(ClassLevel.CLASS_9, "Science")
