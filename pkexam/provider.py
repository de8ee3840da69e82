"""
Content provider backed by the Claude Messages API.

Questions are requested through a forced tool call whose ``input_schema``
describes a batch of bilingual questions, so the reply arrives as structured
JSON. The reply is still validated in full before it is returned.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import anthropic
from loguru import logger
from pydantic import ValidationError

from pkexam.config import Settings, get_settings
from pkexam.errors import MalformedResponseError, MissingCredentialsError, ProviderError
from pkexam.models import Domain, Question

QUESTION_TOOL = "submit_questions"

_OPTION_SCHEMA = {
    "type": "object",
    "properties": {
        "key": {"type": "string", "description": "Option letter, e.g. A"},
        "textEn": {"type": "string"},
        "textZh": {"type": "string"},
    },
    "required": ["key", "textEn", "textZh"],
}

QUESTION_SCHEMA = {
    "type": "object",
    "properties": {
        "domain": {"type": "string", "enum": [d.value for d in Domain]},
        "questionEn": {"type": "string"},
        "questionZh": {"type": "string"},
        "options": {"type": "array", "items": _OPTION_SCHEMA, "minItems": 4, "maxItems": 4},
        "correctAnswer": {"type": "string", "description": "Key of the correct option"},
        "explanationEn": {"type": "string"},
        "explanationZh": {"type": "string"},
    },
    "required": [
        "domain", "questionEn", "questionZh", "options",
        "correctAnswer", "explanationEn", "explanationZh",
    ],
}

BATCH_SCHEMA = {
    "type": "object",
    "properties": {"questions": {"type": "array", "items": QUESTION_SCHEMA}},
    "required": ["questions"],
}


def question_id(set_id: int, position: int) -> str:
    """Stable identifier for the question at 0-based ``position`` in a set."""
    return f"set{set_id}-q{position + 1}"


def build_question_prompt(set_id: int, start_index: int, count: int) -> str:
    domains = ", ".join(d.value for d in Domain)
    return (
        f"Generate {count} CompTIA Project+ (PK0-005) exam questions for Exam Set #{set_id}, "
        f"starting from question number {start_index + 1}.\n"
        f"Each question must be bilingual (English and Simplified Chinese).\n"
        f"Cover these domains: {domains}.\n"
        f"Questions must be professional, realistic, and match the difficulty of the real exam.\n"
        f"Each question has exactly 4 options keyed A, B, C and D.\n\n"
        f"For explanationEn and explanationZh give a detailed analysis:\n"
        f"1. Why the correct answer is right.\n"
        f"2. Why each of the other options is wrong.\n"
        f"3. A short summary of the key concept being tested.\n"
        f"Use Markdown (bold, lists) for clarity.\n\n"
        f"Return the questions by calling the {QUESTION_TOOL} tool."
    )


def build_analysis_prompt(summary: dict) -> str:
    return (
        "Analyze these CompTIA Project+ exam results and give a detailed study "
        "recommendation in both English and Chinese.\n"
        f"Results: {json.dumps(summary, ensure_ascii=False)}\n"
        "Focus on the weakest domains and name specific topics to review. "
        "Format the answer as Markdown."
    )


def parse_questions(payload: Any, set_id: int, start_index: int, count: int) -> list[Question]:
    """Validate a tool-call payload. One bad entry rejects the whole batch."""
    if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
        raise MalformedResponseError("reply has no 'questions' array")
    items = payload["questions"]
    if len(items) > count:
        raise MalformedResponseError(f"asked for {count} questions, got {len(items)}")

    questions = []
    for offset, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedResponseError(f"question {offset} is not an object")
        data = dict(item, id=question_id(set_id, start_index + offset))
        try:
            questions.append(Question.model_validate(data))
        except ValidationError as e:
            raise MalformedResponseError(
                f"question {offset} failed validation: {e.error_count()} error(s)"
            ) from e
    return questions


def _default_client_factory(api_key: str) -> anthropic.AsyncAnthropic:
    return anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)


class ContentProvider:
    """Fetches question batches and result analyses from Claude."""

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: Callable[[str], Any] | None = None,
    ):
        self.settings = settings or get_settings()
        self._client_factory = client_factory or _default_client_factory

    async def _create_message(self, **kwargs):
        key = self.settings.anthropic_api_key
        if not key:
            raise MissingCredentialsError("ANTHROPIC_API_KEY is not set")
        async with self._client_factory(key) as client:
            return await client.messages.create(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                **kwargs,
            )

    async def _with_retries(self, what: str, call):
        max_attempts = self.settings.max_attempts
        last_error: ProviderError | None = None

        for attempt_num in range(1, max_attempts + 1):
            try:
                return await call()
            except MissingCredentialsError:
                raise
            except MalformedResponseError as e:
                last_error = e
            except anthropic.AnthropicError as e:
                last_error = ProviderError(f"{type(e).__name__}: {e}")
            logger.warning(f"{what} failed (attempt {attempt_num}/{max_attempts}): {last_error}")
            if attempt_num < max_attempts:
                await asyncio.sleep(self.settings.retry_delay)

        raise last_error

    async def fetch_questions(self, set_id: int, start_index: int, count: int) -> list[Question]:
        if count <= 0:
            return []

        async def call():
            response = await self._create_message(
                messages=[{"role": "user", "content": build_question_prompt(set_id, start_index, count)}],
                tools=[{
                    "name": QUESTION_TOOL,
                    "description": "Submit a batch of bilingual exam questions.",
                    "input_schema": BATCH_SCHEMA,
                }],
                tool_choice={"type": "tool", "name": QUESTION_TOOL},
            )
            payload = next(
                (b.input for b in response.content
                 if getattr(b, "type", None) == "tool_use" and b.name == QUESTION_TOOL),
                None,
            )
            if payload is None:
                raise MalformedResponseError("reply did not call the question tool")
            return parse_questions(payload, set_id, start_index, count)

        questions = await self._with_retries(f"Question batch {set_id}@{start_index}", call)
        logger.info(f"Fetched {len(questions)} question(s) for set {set_id} at {start_index}")
        return questions

    async def fetch_analysis(self, summary: dict) -> str:
        async def call():
            response = await self._create_message(
                messages=[{"role": "user", "content": build_analysis_prompt(summary)}],
            )
            text = "".join(
                b.text for b in response.content if getattr(b, "type", None) == "text"
            ).strip()
            if not text:
                raise MalformedResponseError("analysis reply had no text")
            return text

        return await self._with_retries("Analysis", call)
