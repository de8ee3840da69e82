"""
Exam session state.

``ExamSession`` is the single source of truth for an exam in progress. It is
a plain pydantic model so it can live in ``st.session_state``, be dumped for
inspection, and be handed to pure functions such as the scorer. All changes
go through the methods below.
"""
from __future__ import annotations

import time
from typing import Iterable

from loguru import logger
from pydantic import BaseModel, Field

from pkexam.config import QUESTIONS_PER_SET, SET_COUNT
from pkexam.errors import SessionError
from pkexam.models import Question


class ExamSession(BaseModel):
    current_set: int | None = None
    questions: list[Question] = Field(default_factory=list)
    current_index: int = 0
    user_answers: dict[str, str] = Field(default_factory=dict)
    is_finished: bool = False
    start_time: float | None = None
    total_target: int = Field(default=QUESTIONS_PER_SET, ge=1)
    set_count: int = Field(default=SET_COUNT, ge=1)

    # ─── queries ────────────────────────────────────────────────────────
    @property
    def is_active(self) -> bool:
        return self.current_set is not None

    @property
    def loaded_count(self) -> int:
        return len(self.questions)

    def is_loaded(self, index: int) -> bool:
        return 0 <= index < len(self.questions)

    @property
    def current_question(self) -> Question | None:
        if self.is_loaded(self.current_index):
            return self.questions[self.current_index]
        return None

    def answer_for(self, question_id: str) -> str | None:
        return self.user_answers.get(question_id)

    @property
    def answered_count(self) -> int:
        return len(self.user_answers)

    @property
    def is_last_position(self) -> bool:
        return self.current_index >= self.total_target - 1

    @property
    def all_answered(self) -> bool:
        return self.answered_count >= self.total_target

    def elapsed_seconds(self, now: float | None = None) -> int:
        if self.start_time is None:
            return 0
        return max(0, int((now if now is not None else time.time()) - self.start_time))

    # ─── operations ─────────────────────────────────────────────────────
    def select_set(self, set_id: int, now: float | None = None) -> None:
        """Start a fresh session bound to ``set_id``."""
        if self.is_active:
            raise SessionError(
                f"set {self.current_set} is already in progress; reset before choosing another"
            )
        if not 1 <= set_id <= self.set_count:
            raise SessionError(f"set must be between 1 and {self.set_count}, got {set_id}")
        self.questions = []
        self.current_index = 0
        self.user_answers = {}
        self.is_finished = False
        self.current_set = set_id
        self.start_time = now if now is not None else time.time()
        logger.info(f"Started set {set_id} ({self.total_target} questions)")

    def record_answer(self, question_id: str, option_key: str) -> bool:
        """Record the user's choice. Answers are final: returns False if nothing changed."""
        if self.is_finished:
            return False
        if question_id in self.user_answers:
            logger.debug(f"Ignoring second answer for {question_id}")
            return False
        question = next((q for q in self.questions if q.id == question_id), None)
        if question is None:
            logger.debug(f"Ignoring answer for unloaded question {question_id}")
            return False
        if question.option(option_key) is None:
            logger.debug(f"Ignoring unknown option {option_key!r} for {question_id}")
            return False
        self.user_answers[question_id] = option_key
        return True

    def append_questions(self, batch: Iterable[Question]) -> None:
        batch = list(batch)
        if len(self.questions) + len(batch) > self.total_target:
            raise SessionError(
                f"batch of {len(batch)} would exceed the {self.total_target} question target"
            )
        seen = {q.id for q in self.questions}
        for q in batch:
            if q.id in seen:
                raise SessionError(f"duplicate question id {q.id}")
            seen.add(q.id)
        self.questions.extend(batch)

    def advance(self) -> bool:
        """Move to the next question if it exists and is loaded."""
        if self.is_last_position or not self.is_loaded(self.current_index + 1):
            return False
        self.current_index += 1
        return True

    def back(self) -> bool:
        if self.current_index == 0:
            return False
        self.current_index -= 1
        return True

    def finish(self) -> None:
        self.is_finished = True

    def reset(self) -> None:
        """Discard everything and return to the set picker."""
        self.current_set = None
        self.questions = []
        self.current_index = 0
        self.user_answers = {}
        self.is_finished = False
        self.start_time = None
