"""
Question and result models.

Questions arrive from the content provider as untrusted JSON, so every
field is validated here before a question can reach a session.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Domain(str, Enum):
    PROJECT_BASICS = "Project Basics"
    PROJECT_CONSTRAINTS = "Project Constraints"
    COMMUNICATION_AND_CHANGE = "Communication and Change Management"
    TOOLS_AND_DOCUMENTATION = "Project Tools and Documentation"


class _CamelModel(BaseModel):
    # The provider speaks camelCase (questionEn, correctAnswer); Python code uses snake_case.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


class Option(_CamelModel):
    key: str = Field(min_length=1)
    text_en: str = Field(min_length=1)
    text_zh: str = Field(min_length=1)

    def text(self, lang: str = "en") -> str:
        return self.text_zh if lang == "zh" else self.text_en


class Question(_CamelModel):
    """A single bilingual multiple-choice question."""

    id: str = Field(min_length=1)
    domain: Domain
    question_en: str = Field(min_length=1)
    question_zh: str = Field(min_length=1)
    options: list[Option] = Field(min_length=2)
    correct_answer: str = Field(min_length=1)
    explanation_en: str = Field(min_length=1)
    explanation_zh: str = Field(min_length=1)

    @field_validator("options")
    @classmethod
    def _unique_keys(cls, options: list[Option]) -> list[Option]:
        keys = [o.key for o in options]
        if len(set(keys)) != len(keys):
            raise ValueError(f"duplicate option keys: {keys}")
        return options

    @model_validator(mode="after")
    def _correct_answer_is_an_option(self) -> "Question":
        if self.option(self.correct_answer) is None:
            raise ValueError(
                f"correct answer {self.correct_answer!r} is not one of "
                f"{self.option_keys}"
            )
        return self

    @property
    def option_keys(self) -> list[str]:
        return [o.key for o in self.options]

    def option(self, key: str) -> Option | None:
        for opt in self.options:
            if opt.key == key:
                return opt
        return None

    def is_correct(self, key: str | None) -> bool:
        return key is not None and key == self.correct_answer

    def text(self, lang: str = "en") -> str:
        return self.question_zh if lang == "zh" else self.question_en

    def explanation(self, lang: str = "en") -> str:
        return self.explanation_zh if lang == "zh" else self.explanation_en


class DomainScore(BaseModel):
    correct: int = 0
    total: int = 0

    @property
    def percent(self) -> int:
        return round(self.correct / self.total * 100) if self.total else 0


class ExamResult(BaseModel):
    """Numeric outcome of a session, plus the analysis text once it arrives."""

    score: int
    total_questions: int
    domain_breakdown: dict[Domain, DomainScore]
    ai_analysis: str = ""

    @property
    def correct_count(self) -> int:
        return sum(d.correct for d in self.domain_breakdown.values())

    def passed(self, pass_mark: int = 75) -> bool:
        return self.score >= pass_mark

    def summary(self) -> dict:
        """The numeric part of the result, as sent to the analysis request."""
        return {
            "score": self.score,
            "totalQuestions": self.total_questions,
            "domainBreakdown": {
                domain.value: {"correct": ds.correct, "total": ds.total}
                for domain, ds in self.domain_breakdown.items()
            },
        }
