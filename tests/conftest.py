"""
Pytest configuration and shared fixtures.
"""
import pytest

from pkexam.config import Settings
from pkexam.errors import ProviderError
from pkexam.models import Domain, Question

DOMAINS = list(Domain)


def make_question(n, domain=None, correct="B"):
    """Build a valid question numbered ``n``."""
    return Question(
        id=f"set1-q{n + 1}",
        domain=domain or DOMAINS[n % len(DOMAINS)],
        question_en=f"Question {n + 1}?",
        question_zh=f"问题 {n + 1}？",
        options=[
            {"key": k, "text_en": f"Option {k}", "text_zh": f"选项 {k}"}
            for k in "ABCD"
        ],
        correct_answer=correct,
        explanation_en="Because.",
        explanation_zh="因为。",
    )


class FakeProvider:
    """In-memory stand-in for ContentProvider."""

    def __init__(self, fail_calls=(), analysis="**Review Project Constraints.**"):
        self.calls = []
        self.analysis_calls = []
        self.fail_calls = set(fail_calls)
        self.analysis = analysis

    async def fetch_questions(self, set_id, start_index, count):
        self.calls.append((set_id, start_index, count))
        if len(self.calls) in self.fail_calls:
            raise ProviderError("quota exceeded")
        return [make_question(start_index + i) for i in range(count)]

    async def fetch_analysis(self, summary):
        self.analysis_calls.append(summary)
        if isinstance(self.analysis, Exception):
            raise self.analysis
        return self.analysis


@pytest.fixture
def settings():
    return Settings(
        anthropic_api_key="sk-ant-test",
        model="claude-test",
        max_attempts=2,
        retry_delay=0,
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def question():
    return make_question(0)
