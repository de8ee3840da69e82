"""
Unit tests for scoring and analysis.
"""
import pytest

from conftest import FakeProvider, make_question
from pkexam.errors import ProviderError
from pkexam.models import Domain
from pkexam.scorer import ANALYSIS_FALLBACK, finish_exam, request_analysis, score_session
from pkexam.session import ExamSession


def _session(questions, answers=None):
    s = ExamSession()
    s.select_set(1)
    s.append_questions(questions)
    for qid, key in (answers or {}).items():
        s.record_answer(qid, key)
    return s


def test_one_correct_per_domain():
    questions = [make_question(i, domain=d) for i, d in enumerate(Domain)]
    s = _session(questions, {q.id: q.correct_answer for q in questions})
    result = score_session(s)
    assert result.score == 100
    assert result.total_questions == 4
    assert {d: (v.correct, v.total) for d, v in result.domain_breakdown.items()} == {
        d: (1, 1) for d in Domain
    }


def test_single_answered_question_scores_100():
    q = make_question(0)
    result = score_session(_session([q], {q.id: q.correct_answer}))
    assert result.score == 100


def test_breakdown_totals_match_loaded_and_include_empty_domains():
    questions = [make_question(i, domain=Domain.PROJECT_BASICS) for i in range(3)]
    s = _session(questions, {"set1-q1": "B", "set1-q2": "A"})
    result = score_session(s)
    assert set(result.domain_breakdown) == set(Domain)
    assert sum(d.total for d in result.domain_breakdown.values()) == s.loaded_count
    assert result.domain_breakdown[Domain.PROJECT_BASICS].correct == 1
    assert result.domain_breakdown[Domain.PROJECT_CONSTRAINTS].total == 0
    assert result.score == 33


def test_unanswered_questions_count_as_wrong():
    questions = [make_question(i) for i in range(8)]
    result = score_session(_session(questions, {"set1-q1": "B"}))
    # 12.5 rounds half up
    assert result.score == 13


def test_empty_session_scores_zero():
    result = score_session(ExamSession())
    assert result.score == 0
    assert result.total_questions == 0
    assert all(d.total == 0 for d in result.domain_breakdown.values())


def test_scoring_is_pure():
    questions = [make_question(i) for i in range(5)]
    s = _session(questions, {"set1-q1": "B", "set1-q3": "C"})
    before = s.model_dump()
    assert score_session(s) == score_session(s)
    assert s.model_dump() == before


@pytest.mark.asyncio
async def test_request_analysis_falls_back_on_error():
    provider = FakeProvider(analysis=ProviderError("network down"))
    result = score_session(_session([make_question(0)]))
    assert await request_analysis(provider, result) == ANALYSIS_FALLBACK


@pytest.mark.asyncio
async def test_request_analysis_falls_back_on_empty_text():
    provider = FakeProvider(analysis="  ")
    result = score_session(_session([make_question(0)]))
    assert await request_analysis(provider, result) == ANALYSIS_FALLBACK


@pytest.mark.asyncio
async def test_finish_exam_attaches_analysis():
    provider = FakeProvider()
    q = make_question(0)
    s = _session([q], {q.id: "B"})
    result = await finish_exam(s, provider)
    assert s.is_finished
    assert result.score == 100
    assert result.ai_analysis == "**Review Project Constraints.**"
    assert provider.analysis_calls == [result.summary()]


@pytest.mark.asyncio
async def test_finish_exam_keeps_score_when_analysis_fails():
    provider = FakeProvider(analysis=ProviderError("quota"))
    questions = [make_question(i, domain=d) for i, d in enumerate(Domain)]
    s = _session(questions, {q.id: q.correct_answer for q in questions})
    result = await finish_exam(s, provider)
    assert result.score == 100
    assert all(d.correct == d.total == 1 for d in result.domain_breakdown.values())
    assert result.ai_analysis == ANALYSIS_FALLBACK


@pytest.mark.asyncio
async def test_finish_exam_survives_unexpected_analysis_error():
    provider = FakeProvider(analysis=RuntimeError("boom"))
    q = make_question(0)
    s = _session([q], {q.id: q.correct_answer})
    result = await finish_exam(s, provider)
    assert result.score == 100
    assert result.total_questions == 1
    assert result.ai_analysis == ANALYSIS_FALLBACK


@pytest.mark.asyncio
async def test_request_analysis_falls_back_on_non_text_reply():
    provider = FakeProvider(analysis=None)
    result = score_session(_session([make_question(0)]))
    assert await request_analysis(provider, result) == ANALYSIS_FALLBACK
