"""
Scoring and end-of-exam analysis.

``score_session`` is a pure reduction over the session; the analysis text is
best-effort and never stands in the way of the numeric result.
"""
from __future__ import annotations

import math

from loguru import logger

from pkexam.errors import ProviderError
from pkexam.models import Domain, DomainScore, ExamResult
from pkexam.session import ExamSession

ANALYSIS_FALLBACK = "Analysis unavailable."


def score_session(session: ExamSession) -> ExamResult:
    breakdown = {domain: DomainScore() for domain in Domain}
    correct = 0
    for q in session.questions:
        ds = breakdown[q.domain]
        ds.total += 1
        if q.is_correct(session.user_answers.get(q.id)):
            ds.correct += 1
            correct += 1

    total = len(session.questions)
    return ExamResult(
        score=math.floor(100 * correct / total + 0.5) if total else 0,
        total_questions=total,
        domain_breakdown=breakdown,
    )


async def request_analysis(provider, result: ExamResult) -> str:
    try:
        text = await provider.fetch_analysis(result.summary())
    except ProviderError as exc:
        logger.warning(f"Analysis request failed: {exc}")
        return ANALYSIS_FALLBACK
    except Exception:
        logger.exception("Unexpected analysis failure")
        return ANALYSIS_FALLBACK
    if not isinstance(text, str) or not text.strip():
        return ANALYSIS_FALLBACK
    return text


async def finish_exam(session: ExamSession, provider) -> ExamResult:
    """Close the session, score it, then attach the analysis text."""
    session.finish()
    result = score_session(session)
    logger.info(
        f"Set {session.current_set} finished: {result.score}% "
        f"({result.correct_count}/{result.total_questions})"
    )
    analysis = await request_analysis(provider, result)
    return result.model_copy(update={"ai_analysis": analysis})
