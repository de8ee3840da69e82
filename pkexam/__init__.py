"""
CompTIA Project+ (PK0-005) bilingual practice exam.

Session state, batch loading, scoring and the Claude-backed content
provider used by ``projectplus_app.py``.
"""

from pkexam.errors import (
    ExamError,
    MalformedResponseError,
    MissingCredentialsError,
    ProviderError,
    SessionError,
)
from pkexam.loader import BatchLoader
from pkexam.models import Domain, DomainScore, ExamResult, Option, Question
from pkexam.provider import ContentProvider
from pkexam.scorer import ANALYSIS_FALLBACK, finish_exam, request_analysis, score_session
from pkexam.session import ExamSession

__version__ = "1.0.0"

__all__ = [
    "ANALYSIS_FALLBACK",
    "BatchLoader",
    "ContentProvider",
    "Domain",
    "DomainScore",
    "ExamError",
    "ExamResult",
    "ExamSession",
    "MalformedResponseError",
    "MissingCredentialsError",
    "Option",
    "ProviderError",
    "Question",
    "SessionError",
    "finish_exam",
    "request_analysis",
    "score_session",
]
