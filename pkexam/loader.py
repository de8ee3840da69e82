"""
Lazy batch loading.

Questions are fetched a few at a time as the user moves through a set,
keeping each round trip short. Only one fetch per session is ever in flight;
a caller that arrives while one is running waits for it instead of asking
the provider for the same gap again.
"""
from __future__ import annotations

import asyncio

from loguru import logger

from pkexam.config import BATCH_SIZE
from pkexam.errors import ProviderError, SessionError
from pkexam.models import Question
from pkexam.session import ExamSession


class BatchLoader:
    def __init__(self, provider, batch_size: int = BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.provider = provider
        self.batch_size = batch_size
        self._inflight: dict[int, asyncio.Task] = {}
        self.last_error: str | None = None

    def is_loading(self, session: ExamSession) -> bool:
        task = self._inflight.get(id(session))
        return task is not None and not task.done()

    async def ensure_loaded(self, session: ExamSession, target_index: int) -> bool:
        """Make sure ``target_index`` is loaded, fetching one batch if needed.

        Returns True when the question at ``target_index`` is available.
        Never raises for provider trouble; the session is left untouched and
        the caller may simply try again.
        """
        key = id(session)
        while key in self._inflight:
            ok = await asyncio.shield(self._inflight[key])
            if session.is_loaded(target_index) or not ok:
                return session.is_loaded(target_index)

        if session.is_loaded(target_index):
            return True
        if not session.is_active or session.is_finished:
            return False
        if not 0 <= target_index < session.total_target:
            return False

        task = asyncio.ensure_future(self._load_next_batch(session))
        self._inflight[key] = task
        await task
        return session.is_loaded(target_index)

    async def _load_next_batch(self, session: ExamSession) -> bool:
        set_id = session.current_set
        offset = session.loaded_count
        remaining = min(self.batch_size, session.total_target - offset)
        try:
            if remaining <= 0:
                return False
            try:
                batch = await self.provider.fetch_questions(set_id, offset, remaining)
            except ProviderError as exc:
                self.last_error = str(exc)
                logger.error(f"Could not load questions {offset + 1}-{offset + remaining} of set {set_id}: {exc}")
                return False
            except Exception as exc:
                self.last_error = f"{type(exc).__name__}: {exc}"
                logger.exception(f"Unexpected provider failure for set {set_id}@{offset}")
                return False

            if session.current_set != set_id or session.loaded_count != offset:
                logger.warning(f"Session changed while loading set {set_id}@{offset}; discarding batch")
                return False
            if not isinstance(batch, (list, tuple)) or not all(isinstance(q, Question) for q in batch):
                self.last_error = "The provider returned malformed questions."
                logger.error(f"Malformed batch for set {set_id}@{offset}: {type(batch).__name__}")
                return False
            if not batch:
                self.last_error = "The provider returned no questions."
                logger.warning(f"Empty batch for set {set_id}@{offset}")
                return False
            if len(batch) > remaining:
                self.last_error = f"Expected at most {remaining} questions, got {len(batch)}."
                logger.error(self.last_error)
                return False
            try:
                session.append_questions(batch)
            except SessionError as exc:
                self.last_error = str(exc)
                logger.error(f"Rejected batch for set {set_id}@{offset}: {exc}")
                return False

            self.last_error = None
            logger.info(f"Loaded {len(batch)} question(s); set {set_id} now has {session.loaded_count}")
            return True
        finally:
            self._inflight.pop(id(session), None)
