"""Taboo game session lifecycle.

initialized -> in_progress -> completed, with abandoned reachable from
either open state. Completed and abandoned are terminal.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any

import structlog
from pydantic import BaseModel

from taboo_trainer.ai.capabilities import ExampleCapability, UsageSink
from taboo_trainer.config import resolve_language
from taboo_trainer.errors import (
    CardInactive,
    CardNotFound,
    InvalidDescription,
    InvalidSessionState,
    SessionNotFound,
)
from taboo_trainer.game.evaluator import Evaluator
from taboo_trainer.game.scorer import check_scoring_input, score, score_without_submission
from taboo_trainer.game.translator import Translator
from taboo_trainer.models.ai import AIUsage
from taboo_trainer.models.evaluation import EvaluationResult, ScoreResult
from taboo_trainer.models.language import Language
from taboo_trainer.models.session import (
    GameSession,
    SessionStatus,
    SessionWarning,
    Submission,
)
from taboo_trainer.storage.cards import CardRepository
from taboo_trainer.storage.sessions import SessionStore

logger = structlog.get_logger()


class SubmissionOutcome(BaseModel):
    """Result of one description submission."""

    session: GameSession
    evaluation: EvaluationResult
    newly_found_words: list[str]
    score: ScoreResult  # provisional; frozen only by complete_session

    @property
    def quality(self) -> str:
        """Confidence of the evaluation: reduced when the fallback matched words."""
        return "reduced" if self.evaluation.is_fallback else "full"


class SessionManager:
    """Owns every game session and serializes operations per session.

    Submissions and completions on the same session run one at a time;
    unrelated sessions proceed in parallel. Abandoning does not wait for an
    in-flight AI call: the state is re-checked before a late result is
    applied, and the result is discarded if the session became terminal.

    Args:
        cards: Card repository.
        store: Session store.
        translator: Word-set translator.
        evaluator: Description evaluator.
        languages: Supported target languages keyed by name.
        example_capability: Optional sample description generator.
        usage_sink: Optional AI usage telemetry sink.
        min_description_length: Shortest accepted description (stripped).
        session_timeout: Inactivity after which open sessions expire.
        ai_timeout_seconds: Upper bound for example generation.
    """

    def __init__(
        self,
        cards: CardRepository,
        store: SessionStore,
        translator: Translator,
        evaluator: Evaluator,
        languages: dict[str, Language],
        example_capability: ExampleCapability | None = None,
        usage_sink: UsageSink | None = None,
        min_description_length: int = 5,
        session_timeout: timedelta | None = None,
        ai_timeout_seconds: float = 20.0,
    ):
        self.cards = cards
        self.store = store
        self.translator = translator
        self.evaluator = evaluator
        self.languages = languages
        self.example_capability = example_capability
        self.usage_sink = usage_sink
        self.min_description_length = min_description_length
        self.session_timeout = session_timeout
        self.ai_timeout_seconds = ai_timeout_seconds
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, session: GameSession) -> asyncio.Lock:
        """Per-session lock; only ever created for a known, open session."""
        lock = self._locks.get(session.id)
        if lock is None:
            lock = self._locks[session.id] = asyncio.Lock()
        return lock

    def _release_lock(self, session_id: str) -> None:
        # Waiters keep their reference to the old lock and re-check the state.
        self._locks.pop(session_id, None)

    def get_session(self, session_id: str, user_id: str | None = None) -> GameSession:
        """Fetch a session, optionally checking it belongs to ``user_id``."""
        session = self.store.get(session_id)
        if session is None or (user_id is not None and session.user_id != user_id):
            raise SessionNotFound(session_id)
        return session

    @staticmethod
    def _require_open(session: GameSession, operation: str) -> None:
        if not session.status.is_open:
            raise InvalidSessionState(session.id, session.status.value, operation)

    def _record_usage(
        self,
        session: GameSession,
        usage: AIUsage | None,
        request_type: str,
        **extra: Any,
    ) -> None:
        if usage is None:
            return
        metadata = {
            "user_id": session.user_id,
            "session_id": session.id,
            "request_type": request_type,
            "target_language": session.target_language,
            **extra,
        }
        session.ai_usage_metadata.append({**usage.model_dump(), **metadata})
        if self.usage_sink is None:
            return
        try:
            self.usage_sink.record(usage, metadata)
        except Exception:
            logger.exception("ai_usage_record_failed", session_id=session.id)

    async def start_session(
        self, card_id: str, target_language: str, user_id: str
    ) -> GameSession:
        """Create a session for an active card in ``target_language``.

        Raises:
            CardNotFound: No card with ``card_id`` (CardInactive if disabled).
            UnsupportedLanguage: ``target_language`` is not configured.
        """
        card = self.cards.find_active_card(card_id)
        if card is None:
            if self.cards.get_card(card_id) is not None:
                raise CardInactive(card_id)
            raise CardNotFound(card_id)

        language = resolve_language(target_language, self.languages)
        translation = await self.translator.translate(
            card.answer_word, card.key_words, language, source_language=card.language
        )

        session = GameSession(
            card_id=card.id,
            user_id=user_id,
            target_language=language.key,
            answer_word=translation.answer_pair.translated,
            original_answer_word=card.answer_word,
            original_key_words=translation.original_key_words,
            translated_key_words=translation.translated_key_words,
            card_category=card.category,
            card_difficulty=card.difficulty,
        )
        if translation.degraded:
            session.add_warning(SessionWarning.TRANSLATION_DEGRADED)
        session.add_message(
            "session_started",
            "Game session started",
            {"card_id": card.id, "target_language": language.key},
        )
        self._record_usage(session, translation.usage, "taboo_session_start")
        self.cards.increment_usage(card.id)
        self.store.save(session)

        logger.info(
            "session_started",
            session_id=session.id,
            card_id=card.id,
            target_language=language.key,
            degraded=translation.degraded,
        )
        return session

    async def submit_description(
        self, session_id: str, description: str, user_id: str | None = None
    ) -> SubmissionOutcome:
        """Evaluate a description and accumulate the key words it used.

        Raises:
            SessionNotFound: Unknown session or owned by another user.
            InvalidSessionState: Session is completed or abandoned, including
                when it was abandoned while the evaluation was running.
            InvalidDescription: Description shorter than the minimum length.
        """
        session = self.get_session(session_id, user_id)
        self._require_open(session, "submit a description to")
        async with self._lock_for(session):
            self._require_open(session, "submit a description to")

            text = description.strip() if description else ""
            if len(text) < self.min_description_length:
                raise InvalidDescription(
                    f"Description must be at least {self.min_description_length} characters long"
                )

            language = self.languages.get(session.target_language)
            evaluation = await self.evaluator.evaluate(
                text,
                session.translated_key_words,
                session.answer_word,
                language.name if language else session.target_language,
            )

            if not session.status.is_open:
                logger.warning(
                    "late_evaluation_discarded",
                    session_id=session.id,
                    status=session.status.value,
                )
                raise InvalidSessionState(
                    session.id, session.status.value, "submit a description to"
                )

            check_scoring_input(evaluation)

            newly_found = session.merge_found_words(evaluation.words_found)
            session.submission_history.append(Submission(
                description=text,
                newly_found_words=newly_found,
                source=evaluation.source,
            ))
            session.evaluations.append(evaluation)
            provisional = score(session.accumulated_evaluation())
            if evaluation.is_fallback:
                session.add_warning(SessionWarning.EVALUATION_FALLBACK_USED)
            session.status = SessionStatus.IN_PROGRESS
            session.add_message(
                "description_submitted",
                "Description evaluated",
                {"newly_found": newly_found, "source": evaluation.source.value},
            )
            self._record_usage(session, evaluation.usage, "taboo_session_submit")
            session.touch()
            self.store.save(session)

            logger.info(
                "description_submitted",
                session_id=session.id,
                newly_found=newly_found,
                words_found=len(session.words_found),
                source=evaluation.source.value,
                provisional_score=provisional.final_score,
            )
            return SubmissionOutcome(
                session=session,
                evaluation=evaluation,
                newly_found_words=newly_found,
                score=provisional,
            )

    async def _generate_example(self, session: GameSession) -> None:
        """Best-effort sample description; failures never block completion."""
        if self.example_capability is None:
            return
        language = self.languages.get(session.target_language)
        try:
            sample = await asyncio.wait_for(
                self.example_capability.generate_sample_description(
                    session.answer_word,
                    list(session.translated_key_words),
                    language.name if language else session.target_language,
                ),
                timeout=self.ai_timeout_seconds,
            )
        except Exception:
            logger.exception("sample_description_failed", session_id=session.id)
            return
        session.example_description = sample.description
        self._record_usage(
            session, sample.usage, "taboo_session_complete", included_example=True
        )

    async def complete_session(
        self,
        session_id: str,
        include_example: bool = False,
        user_id: str | None = None,
    ) -> GameSession:
        """Score the accumulated submissions and close the session.

        A session completed without any submission scores 0.

        Raises:
            SessionNotFound: Unknown session or owned by another user.
            InvalidSessionState: Session is already completed or abandoned.
        """
        session = self.get_session(session_id, user_id)
        self._require_open(session, "complete")
        async with self._lock_for(session):
            self._require_open(session, "complete")

            if session.submission_history:
                evaluation = session.accumulated_evaluation()
                check_scoring_input(evaluation)
                result = score(evaluation)
            else:
                result = score_without_submission(len(session.translated_key_words))

            if include_example:
                await self._generate_example(session)
                if not session.status.is_open:
                    raise InvalidSessionState(session.id, session.status.value, "complete")

            session.score_result = result
            session.score = result.final_score
            session.status = SessionStatus.COMPLETED
            session.completed_at = datetime.now()
            session.add_message(
                "game_completed",
                "Game completed",
                {
                    "score": result.final_score,
                    "words_found": len(session.words_found),
                    "total_words": len(session.original_key_words),
                },
            )
            session.touch()
            self.store.save(session)
            self._release_lock(session.id)

            logger.info(
                "session_completed",
                session_id=session.id,
                score=result.final_score,
                source=result.source.value,
            )
            return session

    async def abandon_session(
        self, session_id: str, user_id: str | None = None, reason: str = "cancelled"
    ) -> GameSession:
        """Mark an open session as abandoned without waiting for in-flight calls.

        Raises:
            SessionNotFound: Unknown session or owned by another user.
            InvalidSessionState: Session is already completed or abandoned.
        """
        session = self.get_session(session_id, user_id)
        self._require_open(session, "abandon")
        session.status = SessionStatus.ABANDONED
        session.add_message("game_abandoned", "Game abandoned", {"reason": reason})
        session.touch()
        self.store.save(session)
        self._release_lock(session.id)
        logger.info("session_abandoned", session_id=session.id, reason=reason)
        return session

    async def expire_stale_sessions(self, now: datetime | None = None) -> list[str]:
        """Abandon open sessions idle for longer than the configured timeout."""
        if self.session_timeout is None:
            return []
        now = now or datetime.now()
        expired = []
        for session in self.store.open_sessions():
            if now - session.updated_at > self.session_timeout:
                await self.abandon_session(session.id, reason="timeout")
                expired.append(session.id)
        return expired

    async def run_expiry_sweeps(self, interval_seconds: float) -> None:
        """Periodically expire idle sessions until cancelled."""
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                try:
                    expired = await self.expire_stale_sessions()
                except Exception:
                    logger.exception("session_expiry_failed")
                    continue
                if expired:
                    logger.info("sessions_expired", count=len(expired))
        except asyncio.CancelledError:
            logger.info("session_expiry_stopped")
            raise

    def user_history(
        self, user_id: str, target_language: str | None = None, limit: int = 10
    ) -> list[GameSession]:
        return self.store.user_history(user_id, self._language_key(target_language), limit)

    def user_stats(self, user_id: str, target_language: str | None = None) -> dict:
        return self.store.user_stats(user_id, self._language_key(target_language))

    def _language_key(self, target_language: str | None) -> str | None:
        if target_language is None:
            return None
        return resolve_language(target_language, self.languages).key
