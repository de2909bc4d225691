"""Game session data models."""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from taboo_trainer.models.card import Difficulty
from taboo_trainer.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    ScoreResult,
)


class SessionStatus(StrEnum):
    """Session lifecycle states."""

    INITIALIZED = "initialized"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_open(self) -> bool:
        return self in (SessionStatus.INITIALIZED, SessionStatus.IN_PROGRESS)

    @property
    def is_terminal(self) -> bool:
        return not self.is_open


class SessionWarning(StrEnum):
    """Non-fatal degradations carried on a session."""

    TRANSLATION_DEGRADED = "translation_degraded"
    EVALUATION_FALLBACK_USED = "evaluation_fallback_used"


class Submission(BaseModel):
    """One description submitted during a session."""

    description: str
    newly_found_words: list[str] = Field(default_factory=list)
    source: EvaluationSource = EvaluationSource.AI
    timestamp: datetime = Field(default_factory=datetime.now)


class SessionMessage(BaseModel):
    """Entry in the session's event log."""

    type: str
    content: str
    metadata: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


class GameSession(BaseModel):
    """One play-through of a single card by one user in one language.

    Translated words are frozen at creation so the session stays a faithful
    record even if the card is edited later.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    card_id: str
    user_id: str
    target_language: str
    answer_word: str
    original_answer_word: str
    original_key_words: list[str]
    translated_key_words: list[str]
    card_category: str | None = None
    card_difficulty: Difficulty | None = None
    status: SessionStatus = SessionStatus.INITIALIZED
    words_found: list[str] = Field(default_factory=list)
    score: int | None = None
    score_result: ScoreResult | None = None
    submission_history: list[Submission] = Field(default_factory=list)
    evaluations: list[EvaluationResult] = Field(default_factory=list)
    example_description: str | None = None
    warnings: list[SessionWarning] = Field(default_factory=list)
    ai_usage_metadata: list[dict[str, Any]] = Field(default_factory=list)
    messages: list[SessionMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @computed_field
    @property
    def words_missed(self) -> list[str]:
        """Translated key words not yet used, in key word order."""
        found = set(self.words_found)
        return [w for w in dict.fromkeys(self.translated_key_words) if w not in found]

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

    def merge_found_words(self, words: list[str]) -> list[str]:
        """Union ``words`` into ``words_found`` and return the newly found ones.

        Only translated key words are accepted, and the result keeps key word
        order so ``words_missed`` is deterministic.
        """
        already = set(self.words_found)
        incoming = set(words)
        newly_found = [
            w for w in dict.fromkeys(self.translated_key_words)
            if w in incoming and w not in already
        ]
        merged = already | incoming
        self.words_found = [
            w for w in dict.fromkeys(self.translated_key_words) if w in merged
        ]
        return newly_found

    def add_warning(self, warning: SessionWarning) -> None:
        if warning not in self.warnings:
            self.warnings.append(warning)

    def add_message(
        self, type: str, content: str, metadata: dict[str, Any] | None = None
    ) -> SessionMessage:
        message = SessionMessage(type=type, content=content, metadata=metadata)
        self.messages.append(message)
        return message

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def accumulated_evaluation(self) -> EvaluationResult:
        """Combine every submission into the evaluation used for final scoring.

        Qualitative signals come from the most recent AI evaluation; when every
        evaluation was a fallback they stay absent.
        """
        ai_evaluations = [e for e in self.evaluations if not e.is_fallback]
        latest_ai = ai_evaluations[-1] if ai_evaluations else None
        return EvaluationResult(
            words_found=list(self.words_found),
            words_missed=self.words_missed,
            answer_word_mentioned=any(e.answer_word_mentioned for e in self.evaluations),
            qualitative=latest_ai.qualitative if latest_ai else None,
            source=EvaluationSource.AI if latest_ai else EvaluationSource.FALLBACK,
        )
