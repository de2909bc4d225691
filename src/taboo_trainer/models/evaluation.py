"""Description evaluation and scoring models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from taboo_trainer.models.ai import AIUsage


class EvaluationSource(StrEnum):
    """Which capability produced an evaluation."""

    AI = "ai"
    FALLBACK = "fallback"


class Grammar(StrEnum):
    CORRECT = "correct"
    MINOR_ERRORS = "minor_errors"
    MAJOR_ERRORS = "major_errors"


class WordDetail(BaseModel):
    """How a single key word was (or was not) recognized."""

    key_word: str
    found: bool
    used_as: str = ""
    context: str = ""


class QualitativeSignals(BaseModel):
    """Quality signals only the AI evaluator can provide.

    Any field may be absent; the scorer treats absence as neutral.
    """

    naturalness: float | None = None  # 1-10
    creativity: float | None = None  # 1-10
    grammar: Grammar | None = None


class EvaluationResult(BaseModel):
    """Which key words a description used, plus optional quality signals."""

    words_found: list[str] = Field(default_factory=list)
    words_missed: list[str] = Field(default_factory=list)
    answer_word_mentioned: bool = False
    word_details: list[WordDetail] = Field(default_factory=list)
    qualitative: QualitativeSignals | None = None
    source: EvaluationSource = EvaluationSource.AI
    feedback: str | None = None
    suggestions: list[str] = Field(default_factory=list)
    usage: AIUsage | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def is_fallback(self) -> bool:
        return self.source == EvaluationSource.FALLBACK


class ScoreBreakdown(BaseModel):
    """Human-readable justification of every score term."""

    word_usage: str
    naturalness: str
    creativity: str
    grammar: str
    direct_mention: str


class ScoreResult(BaseModel):
    base_score: int
    bonus_points: int
    penalty_points: int
    final_score: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown
    source: EvaluationSource = EvaluationSource.AI
