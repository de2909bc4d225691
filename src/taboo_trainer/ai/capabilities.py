"""Pluggable AI capability interfaces consumed by the game engine.

Implementations may raise anything; the engine recovers with its own
fallbacks. ``OpenAIGameplayClient`` implements all three capabilities.
"""

from typing import Any, Protocol

from taboo_trainer.models.ai import AIUsage, SampleDescription
from taboo_trainer.models.evaluation import EvaluationResult
from taboo_trainer.models.translation import TranslationSet


class TranslationCapability(Protocol):
    async def translate_word_set(
        self, answer_word: str, key_words: list[str], target_language: str
    ) -> TranslationSet: ...


class EvaluationCapability(Protocol):
    async def evaluate_description(
        self,
        description: str,
        key_words: list[str],
        answer_word: str,
        language: str,
    ) -> EvaluationResult: ...


class ExampleCapability(Protocol):
    async def generate_sample_description(
        self, answer_word: str, key_words: list[str], language: str
    ) -> SampleDescription: ...


class UsageSink(Protocol):
    """Fire-and-forget telemetry sink for AI calls."""

    def record(self, usage: AIUsage, metadata: dict[str, Any]) -> None: ...
