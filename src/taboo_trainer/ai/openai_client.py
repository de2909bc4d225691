"""OpenAI-backed translation, evaluation, and example generation."""

import json
from typing import Any

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from taboo_trainer.ai.pricing import calculate_cost
from taboo_trainer.models.ai import AIUsage, SampleDescription
from taboo_trainer.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    Grammar,
    QualitativeSignals,
    WordDetail,
)
from taboo_trainer.models.translation import TranslationPair, TranslationSet

logger = structlog.get_logger()

TRANSLATION_SYSTEM_PROMPT = """\
You are a professional translator preparing vocabulary for a word-description \
game. You receive an answer word and a list of English key words that describe it.

Translate the answer word and every key word into {language}. The words belong \
together: choose the sense of each ambiguous word that fits the shared concept \
(for example, with the answer word "MONEY", "bank" is the financial institution, \
not a riverbank). Prefer single-word translations.

Rules:
- Return exactly one translation per key word, in the same order.
- Never merge, drop, or add words. Copy each original word unchanged.

Respond ONLY with a JSON object:
{{
    "answer": {{"original": "<answer word>", "translated": "<translation>"}},
    "translations": [
        {{"original": "<key word>", "translated": "<translation>"}}
    ]
}}
"""

EVALUATION_SYSTEM_PROMPT = """\
You are an expert {language} teacher judging a word-description game. The \
student describes a hidden answer word and should use as many of the given key \
words as possible, without saying the answer word itself.

For each key word decide whether the student used it. Count exact matches and \
inflected forms of the same word (conjugation, plural/singular, gender, tense). \
Do NOT count synonyms or merely related words.

Also assess:
- naturalness: how naturally the key words were woven in (1-10)
- creativity: how creative the description is (1-10)
- grammar: "correct", "minor_errors" or "major_errors"
- answer_word_mentioned: whether the answer word (or a form of it) appears

Respond ONLY with a JSON object:
{{
    "words_found": ["<key word exactly as given>"],
    "word_details": [
        {{"key_word": "<key word>", "found": <true|false>,
          "used_as": "<form used, or empty>", "context": "<short quote or reason>"}}
    ],
    "answer_word_mentioned": <true|false>,
    "naturalness": <1-10>,
    "creativity": <1-10>,
    "grammar": "<correct|minor_errors|major_errors>",
    "feedback": "<one or two encouraging sentences>",
    "suggestions": ["<suggestion>"]
}}
"""

EXAMPLE_SYSTEM_PROMPT = """\
You are a creative {language} teacher writing model answers for learners playing \
a word-description game.

Write a natural, flowing description of the answer word in {language} that uses \
ALL of the key words. Never mention the answer word itself. Keep it to 2-3 \
sentences with correct grammar.

Respond ONLY with a JSON object:
{{
    "description": "<the description>",
    "key_words_used": ["<key word>"]
}}
"""


class _TranslationResponse(BaseModel):
    answer: TranslationPair
    translations: list[TranslationPair]


class _EvaluationResponse(BaseModel):
    words_found: list[str] = Field(default_factory=list)
    word_details: list[WordDetail] = Field(default_factory=list)
    answer_word_mentioned: bool = False
    naturalness: float | None = Field(default=None, ge=0, le=10)
    creativity: float | None = Field(default=None, ge=0, le=10)
    grammar: Grammar | None = None
    feedback: str | None = None
    suggestions: list[str] = Field(default_factory=list)


class _ExampleResponse(BaseModel):
    description: str = Field(min_length=1)
    key_words_used: list[str] = Field(default_factory=list)


class OpenAIGameplayClient:
    """Implements the game's AI capabilities on the chat completions API.

    Every method raises on transport errors or malformed answers; callers
    own the fallback policy.

    Args:
        api_key: OpenAI API key.
        translation_model: Model for word-set translation.
        evaluation_model: Model for description evaluation.
        example_model: Model for sample description generation.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        translation_model: str = "gpt-4o-mini",
        evaluation_model: str = "gpt-4o-mini",
        example_model: str = "gpt-4o-mini",
        timeout: float | None = None,
    ):
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.translation_model = translation_model
        self.evaluation_model = evaluation_model
        self.example_model = example_model

    async def _complete_json(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
    ) -> tuple[dict[str, Any], AIUsage]:
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty completion content")
        return json.loads(content), _usage_from_response(model, response.usage)

    async def translate_word_set(
        self, answer_word: str, key_words: list[str], target_language: str
    ) -> TranslationSet:
        data, usage = await self._complete_json(
            self.translation_model,
            TRANSLATION_SYSTEM_PROMPT.format(language=target_language),
            f"Answer word: {answer_word}\nKey words: {json.dumps(key_words, ensure_ascii=False)}",
        )
        parsed = _TranslationResponse.model_validate(data)
        logger.info(
            "translation_complete",
            model=self.translation_model,
            target_language=target_language,
            word_count=len(parsed.translations),
        )
        return TranslationSet(
            answer_pair=parsed.answer,
            key_word_pairs=parsed.translations,
            usage=usage,
        )

    async def evaluate_description(
        self,
        description: str,
        key_words: list[str],
        answer_word: str,
        language: str,
    ) -> EvaluationResult:
        data, usage = await self._complete_json(
            self.evaluation_model,
            EVALUATION_SYSTEM_PROMPT.format(language=language),
            f"Answer word: {answer_word}\n"
            f"Key words: {json.dumps(key_words, ensure_ascii=False)}\n"
            f"Student description: \"{description}\"",
        )
        parsed = _EvaluationResponse.model_validate(data)
        logger.info("llm_evaluation_complete", words_found=parsed.words_found)

        found = set(parsed.words_found)
        return EvaluationResult(
            words_found=parsed.words_found,
            words_missed=[w for w in key_words if w not in found],
            answer_word_mentioned=parsed.answer_word_mentioned,
            word_details=parsed.word_details,
            qualitative=QualitativeSignals(
                naturalness=parsed.naturalness,
                creativity=parsed.creativity,
                grammar=parsed.grammar,
            ),
            source=EvaluationSource.AI,
            feedback=parsed.feedback,
            suggestions=parsed.suggestions,
            usage=usage,
        )

    async def generate_sample_description(
        self, answer_word: str, key_words: list[str], language: str
    ) -> SampleDescription:
        data, usage = await self._complete_json(
            self.example_model,
            EXAMPLE_SYSTEM_PROMPT.format(language=language),
            f"Answer word: {answer_word}\nKey words: {json.dumps(key_words, ensure_ascii=False)}",
            temperature=0.7,
        )
        parsed = _ExampleResponse.model_validate(data)
        logger.info("sample_description_generated", model=self.example_model)
        return SampleDescription(
            description=parsed.description,
            key_words_used=parsed.key_words_used,
            usage=usage,
        )


def _usage_from_response(model: str, usage: Any) -> AIUsage:
    """Convert an OpenAI usage object into an ``AIUsage`` record."""
    if usage is None:
        return AIUsage(model=model)
    input_tokens = getattr(usage, "prompt_tokens", 0) or 0
    output_tokens = getattr(usage, "completion_tokens", 0) or 0
    details = getattr(usage, "prompt_tokens_details", None)
    cached = (getattr(details, "cached_tokens", 0) or 0) if details else 0
    return AIUsage(
        model=model,
        input_tokens=input_tokens,
        cached_input_tokens=cached,
        output_tokens=output_tokens,
        total_tokens=getattr(usage, "total_tokens", 0) or input_tokens + output_tokens,
        cost_usd=calculate_cost(model, input_tokens, output_tokens, cached),
    )
