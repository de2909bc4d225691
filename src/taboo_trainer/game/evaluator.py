"""Key word detection in player descriptions.

The AI path recognizes inflected forms; the fallback is a literal,
case-insensitive substring match that is fully deterministic.
"""

import asyncio
import unicodedata

import structlog

from taboo_trainer.ai.capabilities import EvaluationCapability
from taboo_trainer.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    WordDetail,
)

logger = structlog.get_logger()

FALLBACK_FEEDBACK = (
    "Evaluation service temporarily unavailable. Score based on simple word matching."
)
CONTEXT_RADIUS = 30


def _normalize(text: str) -> str:
    return unicodedata.normalize("NFC", text).casefold()


def _context_snippet(description: str, start: int, length: int) -> str:
    lo = max(0, start - CONTEXT_RADIUS)
    hi = min(len(description), start + length + CONTEXT_RADIUS)
    snippet = description[lo:hi].strip()
    if lo > 0:
        snippet = "..." + snippet
    if hi < len(description):
        snippet = snippet + "..."
    return snippet


def contains_word(description: str, word: str) -> bool:
    """Case-insensitive substring test, ignoring Unicode composition."""
    needle = _normalize(word.strip())
    return bool(needle) and needle in _normalize(description)


def fallback_evaluate(
    description: str, key_words: list[str], answer_word: str
) -> EvaluationResult:
    """Evaluate by literal substring containment, with no inflection awareness."""
    normalized = unicodedata.normalize("NFC", description)
    haystack = normalized.casefold()
    # casefold may change length ("ß" -> "ss"); offsets then only hold for the folded text
    quoted = normalized if len(normalized) == len(haystack) else haystack
    found: list[str] = []
    missed: list[str] = []
    details: list[WordDetail] = []

    for word in key_words:
        needle = _normalize(word.strip())
        index = haystack.find(needle) if needle else -1
        if index >= 0:
            found.append(word)
            details.append(WordDetail(
                key_word=word,
                found=True,
                used_as=quoted[index:index + len(needle)],
                context=_context_snippet(quoted, index, len(needle)),
            ))
        else:
            missed.append(word)
            details.append(WordDetail(key_word=word, found=False))

    return EvaluationResult(
        words_found=found,
        words_missed=missed,
        answer_word_mentioned=contains_word(description, answer_word),
        word_details=details,
        qualitative=None,
        source=EvaluationSource.FALLBACK,
        feedback=FALLBACK_FEEDBACK,
    )


def normalize_ai_result(
    result: EvaluationResult, key_words: list[str]
) -> EvaluationResult:
    """Restrict an AI result to the given key words, in key word order.

    The model may echo words with different casing or invent words that are
    not key words; found words are mapped back to the exact key word and
    anything else is dropped so found and missed partition ``key_words``.
    """
    canonical = {_normalize(w): w for w in key_words}
    reported = {_normalize(w) for w in result.words_found}
    reported |= {_normalize(d.key_word) for d in result.word_details if d.found}
    unknown = reported - canonical.keys()
    if unknown:
        logger.warning("evaluation_unknown_words_dropped", words=sorted(unknown))

    found = [w for w in key_words if _normalize(w) in reported]
    found_set = set(found)
    return result.model_copy(update={
        "words_found": found,
        "words_missed": [w for w in key_words if w not in found_set],
        "source": EvaluationSource.AI,
    })


class Evaluator:
    """Determines which key words a description used.

    Uses the AI capability when configured and falls back to substring
    matching whenever the call is unavailable or fails.

    Args:
        capability: AI evaluation capability, or None when unavailable.
        timeout_seconds: Upper bound for a single evaluation call.
    """

    def __init__(
        self,
        capability: EvaluationCapability | None = None,
        timeout_seconds: float = 20.0,
    ):
        self.capability = capability
        self.timeout_seconds = timeout_seconds

    async def evaluate(
        self,
        description: str,
        translated_key_words: list[str],
        answer_word: str,
        target_language: str,
    ) -> EvaluationResult:
        """Evaluate a description against the session's key words.

        Args:
            description: The player's free-text description.
            translated_key_words: Key words in the target language.
            answer_word: The (translated) answer word.
            target_language: Language name the description is written in.

        Returns:
            EvaluationResult tagged with the capability that produced it.
        """
        if self.capability is None:
            logger.info("evaluation_fallback_used", reason="capability_unavailable")
            return fallback_evaluate(description, translated_key_words, answer_word)

        try:
            result = await asyncio.wait_for(
                self.capability.evaluate_description(
                    description, list(translated_key_words), answer_word, target_language
                ),
                timeout=self.timeout_seconds,
            )
        except Exception:
            logger.exception("evaluation_fallback_used", reason="capability_failed")
            return fallback_evaluate(description, translated_key_words, answer_word)

        return normalize_ai_result(result, translated_key_words)
