"""Coordinated translation of a card's word set."""

import asyncio

import structlog

from taboo_trainer.ai.capabilities import TranslationCapability
from taboo_trainer.errors import TranslationMismatch
from taboo_trainer.models.language import Language
from taboo_trainer.models.translation import TranslationPair, TranslationSet

logger = structlog.get_logger()


def _fold(word: str) -> str:
    return word.strip().casefold()


def align_translation(
    translation: TranslationSet, answer_word: str, key_words: list[str]
) -> TranslationSet:
    """Check and restore the 1:1 correspondence with the card's words.

    Pairs may come back in any order; they are re-aligned to ``key_words``
    order and their originals replaced by the card's exact spelling. Any
    broken correspondence raises ``TranslationMismatch``.
    """
    if _fold(translation.answer_pair.original) != _fold(answer_word):
        raise TranslationMismatch(
            f"Answer word mismatch: {translation.answer_pair.original!r} != {answer_word!r}"
        )
    if len(translation.key_word_pairs) != len(key_words):
        raise TranslationMismatch(
            f"Expected {len(key_words)} key word translations, "
            f"got {len(translation.key_word_pairs)}"
        )

    by_original: dict[str, TranslationPair] = {}
    for pair in translation.key_word_pairs:
        folded = _fold(pair.original)
        if folded in by_original:
            raise TranslationMismatch(f"Duplicate translation for {pair.original!r}")
        by_original[folded] = pair

    seen_translations: set[str] = set()
    aligned = []
    for word in key_words:
        pair = by_original.get(_fold(word))
        if pair is None:
            raise TranslationMismatch(f"Missing translation for {word!r}")
        translated = pair.translated.strip()
        if not translated:
            raise TranslationMismatch(f"Empty translation for {word!r}")
        if _fold(translated) in seen_translations:
            raise TranslationMismatch(
                f"Translation {translated!r} shared by more than one key word"
            )
        seen_translations.add(_fold(translated))
        aligned.append(TranslationPair(original=word, translated=translated))

    return TranslationSet(
        answer_pair=TranslationPair(
            original=answer_word,
            translated=translation.answer_pair.translated.strip(),
        ),
        key_word_pairs=aligned,
        usage=translation.usage,
    )


class Translator:
    """Translates an answer word and its key words in one call.

    Never raises for capability problems: a failed call yields the identity
    set flagged as degraded, so the game stays playable in the card's own
    language.

    Args:
        capability: AI translation capability, or None when unavailable.
        timeout_seconds: Upper bound for a single translation call.
    """

    def __init__(
        self,
        capability: TranslationCapability | None = None,
        timeout_seconds: float = 20.0,
    ):
        self.capability = capability
        self.timeout_seconds = timeout_seconds

    async def translate(
        self,
        answer_word: str,
        key_words: list[str],
        target_language: Language,
        source_language: str = "en",
    ) -> TranslationSet:
        """Translate a word set into ``target_language``.

        Args:
            answer_word: The card's answer word.
            key_words: The card's key words, in card order.
            target_language: Language to translate into.
            source_language: ISO code of the card's language.

        Returns:
            A TranslationSet parallel to ``key_words``.
        """
        if not answer_word.strip():
            raise ValueError("answer_word must not be empty")
        if not key_words:
            raise ValueError("key_words must not be empty")

        if target_language.iso_code == source_language.lower():
            return TranslationSet.identity(answer_word, key_words)

        if self.capability is None:
            logger.warning(
                "translation_degraded",
                reason="capability_unavailable",
                target_language=target_language.key,
            )
            return TranslationSet.identity(answer_word, key_words, degraded=True)

        try:
            raw = await asyncio.wait_for(
                self.capability.translate_word_set(
                    answer_word, list(key_words), target_language.name
                ),
                timeout=self.timeout_seconds,
            )
            translation = align_translation(raw, answer_word, key_words)
        except Exception:
            logger.exception(
                "translation_degraded",
                answer_word=answer_word,
                target_language=target_language.key,
            )
            return TranslationSet.identity(answer_word, key_words, degraded=True)

        logger.info(
            "translation_ready",
            answer_word=answer_word,
            target_language=target_language.key,
        )
        return translation
