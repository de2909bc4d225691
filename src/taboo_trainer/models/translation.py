"""Translation models for a card's word set."""

from pydantic import BaseModel, Field

from taboo_trainer.models.ai import AIUsage


class TranslationPair(BaseModel):
    original: str
    translated: str = Field(min_length=1)


class TranslationSet(BaseModel):
    """Answer word and key words translated as one coordinated unit.

    ``key_word_pairs`` is parallel to the card's key words: same length,
    same order, one pair per original word.
    """

    answer_pair: TranslationPair
    key_word_pairs: list[TranslationPair]
    degraded: bool = False
    usage: AIUsage | None = None

    @classmethod
    def identity(
        cls, answer_word: str, key_words: list[str], degraded: bool = False
    ) -> "TranslationSet":
        """Build a set where every word translates to itself."""
        return cls(
            answer_pair=TranslationPair(original=answer_word, translated=answer_word),
            key_word_pairs=[TranslationPair(original=w, translated=w) for w in key_words],
            degraded=degraded,
        )

    @property
    def original_key_words(self) -> list[str]:
        return [p.original for p in self.key_word_pairs]

    @property
    def translated_key_words(self) -> list[str]:
        return [p.translated for p in self.key_word_pairs]
