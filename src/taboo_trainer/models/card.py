"""Taboo card models."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class TabooCard(BaseModel):
    """An answer word plus the key words commonly used to describe it.

    Cards are read-only to the game engine; the repository owns them.
    """

    id: str
    answer_word: str
    key_words: list[str] = Field(min_length=1)
    category: str = "general"
    difficulty: Difficulty = Difficulty.MEDIUM
    language: str = "en"
    description: str | None = None
    is_active: bool = True
    usage_count: int = Field(default=0, ge=0)

    @field_validator("answer_word")
    @classmethod
    def _canonical_answer(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("answer_word must not be empty")
        return value

    @field_validator("key_words")
    @classmethod
    def _distinct_key_words(cls, value: list[str]) -> list[str]:
        words = [w.strip() for w in value]
        if any(not w for w in words):
            raise ValueError("key_words must not contain empty words")
        folded = [w.casefold() for w in words]
        if len(set(folded)) != len(folded):
            raise ValueError("key_words must not contain duplicates")
        return words


class CardFilter(BaseModel):
    """Criteria for listing cards."""

    category: str | None = None
    difficulty: Difficulty | None = None
    active_only: bool = True

    def matches(self, card: TabooCard) -> bool:
        if self.active_only and not card.is_active:
            return False
        if self.category and card.category != self.category:
            return False
        if self.difficulty and card.difficulty != self.difficulty:
            return False
        return True
