"""Taboo card repository backed by a YAML deck."""

import random
from collections.abc import Iterable
from pathlib import Path

import structlog
import yaml

from taboo_trainer.models.card import CardFilter, Difficulty, TabooCard

logger = structlog.get_logger()


class CardRepository:
    """In-memory card store loaded from ``config/cards.yaml``.

    Cards are immutable to the game engine; only the usage counter changes.
    """

    def __init__(self, cards: Iterable[TabooCard] = (), rng: random.Random | None = None):
        self._cards: dict[str, TabooCard] = {}
        for card in cards:
            if card.id in self._cards:
                raise ValueError(f"Duplicate card id: {card.id}")
            self._cards[card.id] = card
        self._rng = rng or random.Random()

    @classmethod
    def from_yaml(cls, path: Path) -> "CardRepository":
        """Load a deck; a missing file yields an empty repository."""
        if not path.exists():
            logger.warning("card_deck_missing", path=str(path))
            return cls()
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        cards = [TabooCard(**raw) for raw in data.get('cards', [])]
        logger.info("card_deck_loaded", path=str(path), count=len(cards))
        return cls(cards)

    def __len__(self) -> int:
        return len(self._cards)

    def get_card(self, card_id: str) -> TabooCard | None:
        return self._cards.get(card_id)

    def find_active_card(self, card_id: str) -> TabooCard | None:
        card = self._cards.get(card_id)
        if card is None or not card.is_active:
            return None
        return card

    def list_cards(self, card_filter: CardFilter | None = None) -> list[TabooCard]:
        card_filter = card_filter or CardFilter()
        return [c for c in self._cards.values() if card_filter.matches(c)]

    def random_cards(
        self,
        count: int = 1,
        category: str | None = None,
        difficulty: Difficulty | None = None,
    ) -> list[TabooCard]:
        """Pick up to ``count`` distinct active cards at random."""
        pool = self.list_cards(CardFilter(category=category, difficulty=difficulty))
        return self._rng.sample(pool, min(max(count, 0), len(pool)))

    def categories(self) -> list[str]:
        """Distinct categories of active cards, sorted."""
        return sorted({c.category for c in self._cards.values() if c.is_active})

    def increment_usage(self, card_id: str) -> None:
        card = self._cards.get(card_id)
        if card is not None:
            self._cards[card_id] = card.model_copy(update={"usage_count": card.usage_count + 1})
