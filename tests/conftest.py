"""Shared fixtures and in-memory fakes for the AI capabilities."""

import asyncio

import pytest

from taboo_trainer.config import DEFAULT_LANGUAGES
from taboo_trainer.game.evaluator import Evaluator
from taboo_trainer.game.manager import SessionManager
from taboo_trainer.game.translator import Translator
from taboo_trainer.models.ai import AIUsage, SampleDescription
from taboo_trainer.models.card import Difficulty, TabooCard
from taboo_trainer.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    Grammar,
    QualitativeSignals,
)
from taboo_trainer.models.language import Language
from taboo_trainer.models.translation import TranslationPair, TranslationSet
from taboo_trainer.storage.cards import CardRepository
from taboo_trainer.storage.sessions import SessionStore

SPANISH = {
    "CAR": "COCHE",
    "DRIVE": "conducir",
    "WHEELS": "ruedas",
    "ROAD": "carretera",
    "CAT": "GATO",
    "ANIMAL": "animal",
    "DOMESTIC": "doméstico",
    "HOUSE": "casa",
}


class FakeTranslator:
    """Dictionary-backed translation capability."""

    def __init__(self, table: dict[str, str] | None = None, error: Exception | None = None):
        self.table = table if table is not None else SPANISH
        self.error = error
        self.calls: list[tuple] = []

    async def translate_word_set(self, answer_word, key_words, target_language):
        self.calls.append((answer_word, list(key_words), target_language))
        if self.error:
            raise self.error
        return TranslationSet(
            answer_pair=TranslationPair(original=answer_word, translated=self.table[answer_word]),
            key_word_pairs=[
                TranslationPair(original=w, translated=self.table[w]) for w in key_words
            ],
            usage=AIUsage(model="fake", input_tokens=10, output_tokens=5, total_tokens=15),
        )


class FakeEvaluator:
    """Evaluation capability returning a scripted AI result."""

    def __init__(
        self,
        found: list[str] | None = None,
        naturalness: float | None = 8,
        creativity: float | None = 6,
        grammar: Grammar | None = Grammar.CORRECT,
        mentioned: bool = False,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.found = found or []
        self.naturalness = naturalness
        self.creativity = creativity
        self.grammar = grammar
        self.mentioned = mentioned
        self.error = error
        self.delay = delay
        self.calls = 0

    async def evaluate_description(self, description, key_words, answer_word, language):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return EvaluationResult(
            words_found=list(self.found),
            words_missed=[w for w in key_words if w not in self.found],
            answer_word_mentioned=self.mentioned,
            qualitative=QualitativeSignals(
                naturalness=self.naturalness,
                creativity=self.creativity,
                grammar=self.grammar,
            ),
            source=EvaluationSource.AI,
            usage=AIUsage(model="fake", input_tokens=20, output_tokens=10, total_tokens=30),
        )


class FakeExampleWriter:
    def __init__(self, error: Exception | None = None, delay: float = 0.0):
        self.error = error
        self.delay = delay

    async def generate_sample_description(self, answer_word, key_words, language):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SampleDescription(
            description="Un ejemplo con " + ", ".join(key_words),
            key_words_used=list(key_words),
            usage=AIUsage(model="fake", total_tokens=12),
        )


class RecordingSink:
    def __init__(self, error: Exception | None = None):
        self.records: list[tuple[AIUsage, dict]] = []
        self.error = error

    def record(self, usage, metadata):
        if self.error:
            raise self.error
        self.records.append((usage, metadata))


@pytest.fixture
def languages() -> dict[str, Language]:
    return {key: Language(key=key, **value) for key, value in DEFAULT_LANGUAGES.items()}


@pytest.fixture
def spanish(languages) -> Language:
    return languages["spanish"]


@pytest.fixture
def cards() -> CardRepository:
    return CardRepository([
        TabooCard(
            id="car",
            answer_word="car",
            key_words=["DRIVE", "WHEELS", "ROAD"],
            category="vehicles",
            difficulty=Difficulty.EASY,
        ),
        TabooCard(
            id="cat",
            answer_word="CAT",
            key_words=["ANIMAL", "DOMESTIC", "HOUSE"],
            category="animals",
        ),
        TabooCard(
            id="retired",
            answer_word="FAX",
            key_words=["PAPER", "PHONE"],
            category="technology",
            is_active=False,
        ),
    ])


@pytest.fixture
def make_manager(cards, languages):
    """Build a SessionManager around the given fake capabilities."""

    def _make(
        translator=None,
        evaluator=None,
        example=None,
        sink=None,
        store=None,
        **kwargs,
    ) -> SessionManager:
        return SessionManager(
            cards=cards,
            store=store or SessionStore(),
            translator=Translator(translator, timeout_seconds=1.0),
            evaluator=Evaluator(evaluator, timeout_seconds=1.0),
            languages=languages,
            example_capability=example,
            usage_sink=sink,
            **kwargs,
        )

    return _make
