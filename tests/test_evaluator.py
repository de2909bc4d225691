"""Tests for key word detection (AI path and substring fallback)."""

import asyncio

from conftest import FakeEvaluator

from taboo_trainer.game.evaluator import (
    FALLBACK_FEEDBACK,
    Evaluator,
    contains_word,
    fallback_evaluate,
)
from taboo_trainer.models.evaluation import EvaluationSource, Grammar, WordDetail

KEY_WORDS = ["animal", "doméstico", "casa"]
DESCRIPTION = "Es un animal doméstico que vive en casa"


class TestFallbackEvaluate:
    def test_finds_all_words(self):
        result = fallback_evaluate(DESCRIPTION, KEY_WORDS, "GATO")
        assert result.words_found == ["animal", "doméstico", "casa"]
        assert result.words_missed == []
        assert result.answer_word_mentioned is False
        assert result.source == EvaluationSource.FALLBACK
        assert result.qualitative is None
        assert result.feedback == FALLBACK_FEEDBACK

    def test_deterministic(self):
        results = [fallback_evaluate(DESCRIPTION, KEY_WORDS, "GATO") for _ in range(5)]
        assert all(r.words_found == results[0].words_found for r in results)
        assert all(r.words_missed == results[0].words_missed for r in results)

    def test_case_insensitive(self):
        result = fallback_evaluate("Voy por la CARRETERA", ["carretera", "ruedas"], "COCHE")
        assert result.words_found == ["carretera"]
        assert result.words_missed == ["ruedas"]

    def test_no_inflection_awareness(self):
        result = fallback_evaluate("Me gusta conduzco rápido", ["conducir"], "COCHE")
        assert result.words_found == []
        assert result.words_missed == ["conducir"]

    def test_answer_word_mentioned(self):
        result = fallback_evaluate("Mi gato es un animal", KEY_WORDS, "GATO")
        assert result.answer_word_mentioned is True

    def test_word_details_quote_context(self):
        result = fallback_evaluate(DESCRIPTION, ["Casa"], "GATO")
        detail = result.word_details[0]
        assert detail.found is True
        assert detail.used_as == "casa"
        assert "casa" in detail.context

    def test_decomposed_accents_match(self):
        decomposed = "Es un animal dome\u0301stico"
        result = fallback_evaluate(decomposed, ["doméstico"], "GATO")
        assert result.words_found == ["doméstico"]

    def test_contains_word_ignores_empty(self):
        assert contains_word("anything", "  ") is False


class TestEvaluator:
    async def test_without_capability_uses_fallback(self):
        evaluator = Evaluator(None)
        result = await evaluator.evaluate(DESCRIPTION, KEY_WORDS, "GATO", "Spanish")
        assert result.is_fallback
        assert result.words_found == KEY_WORDS

    async def test_ai_path(self):
        fake = FakeEvaluator(found=["doméstico"])
        evaluator = Evaluator(fake)
        result = await evaluator.evaluate("Es domésticos", KEY_WORDS, "GATO", "Spanish")
        assert result.source == EvaluationSource.AI
        assert result.words_found == ["doméstico"]
        assert result.words_missed == ["animal", "casa"]
        assert result.qualitative.grammar == Grammar.CORRECT
        assert fake.calls == 1

    async def test_failure_falls_back(self):
        evaluator = Evaluator(FakeEvaluator(error=RuntimeError("provider down")))
        result = await evaluator.evaluate(DESCRIPTION, KEY_WORDS, "GATO", "Spanish")
        assert result.is_fallback
        assert result.words_found == KEY_WORDS

    async def test_timeout_falls_back(self):
        evaluator = Evaluator(FakeEvaluator(found=KEY_WORDS, delay=1.0), timeout_seconds=0.01)
        result = await evaluator.evaluate(DESCRIPTION, ["casa"], "GATO", "Spanish")
        assert result.is_fallback
        assert result.words_found == ["casa"]

    async def test_ai_result_normalized_to_key_words(self):
        fake = FakeEvaluator(found=["CASA", "perro", "animal"])
        evaluator = Evaluator(fake)
        result = await evaluator.evaluate(DESCRIPTION, KEY_WORDS, "GATO", "Spanish")
        assert result.words_found == ["animal", "casa"]
        assert result.words_missed == ["doméstico"]

    async def test_found_word_details_count(self):
        class DetailOnly(FakeEvaluator):
            async def evaluate_description(self, *args):
                result = await super().evaluate_description(*args)
                result.word_details = [
                    WordDetail(key_word="casa", found=True, used_as="casas", context="casas")
                ]
                return result

        evaluator = Evaluator(DetailOnly(found=[]))
        result = await evaluator.evaluate("Vive en casas", KEY_WORDS, "GATO", "Spanish")
        assert result.words_found == ["casa"]

    async def test_concurrent_evaluations_independent(self):
        evaluator = Evaluator(None)
        first, second = await asyncio.gather(
            evaluator.evaluate("animal", KEY_WORDS, "GATO", "Spanish"),
            evaluator.evaluate("casa", KEY_WORDS, "GATO", "Spanish"),
        )
        assert first.words_found == ["animal"]
        assert second.words_found == ["casa"]
