"""Tests for taboo description scoring."""

import pytest

from taboo_trainer.errors import ScoringInputInvalid
from taboo_trainer.game.scorer import (
    check_scoring_input,
    round_half_up,
    score,
    score_without_submission,
)
from taboo_trainer.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    Grammar,
    QualitativeSignals,
)


def _evaluation(found, missed, mentioned=False, qualitative=None, source=EvaluationSource.AI):
    return EvaluationResult(
        words_found=found,
        words_missed=missed,
        answer_word_mentioned=mentioned,
        qualitative=qualitative,
        source=source,
    )


class TestScore:
    def test_reference_example(self):
        evaluation = _evaluation(
            ["a", "b", "c"],
            ["d", "e"],
            qualitative=QualitativeSignals(naturalness=8, creativity=6, grammar=Grammar.CORRECT),
        )
        result = score(evaluation)
        assert result.base_score == 60
        assert result.bonus_points == 16 + 6 + 10
        assert result.penalty_points == 0
        assert result.final_score == 92

    def test_answer_word_mention_floors_at_zero(self):
        evaluation = _evaluation(
            ["a"],
            ["b", "c", "d", "e"],
            mentioned=True,
            qualitative=QualitativeSignals(naturalness=0, creativity=0, grammar=Grammar.MINOR_ERRORS),
        )
        result = score(evaluation)
        assert result.base_score == 20
        assert result.bonus_points == 0
        assert result.penalty_points == 50
        assert result.final_score == 0
        assert result.breakdown.direct_mention == "-50 for using answer word"

    def test_mention_penalty_bound(self):
        evaluation = _evaluation(
            ["a", "b", "c", "d"],
            ["e"],
            mentioned=True,
            qualitative=QualitativeSignals(naturalness=10, creativity=10, grammar=Grammar.CORRECT),
        )
        result = score(evaluation)
        assert result.final_score <= result.base_score + result.bonus_points - 50

    def test_clamped_at_100(self):
        evaluation = _evaluation(
            ["a", "b"],
            [],
            qualitative=QualitativeSignals(naturalness=10, creativity=10, grammar=Grammar.CORRECT),
        )
        result = score(evaluation)
        assert result.base_score == 100
        assert result.bonus_points == 40
        assert result.final_score == 100

    def test_major_grammar_errors_penalized(self):
        evaluation = _evaluation(
            ["a"],
            ["b"],
            qualitative=QualitativeSignals(naturalness=5, creativity=5, grammar=Grammar.MAJOR_ERRORS),
        )
        result = score(evaluation)
        assert result.penalty_points == 15
        assert result.breakdown.grammar == "-15 for grammar errors"
        assert result.final_score == 50 + 10 + 5 - 15

    def test_fallback_uses_neutral_signals(self):
        evaluation = _evaluation(
            ["animal", "casa"], ["doméstico"], source=EvaluationSource.FALLBACK
        )
        result = score(evaluation)
        assert result.base_score == 67
        assert result.bonus_points == 10 + 5
        assert result.final_score == 82
        assert result.source == EvaluationSource.FALLBACK
        assert "neutral default" in result.breakdown.naturalness
        assert result.breakdown.grammar == "0, grammar not assessed"

    def test_partial_signals(self):
        evaluation = _evaluation(
            ["a"], ["b"], qualitative=QualitativeSignals(naturalness=9)
        )
        result = score(evaluation)
        assert result.bonus_points == 18 + 5

    def test_zero_key_words(self):
        result = score(_evaluation([], []))
        assert result.base_score == 0
        assert result.breakdown.word_usage == "0/0 words used"

    def test_half_rounds_up(self):
        # 1/8 = 12.5%
        result = score(_evaluation(["a"], list("bcdefgh")))
        assert result.base_score == 13

    def test_is_pure(self):
        evaluation = _evaluation(
            ["a"], ["b", "c"], qualitative=QualitativeSignals(naturalness=7, creativity=3)
        )
        assert score(evaluation) == score(evaluation)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (66.666, 67), (0.0, 0)],
    )
    def test_values(self, value, expected):
        assert round_half_up(value) == expected


class TestCheckScoringInput:
    def test_accepts_valid(self):
        check_scoring_input(_evaluation(["a"], ["b"]))

    def test_rejects_overlap(self):
        with pytest.raises(ScoringInputInvalid):
            check_scoring_input(_evaluation(["a"], ["a", "b"]))

    def test_rejects_out_of_range_naturalness(self):
        evaluation = _evaluation(["a"], ["b"], qualitative=QualitativeSignals(naturalness=12))
        with pytest.raises(ScoringInputInvalid):
            check_scoring_input(evaluation)

    def test_rejects_negative_creativity(self):
        evaluation = _evaluation(["a"], ["b"], qualitative=QualitativeSignals(creativity=-1))
        with pytest.raises(ScoringInputInvalid):
            check_scoring_input(evaluation)


class TestScoreWithoutSubmission:
    def test_scores_zero(self):
        result = score_without_submission(5)
        assert result.final_score == 0
        assert result.breakdown.word_usage == "0/5 words used"
