"""Score computation for a taboo description.

Pure functions only: the same evaluation always yields the same score.
"""

import math

from taboo_trainer.errors import ScoringInputInvalid
from taboo_trainer.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    Grammar,
    ScoreBreakdown,
    ScoreResult,
)

NATURALNESS_MAX_BONUS = 20
CREATIVITY_MAX_BONUS = 10
GRAMMAR_BONUS = 10
GRAMMAR_PENALTY = 15
DIRECT_MENTION_PENALTY = 50
NEUTRAL_SIGNAL = 5.0  # midpoint of the 1-10 scale
SIGNAL_MAX = 10.0


def round_half_up(value: float) -> int:
    """Round halves up; the built-in round() rounds halves to even."""
    return int(math.floor(value + 0.5))


def check_scoring_input(evaluation: EvaluationResult) -> None:
    """Reject evaluations the scorer is not defined for.

    Raises:
        ScoringInputInvalid: Overlapping found/missed words or quality
            signals outside 0-10.
    """
    overlap = set(evaluation.words_found) & set(evaluation.words_missed)
    if overlap:
        raise ScoringInputInvalid(
            f"Words both found and missed: {sorted(overlap)}"
        )
    signals = evaluation.qualitative
    if signals is None:
        return
    for name in ("naturalness", "creativity"):
        value = getattr(signals, name)
        if value is not None and not (0 <= value <= SIGNAL_MAX):
            raise ScoringInputInvalid(f"{name} out of range: {value}")


def score(evaluation: EvaluationResult) -> ScoreResult:
    """Compute the 0-100 score of an evaluation with a full breakdown.

    base = share of key words used (0-100)
    bonus = naturalness (0-20) + creativity (0-10) + correct grammar (10)
    penalty = major grammar errors (15) + answer word mentioned (50)
    final = clamp(base + bonus - penalty, 0, 100)

    Missing quality signals (fallback evaluations) count as the neutral
    midpoint for naturalness and creativity and as "not assessed" for grammar.
    """
    found = len(evaluation.words_found)
    total = found + len(evaluation.words_missed)
    base_score = round_half_up(100 * found / total) if total else 0

    signals = evaluation.qualitative
    naturalness = NEUTRAL_SIGNAL
    creativity = NEUTRAL_SIGNAL
    grammar: Grammar | None = None
    if signals is not None:
        if signals.naturalness is not None:
            naturalness = signals.naturalness
        if signals.creativity is not None:
            creativity = signals.creativity
        grammar = signals.grammar

    naturalness_bonus = round_half_up(NATURALNESS_MAX_BONUS * naturalness / SIGNAL_MAX)
    creativity_bonus = round_half_up(CREATIVITY_MAX_BONUS * creativity / SIGNAL_MAX)
    grammar_bonus = GRAMMAR_BONUS if grammar == Grammar.CORRECT else 0
    grammar_penalty = GRAMMAR_PENALTY if grammar == Grammar.MAJOR_ERRORS else 0
    mention_penalty = DIRECT_MENTION_PENALTY if evaluation.answer_word_mentioned else 0

    bonus_points = naturalness_bonus + creativity_bonus + grammar_bonus
    penalty_points = grammar_penalty + mention_penalty
    final_score = max(0, min(100, base_score + bonus_points - penalty_points))

    if grammar == Grammar.CORRECT:
        grammar_text = f"+{GRAMMAR_BONUS} for grammar"
    elif grammar == Grammar.MAJOR_ERRORS:
        grammar_text = f"-{GRAMMAR_PENALTY} for grammar errors"
    elif grammar == Grammar.MINOR_ERRORS:
        grammar_text = "0 for minor grammar issues"
    else:
        grammar_text = "0, grammar not assessed"

    naturalness_note = "" if signals and signals.naturalness is not None else " (neutral default)"
    creativity_note = "" if signals and signals.creativity is not None else " (neutral default)"

    return ScoreResult(
        base_score=base_score,
        bonus_points=bonus_points,
        penalty_points=penalty_points,
        final_score=final_score,
        breakdown=ScoreBreakdown(
            word_usage=f"{found}/{total} words used",
            naturalness=f"+{naturalness_bonus} for naturalness{naturalness_note}",
            creativity=f"+{creativity_bonus} for creativity{creativity_note}",
            grammar=grammar_text,
            direct_mention=(
                f"-{DIRECT_MENTION_PENALTY} for using answer word"
                if evaluation.answer_word_mentioned
                else "No penalty"
            ),
        ),
        source=evaluation.source,
    )


def score_without_submission(total_words: int) -> ScoreResult:
    """Score of a session completed before any description was submitted."""
    return ScoreResult(
        base_score=0,
        bonus_points=0,
        penalty_points=0,
        final_score=0,
        breakdown=ScoreBreakdown(
            word_usage=f"0/{total_words} words used",
            naturalness="0, no description submitted",
            creativity="0, no description submitted",
            grammar="0, no description submitted",
            direct_mention="No penalty",
        ),
        source=EvaluationSource.FALLBACK,
    )
