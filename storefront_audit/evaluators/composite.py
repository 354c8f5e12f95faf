"""Composite score arithmetic: clamping, rounding, blending and totals."""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from storefront_audit.consts import HYBRID_DAMPING, MAX_IMPROVEMENTS
from storefront_audit.models.model_audit import Grade

CATEGORY_MIN = 0.0
CATEGORY_MAX = 10.0

# (minimum total, grade), checked in order
GRADE_THRESHOLDS: list[tuple[int, Grade]] = [(90, "S"), (80, "A"), (70, "B"), (60, "C"), (50, "D")]


def clamp(value: float, low: float = CATEGORY_MIN, high: float = CATEGORY_MAX) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3).

    Python's round() uses banker's rounding, which would turn 8.5 into 8.
    """
    # Trim float noise such as 2.0999999999999996 before rounding
    return int(Decimal(str(round(value, 9))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def hybrid_score(rule_subscore: float, ai_subscore: float, damping: float = HYBRID_DAMPING) -> int:
    """Blend a rule sub-score with a damped AI sub-score.

    score = round(clamp(rule + damping * ai, 0, 10)), rounded once at the end.
    """
    return round_half_up(clamp(rule_subscore + damping * clamp(ai_subscore)))


def total_score(category_scores: Iterable[float]) -> int:
    """Sum clamped category scores and round once."""
    return round_half_up(sum(clamp(score) for score in category_scores))


def merge_improvements(
    ai_insights: Iterable[str],
    rule_messages: Iterable[str],
    limit: int = MAX_IMPROVEMENTS,
) -> list[str]:
    """Merge insights, AI first, dropping exact duplicates and blanks.

    Args:
        ai_insights: Free-text insights from the grader
        rule_messages: Canned messages for breached thresholds
        limit: Maximum number of entries

    Returns:
        At most `limit` unique strings in original order
    """
    merged: list[str] = []
    if limit <= 0:
        return merged
    for text in [*ai_insights, *rule_messages]:
        if not text or not text.strip() or text in merged:
            continue
        merged.append(text)
        if len(merged) >= limit:
            break
    return merged


def grade_for_score(total: int) -> Grade:
    """Letter grade for a 0-100 total (S >= 90 ... F < 50)."""
    for threshold, grade in GRADE_THRESHOLDS:
        if total >= threshold:
            return grade
    return "F"
