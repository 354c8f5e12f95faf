"""Hybrid scoring for storefront audits.

Categories are scored by one of three strategies from the strategy table:
- rule: deterministic thresholds over measured data (performance, mobile, SEO)
- ai: the grader's score, gated on evidence (brand, promotions, trust, purchase flow)
- hybrid: rule sub-score plus a damped AI score (first view, navigation, visuals)
"""

from storefront_audit.evaluators.base import RuleEvaluator
from storefront_audit.evaluators.composite import (
    clamp,
    grade_for_score,
    hybrid_score,
    merge_improvements,
    round_half_up,
    total_score,
)
from storefront_audit.evaluators.engine import ScoringEngine
from storefront_audit.evaluators.measurements import inject_measurements
from storefront_audit.evaluators.registry import STRATEGIES, CategoryStrategy
from storefront_audit.evaluators.rules_config import load_rule_config

__all__ = [
    # Protocol
    "RuleEvaluator",
    # Engine
    "ScoringEngine",
    "STRATEGIES",
    "CategoryStrategy",
    "inject_measurements",
    "load_rule_config",
    # Composite arithmetic
    "clamp",
    "grade_for_score",
    "hybrid_score",
    "merge_improvements",
    "round_half_up",
    "total_score",
]
