"""Hybrid scoring engine fusing measured rules with AI grades."""

import logging
import math
from collections.abc import Iterable

from storefront_audit.errors import ScoringInvariantError
from storefront_audit.evaluators.composite import (
    clamp,
    hybrid_score,
    merge_improvements,
    total_score,
)
from storefront_audit.evaluators.registry import STRATEGIES, CategoryStrategy
from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_category import ALL_CATEGORIES, CategoryId, ScoreSource
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome, ScoreRuleConfig, ScoringResult

logger = logging.getLogger(__name__)


class ScoringEngine:
    """Computes final category scores, sources, improvements and the total.

    Per category the strategy table selects:
    - rule: score = rule sub-score
    - ai: score = grader score (only with non-empty evidence)
    - hybrid: score = round(clamp(rule + damping * ai, 0, 10))

    Evidence-gated categories with empty evidence score 0 and get the
    evidence-shortage marker. For AI and hybrid categories the gate looks at
    the grader's own evidence, not measured values merged in afterwards; a
    hybrid category without it keeps only its rule sub-score. The engine is
    total over any subset of categories: missing ones score 0 with no evidence.
    """

    def __init__(self, strategies: dict[CategoryId, CategoryStrategy] | None = None):
        """Initialize engine.

        Args:
            strategies: Category strategy table. Defaults to STRATEGIES.
        """
        self.strategies = strategies or STRATEGIES

    def _raw_score(
        self,
        strategy: CategoryStrategy,
        result: CategoryResult,
        outcome: RuleOutcome,
        config: ScoreRuleConfig,
        ai_backed: bool,
    ) -> float:
        ai_subscore = clamp(result.score) if ai_backed else 0.0

        if strategy.source == ScoreSource.RULE:
            return clamp(outcome.score)
        if strategy.source == ScoreSource.AI:
            weight = 1.0 if strategy.ai_weight is None else strategy.ai_weight
            return clamp(ai_subscore * weight)
        if strategy.source == ScoreSource.HYBRID:
            damping = config.hybrid_damping if strategy.ai_weight is None else strategy.ai_weight
            return float(hybrid_score(outcome.score, ai_subscore, damping))

        raise ScoringInvariantError(f"Unknown score source for {result.id.value}: {strategy.source!r}")

    def _score_category(
        self,
        category: CategoryId,
        result: CategoryResult,
        measured: MeasuredData,
        config: ScoreRuleConfig,
    ) -> CategoryResult:
        strategy = self.strategies.get(category)
        if strategy is None:
            raise ScoringInvariantError(f"No scoring strategy for category {category.value}")
        if not isinstance(strategy.source, ScoreSource):
            raise ScoringInvariantError(f"Unknown score source for {category.value}: {strategy.source!r}")

        outcome = strategy.rule.evaluate(result, measured) if strategy.rule else RuleOutcome()
        # AI sub-scores count only when the grader itself supplied evidence
        ai_backed = not strategy.evidence_required or result.has_grader_evidence()
        score = self._raw_score(strategy, result, outcome, config, ai_backed)

        if strategy.source == ScoreSource.RULE:
            short_of_evidence = strategy.evidence_required and not result.has_evidence()
        else:
            short_of_evidence = not ai_backed
        if short_of_evidence and strategy.source != ScoreSource.HYBRID:
            score = 0.0

        if math.isnan(score) or not 0.0 <= score <= 10.0:
            raise ScoringInvariantError(f"Score for {category.value} out of range: {score}")

        rule_messages = [config.message_for(category, breach) for breach in outcome.breaches]
        if short_of_evidence:
            marker = config.evidence_shortage_marker
            insights = merge_improvements(
                [text for text in result.insights if text != marker],
                [text for text in rule_messages if text != marker],
                config.max_improvements - 1,
            )
            insights.append(marker)
        else:
            insights = merge_improvements(result.insights, rule_messages, config.max_improvements)

        logger.debug(
            f"{category.value}: {strategy.source.value} score {score:g} "
            f"(rule {outcome.score:g}, ai {result.score:g}, breaches {outcome.breaches})"
        )
        return result.model_copy(update={"score": score, "insights": insights})

    def score(
        self,
        ai_output: Iterable[CategoryResult],
        measured_data: MeasuredData,
        rule_config: ScoreRuleConfig | None = None,
    ) -> ScoringResult:
        """Score every category.

        Args:
            ai_output: Grader category results, measurements already injected
            measured_data: Performance metrics and DOM heuristics
            rule_config: Damping, caps and canned messages. Defaults apply if None.

        Returns:
            ScoringResult with total, per-category scores, sources and improvements

        Raises:
            ScoringInvariantError: If a strategy is misconfigured or yields an out-of-range score
        """
        config = rule_config or ScoreRuleConfig()

        by_id: dict[CategoryId, CategoryResult] = {}
        for result in ai_output:
            by_id.setdefault(result.id, result)

        categories = [
            self._score_category(
                category,
                by_id.get(category) or CategoryResult(id=category),
                measured_data,
                config,
            )
            for category in ALL_CATEGORIES
        ]

        scoring = ScoringResult(
            total_score=total_score(result.score for result in categories),
            categories=categories,
            category_scores={result.id: result.score for result in categories},
            score_sources={category: self.strategies[category].source for category in ALL_CATEGORIES},
            improvements={result.id: list(result.insights) for result in categories},
        )
        logger.info(f"Scored {len(categories)} categories, total {scoring.total_score}/100")
        return scoring
