"""Strategy table mapping each category to how it is scored."""

from dataclasses import dataclass
from typing import Final

from storefront_audit.evaluators.advisory import PurchaseFlowAdvisor, TrustAdvisor
from storefront_audit.evaluators.base import RuleEvaluator
from storefront_audit.evaluators.first_view import FirstViewEvaluator
from storefront_audit.evaluators.mobile import MobileEvaluator
from storefront_audit.evaluators.navigation import NavigationEvaluator
from storefront_audit.evaluators.performance import PerformanceEvaluator
from storefront_audit.evaluators.seo import SeoEvaluator
from storefront_audit.evaluators.visuals import VisualsEvaluator
from storefront_audit.models.model_category import CategoryId, ScoreSource


@dataclass(frozen=True)
class CategoryStrategy:
    """How one category is scored.

    Attributes:
        source: rule, ai or hybrid
        rule: Deterministic evaluator. For AI categories it only contributes
            improvement messages, never points.
        ai_weight: Multiplier on the grader score. None uses the configured
            hybrid damping factor.
        evidence_required: Empty evidence forces the score to 0
    """

    source: ScoreSource
    rule: RuleEvaluator | None = None
    ai_weight: float | None = None
    evidence_required: bool = True


STRATEGIES: Final[dict[CategoryId, CategoryStrategy]] = {
    CategoryId.PERFORMANCE: CategoryStrategy(
        source=ScoreSource.RULE, rule=PerformanceEvaluator(), ai_weight=0.0, evidence_required=False
    ),
    CategoryId.FIRST_VIEW: CategoryStrategy(source=ScoreSource.HYBRID, rule=FirstViewEvaluator()),
    CategoryId.BRAND_IDENTITY: CategoryStrategy(source=ScoreSource.AI, ai_weight=1.0),
    CategoryId.NAVIGATION: CategoryStrategy(source=ScoreSource.HYBRID, rule=NavigationEvaluator()),
    CategoryId.PROMOTIONS: CategoryStrategy(source=ScoreSource.AI, ai_weight=1.0),
    CategoryId.VISUALS: CategoryStrategy(source=ScoreSource.HYBRID, rule=VisualsEvaluator()),
    CategoryId.TRUST: CategoryStrategy(source=ScoreSource.AI, rule=TrustAdvisor(), ai_weight=1.0),
    CategoryId.MOBILE: CategoryStrategy(source=ScoreSource.RULE, rule=MobileEvaluator(), ai_weight=0.0),
    CategoryId.PURCHASE_FLOW: CategoryStrategy(
        source=ScoreSource.AI, rule=PurchaseFlowAdvisor(), ai_weight=1.0
    ),
    CategoryId.SEO_ANALYTICS: CategoryStrategy(source=ScoreSource.RULE, rule=SeoEvaluator(), ai_weight=0.0),
}
