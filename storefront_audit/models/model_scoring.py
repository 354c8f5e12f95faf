"""Scoring configuration and results."""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from storefront_audit.consts import HYBRID_DAMPING, MAX_IMPROVEMENTS
from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_category import CategoryId, ScoreSource

DEFAULT_IMPROVEMENT_MESSAGES: dict[str, dict[str, str]] = {
    CategoryId.PERFORMANCE.value: {
        "lcp_fair": "Largest contentful paint is over 2.5s; compress the hero image and preload it.",
        "lcp_slow": "Largest contentful paint is over 4s; optimize hero images and defer non-critical scripts.",
        "cls_high": "Reserve space for images and banners to reduce layout shift.",
        "tbt_high": "Split or defer heavy JavaScript to cut main-thread blocking time.",
        "network_errors": "Fix failing network requests reported during page load.",
        "metrics_unavailable": "Performance could not be measured; verify the page loads for automated browsers.",
    },
    CategoryId.FIRST_VIEW.value: {
        "font_small": "Use at least 16px body text in the first view.",
        "cta_missing": "Place a clear call-to-action button above the fold.",
    },
    CategoryId.NAVIGATION.value: {
        "menu_count_off": "Keep the main menu between 3 and 8 items.",
        "search_missing": "Add a visible product search field to the header.",
    },
    CategoryId.VISUALS.value: {
        "alt_low": "Add descriptive alt text to at least 80% of images.",
        "popups_excess": "Show at most one popup on landing; stacked popups hide the storefront.",
    },
    CategoryId.TRUST.value: {
        "payment_missing": "Display accepted payment methods near the footer or checkout entry.",
    },
    CategoryId.MOBILE.value: {
        "viewport_missing": "Add a viewport meta tag with width=device-width.",
        "font_small": "Increase the smallest text to at least 14px on mobile.",
        "tap_target_small": "Make buttons and links at least 44px tall for touch.",
        "overflow_exists": "Remove fixed-width elements that cause horizontal scrolling.",
    },
    CategoryId.PURCHASE_FLOW.value: {
        "checkout_unreachable": "Make the path from product page to checkout reachable in three steps.",
    },
    CategoryId.SEO_ANALYTICS.value: {
        "title_missing": "Add a descriptive page title.",
        "description_missing": "Add a meta description summarizing the store.",
        "og_incomplete": "Add og:title, og:description and og:image tags for link previews.",
        "h1_invalid": "Use exactly one h1 heading on the page.",
        "alt_low": "Add alt text to images for search engines.",
        "analytics_missing": "Install an analytics tag to measure traffic and conversions.",
    },
}


class ScoreRuleConfig(BaseModel):
    """Tunable parameters of the hybrid scoring engine."""

    hybrid_damping: float = Field(default=HYBRID_DAMPING, ge=0.0, le=1.0)
    max_improvements: int = Field(default=MAX_IMPROVEMENTS, ge=1)
    messages: dict[str, dict[str, str]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_IMPROVEMENT_MESSAGES.items()},
        description="category -> condition -> canned improvement message",
    )
    fallback_message: str = "Review this area against mobile commerce best practices."
    evidence_shortage_marker: str = "Insufficient evidence to score this category."

    def message_for(self, category: CategoryId, condition: str) -> str:
        """Canned message for a threshold breach, or the generic fallback."""
        return self.messages.get(category.value, {}).get(condition, self.fallback_message)


@dataclass
class RuleOutcome:
    """Deterministic sub-score and the thresholds it breached."""

    score: float = 0.0
    breaches: list[str] = field(default_factory=list)


class ScoringResult(BaseModel):
    """Output of the hybrid scoring engine."""

    total_score: int = Field(ge=0, le=100)
    categories: list[CategoryResult]
    category_scores: dict[CategoryId, float]
    score_sources: dict[CategoryId, ScoreSource]
    improvements: dict[CategoryId, list[str]]
