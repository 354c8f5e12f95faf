"""Audit category identifiers and score-source tags."""

from enum import Enum
from typing import Final


class CategoryId(str, Enum):
    """The ten fixed audit categories."""

    PERFORMANCE = "performance"
    FIRST_VIEW = "first_view"
    BRAND_IDENTITY = "brand_identity"
    NAVIGATION = "navigation"
    PROMOTIONS = "promotions"
    VISUALS = "visuals"
    TRUST = "trust"
    MOBILE = "mobile"
    PURCHASE_FLOW = "purchase_flow"
    SEO_ANALYTICS = "seo_analytics"

    @classmethod
    def parse(cls, value: str) -> "CategoryId | None":
        """Resolve a category id, accepting the grader's camelCase aliases.

        Args:
            value: Raw id such as "first_view", "firstView" or "speed"

        Returns:
            Matching CategoryId, or None if unrecognized
        """
        key = (value or "").strip()
        if key in CATEGORY_ALIASES:
            return CATEGORY_ALIASES[key]
        try:
            return cls(key.lower())
        except ValueError:
            return None


class ScoreSource(str, Enum):
    """How a category's final score was produced."""

    RULE = "rule"
    AI = "ai"
    HYBRID = "hybrid"


CATEGORY_ALIASES: Final[dict[str, CategoryId]] = {
    "speed": CategoryId.PERFORMANCE,
    "firstView": CategoryId.FIRST_VIEW,
    "bi": CategoryId.BRAND_IDENTITY,
    "brandIdentity": CategoryId.BRAND_IDENTITY,
    "uspPromo": CategoryId.PROMOTIONS,
    "purchaseFlow": CategoryId.PURCHASE_FLOW,
    "seoAnalytics": CategoryId.SEO_ANALYTICS,
}

ALL_CATEGORIES: Final[tuple[CategoryId, ...]] = tuple(CategoryId)
