"""Deterministic grader used without credentials or after grader failure."""

import logging

from storefront_audit.grading.base import GraderScreenshots
from storefront_audit.models.model_audit import CategoryResult, ExpertSummary, PurchaseFlowTrace
from storefront_audit.models.model_category import CategoryId
from storefront_audit.models.model_evidence import (
    BoundingBox,
    BrandIdentityEvidence,
    FirstViewEvidence,
    FlowStepName,
    LocatedElement,
    MobileEvidence,
    NavigationEvidence,
    PerformanceEvidence,
    PromotionEvidence,
    PurchaseFlowEvidence,
    PurchaseFlowStep,
    SeoEvidence,
    TrustEvidence,
    VisualsEvidence,
)
from storefront_audit.models.model_grading import GradeOutput
from storefront_audit.models.model_platform import Platform

logger = logging.getLogger(__name__)

MOCK_SCORES: dict[CategoryId, float] = {
    CategoryId.PERFORMANCE: 7,
    CategoryId.FIRST_VIEW: 8,
    CategoryId.BRAND_IDENTITY: 7,
    CategoryId.NAVIGATION: 9,
    CategoryId.PROMOTIONS: 8,
    CategoryId.VISUALS: 6,
    CategoryId.TRUST: 8,
    CategoryId.MOBILE: 9,
    CategoryId.PURCHASE_FLOW: 7,
    CategoryId.SEO_ANALYTICS: 8,
}


def _flow_steps(url: str) -> list[PurchaseFlowStep]:
    base = url.rstrip("/")
    return [
        PurchaseFlowStep(name=FlowStepName.HOME, url=url),
        PurchaseFlowStep(name=FlowStepName.PDP, url=f"{base}/product/123"),
        PurchaseFlowStep(name=FlowStepName.CART, url=f"{base}/cart"),
    ]


class MockGrader:
    """Returns a fixed, fully-evidenced grade for every storefront."""

    name = "mock"

    async def grade(
        self,
        url: str,
        platform: Platform,
        html: str | None,
        screenshots: GraderScreenshots,
    ) -> GradeOutput:
        logger.info(f"Using mock grades for {url} ({platform.value})")
        steps = _flow_steps(url)

        evidence = {
            CategoryId.PERFORMANCE: PerformanceEvidence(lcp=2.1, layout_shift=0.05, tbt=150, source="mock"),
            CategoryId.FIRST_VIEW: FirstViewEvidence(
                cta=LocatedElement(
                    selector="button.buy-now", text="Buy now", bbox=BoundingBox(x=20, y=400, width=335, height=50)
                ),
                promo_texts=[
                    LocatedElement(text="Free shipping", bbox=BoundingBox(x=20, y=200, width=335, height=40))
                ],
                min_font_px=16,
            ),
            CategoryId.BRAND_IDENTITY: BrandIdentityEvidence(
                logo=LocatedElement(selector="header .logo", bbox=BoundingBox(x=10, y=10, width=100, height=40)),
                primary_color="#FF6B6B",
                reuse_ratio=0.45,
                typography_ok=True,
            ),
            CategoryId.NAVIGATION: NavigationEvidence(
                menu=["Best", "New", "Outer", "Top", "Bottom"],
                menu_count=5,
                search_present=True,
                search_selector="input.search",
                has_best_new=True,
            ),
            CategoryId.PROMOTIONS: PromotionEvidence(
                usp=[LocatedElement(text="Free shipping", bbox=BoundingBox(x=20, y=300, width=100, height=30))],
                cta_distance_px=100,
            ),
            CategoryId.VISUALS: VisualsEvidence(alt_ratio=0.7, popups=2, flow_order_ok=True),
            CategoryId.TRUST: TrustEvidence(
                reviews=LocatedElement(selector=".review-count", text="Reviews 1,204"),
                policies=["exchange", "return"],
                payments=["naverpay", "kakaopay"],
            ),
            CategoryId.MOBILE: MobileEvidence(
                viewport_meta=True, readability="ok", tap_targets_ok=True, overflow=False
            ),
            CategoryId.PURCHASE_FLOW: PurchaseFlowEvidence(ok=True, steps=steps),
            CategoryId.SEO_ANALYTICS: SeoEvidence(
                title=True,
                description=True,
                og_count=3,
                h1_count=1,
                canonical=True,
                alt_ratio=0.7,
                analytics=["googletagmanager.com", "wcs.naver.net"],
            ),
        }

        insights = {
            CategoryId.VISUALS: ["Limit the home page to a single popup."],
            CategoryId.PURCHASE_FLOW: ["Shorten the path from cart to checkout."],
        }

        categories = [
            CategoryResult(
                id=category,
                score=score,
                evidence=evidence[category],
                insights=insights.get(category, []),
            )
            for category, score in MOCK_SCORES.items()
        ]

        return GradeOutput(
            url=url,
            categories=categories,
            expert_summary=ExpertSummary(
                grade="B",
                headline="Solid mobile storefront with room to tighten visuals and checkout.",
                strengths=["Clear first-view call to action", "Compact navigation with search"],
                weaknesses=["Several popups on entry", "Some images lack alt text"],
                priorities=["Reduce popups", "Add alt text to product images"],
            ),
            purchase_flow=PurchaseFlowTrace(ok=True, steps=steps),
            model=self.name,
        )
