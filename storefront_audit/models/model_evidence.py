"""Typed evidence records, one per audit category.

Evidence proves a visual or structural claim: a bounding box on the first-view
screenshot, a quoted text snippet, or a selector. Each category has its own
record with optional fields; the records form a union discriminated by `kind`.
Field aliases are camelCase so grader JSON can be validated directly.
"""

import logging
from collections.abc import Iterator
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from storefront_audit.models.model_category import CategoryId

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BoundingBox(_CamelModel):
    """Rectangle in first-view screenshot pixels."""

    x: float
    y: float
    width: float
    height: float

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, data: Any) -> Any:
        # Graders emit [x, y, width, height]
        if isinstance(data, (list, tuple)) and len(data) == 4:
            x, y, width, height = data
            return {"x": x, "y": y, "width": width, "height": height}
        return data

    def padded(self, padding: float, max_width: float | None = None) -> "BoundingBox":
        """Expand the box by padding on every side, clipped at the origin."""
        x = max(0.0, self.x - padding)
        y = max(0.0, self.y - padding)
        width = self.width + (self.x - x) + padding
        if max_width is not None:
            width = min(width, max_width - x)
        return BoundingBox(x=x, y=y, width=width, height=self.height + (self.y - y) + padding)


class LocatedElement(_CamelModel):
    """An element located on the page by selector, text, and/or bounding box."""

    selector: str | None = None
    text: str | None = None
    bbox: BoundingBox | None = None
    screenshot: str | None = Field(default=None, description="Region capture reference")


class FlowStepName(str, Enum):
    """Purchase-flow steps in order."""

    HOME = "home"
    PDP = "pdp"
    CART = "cart"
    CHECKOUT = "checkout"


class PurchaseFlowStep(_CamelModel):
    """A single step of the purchase-flow trace."""

    name: FlowStepName
    url: str | None = None
    success: bool = True
    screenshot: str | None = None


class EvidenceBase(_CamelModel):
    """Common behaviour for all evidence records."""

    def is_empty(self) -> bool:
        """True if every field other than `kind` is unset or an empty collection."""
        for name in type(self).model_fields:
            if name == "kind":
                continue
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, (list, dict, str)) and not value:
                continue
            return False
        return True

    def located_elements(self) -> Iterator[LocatedElement]:
        """Yield every element carrying a bounding box."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            items = value if isinstance(value, list) else [value]
            for item in items:
                if isinstance(item, LocatedElement) and item.bbox is not None:
                    yield item


class PerformanceEvidence(EvidenceBase):
    kind: Literal["performance"] = "performance"
    lcp: float | None = None
    layout_shift: float | None = None
    tbt: float | None = None
    errors: int | None = None
    source: str | None = None


class FirstViewEvidence(EvidenceBase):
    kind: Literal["first_view"] = "first_view"
    cta: LocatedElement | None = None
    promo_texts: list[LocatedElement] = Field(default_factory=list)
    min_font_px: float | None = None


class BrandIdentityEvidence(EvidenceBase):
    kind: Literal["brand_identity"] = "brand_identity"
    logo: LocatedElement | None = None
    primary_color: str | None = None
    reuse_ratio: float | None = None
    typography_ok: bool | None = None


class NavigationEvidence(EvidenceBase):
    kind: Literal["navigation"] = "navigation"
    menu: list[str] | None = None
    menu_count: int | None = None
    search_present: bool | None = None
    search_selector: str | None = None
    has_best_new: bool | None = None


class PromotionEvidence(EvidenceBase):
    kind: Literal["promotions"] = "promotions"
    usp: list[LocatedElement] = Field(default_factory=list)
    cta_distance_px: float | None = None


class VisualsEvidence(EvidenceBase):
    kind: Literal["visuals"] = "visuals"
    alt_ratio: float | None = None
    popups: int | None = None
    flow_order_ok: bool | None = None


class TrustEvidence(EvidenceBase):
    kind: Literal["trust"] = "trust"
    reviews: LocatedElement | None = None
    policies: list[str] | None = None
    payments: list[str] | None = None


class MobileEvidence(EvidenceBase):
    kind: Literal["mobile"] = "mobile"
    viewport_meta: bool | None = None
    min_font_px: float | None = None
    min_touch_px: float | None = None
    overflow: bool | None = None
    readability: str | None = None
    tap_targets_ok: bool | None = None


class PurchaseFlowEvidence(EvidenceBase):
    kind: Literal["purchase_flow"] = "purchase_flow"
    ok: bool | None = None
    steps: list[PurchaseFlowStep] = Field(default_factory=list)


class SeoEvidence(EvidenceBase):
    kind: Literal["seo_analytics"] = "seo_analytics"
    title: bool | None = None
    description: bool | None = None
    og_count: int | None = None
    h1_count: int | None = None
    canonical: bool | None = None
    alt_ratio: float | None = None
    analytics: list[str] | None = None


CategoryEvidence = Annotated[
    Union[
        PerformanceEvidence,
        FirstViewEvidence,
        BrandIdentityEvidence,
        NavigationEvidence,
        PromotionEvidence,
        VisualsEvidence,
        TrustEvidence,
        MobileEvidence,
        PurchaseFlowEvidence,
        SeoEvidence,
    ],
    Field(discriminator="kind"),
]

EVIDENCE_TYPES: dict[CategoryId, type[EvidenceBase]] = {
    CategoryId.PERFORMANCE: PerformanceEvidence,
    CategoryId.FIRST_VIEW: FirstViewEvidence,
    CategoryId.BRAND_IDENTITY: BrandIdentityEvidence,
    CategoryId.NAVIGATION: NavigationEvidence,
    CategoryId.PROMOTIONS: PromotionEvidence,
    CategoryId.VISUALS: VisualsEvidence,
    CategoryId.TRUST: TrustEvidence,
    CategoryId.MOBILE: MobileEvidence,
    CategoryId.PURCHASE_FLOW: PurchaseFlowEvidence,
    CategoryId.SEO_ANALYTICS: SeoEvidence,
}


def empty_evidence(category: CategoryId) -> EvidenceBase:
    """Create an empty evidence record of the right type for a category."""
    return EVIDENCE_TYPES[category]()


def parse_evidence(category: CategoryId, raw: dict[str, Any] | None) -> EvidenceBase | None:
    """Validate untyped grader evidence into the category's evidence record.

    Args:
        category: Category the evidence belongs to
        raw: Evidence mapping from the grader (camelCase or snake_case keys)

    Returns:
        Typed evidence, or None if absent or malformed
    """
    if not raw:
        return None

    payload = {key: value for key, value in raw.items() if key != "kind"}
    try:
        return EVIDENCE_TYPES[category].model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Discarding malformed {category.value} evidence: {e.error_count()} errors")
        return None
