"""Prompt construction for the vision grader."""

import json

from pydantic.alias_generators import to_camel

from storefront_audit.consts import MOBILE_VIEWPORT_HEIGHT, MOBILE_VIEWPORT_WIDTH
from storefront_audit.models.model_category import ALL_CATEGORIES
from storefront_audit.models.model_evidence import EVIDENCE_TYPES
from storefront_audit.models.model_platform import Platform

SYSTEM_PROMPT = """You are a senior e-commerce conversion specialist with 15 years of experience \
auditing mobile storefronts, including Korean platforms such as Cafe24 and Imweb.

Role:
- Analyse the mobile screenshot and HTML and score 10 categories, each from 0 to 10
- Every claim must be backed by evidence: a bbox [x, y, width, height] on the screenshot,
  or a quoted selector/text from the HTML
- A category without evidence scores 0
- Write an overall expert summary with a letter grade

Output:
- Return a single JSON object only, no commentary
- Include every category"""

KEYWORDS = {
    "cta": ["구매", "바로구매", "장바구니", "쿠폰", "할인", "buy now", "add to cart"],
    "category": ["베스트", "신상품", "추천", "인기", "BEST", "NEW"],
    "usp": ["무료배송", "당일배송", "정품보증", "첫구매", "적립", "free shipping"],
    "trust": ["inicis", "tosspayments", "naverpay", "kakaopay", "교환", "반품", "고객센터"],
    "navigation": ["검색", "카테고리", "메뉴", "로그인", "search"],
}

RUBRIC = """Scoring rubric (0-10 each):
1. performance: perceived loading speed from the screenshot and markup weight
2. first_view: CTA visible without scrolling (bbox), hero promotion copy (bbox), readable text
3. brand_identity: logo in the top 15% (bbox), primary colour reuse, clear typography hierarchy
4. navigation: 3-8 menu items, search field (selector), best/new sections
5. promotions: above-the-fold USP (bbox), contrast, concrete benefit (numbers/deadline), CTA nearby
6. visuals: alt text coverage, at most one popup, sensible content flow, image quality
7. trust: reviews/ratings, exchange/return/AS policies, payment method marks
8. mobile: viewport meta, readability, tap target size, no horizontal scroll
9. purchase_flow: home -> product page -> cart -> checkout reachable; step names must be
   one of "home", "pdp", "cart", "checkout"
10. seo_analytics: title, description, og tags, single h1, canonical, alt text, analytics tags"""


def _evidence_fields() -> dict[str, list[str]]:
    fields: dict[str, list[str]] = {}
    for category in ALL_CATEGORIES:
        model = EVIDENCE_TYPES[category]
        fields[category.value] = [
            to_camel(name) for name in model.model_fields if name != "kind"
        ]
    return fields


def build_user_prompt(
    url: str,
    platform: Platform,
    html: str,
    html_length: int,
    action_count: int,
) -> str:
    """Build the user prompt for one storefront.

    Args:
        url: Audited URL
        platform: Detected platform label
        html: Markup, already truncated
        html_length: Length of the untruncated markup
        action_count: Number of action screenshots attached

    Returns:
        Prompt text
    """
    output_shape = {
        "url": url,
        "expertSummary": {
            "grade": "S|A|B|C|D|F",
            "headline": "one sentence",
            "strengths": ["..."],
            "weaknesses": ["..."],
            "priorities": ["..."],
        },
        "scores": {
            "<category id>": {
                "score": "0-10",
                "evidence": {"<field>": "see evidence fields"},
                "metrics": {"<name>": "number"},
                "insights": ["specific improvement, max 3"],
            }
        },
        "purchaseFlow": {"ok": True, "steps": [{"name": "home", "url": url, "success": True}]},
    }

    return f"""Target:
- URL: {url}
- Platform: {platform.value}
- Action screenshots: {action_count}

Analyse only the content of {url}. The screenshot and HTML both belong to this site.

Screenshot coordinates: mobile viewport {MOBILE_VIEWPORT_WIDTH}x{MOBILE_VIEWPORT_HEIGHT} pixels,
bbox format [x, y, width, height]. Every visual element must include a bbox.

Keywords to recognise:
{json.dumps(KEYWORDS, ensure_ascii=False, indent=2)}

{RUBRIC}

Category ids: {", ".join(category.value for category in ALL_CATEGORIES)}

Evidence fields per category (located elements are objects with selector, text, bbox):
{json.dumps(_evidence_fields(), indent=2)}

Return JSON shaped like:
{json.dumps(output_shape, indent=2)}

HTML ({html_length} characters, truncated to {len(html)}):
{html}"""
