"""Tests for the vision grader, payload parsing and the mock grader."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storefront_audit.errors import GradingError
from storefront_audit.grading.base import GraderScreenshots
from storefront_audit.grading.mock_grader import MOCK_SCORES, MockGrader
from storefront_audit.grading.prompts import build_user_prompt
from storefront_audit.grading.vision_grader import VisionGrader, parse_grade_payload
from storefront_audit.models.model_category import ALL_CATEGORIES, CategoryId
from storefront_audit.models.model_evidence import FirstViewEvidence, FlowStepName, NavigationEvidence
from storefront_audit.models.model_platform import Platform

FULL_PAYLOAD = {
    "url": "https://shop.example.com",
    "expertSummary": {
        "grade": "B",
        "headline": "Good basics",
        "strengths": ["Clear CTA"],
        "weaknesses": ["Popups"],
        "priorities": ["Fewer popups"],
    },
    "scores": {
        "speed": {"score": 6, "evidence": {"lcp": 3.1}, "metrics": {"lcp": 3.1, "ok": True}},
        "firstView": {
            "score": 8,
            "evidence": {"cta": {"selector": "button.buy", "bbox": [20, 400, 335, 50]}, "minFontPx": 15},
            "insights": ["Enlarge the hero copy", 3],
        },
        "bi": {"score": 7, "evidence": {"primaryColor": "#222"}},
        "navigation": {"score": 9, "evidence": {"menu": ["Best", "New"], "searchPresent": True}},
        "uspPromo": {"score": 8, "evidence": {"usp": [{"text": "Free shipping"}]}},
        "visuals": {"score": 6, "evidence": {"popups": 2}},
        "trust": {"score": 8, "evidence": {"payments": ["kakaopay"]}},
        "mobile": {"score": 9, "evidence": {"viewportMeta": True}},
        "purchaseFlow": {"score": 7, "evidence": {"ok": True, "steps": [{"name": "home"}]}},
        "seoAnalytics": {"score": "8", "evidence": {"title": True}},
    },
    "purchaseFlow": {
        "ok": True,
        "steps": [{"name": "home", "url": "https://shop.example.com"}, {"name": "cart", "success": False}],
    },
}


def _response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.total_tokens = 1234
    response.model = "gpt-4o-2024"
    return response


def _client(*contents: str | None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=[_response(c) for c in contents])
    return client


class TestParseGradePayload:
    """Tests for parse_grade_payload."""

    def test_full_payload(self):
        output = parse_grade_payload(FULL_PAYLOAD, "https://shop.example.com", "gpt-4o")

        assert output.category_ids() == set(ALL_CATEGORIES)
        assert [r.id for r in output.categories] == list(ALL_CATEGORIES)
        assert output.expert_summary.grade == "B"
        assert output.model == "gpt-4o"

    def test_evidence_is_typed(self):
        output = parse_grade_payload(FULL_PAYLOAD, "https://shop.example.com")
        by_id = {r.id: r for r in output.categories}

        first_view = by_id[CategoryId.FIRST_VIEW].evidence
        assert isinstance(first_view, FirstViewEvidence)
        assert first_view.cta.bbox.width == 335
        assert first_view.min_font_px == 15
        assert isinstance(by_id[CategoryId.NAVIGATION].evidence, NavigationEvidence)

    def test_metrics_and_insights_filtered(self):
        output = parse_grade_payload(FULL_PAYLOAD, "https://shop.example.com")
        by_id = {r.id: r for r in output.categories}

        assert by_id[CategoryId.PERFORMANCE].metrics == {"lcp": 3.1}
        assert by_id[CategoryId.FIRST_VIEW].insights == ["Enlarge the hero copy"]
        assert by_id[CategoryId.SEO_ANALYTICS].score == 8.0

    def test_purchase_flow_trace(self):
        output = parse_grade_payload(FULL_PAYLOAD, "https://shop.example.com")

        assert output.purchase_flow.ok is True
        assert [s.name for s in output.purchase_flow.steps] == [FlowStepName.HOME, FlowStepName.CART]
        assert output.purchase_flow.steps[1].success is False

    def test_list_shape_and_unknown_ids(self):
        payload = {
            "scores": [
                {"id": "first_view", "score": 12, "evidence": {"minFontPx": 16}},
                {"id": "loyalty", "score": 5},
            ]
        }

        output = parse_grade_payload(payload, "https://shop.example.com")

        assert output.category_ids() == {CategoryId.FIRST_VIEW}
        assert output.categories[0].score == 10.0
        assert output.url == "https://shop.example.com"

    def test_malformed_evidence_dropped(self):
        payload = {"scores": {"visuals": {"score": 5, "evidence": {"popups": "many"}}}}

        output = parse_grade_payload(payload, "https://shop.example.com")

        assert output.categories[0].evidence is None


class TestVisionGrader:
    """Tests for VisionGrader with a mocked chat completions client."""

    @pytest.mark.asyncio
    async def test_successful_grade(self):
        client = _client(json.dumps(FULL_PAYLOAD))
        grader = VisionGrader(api_key="test", client=client)

        output = await grader.grade(
            "https://shop.example.com",
            Platform.CAFE24,
            "<html></html>",
            GraderScreenshots(first_view="data:image/png;base64,AAAA"),
        )

        assert output.category_ids() == set(ALL_CATEGORIES)
        assert output.model == "gpt-4o-2024"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        user_content = kwargs["messages"][1]["content"]
        assert user_content[1]["image_url"] == {"url": "data:image/png;base64,AAAA", "detail": "high"}

    @pytest.mark.asyncio
    async def test_text_only_without_screenshot(self):
        client = _client(json.dumps(FULL_PAYLOAD))
        grader = VisionGrader(api_key="test", client=client)

        await grader.grade("https://shop.example.com", Platform.UNKNOWN, None, GraderScreenshots())

        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert isinstance(messages[1]["content"], str)

    @pytest.mark.asyncio
    async def test_retries_after_invalid_json(self):
        client = _client("not json", json.dumps(FULL_PAYLOAD))
        grader = VisionGrader(api_key="test", max_retries=2, client=client)

        with patch("storefront_audit.grading.vision_grader.asyncio.sleep", AsyncMock()) as sleep:
            output = await grader.grade("https://shop.example.com", Platform.UNKNOWN, "", GraderScreenshots())

        assert output.category_ids() == set(ALL_CATEGORIES)
        assert client.chat.completions.create.await_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_categories_raise_after_retries(self):
        partial = json.dumps({"scores": {"mobile": {"score": 5}}})
        client = _client(partial, partial)
        grader = VisionGrader(api_key="test", max_retries=2, client=client)

        with patch("storefront_audit.grading.vision_grader.asyncio.sleep", AsyncMock()):
            with pytest.raises(GradingError):
                await grader.grade("https://shop.example.com", Platform.UNKNOWN, "", GraderScreenshots())

    @pytest.mark.asyncio
    async def test_empty_response_raises(self):
        client = _client(None)
        grader = VisionGrader(api_key="test", max_retries=1, client=client)

        with pytest.raises(GradingError):
            await grader.grade("https://shop.example.com", Platform.UNKNOWN, "", GraderScreenshots())

    def test_html_is_truncated(self):
        grader = VisionGrader(api_key="test", client=MagicMock())

        messages = grader._build_messages(
            "https://shop.example.com", Platform.UNKNOWN, "x" * 30000, GraderScreenshots()
        )

        assert "HTML (30000 characters, truncated to 20000)" in messages[1]["content"]


class TestPrompts:
    """Tests for prompt construction."""

    def test_prompt_lists_categories_and_evidence_fields(self):
        prompt = build_user_prompt("https://shop.example.com", Platform.IMWEB, "<html/>", 7, 2)

        for category in ALL_CATEGORIES:
            assert category.value in prompt
        assert "minFontPx" in prompt
        assert "Platform: imweb" in prompt
        assert "Action screenshots: 2" in prompt


class TestMockGrader:
    """Tests for MockGrader."""

    @pytest.mark.asyncio
    async def test_returns_all_categories_with_evidence(self, mock_grader):
        output = await mock_grader.grade(
            "https://shop.example.com", Platform.UNKNOWN, None, GraderScreenshots()
        )

        assert output.category_ids() == set(ALL_CATEGORIES)
        assert all(result.has_evidence() for result in output.categories)
        assert {r.id: r.score for r in output.categories} == MOCK_SCORES
        assert output.purchase_flow.steps[-1].url == "https://shop.example.com/cart"

    @pytest.mark.asyncio
    async def test_is_deterministic(self):
        first = await MockGrader().grade("https://a.example", Platform.CAFE24, "", GraderScreenshots())
        second = await MockGrader().grade("https://a.example", Platform.CAFE24, "", GraderScreenshots())

        assert first == second
