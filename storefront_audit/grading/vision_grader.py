"""Vision grader backed by an OpenAI-compatible chat completions API."""

import asyncio
import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from storefront_audit.consts import (
    DEFAULT_LLM_MODEL,
    GRADER_TIMEOUT,
    HTML_TRUNCATE_CHARS,
    LLM_MAX_RETRIES,
    LLM_MAX_TOKENS,
    LLM_RETRY_BASE_DELAY,
    LLM_TEMPERATURE,
)
from storefront_audit.errors import GradingError
from storefront_audit.grading.base import GraderScreenshots
from storefront_audit.grading.prompts import SYSTEM_PROMPT, build_user_prompt
from storefront_audit.models.model_audit import CategoryResult, ExpertSummary, PurchaseFlowTrace
from storefront_audit.models.model_category import ALL_CATEGORIES, CategoryId
from storefront_audit.models.model_evidence import PurchaseFlowEvidence, parse_evidence
from storefront_audit.models.model_grading import GradeOutput
from storefront_audit.models.model_platform import Platform

logger = logging.getLogger(__name__)


def _numeric_metrics(raw: Any) -> dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    return {
        str(key): float(value)
        for key, value in raw.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


def _insights(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(item).strip() for item in raw if isinstance(item, str) and item.strip()]


def _iter_scores(scores: Any) -> list[tuple[str, dict[str, Any]]]:
    """Accept both {"id": {...}} and [{"id": ..., ...}] shapes."""
    if isinstance(scores, dict):
        return [(str(key), value) for key, value in scores.items() if isinstance(value, dict)]
    if isinstance(scores, list):
        return [(str(item.get("id", "")), item) for item in scores if isinstance(item, dict)]
    return []


def _parse_score(raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def parse_grade_payload(payload: dict[str, Any], url: str, model: str | None = None) -> GradeOutput:
    """Convert grader JSON into a GradeOutput.

    Unknown category ids are dropped, malformed evidence is discarded, and
    scores are clamped by CategoryResult.

    Args:
        payload: Decoded JSON object from the grader
        url: Audited URL
        model: Model that produced the payload

    Returns:
        GradeOutput (may hold fewer than ten categories)
    """
    categories: dict[CategoryId, CategoryResult] = {}
    for raw_id, entry in _iter_scores(payload.get("scores")):
        category = CategoryId.parse(entry.get("id") or raw_id)
        if category is None:
            logger.warning(f"Ignoring unknown grader category '{raw_id}'")
            continue
        if category in categories:
            continue
        categories[category] = CategoryResult(
            id=category,
            score=_parse_score(entry.get("score")),
            metrics=_numeric_metrics(entry.get("metrics")),
            evidence=parse_evidence(category, entry.get("evidence")),
            insights=_insights(entry.get("insights")),
        )

    summary = None
    if isinstance(payload.get("expertSummary"), dict):
        try:
            summary = ExpertSummary.model_validate(payload["expertSummary"])
        except ValidationError as e:
            logger.warning(f"Discarding malformed expert summary: {e.error_count()} errors")

    flow = None
    raw_flow = payload.get("purchaseFlow")
    if isinstance(raw_flow, dict):
        flow_evidence = parse_evidence(CategoryId.PURCHASE_FLOW, raw_flow)
        if isinstance(flow_evidence, PurchaseFlowEvidence):
            flow = PurchaseFlowTrace(ok=bool(flow_evidence.ok), steps=flow_evidence.steps)
    if flow is None:
        flow_result = categories.get(CategoryId.PURCHASE_FLOW)
        if flow_result is not None and isinstance(flow_result.evidence, PurchaseFlowEvidence):
            flow = PurchaseFlowTrace(ok=bool(flow_result.evidence.ok), steps=flow_result.evidence.steps)

    return GradeOutput(
        url=str(payload.get("url") or url),
        categories=[categories[c] for c in ALL_CATEGORIES if c in categories],
        expert_summary=summary,
        purchase_flow=flow,
        model=model,
    )


class VisionGrader:
    """Grades a storefront from HTML and a first-view screenshot."""

    name = "vision"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_LLM_MODEL,
        max_retries: int = LLM_MAX_RETRIES,
        timeout: float = GRADER_TIMEOUT,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize grader.

        Args:
            api_key: API key for the chat completions endpoint
            model: Vision-capable model name
            max_retries: Attempts before giving up
            timeout: Per-request timeout in seconds
            client: Optional preconfigured client (tests)
        """
        self.model = model
        self.max_retries = max_retries
        self.timeout = timeout
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _build_messages(
        self,
        url: str,
        platform: Platform,
        html: str | None,
        screenshots: GraderScreenshots,
    ) -> list[dict[str, Any]]:
        source_html = html or ""
        prompt = build_user_prompt(
            url=url,
            platform=platform,
            html=source_html[:HTML_TRUNCATE_CHARS],
            html_length=len(source_html),
            action_count=len(screenshots.actions),
        )

        if screenshots.first_view:
            user_content: Any = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": screenshots.first_view, "detail": "high"}},
            ]
        else:
            user_content = prompt

        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]

    async def _request(self, messages: list[dict[str, Any]]) -> tuple[dict[str, Any], str]:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            response_format={"type": "json_object"},
            temperature=LLM_TEMPERATURE,
            max_tokens=LLM_MAX_TOKENS,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GradingError("Empty response from grader")

        payload = json.loads(content)
        if not isinstance(payload, dict):
            raise GradingError("Grader response is not a JSON object")

        if response.usage is not None:
            logger.info(f"Grader used {response.usage.total_tokens} tokens ({response.model})")
        return payload, response.model or self.model

    async def grade(
        self,
        url: str,
        platform: Platform,
        html: str | None,
        screenshots: GraderScreenshots,
    ) -> GradeOutput:
        """Grade a storefront, retrying with linear back-off.

        Raises:
            GradingError: If every attempt fails or the output lacks categories
        """
        messages = self._build_messages(url, platform, html, screenshots)
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                payload, model = await self._request(messages)
                output = parse_grade_payload(payload, url, model)
                missing = set(ALL_CATEGORIES) - output.category_ids()
                if missing:
                    raise GradingError(
                        f"Grader omitted categories: {', '.join(sorted(c.value for c in missing))}"
                    )
                return output
            except (OpenAIError, json.JSONDecodeError, GradingError) as e:
                last_error = e
                logger.warning(f"Grading attempt {attempt + 1}/{self.max_retries} failed: {e}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(LLM_RETRY_BASE_DELAY * (attempt + 1))

        raise GradingError(f"Grading failed after {self.max_retries} attempts: {last_error}")
