"""Hosted scrape API client (Firecrawl v1).

Requests HTML plus a mobile screenshot. For recognised platforms a short
action script also opens the first product page so the grader gets a
purchase-flow screenshot. If that request fails or returns no screenshot,
one retry is made with reduced options (screenshot only, longer wait).
"""

import logging
import time
from typing import Any, Final

import httpx

from storefront_audit.consts import (
    FIRECRAWL_DEFAULT_API_BASE,
    FIRECRAWL_RETRY_WAIT_FOR_MS,
    FIRECRAWL_WAIT_FOR_MS,
    SCRAPE_TIMEOUT,
)
from storefront_audit.models.model_collect import ScrapeResult
from storefront_audit.models.model_platform import Platform

logger = logging.getLogger(__name__)

PRODUCT_LINK_SELECTORS: Final[dict[Platform, str]] = {
    Platform.CAFE24: "a[href*='/product/']",
    Platform.IMWEB: "a[href*='/shop_view'], a[href*='/product']",
}


def build_actions(platform: Platform) -> list[dict[str, Any]]:
    """Browser actions for a platform hint."""
    actions: list[dict[str, Any]] = [{"type": "screenshot"}]
    selector = PRODUCT_LINK_SELECTORS.get(platform)
    if selector:
        actions += [
            {"type": "click", "selector": selector},
            {"type": "wait", "milliseconds": 1000},
            {"type": "screenshot"},
        ]
    return actions


def _normalize(payload: dict[str, Any]) -> dict[str, Any]:
    """Flatten v1 responses, which nest content under `data`."""
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
    actions = data.get("actions") or {}
    return {
        "html": data.get("html") or data.get("rawHtml") or None,
        "screenshot": data.get("screenshot") or None,
        "links": [link for link in data.get("links") or [] if isinstance(link, str)],
        "markdown": data.get("markdown") or None,
        "action_screenshots": [s for s in actions.get("screenshots") or [] if isinstance(s, str)],
    }


class FirecrawlScraper:
    """Scrape collaborator backed by the Firecrawl API."""

    def __init__(
        self,
        api_key: str,
        api_base: str = FIRECRAWL_DEFAULT_API_BASE,
        timeout: float = SCRAPE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize scraper.

        Args:
            api_key: Firecrawl API key
            api_base: API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.api_base,
                timeout=httpx.Timeout(self.timeout + 10),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post_scrape(self, request: dict[str, Any]) -> ScrapeResult:
        start = time.monotonic()
        client = await self._get_client()

        try:
            response = await client.post("/scrape", json=request)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            return ScrapeResult(
                success=False,
                error=f"Scrape API returned {e.response.status_code}",
                duration_seconds=time.monotonic() - start,
            )
        except (httpx.HTTPError, ValueError) as e:
            return ScrapeResult(
                success=False,
                error=f"Scrape request failed: {type(e).__name__}: {e}",
                duration_seconds=time.monotonic() - start,
            )

        if payload.get("success") is False:
            return ScrapeResult(
                success=False,
                error=str(payload.get("error") or "Scrape API reported failure"),
                duration_seconds=time.monotonic() - start,
            )

        data = _normalize(payload)
        return ScrapeResult(
            success=True,
            html=data["html"],
            screenshot=data["screenshot"],
            links=data["links"],
            action_screenshots=data["action_screenshots"],
            markdown=data["markdown"],
            duration_seconds=time.monotonic() - start,
        )

    async def scrape(self, url: str, platform_hint: Platform = Platform.UNKNOWN) -> ScrapeResult:
        """Scrape HTML and a screenshot, retrying once with reduced options.

        Args:
            url: Page to scrape
            platform_hint: Platform guessed from the URL, selects action hints

        Returns:
            ScrapeResult (success=False on failure, never raises for HTTP errors)
        """
        request = {
            "url": url,
            "formats": ["html", "links", "screenshot"],
            "mobile": True,
            "waitFor": FIRECRAWL_WAIT_FOR_MS,
            "timeout": int(self.timeout * 1000),
            "actions": build_actions(platform_hint),
        }
        result = await self._post_scrape(request)
        if result.success and result.screenshot:
            logger.info(f"Scraped {url} in {result.duration_seconds:.1f}s")
            return result

        reason = result.error if not result.success else "no screenshot"
        logger.warning(f"Scrape of {url} incomplete ({reason}), retrying with reduced options")

        retry = await self._post_scrape(
            {
                "url": url,
                "formats": ["screenshot"],
                "mobile": True,
                "waitFor": FIRECRAWL_RETRY_WAIT_FOR_MS,
                "timeout": int(self.timeout * 1000),
            }
        )
        if not retry.success:
            return result if result.success else retry

        # Keep markup from the first response when the retry only has a screenshot
        return ScrapeResult(
            success=True,
            html=retry.html or result.html,
            screenshot=retry.screenshot or result.screenshot,
            links=retry.links or result.links,
            action_screenshots=result.action_screenshots,
            markdown=retry.markdown or result.markdown,
            duration_seconds=result.duration_seconds + retry.duration_seconds,
        )
