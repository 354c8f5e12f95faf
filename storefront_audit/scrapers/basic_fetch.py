"""Reduced-fidelity page fetch over plain HTTP with a mobile user agent."""

import logging
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from storefront_audit.consts import FETCH_TIMEOUT, MOBILE_USER_AGENT
from storefront_audit.models.model_collect import FetchResult

logger = logging.getLogger(__name__)


def extract_links(html: str, base_url: str) -> list[str]:
    """Absolute href targets in document order, deduplicated."""
    soup = BeautifulSoup(html, "html.parser")
    links = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith(("#", "javascript:", "mailto:", "tel:")):
            continue
        links.append(urljoin(base_url, href))
    return list(dict.fromkeys(links))


class BasicFetcher:
    """Last-resort collector. Never raises; failures come back as FetchResult."""

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT,
        user_agent: str = MOBILE_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize fetcher.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with the request
            transport: Optional httpx transport (tests)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a page and extract its links.

        Args:
            url: Page to fetch

        Returns:
            FetchResult with HTML, links, headers and cookie names
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
        }
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Basic fetch of {url} returned {e.response.status_code}")
            return FetchResult(
                success=False,
                status_code=e.response.status_code,
                error=f"HTTP {e.response.status_code}",
            )
        except httpx.HTTPError as e:
            logger.warning(f"Basic fetch of {url} failed: {type(e).__name__}: {e}")
            return FetchResult(success=False, error=f"{type(e).__name__}: {e}")

        html = response.text
        header_map: dict[str, str] = {}
        for name, value in response.headers.multi_items():
            key = name.lower()
            header_map[key] = f"{header_map[key]}\n{value}" if key in header_map else value

        return FetchResult(
            success=bool(html),
            html=html or None,
            links=extract_links(html, str(response.url)) if html else [],
            status_code=response.status_code,
            headers=header_map,
            cookies=list(response.cookies.keys()),
            error=None if html else "Empty response body",
        )
