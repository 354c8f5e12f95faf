"""Markup and inline-style heuristics for mobile, SEO, navigation and visuals.

All checks run over static HTML only (no rendering), so sizes come from
inline styles and fall back to platform defaults when none are declared.
"""

import logging
import re
from typing import Final

from bs4 import BeautifulSoup

from storefront_audit.consts import MOBILE_VIEWPORT_WIDTH
from storefront_audit.models.model_measure import DomHeuristics

logger = logging.getLogger(__name__)

DEFAULT_FONT_PX: Final[float] = 16.0
MIN_COUNTED_FONT_PX: Final[float] = 8.0
DEFAULT_TOUCH_PX: Final[float] = 44.0
MIN_COUNTED_TOUCH_PX: Final[float] = 20.0
POPUP_Z_INDEX: Final[int] = 100
TYPOGRAPHY_MIN_RATIO: Final[float] = 1.25

ANALYTICS_MARKERS: Final[dict[str, str]] = {
    "googletagmanager": "googletagmanager.com",
    "gtag(": "gtag",
    "google-analytics.com": "google-analytics.com",
    "fbevents": "facebook pixel",
    "wcs.naver.net": "wcs.naver.net",
}

_FONT_SIZE = re.compile(r"font-size:\s*(\d+(?:\.\d+)?)(px|rem|em)", re.IGNORECASE)
_PLAIN_FONT_SIZE = re.compile(r"font-size:\s*(\d+)(?:px)?", re.IGNORECASE)
_WIDTH_PX = re.compile(r"(?<![-\w])width:\s*(\d+)px", re.IGNORECASE)
_HEIGHT_PX = re.compile(r"(?<![-\w])height:\s*(\d+)px", re.IGNORECASE)
_Z_INDEX = re.compile(r"z-index:\s*(\d+)", re.IGNORECASE)
_POSITION_FIXED = re.compile(r"position:\s*fixed", re.IGNORECASE)
_BEST_NEW = re.compile(r"베스트|신상품|추천|인기|best|new", re.IGNORECASE)
_POPUP_HINT = re.compile(r"popup|modal", re.IGNORECASE)
_SEARCH_HINT = re.compile(r"검색|search", re.IGNORECASE)


def _style(tag) -> str:
    return tag.get("style") or ""


def alt_ratio(soup: BeautifulSoup) -> tuple[int, float]:
    """Share of images with non-blank alt text (1.0 when there are no images)."""
    images = soup.find_all("img")
    if not images:
        return 0, 1.0
    with_alt = sum(1 for img in images if (img.get("alt") or "").strip())
    return len(images), with_alt / len(images)


def count_popups(soup: BeautifulSoup) -> int:
    """Count dialogs, popup/modal containers, and high z-index fixed layers."""
    count = 0
    for tag in soup.find_all(True):
        role = (tag.get("role") or "").lower()
        classes = " ".join(tag.get("class") or [])
        ident = tag.get("id") or ""
        style = _style(tag)

        if role in ("dialog", "alertdialog"):
            count += 1
        elif _POPUP_HINT.search(classes) or _POPUP_HINT.search(ident):
            count += 1
        elif _POSITION_FIXED.search(style):
            z_index = _Z_INDEX.search(style)
            if z_index and int(z_index.group(1)) > POPUP_Z_INDEX:
                count += 1
    return count


def typography_ratio(soup: BeautifulSoup) -> float:
    """Average heading size divided by average body size from inline styles."""
    heading_sizes: list[int] = []
    body_sizes: list[int] = []

    for tag in soup.find_all(re.compile(r"^h[1-6]$")):
        match = _PLAIN_FONT_SIZE.search(_style(tag))
        if match:
            heading_sizes.append(int(match.group(1)))

    for tag in soup.find_all(["p", "span", "div"])[:20]:
        match = _PLAIN_FONT_SIZE.search(_style(tag))
        if match:
            body_sizes.append(int(match.group(1)))

    avg_heading = sum(heading_sizes) / len(heading_sizes) if heading_sizes else 24.0
    avg_body = sum(body_sizes) / len(body_sizes) if body_sizes else 16.0
    return avg_heading / avg_body if avg_body > 0 else 1.5


def has_viewport_meta(soup: BeautifulSoup) -> bool:
    viewport = soup.find("meta", attrs={"name": "viewport"})
    return viewport is not None and "width=device-width" in (viewport.get("content") or "")


def has_horizontal_overflow(soup: BeautifulSoup, viewport_width: int = MOBILE_VIEWPORT_WIDTH) -> bool:
    """True if any element declares an inline width wider than the viewport."""
    for tag in soup.find_all(style=True):
        match = _WIDTH_PX.search(_style(tag))
        if match and int(match.group(1)) > viewport_width:
            return True
    return False


def min_font_size(soup: BeautifulSoup) -> float:
    """Smallest declared text size in px; rem/em assume a 16px root."""
    smallest = DEFAULT_FONT_PX
    for tag in soup.find_all(["p", "span", "div", "li", "a"], style=True):
        match = _FONT_SIZE.search(_style(tag))
        if not match:
            continue
        size = float(match.group(1))
        if match.group(2).lower() in ("rem", "em"):
            size *= 16
        if MIN_COUNTED_FONT_PX < size < smallest:
            smallest = size
    return smallest


def min_touch_target(soup: BeautifulSoup) -> float:
    """Smallest declared button/link dimension in px (tiny icons ignored)."""
    smallest = DEFAULT_TOUCH_PX
    targets = soup.find_all(["button", "a"], style=True) + [
        tag
        for tag in soup.find_all("input", style=True)
        if (tag.get("type") or "").lower() in ("button", "submit")
    ]
    for tag in targets:
        style = _style(tag)
        for pattern in (_HEIGHT_PX, _WIDTH_PX):
            match = pattern.search(style)
            if match:
                size = float(match.group(1))
                if MIN_COUNTED_TOUCH_PX < size < smallest:
                    smallest = size
    return smallest


def detect_analytics(html: str) -> list[str]:
    lowered = html.lower()
    return [label for marker, label in ANALYTICS_MARKERS.items() if marker in lowered]


def _navigation_links(soup: BeautifulSoup) -> list:
    seen: set[int] = set()
    links = []
    for selector in ("nav a", ".nav a", ".menu a", "header a"):
        for link in soup.select(selector):
            if id(link) not in seen:
                seen.add(id(link))
                links.append(link)
    return links


def _find_search(soup: BeautifulSoup) -> str | None:
    """Return a selector for the search control, if any."""
    if soup.find("input", attrs={"type": "search"}):
        return 'input[type="search"]'
    for field in soup.find_all("input"):
        if _SEARCH_HINT.search(field.get("placeholder") or ""):
            return "input[placeholder]"
    if soup.select_one(".search"):
        return ".search"
    if soup.select_one("#search"):
        return "#search"
    return None


def analyze_html(html: str) -> DomHeuristics:
    """Compute every DOM heuristic for a page.

    Args:
        html: Raw page markup (must be non-empty)

    Returns:
        DomHeuristics with mobile, SEO, navigation and visuals signals
    """
    soup = BeautifulSoup(html, "html.parser")

    image_count, ratio = alt_ratio(soup)
    typo_ratio = typography_ratio(soup)
    nav_links = _navigation_links(soup)
    menu_items = [link.get_text(" ", strip=True) for link in nav_links]
    search_selector = _find_search(soup)
    description = soup.find("meta", attrs={"name": "description"})
    canonical = soup.find("link", rel="canonical")

    heuristics = DomHeuristics(
        image_count=image_count,
        alt_ratio=ratio,
        popups=count_popups(soup),
        typography_ratio=typo_ratio,
        typography_ok=typo_ratio >= TYPOGRAPHY_MIN_RATIO,
        viewport_meta=has_viewport_meta(soup),
        overflow=has_horizontal_overflow(soup),
        min_font_px=min_font_size(soup),
        min_touch_px=min_touch_target(soup),
        title=bool(soup.title and soup.title.get_text(strip=True)),
        description=bool(description and (description.get("content") or "").strip()),
        og_count=len(soup.find_all("meta", attrs={"property": re.compile(r"^og:")})),
        h1_count=len(soup.find_all("h1")),
        canonical=bool(canonical and canonical.get("href")),
        analytics=detect_analytics(html),
        menu_items=[item for item in menu_items if item],
        menu_count=len(nav_links),
        search_present=search_selector is not None,
        search_selector=search_selector,
        has_best_new=bool(_BEST_NEW.search(" ".join(menu_items))),
    )
    logger.debug(
        f"DOM heuristics: {image_count} images, alt {ratio:.2f}, "
        f"{heuristics.menu_count} menu links, {heuristics.popups} popups"
    )
    return heuristics
