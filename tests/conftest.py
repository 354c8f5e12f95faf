"""Pytest configuration and fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront_audit.grading.mock_grader import MockGrader
from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_category import CategoryId
from storefront_audit.models.model_collect import FetchResult, PerformanceResult, ScrapeResult
from storefront_audit.models.model_evidence import (
    BoundingBox,
    FirstViewEvidence,
    LocatedElement,
    NavigationEvidence,
)
from storefront_audit.models.model_measure import DomHeuristics, MeasuredData, PerformanceMetrics
from storefront_audit.settings import AuditSettings

STOREFRONT_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>Sample Shop</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta name="description" content="Everyday clothing with free shipping">
  <meta property="og:title" content="Sample Shop">
  <meta property="og:image" content="https://shop.example.com/og.png">
  <meta property="og:url" content="https://shop.example.com/">
  <link rel="canonical" href="https://shop.example.com/">
  <script async src="https://www.googletagmanager.com/gtag/js?id=G-TEST"></script>
</head>
<body>
  <header>
    <nav>
      <a href="/best">Best</a>
      <a href="/new">New</a>
      <a href="/outer">Outer</a>
      <a href="/top">Top</a>
    </nav>
    <input type="search" placeholder="Search products">
  </header>
  <h1>Sample Shop</h1>
  <img src="/hero.jpg" alt="Autumn collection">
  <img src="/item.jpg" alt="Wool coat">
  <p>Free shipping on every order</p>
  <button style="height: 48px">Buy now</button>
</body>
</html>"""

LIGHTHOUSE_REPORT = {
    "audits": {
        "largest-contentful-paint": {"numericValue": 2000},
        "cumulative-layout-shift": {"numericValue": 0.05},
        "total-blocking-time": {"numericValue": 200},
        "first-contentful-paint": {"numericValue": 1200},
        "speed-index": {"numericValue": 3100},
        "interactive": {"numericValue": 4200},
        "network-requests": {"details": {"items": [{}, {}, {}]}},
        "redirects": {"details": {"items": []}},
        "errors-in-console": {"details": {"items": []}},
    }
}


@pytest.fixture
def settings(tmp_path: Path) -> AuditSettings:
    """Settings pointing at a temporary data directory, without credentials."""
    return AuditSettings(data_dir=tmp_path / "data")


@pytest.fixture
def fast_metrics() -> PerformanceMetrics:
    """Metrics that pass every performance threshold."""
    return PerformanceMetrics(lcp=2.0, layout_shift=0.05, tbt=200, errors=0)


@pytest.fixture
def slow_metrics() -> PerformanceMetrics:
    """Metrics that breach every performance threshold."""
    return PerformanceMetrics(lcp=5.0, layout_shift=0.2, tbt=500, errors=1)


@pytest.fixture
def good_dom() -> DomHeuristics:
    """DOM heuristics of a well-built mobile storefront."""
    return DomHeuristics(
        image_count=10,
        alt_ratio=0.9,
        popups=1,
        viewport_meta=True,
        overflow=False,
        min_font_px=16,
        min_touch_px=44,
        title=True,
        description=True,
        og_count=3,
        h1_count=1,
        canonical=True,
        analytics=["googletagmanager.com"],
        menu_items=["Best", "New", "Outer", "Top"],
        menu_count=4,
        search_present=True,
        search_selector='input[type="search"]',
        has_best_new=True,
    )


@pytest.fixture
def measured(fast_metrics: PerformanceMetrics, good_dom: DomHeuristics) -> MeasuredData:
    return MeasuredData(performance=fast_metrics, dom=good_dom)


@pytest.fixture
def first_view_result() -> CategoryResult:
    """An evidenced first-view grade."""
    return CategoryResult(
        id=CategoryId.FIRST_VIEW,
        score=8,
        evidence=FirstViewEvidence(
            cta=LocatedElement(selector="button.buy-now", bbox=BoundingBox(x=20, y=400, width=335, height=50)),
        ),
        insights=["Move the CTA above the hero banner."],
    )


@pytest.fixture
def navigation_result() -> CategoryResult:
    return CategoryResult(
        id=CategoryId.NAVIGATION,
        score=6,
        evidence=NavigationEvidence(menu=["Best", "New", "Sale"], search_present=True),
    )


@pytest.fixture
def mock_grader() -> MockGrader:
    return MockGrader()


@pytest.fixture
def successful_fetcher() -> MagicMock:
    """Fetcher returning the sample storefront."""
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(
        return_value=FetchResult(
            success=True,
            html=STOREFRONT_HTML,
            links=["https://shop.example.com/best", "https://shop.example.com/new"],
            status_code=200,
            headers={"content-type": "text/html"},
        )
    )
    return fetcher


@pytest.fixture
def failing_fetcher() -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=FetchResult(success=False, error="ConnectError: refused"))
    return fetcher


@pytest.fixture
def failing_scraper() -> MagicMock:
    scraper = MagicMock()
    scraper.scrape = AsyncMock(return_value=ScrapeResult(success=False, error="Scrape API returned 500"))
    scraper.close = AsyncMock()
    return scraper


@pytest.fixture
def lighthouse() -> MagicMock:
    """Performance collaborator returning a fast report."""
    runner = MagicMock()
    runner.run_performance_audit = AsyncMock(
        return_value=PerformanceResult(success=True, raw_report=LIGHTHOUSE_REPORT)
    )
    return runner


@pytest.fixture
def storefront_html() -> str:
    return STOREFRONT_HTML


@pytest.fixture
def lighthouse_report() -> dict:
    return LIGHTHOUSE_REPORT
