"""Page collection collaborators: hosted scrape, browser capture, plain fetch."""

from storefront_audit.scrapers.basic_fetch import BasicFetcher, extract_links
from storefront_audit.scrapers.firecrawl import FirecrawlScraper, build_actions
from storefront_audit.scrapers.screenshot import PlaywrightScreenshotter, ViewportOptions, to_data_uri

__all__ = [
    "BasicFetcher",
    "FirecrawlScraper",
    "PlaywrightScreenshotter",
    "ViewportOptions",
    "build_actions",
    "extract_links",
    "to_data_uri",
]
