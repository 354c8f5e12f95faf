"""Collection results returned by scrape, screenshot, fetch and audit collaborators."""

from dataclasses import dataclass, field


@dataclass
class ScrapeResult:
    """Result of a hosted scrape (HTML + screenshot + links)."""

    success: bool
    html: str | None = None
    screenshot: str | None = None  # URL or data URI
    links: list[str] = field(default_factory=list)
    action_screenshots: list[str] = field(default_factory=list)
    markdown: str | None = None
    error: str | None = None
    duration_seconds: float = 0.0


@dataclass
class ScreenshotResult:
    """Result of a headless-browser capture."""

    success: bool
    image: bytes | None = None
    local_reference: str | None = None
    html: str | None = None
    error: str | None = None
    duration_seconds: float = 0.0


@dataclass
class FetchResult:
    """Result of a plain HTTP fetch."""

    success: bool
    html: str | None = None
    links: list[str] = field(default_factory=list)
    status_code: int | None = None
    headers: dict[str, str] = field(default_factory=dict)
    cookies: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class PerformanceResult:
    """Result of one performance-audit invocation."""

    success: bool
    raw_report: dict | None = None
    error: str | None = None
    duration_seconds: float = 0.0


@dataclass
class CollectedPage:
    """Best page data gathered by the collection stage."""

    url: str
    html: str | None = None
    screenshot: str | None = None  # Reference handed to the grader
    screenshot_path: str | None = None
    links: list[str] = field(default_factory=list)
    action_screenshots: list[str] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    cookies: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)  # Attempts that contributed data

    @property
    def has_html(self) -> bool:
        return bool(self.html)

    @property
    def has_screenshot(self) -> bool:
        return bool(self.screenshot)

    @property
    def is_usable(self) -> bool:
        """At least one of HTML or screenshot was collected."""
        return self.has_html or self.has_screenshot

    @property
    def is_full_fidelity(self) -> bool:
        """Both HTML and a screenshot were collected."""
        return self.has_html and self.has_screenshot
