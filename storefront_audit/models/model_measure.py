"""Measured signals: performance metrics and DOM/CSS heuristics."""

from pydantic import BaseModel, Field


class PerformanceMetrics(BaseModel):
    """Lab performance metrics for the mobile device profile."""

    lcp: float = Field(default=0.0, description="Largest contentful paint (seconds)")
    layout_shift: float = Field(default=0.0, description="Cumulative layout shift")
    tbt: float = Field(default=0.0, description="Total blocking time (milliseconds)")
    fcp: float = Field(default=0.0, description="First contentful paint (seconds)")
    speed_index: float = Field(default=0.0, description="Speed index (seconds)")
    tti: float = Field(default=0.0, description="Time to interactive (seconds)")
    requests: int = Field(default=0, description="Network request count")
    redirects: int = Field(default=0, description="Redirect count")
    errors: int = Field(default=0, description="Network/console error count")
    measured: bool = Field(default=True, description="False when the audit tool failed")

    @classmethod
    def unavailable(cls) -> "PerformanceMetrics":
        """Zero-valued metrics used when measurement failed."""
        return cls(measured=False)

    def as_metrics(self) -> dict[str, float]:
        """Flatten to the numeric metrics map stored on a category result."""
        return {
            "lcp": self.lcp,
            "cls": self.layout_shift,
            "tbt": self.tbt,
            "fcp": self.fcp,
            "speed_index": self.speed_index,
            "tti": self.tti,
            "requests": float(self.requests),
            "redirects": float(self.redirects),
            "errors": float(self.errors),
        }


class DomHeuristics(BaseModel):
    """Signals computed purely from the collected HTML."""

    image_count: int = 0
    alt_ratio: float = 1.0
    popups: int = 0
    typography_ratio: float = 1.5
    typography_ok: bool = True
    viewport_meta: bool = False
    overflow: bool = False
    min_font_px: float = 16.0
    min_touch_px: float = 44.0
    title: bool = False
    description: bool = False
    og_count: int = 0
    h1_count: int = 0
    canonical: bool = False
    analytics: list[str] = Field(default_factory=list)
    menu_items: list[str] = Field(default_factory=list)
    menu_count: int = 0
    search_present: bool = False
    search_selector: str | None = None
    has_best_new: bool = False


class MeasuredData(BaseModel):
    """Everything measured deterministically for one run."""

    performance: PerformanceMetrics = Field(default_factory=PerformanceMetrics.unavailable)
    dom: DomHeuristics | None = None
