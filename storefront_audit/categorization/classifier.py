"""Commerce platform classifier using weighted signal heuristics.

Each candidate platform accumulates the weights of the signals that fire on
the URL host, the markup, referenced resources, and response headers/cookies.
Scores are clamped to 1.0, then a race-with-threshold rule decides:
1. All scores 0 -> unknown, confidence 0, no signals
2. The leader strictly beats the runner-up and reaches the threshold -> leader
3. Otherwise -> unknown, confidence = leader score, all signals (leader first)

Classification is pure: no I/O, and malformed input never raises.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Final
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from storefront_audit.categorization.signals import DEFAULT_SIGNALS
from storefront_audit.consts import PLATFORM_ACCEPT_THRESHOLD
from storefront_audit.errors import ConfigurationError
from storefront_audit.models.model_platform import (
    Platform,
    PlatformDetectionResult,
    PlatformSignals,
    SignalChannel,
    SignalRule,
)

logger = logging.getLogger(__name__)

ASSET_LINK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\.(?:js|css|png|jpg|jpeg|webp|gif|svg)(?:\?|$)", re.IGNORECASE
)


@dataclass
class PlatformScore:
    """Accumulated score for one candidate platform."""

    platform: Platform
    score: float = 0.0
    signals: list[str] = field(default_factory=list)


@dataclass
class _ChannelInputs:
    """Classifier input split by signal channel."""

    host: str = ""
    html: str = ""
    resources: list[str] = field(default_factory=list)
    set_cookies: list[str] = field(default_factory=list)
    header_lines: list[str] = field(default_factory=list)
    server: str = ""
    cookies: list[str] = field(default_factory=list)

    def texts(self, channel: SignalChannel) -> list[str]:
        """Values a rule on this channel is matched against."""
        if channel == SignalChannel.URL:
            return [self.host]
        if channel == SignalChannel.HTML:
            return [self.html]
        if channel == SignalChannel.RESOURCE:
            return self.resources
        if channel == SignalChannel.SET_COOKIE:
            return self.set_cookies
        if channel == SignalChannel.HEADER:
            return self.header_lines
        if channel == SignalChannel.SERVER_HEADER:
            return [self.server]
        return self.cookies


def _host_of(url: str | None) -> str:
    try:
        return (urlparse(url or "").hostname or "").lower()
    except ValueError:
        return ""


def _header_values(value: str | list[str] | None) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split("\n") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [part.strip() for part in value if isinstance(part, str) and part.strip()]
    return []


def _build_inputs(
    url: str | None,
    html: str | None,
    resource_urls: Iterable[str] | None,
    headers: Mapping[str, str | list[str]] | None,
    cookies: Iterable[str] | None,
) -> _ChannelInputs:
    inputs = _ChannelInputs(
        host=_host_of(url),
        html=html if isinstance(html, str) else "",
        resources=[r for r in (resource_urls or []) if isinstance(r, str)],
        cookies=[c for c in (cookies or []) if isinstance(c, str)],
    )

    for name, value in (headers.items() if isinstance(headers, Mapping) else []):
        values = _header_values(value)
        lowered = str(name).lower()
        if lowered == "set-cookie":
            inputs.set_cookies.extend(values)
        if lowered == "server":
            inputs.server = " ".join(values)
        inputs.header_lines.extend(f"{name}: {v}" for v in values)

    return inputs


class PlatformClassifier:
    """Assigns a commerce-platform label with a confidence value."""

    def __init__(
        self,
        signals: list[PlatformSignals] | None = None,
        threshold: float = PLATFORM_ACCEPT_THRESHOLD,
    ):
        """Initialize classifier.

        Args:
            signals: Signal table per platform. Defaults to the built-in table.
            threshold: Minimum clamped score to accept a platform label.

        Raises:
            ConfigurationError: If a signal pattern is not a valid regex
        """
        self.signals = signals or DEFAULT_SIGNALS
        self.threshold = threshold
        self._compiled: list[tuple[Platform, list[tuple[SignalRule, re.Pattern[str]]]]] = []

        for platform_signals in self.signals:
            compiled_rules = []
            for rule in platform_signals.rules:
                try:
                    compiled_rules.append((rule, re.compile(rule.pattern, re.IGNORECASE)))
                except re.error as e:
                    raise ConfigurationError(f"Invalid pattern for signal '{rule.name}': {e}") from e
            self._compiled.append((platform_signals.platform, compiled_rules))

    def _score_platform(
        self,
        platform: Platform,
        rules: list[tuple[SignalRule, re.Pattern[str]]],
        inputs: _ChannelInputs,
    ) -> PlatformScore:
        """Accumulate the weights of every rule that fires (each at most once)."""
        result = PlatformScore(platform=platform)
        for rule, pattern in rules:
            if any(text and pattern.search(text) for text in inputs.texts(rule.channel)):
                result.score += rule.weight
                result.signals.append(rule.name)

        result.score = min(result.score, 1.0)
        return result

    def score_all(
        self,
        url: str | None,
        html: str | None = None,
        resource_urls: Iterable[str] | None = None,
        headers: Mapping[str, str | list[str]] | None = None,
        cookies: Iterable[str] | None = None,
    ) -> list[PlatformScore]:
        """Score every candidate platform, highest first (ties keep table order)."""
        inputs = _build_inputs(url, html, resource_urls, headers, cookies)
        scores = [self._score_platform(platform, rules, inputs) for platform, rules in self._compiled]
        return sorted(scores, key=lambda s: s.score, reverse=True)

    def classify(
        self,
        url: str | None,
        html: str | None = None,
        resource_urls: Iterable[str] | None = None,
        headers: Mapping[str, str | list[str]] | None = None,
        cookies: Iterable[str] | None = None,
    ) -> PlatformDetectionResult:
        """Classify a storefront.

        Args:
            url: Target URL
            html: Optional page markup
            resource_urls: Optional script/stylesheet/image URLs
            headers: Optional response headers (values may be lists)
            cookies: Optional cookie names or "name=value" strings

        Returns:
            PlatformDetectionResult with label, confidence and contributing signals
        """
        ranked = self.score_all(url, html, resource_urls, headers, cookies)
        if not ranked or ranked[0].score == 0:
            return PlatformDetectionResult(platform=Platform.UNKNOWN, confidence=0.0, signals=[])

        leader = ranked[0]
        runner_up = ranked[1].score if len(ranked) > 1 else 0.0

        if leader.score > runner_up and leader.score >= self.threshold:
            logger.debug(f"Detected {leader.platform.value} ({leader.score:.2f}): {leader.signals}")
            return PlatformDetectionResult(
                platform=leader.platform,
                confidence=leader.score,
                signals=list(leader.signals),
            )

        signals = [name for candidate in ranked for name in candidate.signals]
        logger.debug(f"Platform undecided (best {leader.score:.2f}): {signals}")
        return PlatformDetectionResult(platform=Platform.UNKNOWN, confidence=leader.score, signals=signals)


def extract_resource_urls(html: str | None, links: Iterable[str] | None = None) -> list[str]:
    """Collect script, stylesheet and image URLs for classification.

    Args:
        html: Page markup
        links: Links returned by the scraper; asset-like ones are kept

    Returns:
        Deduplicated resource URLs in discovery order
    """
    found: list[str] = []

    if html:
        soup = BeautifulSoup(html, "html.parser")
        for script in soup.find_all("script", src=True):
            found.append(script["src"])
        for link in soup.find_all("link", href=True):
            rel = " ".join(link.get("rel") or []).lower()
            href = link["href"]
            if "stylesheet" in rel or ".css" in href.lower():
                found.append(href)
        for img in soup.find_all("img", src=True):
            found.append(img["src"])

    for link in links or []:
        if isinstance(link, str) and ASSET_LINK_PATTERN.search(link):
            found.append(link)

    return list(dict.fromkeys(found))
