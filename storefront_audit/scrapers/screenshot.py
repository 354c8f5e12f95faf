"""Headless-browser screenshot capture with Playwright."""

import asyncio
import base64
import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from storefront_audit.consts import (
    DEFAULT_SCREENSHOT_DIR,
    MOBILE_DEVICE_SCALE_FACTOR,
    MOBILE_USER_AGENT,
    MOBILE_VIEWPORT_HEIGHT,
    MOBILE_VIEWPORT_WIDTH,
    SCREENSHOT_MAX_RETRIES,
    SCREENSHOT_TIMEOUT,
)
from storefront_audit.models.model_collect import ScreenshotResult
from storefront_audit.models.model_evidence import BoundingBox

logger = logging.getLogger(__name__)


@dataclass
class ViewportOptions:
    """Device emulation for a capture."""

    width: int = MOBILE_VIEWPORT_WIDTH
    height: int = MOBILE_VIEWPORT_HEIGHT
    device_scale_factor: float = MOBILE_DEVICE_SCALE_FACTOR
    user_agent: str = MOBILE_USER_AGENT
    full_page: bool = False
    wait_ms: int = 2000


def to_data_uri(image: bytes) -> str:
    """Encode PNG bytes as a data URI for the grader."""
    return "data:image/png;base64," + base64.b64encode(image).decode("ascii")


def _file_stem(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]


class PlaywrightScreenshotter:
    """Screenshot collaborator using a headless Chromium."""

    def __init__(
        self,
        output_dir: Path | str = DEFAULT_SCREENSHOT_DIR,
        timeout: float = SCREENSHOT_TIMEOUT,
        max_retries: int = SCREENSHOT_MAX_RETRIES,
    ):
        """Initialize screenshotter.

        Args:
            output_dir: Directory for PNG files
            timeout: Navigation timeout in seconds
            max_retries: Capture attempts before giving up
        """
        self.output_dir = Path(output_dir)
        self.timeout = timeout
        self.max_retries = max_retries

    async def _capture_once(self, url: str, viewport: ViewportOptions) -> tuple[bytes, str]:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=True,
                args=["--no-sandbox", "--disable-dev-shm-usage"],
            )
            try:
                context = await browser.new_context(
                    viewport={"width": viewport.width, "height": viewport.height},
                    device_scale_factor=viewport.device_scale_factor,
                    user_agent=viewport.user_agent,
                    is_mobile=True,
                    has_touch=True,
                )
                page = await context.new_page()
                await page.goto(url, wait_until="networkidle", timeout=self.timeout * 1000)
                await page.wait_for_timeout(viewport.wait_ms)
                image = await page.screenshot(full_page=viewport.full_page, type="png")
                html = await page.content()
                return image, html
            finally:
                await browser.close()

    async def capture_screenshot(
        self,
        url: str,
        viewport: ViewportOptions | None = None,
    ) -> ScreenshotResult:
        """Capture a first-view screenshot and the rendered HTML.

        Args:
            url: Page to capture
            viewport: Device emulation, defaults to the mobile profile

        Returns:
            ScreenshotResult (success=False after all retries fail)
        """
        viewport = viewport or ViewportOptions()
        start = time.monotonic()
        last_error = "no attempts made"

        for attempt in range(self.max_retries):
            try:
                image, html = await self._capture_once(url, viewport)
            except (PlaywrightError, asyncio.TimeoutError) as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning(f"Screenshot attempt {attempt + 1}/{self.max_retries} for {url} failed: {e}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(attempt + 1)
                continue

            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / f"{_file_stem(url)}_{int(time.time())}.png"
            path.write_bytes(image)
            logger.info(f"Captured {url} -> {path} ({len(image)} bytes)")
            return ScreenshotResult(
                success=True,
                image=image,
                local_reference=str(path),
                html=html,
                duration_seconds=time.monotonic() - start,
            )

        return ScreenshotResult(
            success=False,
            error=last_error,
            duration_seconds=time.monotonic() - start,
        )

    async def capture_regions(
        self,
        url: str,
        regions: dict[str, BoundingBox],
        viewport: ViewportOptions | None = None,
    ) -> dict[str, ScreenshotResult]:
        """Capture clipped screenshots of several regions in one page load.

        Args:
            url: Page to capture
            regions: Name -> bounding box (already padded)
            viewport: Device emulation, defaults to the mobile profile

        Returns:
            Name -> ScreenshotResult for each requested region
        """
        viewport = viewport or ViewportOptions()
        results: dict[str, ScreenshotResult] = {}
        if not regions:
            return results

        self.output_dir.mkdir(parents=True, exist_ok=True)
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True, args=["--no-sandbox"])
            try:
                context = await browser.new_context(
                    viewport={"width": viewport.width, "height": viewport.height},
                    device_scale_factor=viewport.device_scale_factor,
                    user_agent=viewport.user_agent,
                    is_mobile=True,
                )
                page = await context.new_page()
                await page.goto(url, wait_until="networkidle", timeout=self.timeout * 1000)

                for name, box in regions.items():
                    try:
                        image = await page.screenshot(
                            clip={"x": box.x, "y": box.y, "width": box.width, "height": box.height},
                            full_page=True,
                            type="png",
                        )
                    except PlaywrightError as e:
                        results[name] = ScreenshotResult(success=False, error=str(e))
                        continue
                    path = self.output_dir / f"{_file_stem(url)}_{name}.png"
                    path.write_bytes(image)
                    results[name] = ScreenshotResult(success=True, image=image, local_reference=str(path))
            finally:
                await browser.close()

        return results
