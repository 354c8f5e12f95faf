"""Lighthouse CLI wrapper for mobile performance audits."""

import asyncio
import json
import logging
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any

from storefront_audit.consts import LIGHTHOUSE_TIMEOUT, MOBILE_VIEWPORT_HEIGHT, MOBILE_VIEWPORT_WIDTH
from storefront_audit.models.model_collect import PerformanceResult
from storefront_audit.models.model_measure import PerformanceMetrics

logger = logging.getLogger(__name__)

CHROME_FLAGS = "--headless --no-sandbox --disable-gpu"


def _numeric(audits: dict[str, Any], audit_id: str, scale: float = 1.0) -> float:
    value = (audits.get(audit_id) or {}).get("numericValue")
    if not isinstance(value, (int, float)):
        return 0.0
    return float(value) / scale


def _item_count(audits: dict[str, Any], audit_id: str) -> int:
    details = (audits.get(audit_id) or {}).get("details") or {}
    items = details.get("items")
    return len(items) if isinstance(items, list) else 0


def extract_metrics(report: dict[str, Any]) -> PerformanceMetrics:
    """Pull the scored metrics out of a Lighthouse JSON report.

    Times are converted to seconds except TBT, which stays in milliseconds.

    Args:
        report: Parsed Lighthouse JSON output

    Returns:
        PerformanceMetrics (measured=True)
    """
    audits = report.get("audits") or {}
    return PerformanceMetrics(
        lcp=_numeric(audits, "largest-contentful-paint", 1000),
        layout_shift=_numeric(audits, "cumulative-layout-shift"),
        tbt=_numeric(audits, "total-blocking-time"),
        fcp=_numeric(audits, "first-contentful-paint", 1000),
        speed_index=_numeric(audits, "speed-index", 1000),
        tti=_numeric(audits, "interactive", 1000),
        requests=_item_count(audits, "network-requests"),
        redirects=_item_count(audits, "redirects"),
        errors=_item_count(audits, "errors-in-console"),
    )


class LighthouseRunner:
    """Wraps the Lighthouse CLI for performance measurement."""

    def __init__(self, lighthouse_path: str = "lighthouse", timeout: float = LIGHTHOUSE_TIMEOUT):
        """Initialize LighthouseRunner.

        Args:
            lighthouse_path: Path to lighthouse executable (default: "lighthouse")
            timeout: Audit timeout in seconds
        """
        self.lighthouse_path = lighthouse_path
        self.timeout = timeout

    def is_lighthouse_installed(self) -> bool:
        """Check if Lighthouse is installed and accessible."""
        return shutil.which(self.lighthouse_path) is not None

    def _build_command(self, url: str, output_path: Path, device_profile: str) -> list[str]:
        command = [
            self.lighthouse_path,
            url,
            "--only-categories=performance",
            "--output=json",
            f"--output-path={output_path}",
            "--quiet",
            f"--chrome-flags={CHROME_FLAGS}",
            "--throttling-method=simulate",
            f"--max-wait-for-load={int(self.timeout * 1000)}",
        ]
        if device_profile == "mobile":
            command += [
                "--form-factor=mobile",
                f"--screenEmulation.width={MOBILE_VIEWPORT_WIDTH}",
                f"--screenEmulation.height={MOBILE_VIEWPORT_HEIGHT}",
                "--screenEmulation.deviceScaleFactor=2",
                "--screenEmulation.mobile",
            ]
        else:
            command += ["--preset=desktop"]
        return command

    async def run_performance_audit(self, url: str, device_profile: str = "mobile") -> PerformanceResult:
        """Run one Lighthouse audit.

        Args:
            url: Page to audit
            device_profile: "mobile" or "desktop"

        Returns:
            PerformanceResult with the raw JSON report, or an error
        """
        start = time.monotonic()

        if not self.is_lighthouse_installed():
            return PerformanceResult(success=False, error=f"{self.lighthouse_path} not found on PATH")

        with tempfile.TemporaryDirectory(prefix="lighthouse_") as tmp_dir:
            output_path = Path(tmp_dir) / "report.json"
            command = self._build_command(url, output_path, device_profile)
            logger.debug(f"Running: {' '.join(command)}")

            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                return PerformanceResult(
                    success=False,
                    error=f"Lighthouse timed out after {self.timeout:g}s",
                    duration_seconds=time.monotonic() - start,
                )

            if process.returncode != 0:
                error_msg = stderr.decode(errors="replace").strip()
                logger.warning(f"Lighthouse exited {process.returncode} for {url}: {error_msg[:200]}")
                return PerformanceResult(
                    success=False,
                    error=error_msg[:500] or f"Lighthouse exited with {process.returncode}",
                    duration_seconds=time.monotonic() - start,
                )

            try:
                report = json.loads(output_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                return PerformanceResult(
                    success=False,
                    error=f"Unreadable Lighthouse report: {e}",
                    duration_seconds=time.monotonic() - start,
                )

        duration = time.monotonic() - start
        logger.info(f"Lighthouse audit of {url} finished in {duration:.1f}s")
        return PerformanceResult(success=True, raw_report=report, duration_seconds=duration)
