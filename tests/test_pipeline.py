"""Tests for the audit orchestrator."""

import threading
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storefront_audit.errors import CollectionError
from storefront_audit.grading.base import GraderScreenshots
from storefront_audit.grading.mock_grader import MockGrader
from storefront_audit.models.model_audit import AuditRun, ExportArtifacts
from storefront_audit.models.model_category import ALL_CATEGORIES, CategoryId
from storefront_audit.models.model_collect import (
    PerformanceResult,
    ScrapeResult,
    ScreenshotResult,
)
from storefront_audit.models.model_grading import GradeOutput
from storefront_audit.models.model_platform import Platform
from storefront_audit.pipeline import AuditOrchestrator


def _run() -> AuditRun:
    return AuditRun(url="https://shop.example.com")


def _screenshotter(tmp_path, html: str) -> MagicMock:
    """Screenshotter capturing the page and every requested region."""
    path = tmp_path / "first_view.png"
    path.write_bytes(b"png")

    async def capture_regions(url, regions):
        return {
            name: ScreenshotResult(success=True, local_reference=str(tmp_path / f"{name}.png"))
            for name in regions
        }

    screenshotter = MagicMock()
    screenshotter.max_retries = 1
    screenshotter.capture_screenshot = AsyncMock(
        return_value=ScreenshotResult(success=True, image=b"png", local_reference=str(path), html=html)
    )
    screenshotter.capture_regions = AsyncMock(side_effect=capture_regions)
    return screenshotter


class TestCollection:
    """Tests for the collection fallback chain."""

    @pytest.mark.asyncio
    async def test_scrape_failure_falls_back_to_fetch(
        self, settings, failing_scraper, successful_fetcher, lighthouse
    ):
        orchestrator = AuditOrchestrator(
            settings, successful_fetcher, scraper=failing_scraper, performance=lighthouse
        )

        result = await orchestrator.run(_run())

        failing_scraper.scrape.assert_awaited_once()
        successful_fetcher.fetch.assert_awaited_once()
        assert [c.id for c in result.categories] == list(ALL_CATEGORIES)
        assert 0 <= result.total_score <= 100
        assert "collection" in result.degraded_stages
        assert result.screenshots == []

    @pytest.mark.asyncio
    async def test_full_fidelity_skips_later_attempts(self, settings, successful_fetcher, tmp_path, storefront_html):
        scraper = MagicMock()
        scraper.scrape = AsyncMock(
            return_value=ScrapeResult(
                success=True, html=storefront_html, screenshot="https://cdn.example.com/shot.png"
            )
        )
        orchestrator = AuditOrchestrator(settings, successful_fetcher, scraper=scraper)

        page = await orchestrator.collect("https://shop.example.com")

        assert page.is_full_fidelity
        assert page.sources == ["scrape"]
        successful_fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_later_attempts_fill_missing_html(self, settings, successful_fetcher):
        scraper = MagicMock()
        scraper.scrape = AsyncMock(
            return_value=ScrapeResult(success=True, screenshot="https://cdn.example.com/shot.png")
        )
        orchestrator = AuditOrchestrator(settings, successful_fetcher, scraper=scraper)

        page = await orchestrator.collect("https://shop.example.com")

        assert page.screenshot == "https://cdn.example.com/shot.png"
        assert page.has_html
        assert page.sources == ["scrape", "fetch"]
        assert page.headers == {"content-type": "text/html"}

    @pytest.mark.asyncio
    async def test_raising_attempt_is_skipped(self, settings, successful_fetcher):
        scraper = MagicMock()
        scraper.scrape = AsyncMock(side_effect=RuntimeError("boom"))
        orchestrator = AuditOrchestrator(settings, successful_fetcher, scraper=scraper)

        page = await orchestrator.collect("https://shop.example.com")

        assert page.sources == ["fetch"]

    @pytest.mark.asyncio
    async def test_nothing_collected_raises(self, settings, failing_scraper, failing_fetcher):
        orchestrator = AuditOrchestrator(settings, failing_fetcher, scraper=failing_scraper)

        with pytest.raises(CollectionError) as exc_info:
            await orchestrator.run(_run())

        assert "shop.example.com" in str(exc_info.value)

    def test_attempt_order(self, settings, successful_fetcher, failing_scraper, tmp_path):
        orchestrator = AuditOrchestrator(
            settings,
            successful_fetcher,
            scraper=failing_scraper,
            screenshotter=_screenshotter(tmp_path, ""),
        )

        assert [a.name for a in orchestrator.collection_attempts()] == ["scrape", "screenshot", "fetch"]


class TestMeasurement:
    """Tests for performance and DOM measurement."""

    @pytest.mark.asyncio
    async def test_failed_performance_audit_is_degraded(self, settings, successful_fetcher):
        performance = MagicMock()
        performance.run_performance_audit = AsyncMock(
            return_value=PerformanceResult(success=False, error="Chrome crashed")
        )
        orchestrator = AuditOrchestrator(settings, successful_fetcher, performance=performance)

        result = await orchestrator.run(_run())

        assert "performance" in result.degraded_stages
        assert len(result.categories) == 10

    @pytest.mark.asyncio
    async def test_raising_performance_audit_is_degraded(self, settings, successful_fetcher):
        performance = MagicMock()
        performance.run_performance_audit = AsyncMock(side_effect=OSError("lighthouse missing"))
        orchestrator = AuditOrchestrator(settings, successful_fetcher, performance=performance)

        result = await orchestrator.run(_run())

        assert "performance" in result.degraded_stages

    @pytest.mark.asyncio
    async def test_measurement_failures_recorded_once_in_order(self, settings, successful_fetcher):
        performance = MagicMock()
        performance.run_performance_audit = AsyncMock(side_effect=OSError("lighthouse missing"))
        orchestrator = AuditOrchestrator(settings, successful_fetcher, performance=performance)

        with patch("storefront_audit.pipeline.analyze_html", side_effect=ValueError("bad markup")):
            result = await orchestrator.run(_run())

        assert result.degraded_stages.count("performance") == 1
        assert result.degraded_stages.count("dom_heuristics") == 1
        stages = result.degraded_stages
        assert stages.index("performance") < stages.index("dom_heuristics")

    @pytest.mark.asyncio
    async def test_measured_values_reach_rule_categories(self, settings, successful_fetcher, lighthouse):
        orchestrator = AuditOrchestrator(settings, successful_fetcher, performance=lighthouse)

        result = await orchestrator.run(_run())

        performance = result.category(CategoryId.PERFORMANCE)
        assert performance.metrics["lcp"] == pytest.approx(2.0)
        assert "performance" not in result.degraded_stages


class TestGrading:
    """Tests for grader selection and fallback."""

    @pytest.mark.asyncio
    async def test_no_credentials_uses_mock_grader(self, settings, successful_fetcher):
        orchestrator = AuditOrchestrator(settings, successful_fetcher)

        result = await orchestrator.run(_run())

        assert result.grader == "mock"
        assert "grading" not in result.degraded_stages
        assert result.expert_summary is not None
        assert result.grade == result.expert_summary.grade

    @pytest.mark.asyncio
    async def test_partial_grade_falls_back(self, settings, successful_fetcher, first_view_result):
        grader = MagicMock()
        grader.name = "vision"
        grader.grade = AsyncMock(
            return_value=GradeOutput(url="https://shop.example.com", categories=[first_view_result])
        )
        orchestrator = AuditOrchestrator(settings, successful_fetcher, grader=grader)

        result = await orchestrator.run(_run())

        assert result.grader == "mock"
        assert "grading" in result.degraded_stages
        assert len(result.categories) == 10

    @pytest.mark.asyncio
    async def test_raising_grader_falls_back(self, settings, successful_fetcher):
        grader = MagicMock()
        grader.name = "vision"
        grader.grade = AsyncMock(side_effect=RuntimeError("rate limited"))
        orchestrator = AuditOrchestrator(settings, successful_fetcher, grader=grader)

        result = await orchestrator.run(_run())

        assert result.grader == "mock"
        assert "grading" in result.degraded_stages

    @pytest.mark.asyncio
    async def test_complete_grade_is_used(self, settings, successful_fetcher):
        complete = await MockGrader().grade("https://shop.example.com", Platform.UNKNOWN, None, GraderScreenshots())
        grader = MagicMock()
        grader.name = "vision"
        grader.grade = AsyncMock(return_value=complete)
        orchestrator = AuditOrchestrator(settings, successful_fetcher, grader=grader)

        result = await orchestrator.run(_run())

        assert result.grader == "vision"
        assert result.degraded_stages == ["collection"]


class TestEvidenceRegions:
    """Tests for evidence region capture."""

    @pytest.mark.asyncio
    async def test_regions_attach_to_evidence(self, settings, successful_fetcher, tmp_path, storefront_html):
        screenshotter = _screenshotter(tmp_path, storefront_html)
        orchestrator = AuditOrchestrator(settings, successful_fetcher, screenshotter=screenshotter)

        result = await orchestrator.run(_run())

        cta = result.category(CategoryId.FIRST_VIEW).evidence.cta
        assert cta.screenshot == str(tmp_path / "first_view_0.png")
        regions = screenshotter.capture_regions.await_args.args[1]
        assert regions["first_view_0"].x == 0
        assert regions["first_view_0"].width <= 375
        assert result.degraded_stages == []
        assert result.screenshots == [str(tmp_path / "first_view.png")]

    @pytest.mark.asyncio
    async def test_region_failure_is_degraded(self, settings, successful_fetcher, tmp_path, storefront_html):
        screenshotter = _screenshotter(tmp_path, storefront_html)
        screenshotter.capture_regions = AsyncMock(side_effect=RuntimeError("browser gone"))
        orchestrator = AuditOrchestrator(settings, successful_fetcher, screenshotter=screenshotter)

        result = await orchestrator.run(_run())

        assert result.degraded_stages == ["evidence_regions"]
        assert result.category(CategoryId.FIRST_VIEW).evidence.cta.screenshot is None


class TestProgress:
    """Tests for progress reporting."""

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_completes(self, settings, successful_fetcher):
        updates: list[int] = []
        orchestrator = AuditOrchestrator(
            settings, successful_fetcher, progress_callback=lambda percent, message: updates.append(percent)
        )

        result = await orchestrator.run(_run())

        assert updates == sorted(set(updates))
        assert updates[0] == 10
        assert updates[-1] == 100
        assert result.run.progress == 100
        assert result.run.elapsed_seconds is not None

    @pytest.mark.asyncio
    async def test_progress_failures_do_not_abort(self, settings, successful_fetcher):
        store = MagicMock()
        store.persist_progress.side_effect = OSError("disk full")

        def broken_callback(percent, message):
            raise ValueError("display closed")

        orchestrator = AuditOrchestrator(
            settings, successful_fetcher, run_store=store, progress_callback=broken_callback
        )

        result = await orchestrator.run(_run())

        assert result.total_score >= 0
        assert store.persist_progress.call_count >= 5

    @pytest.mark.asyncio
    async def test_slow_progress_store_does_not_delay_run(self, settings, successful_fetcher):
        release = threading.Event()
        store = MagicMock()
        store.persist_progress.side_effect = lambda run_id, percent, message: release.wait(timeout=5)
        orchestrator = AuditOrchestrator(settings, successful_fetcher, run_store=store)

        try:
            with patch("storefront_audit.pipeline.PROGRESS_TIMEOUT", 0.2):
                started = time.monotonic()
                result = await orchestrator.run(_run())
                elapsed = time.monotonic() - started
        finally:
            release.set()

        assert elapsed < 1.0
        assert result.run.progress == 100
        assert store.persist_progress.called

    @pytest.mark.asyncio
    async def test_progress_is_persisted_in_order(self, settings, successful_fetcher):
        store = MagicMock()
        orchestrator = AuditOrchestrator(settings, successful_fetcher, run_store=store)

        await orchestrator.run(_run())

        percents = [c.args[1] for c in store.persist_progress.call_args_list]
        assert percents == sorted(set(percents))
        assert percents[-1] == 100

    @pytest.mark.asyncio
    async def test_run_is_not_mutated(self, settings, successful_fetcher):
        run = _run()
        orchestrator = AuditOrchestrator(settings, successful_fetcher)

        result = await orchestrator.run(run)

        assert run.progress == 0
        assert run.total_score is None
        assert result.run.total_score == result.total_score
        assert result.run.status == run.status


class TestExport:
    """Tests for report export."""

    @pytest.mark.asyncio
    async def test_export_artifacts_attached(self, settings, successful_fetcher):
        exporter = MagicMock()
        exporter.export.return_value = ExportArtifacts(report="/data/report.json", bundle="/data/artifacts.zip")
        orchestrator = AuditOrchestrator(settings, successful_fetcher, exporter=exporter)

        result = await orchestrator.run(_run())

        assert result.export.report == "/data/report.json"
        assert "reporting" not in result.degraded_stages

    @pytest.mark.asyncio
    async def test_export_failure_is_not_fatal(self, settings, successful_fetcher):
        exporter = MagicMock()
        exporter.export.side_effect = OSError("read-only file system")
        orchestrator = AuditOrchestrator(settings, successful_fetcher, exporter=exporter)

        result = await orchestrator.run(_run())

        assert result.export is None
        assert "reporting" in result.degraded_stages
        assert len(result.categories) == 10
