"""Tests for the run lifecycle."""

from unittest.mock import MagicMock

import pytest

from storefront_audit.errors import CollectionError, ConfigurationError, InvalidTargetError
from storefront_audit.models.model_audit import AuditRun, AuditStatus
from storefront_audit.pipeline import AuditOrchestrator
from storefront_audit.runner import execute_run
from storefront_audit.settings import AuditSettings
from storefront_audit.storage.file_manager import FileManager


class TestExecuteRun:
    """Tests for execute_run."""

    @pytest.mark.asyncio
    async def test_completed_run_is_persisted(self, settings, successful_fetcher, failing_scraper, lighthouse):
        store = FileManager(settings.data_dir)
        orchestrator = AuditOrchestrator(
            settings, successful_fetcher, scraper=failing_scraper, performance=lighthouse, run_store=store
        )

        result = await execute_run(" https://shop.example.com ", orchestrator, store, settings=settings)

        assert result.run.status == AuditStatus.COMPLETED
        assert result.run.url == "https://shop.example.com"
        stored = store.load_run(result.run.id)
        assert stored.status == AuditStatus.COMPLETED
        assert stored.total_score == result.total_score
        assert stored.progress == 100
        assert store.load_result(result.run.id).total_score == result.total_score
        assert store.load_progress(result.run.id)[-1]["percent"] == 100

    @pytest.mark.asyncio
    async def test_collection_failure_marks_run_failed(self, settings, failing_scraper, failing_fetcher):
        store = FileManager(settings.data_dir)
        orchestrator = AuditOrchestrator(settings, failing_fetcher, scraper=failing_scraper)
        run = AuditRun(url="https://shop.example.com")

        with pytest.raises(CollectionError):
            await execute_run(run.url, orchestrator, store, run=run)

        stored = store.load_run(run.id)
        assert stored.status == AuditStatus.FAILED
        assert "Could not collect" in stored.error
        assert stored.elapsed_seconds is not None
        assert stored.elapsed_seconds >= 0
        assert store.load_result(run.id) is None

    @pytest.mark.asyncio
    async def test_invalid_url_records_nothing(self, settings, successful_fetcher):
        store = MagicMock()
        orchestrator = AuditOrchestrator(settings, successful_fetcher)

        with pytest.raises(InvalidTargetError):
            await execute_run("ftp://shop.example.com", orchestrator, store)

        store.persist_run.assert_not_called()
        successful_fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_settings_fail_before_any_stage(self, successful_fetcher, tmp_path):
        settings = AuditSettings(data_dir=tmp_path, use_firecrawl=True)
        store = MagicMock()
        orchestrator = AuditOrchestrator(settings, successful_fetcher)

        with pytest.raises(ConfigurationError):
            await execute_run("https://shop.example.com", orchestrator, store, settings=settings)

        store.persist_run.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_does_not_fail_the_run(self, settings, successful_fetcher):
        store = MagicMock()
        store.persist_run.side_effect = OSError("disk full")
        store.persist_result.side_effect = OSError("disk full")
        orchestrator = AuditOrchestrator(settings, successful_fetcher)

        result = await execute_run("https://shop.example.com", orchestrator, store)

        assert result.run.status == AuditStatus.COMPLETED
        assert store.persist_run.call_count == 2
