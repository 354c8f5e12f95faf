"""Tests for run storage, the artifact store and report export."""

import io
import json
import zipfile
from datetime import UTC, datetime, timedelta

import pytest

from storefront_audit.models.model_audit import AuditResult, AuditRun, AuditStatus, CategoryResult
from storefront_audit.models.model_category import CategoryId, ScoreSource
from storefront_audit.reporting.report import ReportExporter, build_bundle, build_report
from storefront_audit.storage.artifact_store import LocalArtifactStore
from storefront_audit.storage.file_manager import FileManager


@pytest.fixture
def result(first_view_result) -> AuditResult:
    return AuditResult(
        run=AuditRun(id="run-1", url="https://shop.example.com", status=AuditStatus.COMPLETED),
        categories=[first_view_result],
        score_sources={CategoryId.FIRST_VIEW: ScoreSource.AI},
        total_score=72,
        grade="B",
    )


class TestFileManager:
    """Tests for FileManager."""

    def test_run_round_trip(self, tmp_path):
        store = FileManager(tmp_path)
        run = AuditRun(url="https://shop.example.com", status=AuditStatus.PROCESSING)

        store.persist_run(run)

        assert store.load_run(run.id) == run

    def test_missing_run_is_none(self, tmp_path):
        assert FileManager(tmp_path).load_run("nope") is None
        assert FileManager(tmp_path).load_result("nope") is None

    def test_list_runs_newest_first_and_skips_bad_files(self, tmp_path):
        store = FileManager(tmp_path)
        now = datetime.now(UTC)
        older = AuditRun(url="https://a.example.com", started_at=now - timedelta(hours=1))
        newer = AuditRun(url="https://b.example.com", started_at=now)
        store.persist_run(older)
        store.persist_run(newer)
        (tmp_path / "runs" / "broken.json").write_text('{"id": 1}', encoding="utf-8")

        assert [run.id for run in store.list_runs()] == [newer.id, older.id]

    def test_list_runs_without_directory(self, tmp_path):
        assert FileManager(tmp_path / "empty").list_runs() == []

    def test_result_round_trip(self, tmp_path, result):
        store = FileManager(tmp_path)

        store.persist_result("run-1", result)
        loaded = store.load_result("run-1")

        assert loaded.total_score == 72
        assert loaded.categories[0].evidence.cta.bbox.width == 335

    def test_progress_is_appended(self, tmp_path):
        store = FileManager(tmp_path)

        store.persist_progress("run-1", 10, "Collecting page data")
        store.persist_progress("run-1", 30, "Collected via fetch")

        entries = store.load_progress("run-1")
        assert [entry["percent"] for entry in entries] == [10, 30]
        assert entries[1]["message"] == "Collected via fetch"
        assert store.load_progress("other") == []


class TestLocalArtifactStore:
    """Tests for LocalArtifactStore."""

    def test_upload_writes_below_root(self, tmp_path):
        store = LocalArtifactStore(tmp_path)

        location = store.upload("reports/run-1/report.json", b"{}", "application/json")

        assert location == str((tmp_path / "reports" / "run-1" / "report.json").resolve())
        assert (tmp_path / "reports" / "run-1" / "report.json").read_bytes() == b"{}"

    def test_path_escaping_root_is_rejected(self, tmp_path):
        store = LocalArtifactStore(tmp_path / "artifacts")

        with pytest.raises(ValueError):
            store.upload("../outside.json", b"{}", "application/json")


class TestReport:
    """Tests for report building and export."""

    def test_build_report(self, result):
        report = build_report(result)

        assert report["runId"] == "run-1"
        assert report["totalScore"] == 72
        category = report["categories"][0]
        assert category["id"] == "first_view"
        assert category["source"] == "ai"
        assert category["evidence"]["cta"]["bbox"] == {"x": 20, "y": 400, "width": 335, "height": 50}
        assert "promoTexts" in category["evidence"]
        json.dumps(report)

    def test_bundle_contains_report_and_screenshot(self):
        bundle = build_bundle(b'{"ok": true}', screenshot=b"png")

        with zipfile.ZipFile(io.BytesIO(bundle)) as archive:
            assert sorted(archive.namelist()) == ["first_view.png", "report.json"]
            assert archive.read("report.json") == b'{"ok": true}'

    def test_bundle_without_screenshot(self):
        with zipfile.ZipFile(io.BytesIO(build_bundle(b"{}"))) as archive:
            assert archive.namelist() == ["report.json"]

    def test_export_stores_both_artifacts(self, tmp_path, result):
        artifacts = ReportExporter(LocalArtifactStore(tmp_path)).export(result, screenshot=b"png")

        assert artifacts.report.endswith("report.json")
        assert artifacts.bundle.endswith("artifacts.zip")
        report = json.loads((tmp_path / "reports" / "run-1" / "report.json").read_text(encoding="utf-8"))
        assert report["grade"] == "B"

    def test_upload_failure_leaves_location_unset(self, result):
        class FailingStore(LocalArtifactStore):
            def upload(self, path, data, content_type):
                raise OSError("bucket unavailable")

        artifacts = ReportExporter(FailingStore("unused")).export(result)

        assert artifacts.report is None
        assert artifacts.bundle is None
