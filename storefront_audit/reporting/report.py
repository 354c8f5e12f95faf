"""Report export: JSON report plus a zip bundle, uploaded to the artifact store."""

import io
import json
import logging
import zipfile
from typing import Any

from storefront_audit.models.model_audit import AuditResult, ExportArtifacts
from storefront_audit.storage.base import ArtifactStore

logger = logging.getLogger(__name__)

REPORT_CONTENT_TYPE = "application/json"
BUNDLE_CONTENT_TYPE = "application/zip"


def build_report(result: AuditResult) -> dict[str, Any]:
    """Build the exported report document for a result."""
    return {
        "runId": result.run.id,
        "url": result.run.url,
        "totalScore": result.total_score,
        "grade": result.grade,
        "platform": result.platform.platform.value,
        "platformConfidence": result.platform.confidence,
        "grader": result.grader,
        "degradedStages": result.degraded_stages,
        "categories": [
            {
                "id": category.id.value,
                "score": category.score,
                "source": result.score_sources[category.id].value if category.id in result.score_sources else None,
                "metrics": category.metrics,
                "insights": category.insights,
                "evidence": category.evidence.model_dump(mode="json", by_alias=True, exclude_none=True)
                if category.evidence is not None
                else None,
            }
            for category in result.categories
        ],
        "expertSummary": result.expert_summary.model_dump() if result.expert_summary else None,
        "purchaseFlow": result.purchase_flow.model_dump(mode="json", by_alias=True)
        if result.purchase_flow
        else None,
    }


def build_bundle(report_bytes: bytes, screenshot: bytes | None = None) -> bytes:
    """Zip the report together with the first-view screenshot when available."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        bundle.writestr("report.json", report_bytes)
        if screenshot:
            bundle.writestr("first_view.png", screenshot)
    return buffer.getvalue()


class ReportExporter:
    """Exports audit results through an artifact store.

    Upload failures are logged and leave the corresponding location unset.
    """

    def __init__(self, store: ArtifactStore):
        self.store = store

    def _upload(self, path: str, data: bytes, content_type: str) -> str | None:
        try:
            return self.store.upload(path, data, content_type)
        except (OSError, ValueError) as e:
            logger.warning(f"Artifact upload failed for {path}: {e}")
            return None

    def export(self, result: AuditResult, screenshot: bytes | None = None) -> ExportArtifacts:
        """Upload the JSON report and zip bundle for a result.

        Args:
            result: Completed audit result
            screenshot: First-view PNG bytes, if captured locally

        Returns:
            ExportArtifacts with the locations that were stored
        """
        report_bytes = json.dumps(build_report(result), ensure_ascii=False, indent=2).encode("utf-8")
        prefix = f"reports/{result.run.id}"

        artifacts = ExportArtifacts(
            report=self._upload(f"{prefix}/report.json", report_bytes, REPORT_CONTENT_TYPE),
            bundle=self._upload(
                f"{prefix}/artifacts.zip", build_bundle(report_bytes, screenshot), BUNDLE_CONTENT_TYPE
            ),
        )
        logger.info(f"Exported report for run {result.run.id}")
        return artifacts
