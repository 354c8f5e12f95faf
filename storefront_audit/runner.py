"""Run lifecycle around the orchestrator: pending -> processing -> completed | failed."""

import logging
import time

from storefront_audit.errors import validate_target_url
from storefront_audit.models.model_audit import AuditResult, AuditRun, AuditStatus
from storefront_audit.pipeline import AuditOrchestrator
from storefront_audit.settings import AuditSettings
from storefront_audit.storage.base import RunStore

logger = logging.getLogger(__name__)


def _persist_run(store: RunStore, run: AuditRun) -> None:
    try:
        store.persist_run(run)
    except OSError as e:
        logger.warning(f"Failed to persist run {run.id} ({run.status.value}): {e}")


async def execute_run(
    url: str,
    orchestrator: AuditOrchestrator,
    store: RunStore,
    settings: AuditSettings | None = None,
    run: AuditRun | None = None,
) -> AuditResult:
    """Validate inputs, drive the orchestrator and record the terminal state.

    Args:
        url: Storefront URL to audit
        orchestrator: Configured orchestrator
        store: Run persistence
        settings: Settings to validate before any stage runs
        run: Existing pending run to process (a new one is created if None)

    Returns:
        AuditResult whose run is completed

    Raises:
        AuditValidationError: If the URL or configuration is invalid (no run is recorded)
        AuditError: If the pipeline failed; the run is persisted as failed first
    """
    target = validate_target_url(url)
    if settings is not None:
        settings.validate_required()

    run = run or AuditRun(url=target)
    run = run.model_copy(update={"url": target, "status": AuditStatus.PROCESSING})
    _persist_run(store, run)
    logger.info(f"Run {run.id} processing {target}")

    start_time = time.monotonic()
    try:
        result = await orchestrator.run(run)
    except Exception as e:
        failed = run.model_copy(
            update={
                "status": AuditStatus.FAILED,
                "error": str(e) or type(e).__name__,
                "elapsed_seconds": time.monotonic() - start_time,
            }
        )
        _persist_run(store, failed)
        logger.error(f"Run {run.id} failed: {failed.error}")
        raise

    completed = result.run.model_copy(update={"status": AuditStatus.COMPLETED, "error": None})
    result = result.model_copy(update={"run": completed})
    _persist_run(store, completed)
    try:
        store.persist_result(completed.id, result)
    except OSError as e:
        logger.warning(f"Failed to persist result for run {completed.id}: {e}")

    logger.info(f"Run {completed.id} completed: {result.total_score}/100")
    return result
