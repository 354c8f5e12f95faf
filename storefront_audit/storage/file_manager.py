"""File-based storage for audit runs, progress and results."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from storefront_audit.consts import DEFAULT_DATA_DIR
from storefront_audit.models.model_audit import AuditResult, AuditRun
from storefront_audit.storage.base import RunStore

logger = logging.getLogger(__name__)


class FileManager(RunStore):
    """File-based run store.

    Directory structure:
        data/
        ├── runs/{run_id}.json          # Latest run state
        ├── results/{run_id}.json       # Completed audit results
        └── progress/{run_id}.jsonl     # Append-only progress log
    """

    def __init__(self, data_dir: Path | str = DEFAULT_DATA_DIR):
        """Initialize FileManager with data directory.

        Args:
            data_dir: Root directory for all data files.
        """
        self.data_dir = Path(data_dir)
        self._runs_dir = self.data_dir / "runs"
        self._results_dir = self.data_dir / "results"
        self._progress_dir = self.data_dir / "progress"

    def _ensure_dirs(self, *dirs: Path) -> None:
        """Create directories if they don't exist."""
        for d in dirs:
            d.mkdir(parents=True, exist_ok=True)

    # === RUN OPERATIONS ===

    def persist_run(self, run: AuditRun) -> None:
        self._ensure_dirs(self._runs_dir)
        path = self._runs_dir / f"{run.id}.json"
        path.write_text(run.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Saved run {run.id} ({run.status.value})")

    def load_run(self, run_id: str) -> AuditRun | None:
        path = self._runs_dir / f"{run_id}.json"
        if not path.exists():
            logger.warning(f"Run not found: {path}")
            return None
        return AuditRun.model_validate_json(path.read_text(encoding="utf-8"))

    def list_runs(self) -> list[AuditRun]:
        if not self._runs_dir.exists():
            return []

        runs: list[AuditRun] = []
        for path in self._runs_dir.glob("*.json"):
            try:
                runs.append(AuditRun.model_validate_json(path.read_text(encoding="utf-8")))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable run file {path.name}: {e.error_count()} errors")
        return sorted(runs, key=lambda run: run.started_at, reverse=True)

    # === RESULT OPERATIONS ===

    def persist_result(self, run_id: str, result: AuditResult) -> None:
        self._ensure_dirs(self._results_dir)
        path = self._results_dir / f"{run_id}.json"
        path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Saved result: {path} (total {result.total_score})")

    def load_result(self, run_id: str) -> AuditResult | None:
        path = self._results_dir / f"{run_id}.json"
        if not path.exists():
            return None
        return AuditResult.model_validate_json(path.read_text(encoding="utf-8"))

    # === PROGRESS OPERATIONS ===

    def persist_progress(self, run_id: str, percent: int, message: str) -> None:
        self._ensure_dirs(self._progress_dir)
        entry = {
            "run_id": run_id,
            "percent": percent,
            "message": message,
            "at": datetime.now(UTC).isoformat(),
        }
        with open(self._progress_dir / f"{run_id}.jsonl", "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def load_progress(self, run_id: str) -> list[dict]:
        """Load every progress entry recorded for a run, oldest first."""
        path = self._progress_dir / f"{run_id}.jsonl"
        if not path.exists():
            return []
        return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
