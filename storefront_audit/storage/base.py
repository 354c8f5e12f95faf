"""Abstract base classes for run persistence and artifact storage.

Both are external collaborators of the orchestrator: progress writes are
fire-and-forget and artifact uploads may fail without failing the run.
"""

from abc import ABC, abstractmethod

from storefront_audit.models.model_audit import AuditResult, AuditRun


class RunStore(ABC):
    """Persistence for audit runs, their progress and their results."""

    @abstractmethod
    def persist_progress(self, run_id: str, percent: int, message: str) -> None:
        """Record a progress milestone for a run.

        Args:
            run_id: Run identifier.
            percent: Progress percentage (0-100).
            message: Short human-readable status.
        """
        ...

    @abstractmethod
    def persist_run(self, run: AuditRun) -> None:
        """Save the current state of a run."""
        ...

    @abstractmethod
    def persist_result(self, run_id: str, result: AuditResult) -> None:
        """Save the final result of a completed run."""
        ...

    @abstractmethod
    def load_run(self, run_id: str) -> AuditRun | None:
        """Load a run, or None if unknown."""
        ...

    @abstractmethod
    def load_result(self, run_id: str) -> AuditResult | None:
        """Load a run's result, or None if not available."""
        ...

    @abstractmethod
    def list_runs(self) -> list[AuditRun]:
        """List stored runs, newest first."""
        ...


class ArtifactStore(ABC):
    """Object storage for exported report artifacts."""

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store an artifact.

        Args:
            path: Relative object path (e.g. reports/<run_id>/report.json).
            data: Artifact bytes.
            content_type: MIME type.

        Returns:
            Location of the stored artifact.

        Raises:
            OSError: If the artifact could not be written.
        """
        ...
