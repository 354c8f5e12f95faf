"""Audit run and result models."""

from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field, field_validator

from storefront_audit.models.common import _utc_now
from storefront_audit.models.model_category import CategoryId, ScoreSource
from storefront_audit.models.model_evidence import CategoryEvidence, PurchaseFlowStep
from storefront_audit.models.model_platform import PlatformDetectionResult

Grade = Literal["S", "A", "B", "C", "D", "F"]


class AuditStatus(str, Enum):
    """Lifecycle of an audit run."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _new_run_id() -> str:
    return uuid4().hex


class AuditRun(BaseModel):
    """A single audit of one storefront URL."""

    id: str = Field(default_factory=_new_run_id)
    url: str
    status: AuditStatus = AuditStatus.PENDING
    started_at: datetime = Field(default_factory=_utc_now)
    elapsed_seconds: float | None = None
    error: str | None = Field(default=None, description="Short failure message, never a traceback")
    total_score: int | None = Field(default=None, ge=0, le=100)
    progress: int = Field(default=0, ge=0, le=100)
    progress_message: str | None = None

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Whether the run has reached completed or failed."""
        return self.status in (AuditStatus.COMPLETED, AuditStatus.FAILED)


class CategoryResult(BaseModel):
    """Score, proof, and insights for one category."""

    id: CategoryId
    score: float = Field(default=0.0, description="Score on a 0-10 scale")
    metrics: dict[str, float] = Field(default_factory=dict)
    evidence: CategoryEvidence | None = None
    insights: list[str] = Field(default_factory=list)
    grader_evidence: bool | None = Field(
        default=None,
        exclude=True,
        description="Whether the grader supplied evidence, recorded before measurements are merged in",
    )

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: float | None) -> float:
        if value is None:
            return 0.0
        return max(0.0, min(10.0, float(value)))

    def has_evidence(self) -> bool:
        """True if evidence is present and not empty."""
        return self.evidence is not None and not self.evidence.is_empty()

    def has_grader_evidence(self) -> bool:
        """True if the grader itself backed its score with evidence."""
        if self.grader_evidence is None:
            return self.has_evidence()
        return self.grader_evidence


class PurchaseFlowTrace(BaseModel):
    """Ordered purchase-flow steps reached by the grader or a crawler."""

    ok: bool = False
    steps: list[PurchaseFlowStep] = Field(default_factory=list)


class ExpertSummary(BaseModel):
    """Overall verdict written by the grader."""

    grade: Grade = "F"
    headline: str = ""
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    priorities: list[str] = Field(default_factory=list)


class ExportArtifacts(BaseModel):
    """Locations of exported report artifacts."""

    report: str | None = Field(default=None, description="JSON report location")
    bundle: str | None = Field(default=None, description="Zip bundle location")


class AuditResult(BaseModel):
    """Completed audit: run record plus every category result."""

    run: AuditRun
    categories: list[CategoryResult] = Field(default_factory=list)
    score_sources: dict[CategoryId, ScoreSource] = Field(default_factory=dict)
    total_score: int = Field(default=0, ge=0, le=100)
    grade: Grade = "F"
    platform: PlatformDetectionResult = Field(default_factory=PlatformDetectionResult)
    purchase_flow: PurchaseFlowTrace | None = None
    expert_summary: ExpertSummary | None = None
    export: ExportArtifacts | None = None
    screenshots: list[str] = Field(default_factory=list)
    grader: str = Field(default="mock", description="Grader that produced AI scores")
    degraded_stages: list[str] = Field(default_factory=list)

    def category(self, category_id: CategoryId) -> CategoryResult | None:
        """Look up a category result by id."""
        for result in self.categories:
            if result.id == category_id:
                return result
        return None
