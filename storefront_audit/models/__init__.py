"""Pydantic models and result records for storefront audits."""

from storefront_audit.models.model_audit import (
    AuditResult,
    AuditRun,
    AuditStatus,
    CategoryResult,
    ExpertSummary,
    ExportArtifacts,
    PurchaseFlowTrace,
)
from storefront_audit.models.model_category import (
    ALL_CATEGORIES,
    CATEGORY_ALIASES,
    CategoryId,
    ScoreSource,
)
from storefront_audit.models.model_collect import (
    CollectedPage,
    FetchResult,
    PerformanceResult,
    ScrapeResult,
    ScreenshotResult,
)
from storefront_audit.models.model_evidence import (
    EVIDENCE_TYPES,
    BoundingBox,
    BrandIdentityEvidence,
    EvidenceBase,
    FirstViewEvidence,
    FlowStepName,
    LocatedElement,
    MobileEvidence,
    NavigationEvidence,
    PerformanceEvidence,
    PromotionEvidence,
    PurchaseFlowEvidence,
    PurchaseFlowStep,
    SeoEvidence,
    TrustEvidence,
    VisualsEvidence,
    empty_evidence,
    parse_evidence,
)
from storefront_audit.models.model_grading import GradeOutput
from storefront_audit.models.model_measure import DomHeuristics, MeasuredData, PerformanceMetrics
from storefront_audit.models.model_platform import (
    Platform,
    PlatformDetectionResult,
    PlatformSignals,
    SignalChannel,
    SignalRule,
)
from storefront_audit.models.model_scoring import RuleOutcome, ScoreRuleConfig, ScoringResult

__all__ = [
    # Audit models
    "AuditResult",
    "AuditRun",
    "AuditStatus",
    "CategoryResult",
    "ExpertSummary",
    "ExportArtifacts",
    "PurchaseFlowTrace",
    # Categories
    "ALL_CATEGORIES",
    "CATEGORY_ALIASES",
    "CategoryId",
    "ScoreSource",
    # Collection results
    "CollectedPage",
    "FetchResult",
    "PerformanceResult",
    "ScrapeResult",
    "ScreenshotResult",
    # Evidence
    "EVIDENCE_TYPES",
    "BoundingBox",
    "BrandIdentityEvidence",
    "EvidenceBase",
    "FirstViewEvidence",
    "FlowStepName",
    "LocatedElement",
    "MobileEvidence",
    "NavigationEvidence",
    "PerformanceEvidence",
    "PromotionEvidence",
    "PurchaseFlowEvidence",
    "PurchaseFlowStep",
    "SeoEvidence",
    "TrustEvidence",
    "VisualsEvidence",
    "empty_evidence",
    "parse_evidence",
    # Grading
    "GradeOutput",
    # Measurements
    "DomHeuristics",
    "MeasuredData",
    "PerformanceMetrics",
    # Platform detection
    "Platform",
    "PlatformDetectionResult",
    "PlatformSignals",
    "SignalChannel",
    "SignalRule",
    # Scoring
    "RuleOutcome",
    "ScoreRuleConfig",
    "ScoringResult",
]
