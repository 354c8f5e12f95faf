"""First-view rule sub-score for the hybrid first-view category."""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_evidence import FirstViewEvidence
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome

FONT_GOOD_PX = 16
POINTS_FONT = 3


class FirstViewEvaluator:
    """Rule part of first-view scoring: readable hero text.

    CTA presence is judged visually by the grader; a missing CTA only adds an
    improvement message here.
    """

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        evidence = result.evidence if isinstance(result.evidence, FirstViewEvidence) else FirstViewEvidence()
        outcome = RuleOutcome()

        if evidence.min_font_px is not None:
            if evidence.min_font_px >= FONT_GOOD_PX:
                outcome.score += POINTS_FONT
            else:
                outcome.breaches.append("font_small")

        if result.evidence is not None and evidence.cta is None:
            outcome.breaches.append("cta_missing")

        return outcome
