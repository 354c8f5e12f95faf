"""Visuals rule sub-score for the hybrid visuals category."""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_evidence import VisualsEvidence
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome

ALT_GOOD_RATIO = 0.8
MAX_POPUPS = 1
POINTS_ALT = 1
POINTS_POPUPS = 2


class VisualsEvaluator:
    """Rule part of visuals scoring: alt coverage and popup count."""

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        evidence = result.evidence if isinstance(result.evidence, VisualsEvidence) else VisualsEvidence()
        outcome = RuleOutcome()

        if evidence.alt_ratio is not None:
            if evidence.alt_ratio >= ALT_GOOD_RATIO:
                outcome.score += POINTS_ALT
            else:
                outcome.breaches.append("alt_low")

        if evidence.popups is not None:
            if evidence.popups <= MAX_POPUPS:
                outcome.score += POINTS_POPUPS
            else:
                outcome.breaches.append("popups_excess")

        return outcome
