"""SEO and analytics evaluator."""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_evidence import SeoEvidence
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome

MIN_OG_TAGS = 3
ALT_GOOD_RATIO = 0.8
ALT_FAIR_RATIO = 0.5

POINTS_TITLE = 1
POINTS_DESCRIPTION = 1
POINTS_OG = 2
POINTS_SINGLE_H1 = 1
POINTS_ALT_GOOD = 2
POINTS_ALT_FAIR = 1
POINTS_ANALYTICS = 3


class SeoEvaluator:
    """Scores meta tags, heading structure, alt coverage and analytics."""

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        evidence = result.evidence if isinstance(result.evidence, SeoEvidence) else SeoEvidence()
        outcome = RuleOutcome()

        if evidence.title is True:
            outcome.score += POINTS_TITLE
        elif evidence.title is False:
            outcome.breaches.append("title_missing")

        if evidence.description is True:
            outcome.score += POINTS_DESCRIPTION
        elif evidence.description is False:
            outcome.breaches.append("description_missing")

        if evidence.og_count is not None:
            if evidence.og_count >= MIN_OG_TAGS:
                outcome.score += POINTS_OG
            else:
                outcome.breaches.append("og_incomplete")

        if evidence.h1_count is not None:
            if evidence.h1_count == 1:
                outcome.score += POINTS_SINGLE_H1
            else:
                outcome.breaches.append("h1_invalid")

        if evidence.alt_ratio is not None:
            if evidence.alt_ratio >= ALT_GOOD_RATIO:
                outcome.score += POINTS_ALT_GOOD
            elif evidence.alt_ratio >= ALT_FAIR_RATIO:
                outcome.score += POINTS_ALT_FAIR
                outcome.breaches.append("alt_low")
            else:
                outcome.breaches.append("alt_low")

        if evidence.analytics is not None:
            if evidence.analytics:
                outcome.score += POINTS_ANALYTICS
            else:
                outcome.breaches.append("analytics_missing")

        return outcome
