"""Performance evaluator for lab metrics."""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome

LCP_GOOD_SECONDS = 2.5
LCP_FAIR_SECONDS = 4.0
CLS_GOOD = 0.1
TBT_GOOD_MS = 300

POINTS_LCP_GOOD = 4
POINTS_LCP_FAIR = 2
POINTS_CLS = 2
POINTS_TBT = 2
POINTS_NO_ERRORS = 2


class PerformanceEvaluator:
    """Scores page speed purely from measured metrics.

    Algorithm:
        LCP <= 2.5s: 4, <= 4.0s: 2, else 0
        CLS <= 0.1: 2
        TBT <= 300ms: 2
        no network errors: 2
        Unmeasured metrics: 0
    """

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        metrics = measured.performance
        if not metrics.measured:
            return RuleOutcome(score=0, breaches=["metrics_unavailable"])

        outcome = RuleOutcome()

        if metrics.lcp <= LCP_GOOD_SECONDS:
            outcome.score += POINTS_LCP_GOOD
        elif metrics.lcp <= LCP_FAIR_SECONDS:
            outcome.score += POINTS_LCP_FAIR
            outcome.breaches.append("lcp_fair")
        else:
            outcome.breaches.append("lcp_slow")

        if metrics.layout_shift <= CLS_GOOD:
            outcome.score += POINTS_CLS
        else:
            outcome.breaches.append("cls_high")

        if metrics.tbt <= TBT_GOOD_MS:
            outcome.score += POINTS_TBT
        else:
            outcome.breaches.append("tbt_high")

        if metrics.errors == 0:
            outcome.score += POINTS_NO_ERRORS
        else:
            outcome.breaches.append("network_errors")

        return outcome
