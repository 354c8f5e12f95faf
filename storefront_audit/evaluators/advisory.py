"""Advisory checks for AI-scored categories.

These never contribute points; they only surface canned improvements when
the grader's own evidence shows a gap.
"""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_evidence import FlowStepName, PurchaseFlowEvidence, TrustEvidence
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome


class TrustAdvisor:
    """Flags storefronts that show no payment marks."""

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        outcome = RuleOutcome()
        if isinstance(result.evidence, TrustEvidence) and result.evidence.payments == []:
            outcome.breaches.append("payment_missing")
        return outcome


class PurchaseFlowAdvisor:
    """Flags traces that never reach checkout."""

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        outcome = RuleOutcome()
        evidence = result.evidence
        if not isinstance(evidence, PurchaseFlowEvidence) or not evidence.steps:
            return outcome

        reached = {step.name for step in evidence.steps if step.success}
        if FlowStepName.CHECKOUT not in reached and FlowStepName.CART not in reached:
            outcome.breaches.append("checkout_unreachable")
        return outcome
