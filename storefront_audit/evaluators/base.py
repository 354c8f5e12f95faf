"""Base rule-evaluator protocol."""

from typing import Protocol

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome


class RuleEvaluator(Protocol):
    """Deterministic scorer for one category.

    Evaluators are pure: they read the category's (measurement-injected)
    evidence and the measured data, and return a sub-score plus the names of
    breached thresholds. Unknown values award no points and breach nothing.
    """

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        """Evaluate a category.

        Args:
            result: Category result with evidence and metrics
            measured: Measured performance and DOM data for the run

        Returns:
            RuleOutcome with a 0-10 sub-score and breached condition names
        """
        ...
