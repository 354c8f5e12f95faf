"""Navigation rule sub-score for the hybrid navigation category."""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_evidence import NavigationEvidence
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome

MENU_MIN_ITEMS = 3
MENU_MAX_ITEMS = 8
POINTS_MENU = 2
POINTS_SEARCH = 1


class NavigationEvaluator:
    """Rule part of navigation scoring: menu size and search."""

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        evidence = (
            result.evidence if isinstance(result.evidence, NavigationEvidence) else NavigationEvidence()
        )
        outcome = RuleOutcome()

        menu_count = evidence.menu_count
        if menu_count is None and evidence.menu is not None:
            menu_count = len(evidence.menu)

        if menu_count is not None:
            if MENU_MIN_ITEMS <= menu_count <= MENU_MAX_ITEMS:
                outcome.score += POINTS_MENU
            else:
                outcome.breaches.append("menu_count_off")

        if evidence.search_present is True:
            outcome.score += POINTS_SEARCH
        elif evidence.search_present is False:
            outcome.breaches.append("search_missing")

        return outcome
