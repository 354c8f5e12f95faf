"""Mobile usability evaluator."""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_evidence import MobileEvidence
from storefront_audit.models.model_measure import MeasuredData
from storefront_audit.models.model_scoring import RuleOutcome

FONT_GOOD_PX = 14
FONT_FAIR_PX = 12
TOUCH_GOOD_PX = 44
TOUCH_FAIR_PX = 36

POINTS_VIEWPORT = 2
POINTS_FONT_GOOD = 3
POINTS_FONT_FAIR = 1
POINTS_TOUCH_GOOD = 3
POINTS_TOUCH_FAIR = 1
POINTS_NO_OVERFLOW = 2


class MobileEvaluator:
    """Scores viewport, readability, tap targets and horizontal overflow.

    Measured sizes win; when absent, the grader's readability and tap-target
    verdicts are used instead.
    """

    def evaluate(self, result: CategoryResult, measured: MeasuredData) -> RuleOutcome:
        evidence = result.evidence if isinstance(result.evidence, MobileEvidence) else MobileEvidence()
        outcome = RuleOutcome()

        if evidence.viewport_meta is True:
            outcome.score += POINTS_VIEWPORT
        elif evidence.viewport_meta is False:
            outcome.breaches.append("viewport_missing")

        if evidence.min_font_px is not None:
            if evidence.min_font_px >= FONT_GOOD_PX:
                outcome.score += POINTS_FONT_GOOD
            elif evidence.min_font_px >= FONT_FAIR_PX:
                outcome.score += POINTS_FONT_FAIR
                outcome.breaches.append("font_small")
            else:
                outcome.breaches.append("font_small")
        elif evidence.readability is not None:
            if evidence.readability.lower() == "ok":
                outcome.score += POINTS_FONT_GOOD
            else:
                outcome.breaches.append("font_small")

        if evidence.min_touch_px is not None:
            if evidence.min_touch_px >= TOUCH_GOOD_PX:
                outcome.score += POINTS_TOUCH_GOOD
            elif evidence.min_touch_px >= TOUCH_FAIR_PX:
                outcome.score += POINTS_TOUCH_FAIR
                outcome.breaches.append("tap_target_small")
            else:
                outcome.breaches.append("tap_target_small")
        elif evidence.tap_targets_ok is not None:
            if evidence.tap_targets_ok:
                outcome.score += POINTS_TOUCH_GOOD
            else:
                outcome.breaches.append("tap_target_small")

        if evidence.overflow is False:
            outcome.score += POINTS_NO_OVERFLOW
        elif evidence.overflow is True:
            outcome.breaches.append("overflow_exists")

        return outcome
