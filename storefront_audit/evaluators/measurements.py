"""Injection of measured data into grader category results.

Measured values override whatever the grader reported for the same field.
Only rule and hybrid categories receive DOM values; AI-only categories keep
exactly the grader's evidence so an unsupported AI claim is never validated
by unrelated measurements.
"""

from storefront_audit.models.model_audit import CategoryResult
from storefront_audit.models.model_category import ALL_CATEGORIES, CategoryId
from storefront_audit.models.model_evidence import (
    EvidenceBase,
    FirstViewEvidence,
    MobileEvidence,
    NavigationEvidence,
    PerformanceEvidence,
    SeoEvidence,
    VisualsEvidence,
    empty_evidence,
)
from storefront_audit.models.model_measure import DomHeuristics, MeasuredData


def _dom_updates(category: CategoryId, dom: DomHeuristics) -> dict:
    if category == CategoryId.FIRST_VIEW:
        return {"min_font_px": dom.min_font_px}
    if category == CategoryId.NAVIGATION:
        return {
            "menu": dom.menu_items,
            "menu_count": dom.menu_count,
            "search_present": dom.search_present,
            "search_selector": dom.search_selector,
            "has_best_new": dom.has_best_new,
        }
    if category == CategoryId.VISUALS:
        return {"alt_ratio": dom.alt_ratio, "popups": dom.popups}
    if category == CategoryId.MOBILE:
        return {
            "viewport_meta": dom.viewport_meta,
            "min_font_px": dom.min_font_px,
            "min_touch_px": dom.min_touch_px,
            "overflow": dom.overflow,
        }
    if category == CategoryId.SEO_ANALYTICS:
        return {
            "title": dom.title,
            "description": dom.description,
            "og_count": dom.og_count,
            "h1_count": dom.h1_count,
            "canonical": dom.canonical,
            "alt_ratio": dom.alt_ratio,
            "analytics": dom.analytics,
        }
    return {}


_DOM_CATEGORIES: dict[CategoryId, type[EvidenceBase]] = {
    CategoryId.FIRST_VIEW: FirstViewEvidence,
    CategoryId.NAVIGATION: NavigationEvidence,
    CategoryId.VISUALS: VisualsEvidence,
    CategoryId.MOBILE: MobileEvidence,
    CategoryId.SEO_ANALYTICS: SeoEvidence,
}


def _merge_evidence(result: CategoryResult, updates: dict) -> EvidenceBase:
    evidence_type = _DOM_CATEGORIES[result.id]
    current = result.evidence if isinstance(result.evidence, evidence_type) else empty_evidence(result.id)
    return current.model_copy(update=updates)


def inject_measurements(
    categories: list[CategoryResult],
    measured: MeasuredData,
) -> list[CategoryResult]:
    """Return copies of the category results with measurements merged in.

    Categories missing from the grader output are created with score 0 when
    measurements exist for them, so rule-backed categories still score. Each
    copy records whether the grader supplied evidence before the merge, so
    measured values never stand in for proof of an AI claim.

    Args:
        categories: Grader category results
        measured: Performance metrics and DOM heuristics for the run

    Returns:
        New list of category results in canonical category order
    """
    by_id = {result.id: result for result in categories}
    injected: list[CategoryResult] = []

    for category in ALL_CATEGORIES:
        result = by_id.get(category)
        if result is not None and result.grader_evidence is None:
            result = result.model_copy(update={"grader_evidence": result.has_evidence()})

        if category == CategoryId.PERFORMANCE:
            result = result or CategoryResult(id=category, grader_evidence=False)
            metrics = measured.performance
            if metrics.measured:
                result = result.model_copy(
                    update={
                        "metrics": {**result.metrics, **metrics.as_metrics()},
                        "evidence": PerformanceEvidence(
                            lcp=metrics.lcp,
                            layout_shift=metrics.layout_shift,
                            tbt=metrics.tbt,
                            errors=metrics.errors,
                            source="lighthouse",
                        ),
                    }
                )
        elif category in _DOM_CATEGORIES and measured.dom is not None:
            result = result or CategoryResult(id=category, grader_evidence=False)
            result = result.model_copy(
                update={"evidence": _merge_evidence(result, _dom_updates(category, measured.dom))}
            )

        if result is not None:
            injected.append(result)

    return injected
