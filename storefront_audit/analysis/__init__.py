"""Static HTML analysis."""

from storefront_audit.analysis.dom_heuristics import analyze_html

__all__ = ["analyze_html"]
