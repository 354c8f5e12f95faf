"""Performance measurement."""

from storefront_audit.scanner.lighthouse import LighthouseRunner, extract_metrics

__all__ = ["LighthouseRunner", "extract_metrics"]
