"""Report export collaborators."""

from storefront_audit.reporting.report import ReportExporter, build_bundle, build_report

__all__ = ["ReportExporter", "build_bundle", "build_report"]
