"""Storefront audit: platform detection, hybrid scoring and the audit pipeline."""

__version__ = "0.1.0"
