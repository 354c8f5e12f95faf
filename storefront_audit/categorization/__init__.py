"""Platform classification for storefront audits."""

from storefront_audit.categorization.classifier import (
    PlatformClassifier,
    PlatformScore,
    extract_resource_urls,
)
from storefront_audit.categorization.signals import DEFAULT_SIGNALS, load_signals

__all__ = [
    "DEFAULT_SIGNALS",
    "PlatformClassifier",
    "PlatformScore",
    "extract_resource_urls",
    "load_signals",
]
