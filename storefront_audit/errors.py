"""Exception taxonomy for storefront audits.

Degraded-data failures (a single collaborator failing) are never raised;
they are absorbed by fallbacks and logged. Only the errors below escape:
- AuditValidationError: bad input URL or configuration, raised before any stage
- CollectionError: no usable page data at all, raised out of the orchestrator
- ScoringInvariantError: a scoring bug (score out of range, unknown source)
"""

from urllib.parse import urlparse


class AuditError(Exception):
    """Base class for all audit errors."""


class AuditValidationError(AuditError):
    """Input or configuration is invalid; nothing was executed."""


class InvalidTargetError(AuditValidationError):
    """The target URL is malformed or uses an unsupported scheme."""


class ConfigurationError(AuditValidationError):
    """Required configuration is missing or inconsistent."""


class CollectionError(AuditError):
    """Every collection attempt failed and no page data is available."""


class GradingError(AuditError):
    """The vision grader returned nothing usable; the orchestrator falls back to mock grades."""


class ScoringInvariantError(AuditError):
    """The scoring engine produced an impossible result."""


def validate_target_url(url: str) -> str:
    """Validate and normalize an audit target URL.

    Args:
        url: URL supplied by the caller

    Returns:
        The stripped URL

    Raises:
        InvalidTargetError: If the URL is empty, not http(s), or has no host
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidTargetError("Target URL is empty")

    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https"):
        raise InvalidTargetError(f"Unsupported URL scheme: {parsed.scheme or 'none'}")
    if not parsed.hostname:
        raise InvalidTargetError(f"Target URL has no host: {candidate}")

    return candidate
