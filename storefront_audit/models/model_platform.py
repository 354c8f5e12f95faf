"""Platform detection models."""

from enum import Enum

from pydantic import BaseModel, Field


class Platform(str, Enum):
    """Commerce platforms the classifier can recognise."""

    CAFE24 = "cafe24"
    IMWEB = "imweb"
    UNKNOWN = "unknown"


class SignalChannel(str, Enum):
    """Where a signal pattern is matched."""

    URL = "url"  # Target URL host
    HTML = "html"  # Raw markup
    RESOURCE = "resource"  # Script/stylesheet/image URLs
    SET_COOKIE = "set_cookie"  # Set-Cookie header values
    HEADER = "header"  # Any "name: value" header line
    SERVER_HEADER = "server_header"  # Server header only
    COOKIE = "cookie"  # Cookie names sent back by the site


class SignalRule(BaseModel):
    """A single weighted signal check."""

    name: str = Field(description="Diagnostic name, e.g. 'html:ec-* classes'")
    channel: SignalChannel
    pattern: str = Field(description="Case-insensitive regular expression")
    weight: float = Field(ge=0.0, le=1.0)


class PlatformSignals(BaseModel):
    """All signal rules for one candidate platform."""

    platform: Platform
    rules: list[SignalRule] = Field(default_factory=list)


class PlatformDetectionResult(BaseModel):
    """Outcome of classifying a storefront."""

    platform: Platform = Platform.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    signals: list[str] = Field(default_factory=list, description="Names of signals that fired")
