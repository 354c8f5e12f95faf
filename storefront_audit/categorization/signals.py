"""Platform signal table.

Weights are a tuned heuristic, kept as data so they can be recalibrated from a
YAML file without code changes. Each platform's weights sum to well over 1.0
so that a combination of strong signals crosses the acceptance threshold.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from storefront_audit.errors import ConfigurationError
from storefront_audit.models.model_platform import (
    Platform,
    PlatformSignals,
    SignalChannel,
    SignalRule,
)

logger = logging.getLogger(__name__)

CAFE24_SIGNALS = PlatformSignals(
    platform=Platform.CAFE24,
    rules=[
        SignalRule(name="url:cafe24-host", channel=SignalChannel.URL, pattern=r"cafe24(?:shop)?\.com", weight=0.25),
        SignalRule(
            name="html:ec-* classes",
            channel=SignalChannel.HTML,
            pattern=r"\bec-(?:base|list|shop|product|order)[-\w]*\b",
            weight=0.25,
        ),
        SignalRule(
            name="html:cafe24 scripts",
            channel=SignalChannel.HTML,
            pattern=r"cafe24_common\.js|eclog\.js|/ind-script/optimizer\.php",
            weight=0.2,
        ),
        SignalRule(name="html:data-ez-sdk", channel=SignalChannel.HTML, pattern=r"data-ez-sdk", weight=0.15),
        SignalRule(name="html:echosting mention", channel=SignalChannel.HTML, pattern=r"echosting", weight=0.1),
        SignalRule(
            name="header:Set-Cookie EC*",
            channel=SignalChannel.SET_COOKIE,
            pattern=r"^(?:ECSESSID|EC_MOBILE_DEVICE|SHOP_NO)=",
            weight=0.25,
        ),
        SignalRule(name="header:contains cafe24", channel=SignalChannel.HEADER, pattern=r"cafe24", weight=0.1),
        SignalRule(
            name="cookie:EC*",
            channel=SignalChannel.COOKIE,
            pattern=r"^(?:ECSESSID|EC_MOBILE_DEVICE|SHOP_NO)",
            weight=0.25,
        ),
        SignalRule(
            name="res:cafe24 cdn",
            channel=SignalChannel.RESOURCE,
            pattern=r"img\.echosting\.cafe24\.com|cafe24img\.com|ecimg\.cafe24img\.com",
            weight=0.35,
        ),
        SignalRule(
            name="res:cafe24 scripts",
            channel=SignalChannel.RESOURCE,
            pattern=r"cafe24_common\.js|eclog\.js|/ind-script/optimizer\.php",
            weight=0.25,
        ),
    ],
)

IMWEB_SIGNALS = PlatformSignals(
    platform=Platform.IMWEB,
    rules=[
        SignalRule(name="url:imweb-host", channel=SignalChannel.URL, pattern=r"imweb\.me|imweb\.co\.kr", weight=0.25),
        SignalRule(name="html:im-* classes", channel=SignalChannel.HTML, pattern=r"\bim[-_x][-\w]*\b", weight=0.25),
        SignalRule(
            name="html:imweb scripts",
            channel=SignalChannel.HTML,
            pattern=r"\bimweb[-_.\w]*\.(?:js|css)\b",
            weight=0.25,
        ),
        SignalRule(name="html:data-imweb-*", channel=SignalChannel.HTML, pattern=r"data-imweb-", weight=0.15),
        SignalRule(name="html:imweb mention", channel=SignalChannel.HTML, pattern=r"imweb", weight=0.1),
        SignalRule(
            name="header:Set-Cookie imweb*",
            channel=SignalChannel.SET_COOKIE,
            pattern=r"^(?:imweb|iw_session|iw_|imwebsession)",
            weight=0.25,
        ),
        SignalRule(name="header:Server imweb", channel=SignalChannel.SERVER_HEADER, pattern=r"imweb", weight=0.2),
        SignalRule(name="header:contains imweb", channel=SignalChannel.HEADER, pattern=r"imweb", weight=0.1),
        SignalRule(
            name="cookie:imweb*",
            channel=SignalChannel.COOKIE,
            pattern=r"^(?:imweb|iw_session|iw_|imwebsession)",
            weight=0.25,
        ),
        SignalRule(
            name="res:imweb cdn",
            channel=SignalChannel.RESOURCE,
            pattern=r"cdn\.imweb\.me|static\.imweb\.me",
            weight=0.35,
        ),
        SignalRule(
            name="res:imweb scripts",
            channel=SignalChannel.RESOURCE,
            pattern=r"\bimweb[-_.\w]*\.(?:js|css)\b",
            weight=0.25,
        ),
    ],
)

DEFAULT_SIGNALS: list[PlatformSignals] = [CAFE24_SIGNALS, IMWEB_SIGNALS]


def load_signals(path: Path | None) -> list[PlatformSignals]:
    """Load the platform signal table, falling back to the built-in defaults.

    The YAML file holds a top-level `platforms` list, each entry with
    `platform` and `rules` (name, channel, pattern, weight).

    Args:
        path: Optional YAML file

    Returns:
        List of PlatformSignals

    Raises:
        ConfigurationError: If the file exists but is malformed
    """
    if path is None:
        return DEFAULT_SIGNALS

    if not path.exists():
        raise ConfigurationError(f"Platform signal file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        signals = [PlatformSignals.model_validate(entry) for entry in data.get("platforms", [])]
    except (yaml.YAMLError, ValidationError, AttributeError) as e:
        raise ConfigurationError(f"Invalid platform signal file {path}: {e}") from e

    if not signals:
        raise ConfigurationError(f"Platform signal file {path} defines no platforms")

    logger.info(f"Loaded {sum(len(s.rules) for s in signals)} platform signals from {path}")
    return signals
