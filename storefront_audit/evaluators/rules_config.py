"""Loading of scoring rule configuration from YAML."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from storefront_audit.errors import ConfigurationError
from storefront_audit.models.model_scoring import ScoreRuleConfig

logger = logging.getLogger(__name__)


def load_rule_config(path: Path | None = None) -> ScoreRuleConfig:
    """Load scoring rules, merging YAML overrides into the defaults.

    The file may set `hybrid_damping`, `max_improvements`, `fallback_message`,
    `evidence_shortage_marker`, and an `improvements` (or `messages`) mapping
    of category -> condition -> message. Message maps are merged per category,
    so a file only needs the messages it changes.

    Args:
        path: Optional YAML file

    Returns:
        ScoreRuleConfig

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    config = ScoreRuleConfig()
    if path is None:
        return config

    if not path.exists():
        raise ConfigurationError(f"Scoring rules file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Scoring rules file {path} must contain a mapping")

    overrides = dict(data)
    messages = overrides.pop("improvements", None) or overrides.pop("messages", None) or {}
    merged_messages = {category: dict(entries) for category, entries in config.messages.items()}
    for category, entries in messages.items():
        merged_messages.setdefault(str(category), {}).update(entries or {})
    overrides["messages"] = merged_messages

    try:
        config = ScoreRuleConfig.model_validate({**config.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid scoring rules in {path}: {e}") from e

    logger.info(f"Loaded scoring rules from {path}")
    return config
