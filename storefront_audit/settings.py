"""Runtime configuration loaded from environment variables."""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from storefront_audit.consts import (
    DEFAULT_DATA_DIR,
    DEFAULT_LLM_MODEL,
    ENV_DATA_DIR,
    ENV_FIRECRAWL_API_BASE,
    ENV_FIRECRAWL_API_KEY,
    ENV_LIGHTHOUSE_COMMAND,
    ENV_LIGHTHOUSE_TIMEOUT,
    ENV_LLM_API_KEY,
    ENV_LLM_MODEL,
    ENV_PLATFORM_SIGNALS_PATH,
    ENV_RULES_PATH,
    ENV_USE_FIRECRAWL,
    FETCH_TIMEOUT,
    FIRECRAWL_DEFAULT_API_BASE,
    GRADER_TIMEOUT,
    LIGHTHOUSE_TIMEOUT,
    LLM_MAX_RETRIES,
    SCRAPE_TIMEOUT,
    SCREENSHOT_TIMEOUT,
    UPLOAD_TIMEOUT,
)
from storefront_audit.errors import ConfigurationError

_TRUTHY = {"1", "true", "yes", "on"}


class AuditSettings(BaseModel):
    """Settings shared by the orchestrator and its collaborators."""

    llm_api_key: str | None = Field(default=None, description="Vision grader API key")
    llm_model: str = Field(default=DEFAULT_LLM_MODEL, description="Vision grader model name")
    llm_max_retries: int = Field(default=LLM_MAX_RETRIES, ge=1)
    firecrawl_api_key: str | None = Field(default=None, description="Hosted scrape API key")
    firecrawl_api_base: str = Field(default=FIRECRAWL_DEFAULT_API_BASE)
    use_firecrawl: bool = Field(default=False, description="Use the hosted scrape API")
    lighthouse_command: str = Field(default="lighthouse")
    lighthouse_timeout: float = Field(default=LIGHTHOUSE_TIMEOUT)
    scrape_timeout: float = Field(default=SCRAPE_TIMEOUT)
    screenshot_timeout: float = Field(default=SCREENSHOT_TIMEOUT)
    fetch_timeout: float = Field(default=FETCH_TIMEOUT)
    grader_timeout: float = Field(default=GRADER_TIMEOUT)
    upload_timeout: float = Field(default=UPLOAD_TIMEOUT)
    data_dir: Path = Field(default=DEFAULT_DATA_DIR)
    rules_path: Path | None = Field(default=None, description="YAML scoring rule overrides")
    platform_signals_path: Path | None = Field(
        default=None, description="YAML platform signal overrides"
    )

    @property
    def screenshot_dir(self) -> Path:
        """Directory for captured screenshots."""
        return self.data_dir / "screenshots"

    @property
    def has_grader_credentials(self) -> bool:
        """Whether a real vision grader can be used."""
        return bool(self.llm_api_key)

    def validate_required(self) -> None:
        """Check cross-field requirements.

        Raises:
            ConfigurationError: If a required value is missing or a timeout is not positive
        """
        if self.use_firecrawl and not self.firecrawl_api_key:
            raise ConfigurationError(
                f"{ENV_USE_FIRECRAWL} is enabled but {ENV_FIRECRAWL_API_KEY} is not set"
            )

        timeouts = {
            "lighthouse_timeout": self.lighthouse_timeout,
            "scrape_timeout": self.scrape_timeout,
            "screenshot_timeout": self.screenshot_timeout,
            "fetch_timeout": self.fetch_timeout,
            "grader_timeout": self.grader_timeout,
            "upload_timeout": self.upload_timeout,
        }
        for name, value in timeouts.items():
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


def load_settings(**overrides) -> AuditSettings:
    """Build settings from environment variables.

    Args:
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated AuditSettings

    Raises:
        ConfigurationError: If the configuration is inconsistent
    """
    values = {
        "llm_api_key": os.getenv(ENV_LLM_API_KEY) or None,
        "llm_model": os.getenv(ENV_LLM_MODEL, DEFAULT_LLM_MODEL),
        "firecrawl_api_key": os.getenv(ENV_FIRECRAWL_API_KEY) or None,
        "firecrawl_api_base": os.getenv(ENV_FIRECRAWL_API_BASE, FIRECRAWL_DEFAULT_API_BASE),
        "use_firecrawl": os.getenv(ENV_USE_FIRECRAWL, "").strip().lower() in _TRUTHY,
        "lighthouse_command": os.getenv(ENV_LIGHTHOUSE_COMMAND, "lighthouse"),
        "data_dir": Path(os.getenv(ENV_DATA_DIR) or DEFAULT_DATA_DIR),
        "rules_path": _optional_path(os.getenv(ENV_RULES_PATH)),
        "platform_signals_path": _optional_path(os.getenv(ENV_PLATFORM_SIGNALS_PATH)),
    }

    raw_timeout = os.getenv(ENV_LIGHTHOUSE_TIMEOUT)
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError as e:
            raise ConfigurationError(f"{ENV_LIGHTHOUSE_TIMEOUT} is not a number: {raw_timeout}") from e
        # Values of 1000 and above are milliseconds
        values["lighthouse_timeout"] = timeout / 1000 if timeout >= 1000 else timeout

    values.update(overrides)
    settings = AuditSettings(**values)
    settings.validate_required()
    return settings
