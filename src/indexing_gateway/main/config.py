import logging
import os
import sys
from typing import Optional
from urllib.parse import urlparse

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def validate_api_base_url(base_url: str) -> str:
    """
    Validate and normalize the Indexing API base url.

    Rules:
    - Must be http or https
    - Must have hostname
    - Normalize: strip trailing slash so paths can be appended with "/"

    Args:
        base_url: Raw url (e.g., "https://indexing.googleapis.com/v3/")

    Returns:
        str: Normalized url

    Raises:
        ValueError: Invalid url format

    Examples:
        >>> validate_api_base_url("https://indexing.googleapis.com/v3/")
        "https://indexing.googleapis.com/v3"
    """
    base_url = base_url.strip()
    if not base_url:
        raise ValueError("indexing_api_base_url cannot be an empty string")

    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(
            f"indexing_api_base_url must use http:// or https://, got: {base_url}"
        )

    if not parsed.hostname:
        raise ValueError(f"indexing_api_base_url missing hostname: {base_url}")

    return base_url.rstrip("/")


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    app_version: str = "1.0.0"
    app_env: str = "production"

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = "/api/v1"

    # Security
    # When unset the API is open, matching a deployment behind a private network
    api_key: Optional[str] = None

    # CORS (comma separated lists, "*" allows everything)
    cors_allowed_origins: str = "*"
    cors_allowed_methods: str = "GET,POST,PUT,DELETE,OPTIONS"
    cors_allowed_headers: str = "Content-Type,Authorization,X-Requested-With"

    # Logging
    enable_request_logging: bool = True

    # Submission
    max_batch_size: int = 100
    request_timeout_seconds: int = 30

    # Google Indexing API
    indexing_api_base_url: str = "https://indexing.googleapis.com/v3"
    indexing_scope: str = "https://www.googleapis.com/auth/indexing"

    # Dev
    testing: bool = False
    dev: bool = False

    @model_validator(mode="after")
    def validate_submission_settings(self):
        """Ensure batch and timeout configuration values are sane."""
        if self.max_batch_size <= 0:
            logging.error(
                "MAX_BATCH_SIZE must be greater than zero. Current value: %s",
                self.max_batch_size,
            )
            sys.exit(1)

        if self.request_timeout_seconds <= 0:
            logging.error(
                "REQUEST_TIMEOUT_SECONDS must be greater than zero. Current value: %s",
                self.request_timeout_seconds,
            )
            sys.exit(1)

        return self

    @model_validator(mode="after")
    def validate_api_base_url_format(self):
        """Validate and normalize indexing_api_base_url."""
        try:
            self.indexing_api_base_url = validate_api_base_url(
                self.indexing_api_base_url
            )
        except ValueError as e:
            logging.error(
                f"Invalid INDEXING_API_BASE_URL configuration: {e}\n"
                f"Example: INDEXING_API_BASE_URL=https://indexing.googleapis.com/v3"
            )
            sys.exit(1)
        return self

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        if self.cors_allowed_origins.strip() == "*":
            return ["*"]
        return _split_csv(self.cors_allowed_origins)

    @computed_field
    @property
    def cors_methods(self) -> list[str]:
        return _split_csv(self.cors_allowed_methods)

    @computed_field
    @property
    def cors_headers(self) -> list[str]:
        return _split_csv(self.cors_allowed_headers)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, built from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Install ``settings`` as the process-wide instance. Used by tests."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Forget the current instance so the next ``get_settings`` re-reads the environment."""
    global _settings
    _settings = None


_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_loglevel() -> int:
    # Unknown values fall back to INFO
    return _LOG_LEVELS.get(os.getenv("LOGLEVEL", "INFO").upper(), logging.INFO)
