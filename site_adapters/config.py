"""Configuration management for the site adapters."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from decouple import Choices
from decouple import config


class Environment(Enum):
    """Supported deployment environments."""

    DEVELOPMENT = "development"
    CI = "CI"
    PRODUCTION = "production"


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class Config:
    """Configuration for the CMS and Leverade adapters."""

    # Required fields
    cms_url: str

    # Environment configuration
    environment: Environment = Environment.DEVELOPMENT

    # CMS configuration
    cms_token: str = ""

    # Leverade configuration
    leverade_url: str = "https://api.leverade.com"

    # Shared HTTP configuration
    http_timeout_seconds: int = 30

    # Locale used when an entry is not translated in the requested one
    default_locale: str = "en"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(
            config("ENVIRONMENT", default="development", cast=Choices(["development", "CI", "production"]))
        )

        return cls(
            # Required
            cms_url=config("CMS_URL"),
            # Environment
            environment=env,
            # CMS
            cms_token=config("CMS_TOKEN", default=""),
            # Leverade
            leverade_url=config("LEVERADE_URL", default="https://api.leverade.com"),
            # HTTP
            http_timeout_seconds=config("HTTP_TIMEOUT_SECONDS", default=30, cast=int),
            # Locales
            default_locale=config("DEFAULT_LOCALE", default="en"),
            # Logging
            log_level=config("LOG_LEVEL", default="INFO", cast=Choices(LOG_LEVELS)),
            log_format=config("LOG_FORMAT", default="json", cast=Choices(["json", "text"])),
        )

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == Environment.CI

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


_config: Optional[Config] = None


def init_config() -> Config:
    """Load the configuration from the environment and keep it as the global instance."""
    global _config
    _config = Config.from_env()
    return _config


def get_config() -> Config:
    """Return the global configuration."""
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call init_config() first.")
    return _config


def is_config_initialized() -> bool:
    return _config is not None


def reset_config() -> None:
    """Drop the global configuration (used by tests)."""
    global _config
    _config = None
