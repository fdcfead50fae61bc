"""
Centralized configuration settings for wskeeper.

Holds the process-wide configuration instance and domain-specific accessors.
"""

from typing import Optional

from .env_loader import load_application_config
from .models import (
    ApplicationConfig,
    LoggingConfig,
    RetryConfig,
    SentinelConfig,
    TransportConfig,
)


# Global configuration instance
_config: Optional[ApplicationConfig] = None


def get_config() -> ApplicationConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_application_config()
    return _config


def reload_config() -> ApplicationConfig:
    """Reload configuration from environment variables."""
    global _config
    _config = load_application_config()
    return _config


def set_config(config: ApplicationConfig) -> None:
    """Set a custom configuration instance (useful for testing)."""
    global _config
    _config = config


def transport_config() -> TransportConfig:
    return get_config().transport


def retry_config() -> RetryConfig:
    return get_config().retry


def sentinel_config() -> SentinelConfig:
    return get_config().sentinels


def logging_config() -> LoggingConfig:
    return get_config().logging
