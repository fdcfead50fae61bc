"""
Environment variable loader for wskeeper configuration.

This module handles loading configuration from environment variables,
with type conversion, validation, and fallback to defaults.

Environment variables must be explicitly loaded using load_env_file() before
accessing any configuration functions.
"""

import os
from pathlib import Path
from typing import Optional, Type, TypeVar, cast

from dotenv import load_dotenv

from .constants import (
    BACKGROUND_SENTINEL,
    DEFAULT_CLOSE_TIMEOUT,
    DEFAULT_ENDPOINT,
    DEFAULT_MAX_SIZE,
    DEFAULT_OPEN_TIMEOUT,
    DEFAULT_PING_INTERVAL,
    DEFAULT_PING_TIMEOUT,
    DEFAULT_RETRY_BASE,
    DEFAULT_RETRY_INTERVAL,
    DEFAULT_STATE_HISTORY_SIZE,
    FOREGROUND_SENTINEL,
    LOGGER_NAME,
)
from .models import (
    ApplicationConfig,
    LoggingConfig,
    LogLevel,
    RetryConfig,
    SentinelConfig,
    TransportConfig,
)


# Track if environment variables have been loaded
_env_loaded = False


def load_env_file(env_file: Optional[str] = None) -> None:
    """Load environment variables from a .env file.

    This function must be called before accessing any configuration functions.

    Args:
        env_file: Path to the .env file. If None, uses default behavior.
    """
    global _env_loaded
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    _env_loaded = True


def _check_env_loaded() -> None:
    """Check if environment variables have been loaded, raise error if not."""
    if not _env_loaded:
        raise RuntimeError(
            "Environment variables not loaded. Call load_env_file() before accessing configuration."
        )


T = TypeVar("T")


def safe_convert(value: Optional[str], target_type: Type[T], default: T) -> T:
    """Safely convert environment variable string to target type."""
    if value is None:
        return default

    try:
        if target_type == bool:
            return cast(T, value.strip().lower() in ("true", "1", "yes"))
        elif target_type == int:
            return cast(T, int(value))
        elif target_type == float:
            return cast(T, float(value))
        elif target_type == str:
            return cast(T, value)
        elif target_type == Path:
            return cast(T, Path(value))
        else:
            return default
    except (ValueError, TypeError):
        return default


def safe_optional_float(value: Optional[str], default: Optional[float]) -> Optional[float]:
    """Convert to float, treating "none" or an empty string as None."""
    if value is None:
        return default
    if value.strip().lower() in ("", "none", "null"):
        return None
    try:
        return float(value)
    except ValueError:
        return default


def load_transport_config() -> TransportConfig:
    """Load transport configuration from environment variables."""
    _check_env_loaded()

    return TransportConfig(
        endpoint=os.getenv("WSKEEPER_ENDPOINT", DEFAULT_ENDPOINT),
        ping_interval=safe_optional_float(
            os.getenv("WSKEEPER_PING_INTERVAL"), DEFAULT_PING_INTERVAL
        ),
        ping_timeout=safe_optional_float(
            os.getenv("WSKEEPER_PING_TIMEOUT"), DEFAULT_PING_TIMEOUT
        ),
        open_timeout=safe_optional_float(
            os.getenv("WSKEEPER_OPEN_TIMEOUT"), DEFAULT_OPEN_TIMEOUT
        ),
        close_timeout=safe_optional_float(
            os.getenv("WSKEEPER_CLOSE_TIMEOUT"), DEFAULT_CLOSE_TIMEOUT
        ),
        max_size=safe_convert(os.getenv("WSKEEPER_MAX_SIZE"), int, DEFAULT_MAX_SIZE),
    )


def load_retry_config() -> RetryConfig:
    """Load reconnect backoff configuration from environment variables."""
    _check_env_loaded()

    return RetryConfig(
        base=safe_convert(os.getenv("WSKEEPER_RETRY_BASE"), float, float(DEFAULT_RETRY_BASE)),
        interval=safe_convert(
            os.getenv("WSKEEPER_RETRY_INTERVAL"), float, DEFAULT_RETRY_INTERVAL
        ),
        max_delay=safe_optional_float(os.getenv("WSKEEPER_MAX_RETRY_DELAY"), None),
    )


def load_sentinel_config() -> SentinelConfig:
    """Load control-signal payloads from environment variables."""
    _check_env_loaded()

    return SentinelConfig(
        background=os.getenv("WSKEEPER_BACKGROUND_SENTINEL", BACKGROUND_SENTINEL),
        foreground=os.getenv("WSKEEPER_FOREGROUND_SENTINEL", FOREGROUND_SENTINEL),
    )


def load_logging_config() -> LoggingConfig:
    """Load logging configuration from environment variables."""
    _check_env_loaded()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = LogLevel.INFO
    try:
        log_level = LogLevel(log_level_str)
    except ValueError:
        pass

    return LoggingConfig(
        level=log_level,
        format=os.getenv(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
        log_filename=os.getenv("LOG_FILENAME", f"{LOGGER_NAME}.log"),
        max_log_size=safe_convert(os.getenv("LOG_MAX_SIZE"), int, 10 * 1024 * 1024),
        backup_count=safe_convert(os.getenv("LOG_BACKUP_COUNT"), int, 5),
        console_output=safe_convert(os.getenv("LOG_CONSOLE_OUTPUT"), bool, True),
        file_output=safe_convert(os.getenv("LOG_FILE_ENABLED"), bool, True),
    )


def load_application_config() -> ApplicationConfig:
    """Load complete configuration from environment variables."""
    _check_env_loaded()

    config = ApplicationConfig(
        transport=load_transport_config(),
        retry=load_retry_config(),
        sentinels=load_sentinel_config(),
        logging=load_logging_config(),
        state_history_size=safe_convert(
            os.getenv("WSKEEPER_STATE_HISTORY_SIZE"), int, DEFAULT_STATE_HISTORY_SIZE
        ),
    )

    validation_errors = config.validate()
    if validation_errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {error}" for error in validation_errors
        )
        raise ValueError(error_msg)

    return config

