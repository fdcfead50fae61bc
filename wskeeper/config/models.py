"""
Configuration models for wskeeper.

This module defines dataclasses for the different configuration domains,
providing type safety and validation for all supervisor settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from wskeeper.config.constants import (
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


class LogLevel(Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class TransportConfig:
    """WebSocket transport settings."""

    endpoint: str = DEFAULT_ENDPOINT
    ping_interval: Optional[float] = DEFAULT_PING_INTERVAL
    ping_timeout: Optional[float] = DEFAULT_PING_TIMEOUT
    open_timeout: Optional[float] = DEFAULT_OPEN_TIMEOUT
    close_timeout: Optional[float] = DEFAULT_CLOSE_TIMEOUT
    max_size: Optional[int] = DEFAULT_MAX_SIZE
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class RetryConfig:
    """Reconnect backoff settings.

    The n-th consecutive retry waits ``interval * base ** n`` seconds.
    ``max_delay`` of None leaves the backoff uncapped.
    """

    base: float = DEFAULT_RETRY_BASE
    interval: float = DEFAULT_RETRY_INTERVAL
    max_delay: Optional[float] = None


@dataclass
class SentinelConfig:
    """Payloads interpreted as control signals instead of application data."""

    background: str = BACKGROUND_SENTINEL
    foreground: str = FOREGROUND_SENTINEL


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_filename: str = f"{LOGGER_NAME}.log"
    max_log_size: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    console_output: bool = True
    file_output: bool = True


@dataclass
class ApplicationConfig:
    """Master configuration containing all domain configs."""

    transport: TransportConfig = field(default_factory=TransportConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    sentinels: SentinelConfig = field(default_factory=SentinelConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    state_history_size: int = DEFAULT_STATE_HISTORY_SIZE

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.transport.endpoint.startswith(("ws://", "wss://")):
            errors.append("Endpoint must be a ws:// or wss:// URL")

        if self.retry.base < 1:
            errors.append("Retry base must be at least 1")

        if self.retry.interval < 0:
            errors.append("Retry interval must not be negative")

        if self.retry.max_delay is not None and self.retry.max_delay < 0:
            errors.append("Maximum retry delay must not be negative")

        if self.sentinels.background == self.sentinels.foreground:
            errors.append("Background and foreground sentinels must differ")

        if self.state_history_size < 0:
            errors.append("State history size must not be negative")

        return errors
