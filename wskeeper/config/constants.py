"""
Constants and configuration values used throughout the package.

This module defines constants that are used across different parts of the package,
providing a centralized location for default values and keeping naming
consistent throughout the codebase.
"""

# Logger name used throughout the package
LOGGER_NAME = "wskeeper"

# Endpoint the supervisor connects to when none is configured
DEFAULT_ENDPOINT = "ws://echo.websocket.org"

# Transport defaults (seconds unless noted)
DEFAULT_PING_INTERVAL = 20.0
DEFAULT_PING_TIMEOUT = 20.0
DEFAULT_OPEN_TIMEOUT = 10.0  # websockets' own handshake default
DEFAULT_CLOSE_TIMEOUT = 10.0
DEFAULT_MAX_SIZE = 1024 * 1024  # 1 MiB per inbound message

# Retry backoff: delay = DEFAULT_RETRY_INTERVAL * DEFAULT_RETRY_BASE ** retry_count
DEFAULT_RETRY_BASE = 2
DEFAULT_RETRY_INTERVAL = 1.0

# Control-signal payloads sent by the companion app. Matched verbatim,
# the surrounding quotes are part of the payload.
BACKGROUND_SENTINEL = '"App is in the background"'
FOREGROUND_SENTINEL = '"App is in the foreground"'

# Number of state transitions kept for inspection
DEFAULT_STATE_HISTORY_SIZE = 50
