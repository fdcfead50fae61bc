"""
Connection lifecycle models.

Defines the states a supervised connection moves through, the failure
taxonomy used for diagnostics, and the bookkeeping for reconnect attempts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from wskeeper.timer import TimerHandle


class ConnectionState(str, Enum):
    """Lifecycle of the supervised WebSocket connection."""

    # Handshake in flight, no open confirmed yet.
    CONNECTING = "connecting"

    # Handshake complete. Sends are permitted.
    OPEN = "open"

    # Local shutdown initiated, waiting for the stream to terminate.
    CLOSING = "closing"

    # No active socket. A new attempt may be started from here.
    CLOSED = "closed"


class ConnectionErrorType(Enum):
    """Why a connection attempt ended without a local close request."""

    CONNECTION_FAILED = "connection_failed"
    UNEXPECTEDLY_CLOSED = "unexpectedly_closed"
    AUTHENTICATION_FAILED = "authentication_failed"

    def __str__(self) -> str:
        return _ERROR_DESCRIPTIONS[self]


_ERROR_DESCRIPTIONS = {
    ConnectionErrorType.CONNECTION_FAILED: "Failed to establish a WebSocket connection.",
    ConnectionErrorType.UNEXPECTEDLY_CLOSED: "WebSocket connection is closed unexpectedly.",
    ConnectionErrorType.AUTHENTICATION_FAILED: "Failed to authenticate the WebSocket connection.",
}


@dataclass
class RetryState:
    """
    Reconnect bookkeeping owned by the supervisor.

    retry_count is reset to 0 on every successful open and incremented on
    every failed or unexpected closure before the retry is scheduled.
    pending_timer holds the single in-flight retry, if any.
    """

    retry_count: int = 0
    pending_timer: Optional[TimerHandle] = None

    @property
    def has_pending_timer(self) -> bool:
        return self.pending_timer is not None and not self.pending_timer.cancelled()

    def cancel_pending(self) -> bool:
        """Cancel the pending retry. Returns True if one was pending."""
        timer, self.pending_timer = self.pending_timer, None
        if timer is None or timer.cancelled():
            return False
        timer.cancel()
        return True

    def reset(self) -> None:
        self.retry_count = 0


@dataclass(frozen=True)
class StateTransition:
    """A single observed change of ConnectionState."""

    previous: ConnectionState
    current: ConnectionState
    reason: Optional[ConnectionErrorType] = None
    timestamp: datetime = field(default_factory=datetime.now)
