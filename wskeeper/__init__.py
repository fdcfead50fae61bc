"""
wskeeper: a persistent, self-healing WebSocket client.

ConnectionSupervisor keeps one connection to a fixed endpoint alive,
reconnecting with exponential backoff, and exposes its connection state and
a best-effort send to the rest of the application.
"""

from .messages import (
    ApplicationMessage,
    ControlSignal,
    SideEffectHooks,
    SignalKind,
    decode_message,
    json_serializer,
)
from .models.connection_state import (
    ConnectionErrorType,
    ConnectionState,
    RetryState,
    StateTransition,
)
from .supervisor import ConnectionLostError, ConnectionSupervisor, classify_termination
from .timer import AsyncioTimer
from .transport import (
    AuthenticationError,
    TransportConnectError,
    TransportError,
    WebSocketTransport,
)

__version__ = "0.1.0"

__all__ = [
    "ApplicationMessage",
    "AsyncioTimer",
    "AuthenticationError",
    "ConnectionErrorType",
    "ConnectionLostError",
    "ConnectionState",
    "ConnectionSupervisor",
    "ControlSignal",
    "RetryState",
    "SideEffectHooks",
    "SignalKind",
    "StateTransition",
    "TransportConnectError",
    "TransportError",
    "WebSocketTransport",
    "classify_termination",
    "decode_message",
    "json_serializer",
]
