from .connection_state import (
    ConnectionErrorType,
    ConnectionState,
    RetryState,
    StateTransition,
)

__all__ = [
    "ConnectionErrorType",
    "ConnectionState",
    "RetryState",
    "StateTransition",
]
