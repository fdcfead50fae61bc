from .error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorInfo,
    ErrorSeverity,
    get_error_handler,
    handle_error,
    register_error_handler,
)

__all__ = [
    "ErrorContext",
    "ErrorHandler",
    "ErrorInfo",
    "ErrorSeverity",
    "get_error_handler",
    "handle_error",
    "register_error_handler",
]
