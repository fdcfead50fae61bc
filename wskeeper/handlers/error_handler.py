"""
Centralized error reporting with callback support and categorization.

Errors raised inside the supervisor never propagate to its callers; they are
reported here instead. This module offers:

Key Features:
- Error categorization by context (connection, transport, message, timer)
- Severity-based logging
- Callback-based error handlers for custom processing
- Global and context-specific error handlers
- Error statistics for monitoring
- Async/sync handler support with proper error isolation

Usage:
    async def my_error_handler(error_info: ErrorInfo):
        ...

    register_error_handler(my_error_handler, ErrorContext.CONNECTION)

    await handle_error(
        exception,
        context=ErrorContext.CONNECTION,
        severity=ErrorSeverity.HIGH,
        operation="connect",
    )
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class ErrorContext(Enum):
    """Error context types for categorizing errors."""

    CONNECTION = "connection"
    TRANSPORT = "transport"
    MESSAGE = "message"
    TIMER = "timer"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_SEVERITY_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.DEBUG,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorInfo:
    """Simple error information structure."""

    error: BaseException
    context: ErrorContext
    severity: ErrorSeverity
    operation: str
    metadata: Dict[str, Any]
    timestamp: datetime


class ErrorHandler:
    """
    Error reporting system with callback support.

    Keeps per-context counts and fans each reported error out to the
    handlers registered for its context, then to the global handlers.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize the error handler."""
        self.logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[ErrorContext, List[Callable]] = {
            context: [] for context in ErrorContext
        }
        self._global_handlers: List[Callable] = []
        self._error_count: Dict[ErrorContext, int] = {
            context: 0 for context in ErrorContext
        }

    def register_handler(
        self,
        handler: Callable[[ErrorInfo], Any],
        context: Optional[ErrorContext] = None,
    ) -> None:
        """
        Register an error handler for a specific context or globally.

        Args:
            handler: Error handler function that takes ErrorInfo as parameter
            context: Error context to handle (None for global handlers)
        """
        if context is None:
            self._global_handlers.append(handler)
            self.logger.debug("Registered global error handler")
        else:
            self._handlers[context].append(handler)
            self.logger.debug(f"Registered error handler for {context.value}")

    def unregister_handler(
        self, handler: Callable, context: Optional[ErrorContext] = None
    ) -> bool:
        """
        Unregister an error handler.

        Returns:
            bool: True if handler was found and removed
        """
        target_list = (
            self._global_handlers if context is None else self._handlers[context]
        )

        if handler in target_list:
            target_list.remove(handler)
            self.logger.debug(
                f"Unregistered error handler for {context.value if context else 'global'}"
            )
            return True
        return False

    async def handle_error(
        self,
        error: BaseException,
        context: ErrorContext = ErrorContext.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        operation: str = "unknown",
        **metadata,
    ) -> None:
        """
        Handle an error using registered callbacks.

        Args:
            error: The exception that occurred
            context: Error context for categorization
            severity: Error severity level
            operation: Name of the operation that failed
            **metadata: Additional context-specific metadata
        """
        error_info = self._record(error, context, severity, operation, metadata)

        await self._execute_handlers(self._handlers[context], error_info)
        await self._execute_handlers(self._global_handlers, error_info)

    def report_error(
        self,
        error: BaseException,
        context: ErrorContext = ErrorContext.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        operation: str = "unknown",
        **metadata,
    ) -> None:
        """
        Synchronous variant of handle_error for callers outside a coroutine.

        Sync handlers run inline; coroutine handlers are scheduled on the
        running loop, or skipped when no loop is running.
        """
        error_info = self._record(error, context, severity, operation, metadata)

        for handler in self._handlers[context] + self._global_handlers:
            try:
                if asyncio.iscoroutinefunction(handler):
                    try:
                        loop = asyncio.get_running_loop()
                    except RuntimeError:
                        self.logger.debug("No running loop for async error handler")
                        continue
                    loop.create_task(handler(error_info))
                else:
                    handler(error_info)
            except Exception as handler_error:
                self.logger.error(f"Error in error handler: {handler_error}")

    def _record(
        self,
        error: BaseException,
        context: ErrorContext,
        severity: ErrorSeverity,
        operation: str,
        metadata: Dict[str, Any],
    ) -> ErrorInfo:
        self._error_count[context] += 1
        self.logger.log(
            _SEVERITY_LOG_LEVELS[severity],
            f"Error in {context.value} ({operation}): {error}",
        )
        return ErrorInfo(
            error=error,
            context=context,
            severity=severity,
            operation=operation,
            metadata=metadata,
            timestamp=datetime.now(),
        )

    async def _execute_handlers(
        self, handlers: List[Callable], error_info: ErrorInfo
    ) -> None:
        """Execute error handlers with proper error isolation."""
        for handler in list(handlers):
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(error_info)
                else:
                    handler(error_info)
            except Exception as handler_error:
                self.logger.error(f"Error in error handler: {handler_error}")

    def get_error_stats(self) -> Dict[str, Any]:
        """Get simple error statistics."""
        return {
            "error_counts": {
                ctx.value: count for ctx, count in self._error_count.items()
            },
            "total_errors": sum(self._error_count.values()),
            "registered_handlers": {
                ctx.value: len(handlers) for ctx, handlers in self._handlers.items()
            },
            "global_handlers": len(self._global_handlers),
        }

    def reset_stats(self) -> None:
        """Reset error statistics."""
        self._error_count = {context: 0 for context in ErrorContext}


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def register_error_handler(
    handler: Callable[[ErrorInfo], Any], context: Optional[ErrorContext] = None
) -> None:
    """Register an error handler on the global error handler."""
    get_error_handler().register_handler(handler, context)


async def handle_error(
    error: BaseException,
    context: ErrorContext = ErrorContext.UNKNOWN,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    operation: str = "unknown",
    **metadata,
) -> None:
    """Handle an error using the global error handler."""
    await get_error_handler().handle_error(
        error, context, severity, operation, **metadata
    )
