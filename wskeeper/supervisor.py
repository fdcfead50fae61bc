"""
Self-healing WebSocket connection supervisor.

ConnectionSupervisor keeps a single connection to a fixed endpoint alive. It
owns the socket, is the only writer of the connection state, and reconnects
with exponential backoff whenever the connection fails or drops without a
local close request.

State machine:

    CLOSED  --connect_and_subscribe()-->  CONNECTING
    CONNECTING --open confirmed-->        OPEN         (retry_count = 0)
    CONNECTING/OPEN --stream ends-->      CLOSED       (+ retry scheduled)
    any active --close()-->               CLOSING
    CLOSING --stream ends-->              CLOSED       (no retry)

All transitions, timer callbacks and stream events run on the event loop the
supervisor was started on, so no locking is needed. Each connection attempt
carries a generation number; events from a superseded attempt are ignored.

Usage:
    supervisor = ConnectionSupervisor(
        "wss://example.org/channel",
        message_handler=on_message,
        hooks=SideEffectHooks(on_background=player.play_loop, on_foreground=player.stop),
    )
    supervisor.connect_and_subscribe()
    ...
    await supervisor.send({"type": "ping"})
    ...
    await supervisor.dispose()
"""

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from wskeeper.config.constants import DEFAULT_ENDPOINT, DEFAULT_STATE_HISTORY_SIZE
from wskeeper.config.models import ApplicationConfig, RetryConfig, SentinelConfig
from wskeeper.handlers.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    get_error_handler,
)
from wskeeper.messages import (
    ControlSignal,
    MessageHandler,
    Serializer,
    SideEffectHooks,
    call_handler,
    decode_message,
    json_serializer,
)
from wskeeper.models.connection_state import (
    ConnectionErrorType,
    ConnectionState,
    RetryState,
    StateTransition,
)
from wskeeper.timer import AsyncioTimer, Timer
from wskeeper.transport import (
    AuthenticationError,
    Connection,
    Transport,
    WebSocketTransport,
)
from wskeeper.utils.retry_utils import RetryUtils

logger = logging.getLogger(__name__)

StateListener = Callable[[StateTransition], None]


class ConnectionLostError(Exception):
    """Reported when a stream ends without a local close request."""

    def __init__(self, error_type: ConnectionErrorType):
        super().__init__(str(error_type))
        self.error_type = error_type


def classify_termination(
    state: ConnectionState, error: Optional[BaseException] = None
) -> Optional[ConnectionErrorType]:
    """
    Classify a stream termination observed in ``state``.

    Returns None when the termination was expected (CLOSING) or
    irrelevant (CLOSED).
    """
    if state is ConnectionState.CONNECTING:
        if isinstance(error, AuthenticationError):
            return ConnectionErrorType.AUTHENTICATION_FAILED
        return ConnectionErrorType.CONNECTION_FAILED
    if state is ConnectionState.OPEN:
        return ConnectionErrorType.UNEXPECTEDLY_CLOSED
    return None


class ConnectionSupervisor:
    """Owns one WebSocket connection and keeps it alive."""

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        transport: Optional[Transport] = None,
        message_handler: Optional[MessageHandler] = None,
        hooks: Optional[SideEffectHooks] = None,
        timer: Optional[Timer] = None,
        serializer: Serializer = json_serializer,
        error_handler: Optional[ErrorHandler] = None,
        retry_config: Optional[RetryConfig] = None,
        sentinels: Optional[SentinelConfig] = None,
        state_history_size: int = DEFAULT_STATE_HISTORY_SIZE,
    ):
        """
        Args:
            endpoint: WebSocket URL to keep connected to
            transport: Opens connections; WebSocketTransport by default
            message_handler: Called once per inbound application message
            hooks: Actions for the background/foreground control signals
            timer: Schedules reconnect attempts; AsyncioTimer by default
            serializer: Encodes outbound messages; JSON by default
            error_handler: Receives diagnostic error reports
            retry_config: Backoff base, interval and optional cap
            sentinels: Payloads treated as control signals
            state_history_size: Number of transitions kept in state_history
        """
        self._endpoint = endpoint
        self._transport = transport or WebSocketTransport()
        self._message_handler = message_handler
        self._hooks = hooks or SideEffectHooks()
        self._timer = timer or AsyncioTimer()
        self._serializer = serializer
        self._error_handler = error_handler or get_error_handler()
        self._retry_config = retry_config or RetryConfig()
        self._sentinels = sentinels or SentinelConfig()

        self._state = ConnectionState.CLOSED
        self._retry = RetryState()
        self._connection: Optional[Connection] = None
        self._attempt_task: Optional[asyncio.Task] = None
        self._generation = 0
        self._disposed = False

        self._listeners: List[StateListener] = []
        self._history: Deque[StateTransition] = deque(maxlen=state_history_size)

        # Statistics
        self._attempts_started = 0
        self._messages_received = 0
        self._messages_sent = 0
        self._messages_dropped = 0
        self._last_error: Optional[ConnectionErrorType] = None
        self._last_retry_delay: Optional[float] = None

    @classmethod
    def from_config(cls, config: ApplicationConfig, **kwargs) -> "ConnectionSupervisor":
        """Build a supervisor from an ApplicationConfig.

        Keyword arguments override the collaborators derived from config.
        """
        kwargs.setdefault("transport", WebSocketTransport(config.transport))
        kwargs.setdefault("retry_config", config.retry)
        kwargs.setdefault("sentinels", config.sentinels)
        kwargs.setdefault("state_history_size", config.state_history_size)
        return cls(config.transport.endpoint, **kwargs)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def retry_count(self) -> int:
        return self._retry.retry_count

    @property
    def has_pending_retry(self) -> bool:
        return self._retry.has_pending_timer

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def state_history(self) -> List[StateTransition]:
        return list(self._history)

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a callback invoked synchronously on every state change."""
        self._listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> bool:
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    async def wait_for_state(
        self, state: ConnectionState, timeout: Optional[float] = None
    ) -> None:
        """Wait until the supervisor enters ``state``.

        Raises:
            asyncio.TimeoutError: if ``timeout`` elapses first
        """
        if self._state is state:
            return

        future = asyncio.get_running_loop().create_future()

        def _listener(transition: StateTransition) -> None:
            if transition.current is state and not future.done():
                future.set_result(transition)

        self.add_state_listener(_listener)
        try:
            await asyncio.wait_for(future, timeout)
        finally:
            self.remove_state_listener(_listener)

    def get_connection_stats(self) -> Dict[str, Any]:
        """Get connection statistics."""
        return {
            "state": self._state.value,
            "endpoint": self._endpoint,
            "retry_count": self._retry.retry_count,
            "pending_retry": self._retry.has_pending_timer,
            "last_retry_delay": self._last_retry_delay,
            "disposed": self._disposed,
            "attempts_started": self._attempts_started,
            "messages_received": self._messages_received,
            "messages_sent": self._messages_sent,
            "messages_dropped": self._messages_dropped,
            "last_error": self._last_error.value if self._last_error else None,
        }

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def connect_and_subscribe(self) -> None:
        """
        Start a connection attempt if, and only if, the state is CLOSED.

        Repeated calls while an attempt or connection is active are no-ops,
        so at most one subscription to the channel exists. Must be called
        with the supervisor's event loop running.
        """
        if self._disposed:
            logger.debug("Supervisor disposed, ignoring connect request")
            return
        if self._state is not ConnectionState.CLOSED:
            logger.debug(f"Connection already {self._state.value}, ignoring connect request")
            return

        loop = asyncio.get_running_loop()

        # A manual connect supersedes any scheduled retry.
        if self._retry.cancel_pending():
            logger.debug("Cancelled pending retry in favour of a new attempt")

        self._generation += 1
        self._attempts_started += 1
        self._set_state(ConnectionState.CONNECTING)
        self._attempt_task = loop.create_task(self._run_attempt(self._generation))

    async def close(self) -> None:
        """
        Request a graceful shutdown of the current connection.

        No retry follows a close. When already CLOSED, a pending retry is
        cancelled instead.
        """
        if self._state is ConnectionState.CLOSED:
            if self._retry.cancel_pending():
                logger.info("Cancelled pending reconnect")
            return

        logger.info("Closing WebSocket connection")
        self._set_state(ConnectionState.CLOSING)

        # While CONNECTING there is no connection yet; the attempt closes it
        # as soon as the handshake completes.
        connection = self._connection
        if connection is not None:
            await self._close_connection(connection)

    async def send(self, message: Any) -> bool:
        """
        Send a message if the connection is OPEN.

        Messages sent in any other state are dropped without error and
        without queueing. Check ``state`` before relying on delivery.

        Returns:
            bool: True if the message was handed to the transport
        """
        connection = self._connection
        if self._state is not ConnectionState.OPEN or connection is None:
            self._messages_dropped += 1
            logger.debug(f"Dropping outbound message, connection is {self._state.value}")
            return False

        try:
            payload = self._serializer(message)
        except Exception as e:
            self._messages_dropped += 1
            await self._error_handler.handle_error(
                error=e,
                context=ErrorContext.MESSAGE,
                severity=ErrorSeverity.MEDIUM,
                operation="serialize_message",
            )
            return False

        try:
            await connection.send(payload)
        except Exception as e:
            # The receive loop observes the termination and handles it.
            self._messages_dropped += 1
            await self._error_handler.handle_error(
                error=e,
                context=ErrorContext.TRANSPORT,
                severity=ErrorSeverity.MEDIUM,
                operation="send_message",
            )
            return False

        self._messages_sent += 1
        return True

    async def dispose(self) -> None:
        """
        Tear the supervisor down for good.

        Cancels any pending retry, force-closes the connection whatever the
        state, and leaves the state CLOSED. Safe to call more than once.
        """
        if self._disposed:
            return
        self._disposed = True

        if self._retry.cancel_pending():
            logger.debug("Cancelled pending retry on dispose")

        # Invalidate the current attempt so its late events are ignored.
        self._generation += 1

        task, self._attempt_task = self._attempt_task, None
        connection, self._connection = self._connection, None

        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if connection is not None:
            await self._close_connection(connection)

        self._set_state(ConnectionState.CLOSED)
        logger.info("Connection supervisor disposed")

    async def __aenter__(self) -> "ConnectionSupervisor":
        self.connect_and_subscribe()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    # ------------------------------------------------------------------
    # Attempt lifecycle
    # ------------------------------------------------------------------

    async def _run_attempt(self, generation: int) -> None:
        """Open the transport and consume its stream until it terminates."""
        try:
            connection = await self._transport.open(self._endpoint)
        except Exception as e:
            await self._on_closed(generation, e)
            return

        if generation != self._generation:
            logger.debug("Handshake completed for a superseded attempt, closing it")
            await self._close_connection(connection)
            return

        self._connection = connection
        if self._state is ConnectionState.CLOSING:
            await self._close_connection(connection)
        else:
            self._on_connected()

        error: Optional[BaseException] = None
        try:
            async for raw in connection:
                if generation != self._generation:
                    break
                await self._on_message(raw)
        except Exception as e:
            error = e

        await self._on_closed(generation, error, connection.close_code)

    def _on_connected(self) -> None:
        logger.info(f"Connected to {self._endpoint}")
        self._retry.reset()
        self._set_state(ConnectionState.OPEN)

    async def _on_message(self, raw: Union[str, bytes]) -> None:
        self._messages_received += 1
        message = decode_message(raw, self._sentinels)

        try:
            if isinstance(message, ControlSignal):
                logger.info(f"Received {message.kind.value} signal")
                await call_handler(self._hooks.for_signal(message.kind))
            elif self._message_handler is not None:
                await call_handler(self._message_handler, message)
            else:
                logger.debug(f"Received message with no handler attached: {message.text!r:.100}")
        except Exception as e:
            await self._error_handler.handle_error(
                error=e,
                context=ErrorContext.MESSAGE,
                severity=ErrorSeverity.MEDIUM,
                operation="dispatch_message",
                payload_preview=repr(raw)[:100],
            )

    async def _on_closed(
        self,
        generation: int,
        error: Optional[BaseException],
        close_code: Optional[int] = None,
    ) -> None:
        """Handle the termination of an attempt's stream."""
        if generation != self._generation:
            logger.debug("Ignoring termination of a superseded attempt")
            return

        self._connection = None
        self._attempt_task = None
        previous = self._state

        if previous is ConnectionState.CLOSED:
            return

        if previous is ConnectionState.CLOSING:
            logger.info("WebSocket connection closed by client")
            self._set_state(ConnectionState.CLOSED)
            return

        error_type = classify_termination(previous, error)
        # Scheduled before listeners run; one that reconnects cancels it.
        self._schedule_retry()
        self._set_state(ConnectionState.CLOSED, error_type)

        await self._error_handler.handle_error(
            error=error or ConnectionLostError(error_type),
            context=ErrorContext.CONNECTION,
            severity=(
                ErrorSeverity.HIGH
                if error_type is ConnectionErrorType.AUTHENTICATION_FAILED
                else ErrorSeverity.MEDIUM
            ),
            operation="connection_lost",
            error_type=error_type.value,
            endpoint=self._endpoint,
            retry_count=self._retry.retry_count,
            close_code=close_code,
        )

    # ------------------------------------------------------------------
    # Retry scheduling
    # ------------------------------------------------------------------

    def _schedule_retry(self) -> None:
        if self._disposed:
            return
        if self._retry.has_pending_timer:
            logger.warning("Retry already pending, not scheduling another")
            return

        delay = RetryUtils.calculate_backoff_delay(
            self._retry.retry_count,
            base_delay=self._retry_config.interval,
            max_delay=self._retry_config.max_delay,
            backoff_factor=self._retry_config.base,
        )
        self._retry.retry_count += 1
        self._last_retry_delay = delay

        logger.info(f"Reconnecting in {delay}s (retry {self._retry.retry_count})")
        try:
            self._retry.pending_timer = self._timer.call_later(delay, self._on_retry_timer)
        except Exception as e:
            self._error_handler.report_error(
                error=e,
                context=ErrorContext.TIMER,
                severity=ErrorSeverity.CRITICAL,
                operation="schedule_retry",
                delay=delay,
                retry_count=self._retry.retry_count,
            )

    def _on_retry_timer(self) -> None:
        self._retry.pending_timer = None
        if self._disposed:
            return
        self.connect_and_subscribe()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_state(
        self, state: ConnectionState, reason: Optional[ConnectionErrorType] = None
    ) -> None:
        if state is self._state:
            return

        transition = StateTransition(previous=self._state, current=state, reason=reason)
        self._state = state
        self._history.append(transition)
        if reason is not None:
            self._last_error = reason

        logger.debug(f"Connection state {transition.previous.value} -> {state.value}")

        for listener in list(self._listeners):
            try:
                listener(transition)
            except Exception as e:
                self._error_handler.report_error(
                    error=e,
                    context=ErrorContext.SYSTEM,
                    severity=ErrorSeverity.LOW,
                    operation="state_listener",
                )

    async def _close_connection(self, connection: Connection) -> None:
        try:
            await connection.close()
        except Exception as e:
            await self._error_handler.handle_error(
                error=e,
                context=ErrorContext.TRANSPORT,
                severity=ErrorSeverity.LOW,
                operation="close_connection",
            )
