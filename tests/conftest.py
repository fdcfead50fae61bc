"""
Pytest configuration file for the wskeeper test suite.

Provides an in-memory transport and a manually advanced timer so the
supervisor's state machine can be driven deterministically, without sockets
or real sleeps.
"""

import asyncio
import logging
from collections import deque
from typing import Callable, List, Optional

import pytest
import pytest_asyncio

from wskeeper.handlers.error_handler import ErrorHandler
from wskeeper.supervisor import ConnectionSupervisor

_CLOSE = object()


class FakeConnection:
    """In-memory connection. Tests push inbound items and termination events."""

    def __init__(self):
        self.sent: List = []
        self.closed = False
        self.close_calls = 0
        self.close_code: Optional[int] = None
        self._inbound: asyncio.Queue = asyncio.Queue()

    async def send(self, data) -> None:
        if self.closed:
            raise ConnectionError("connection is closed")
        self.sent.append(data)

    async def close(self) -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self._inbound.put_nowait(_CLOSE)

    def feed(self, payload) -> None:
        """Deliver an inbound payload."""
        self._inbound.put_nowait(payload)

    def drop(
        self, error: Optional[BaseException] = None, close_code: Optional[int] = None
    ) -> None:
        """Terminate the stream from the remote side, with an error or cleanly."""
        self.closed = True
        self.close_code = close_code
        self._inbound.put_nowait(error if error is not None else _CLOSE)

    async def __aiter__(self):
        while True:
            item = await self._inbound.get()
            if item is _CLOSE:
                return
            if isinstance(item, BaseException):
                raise item
            yield item


class FakeTransport:
    """Transport that hands out FakeConnections or raises queued errors."""

    def __init__(self):
        self.connections: List[FakeConnection] = []
        self.endpoints: List[str] = []
        self.handshake_gate: Optional[asyncio.Event] = None
        self._failures: deque = deque()

    @property
    def open_calls(self) -> int:
        return len(self.endpoints)

    @property
    def last_connection(self) -> FakeConnection:
        return self.connections[-1]

    def fail_next(self, error: BaseException) -> None:
        self._failures.append(error)

    async def open(self, endpoint: str) -> FakeConnection:
        self.endpoints.append(endpoint)
        if self.handshake_gate is not None:
            await self.handshake_gate.wait()
        if self._failures:
            raise self._failures.popleft()
        connection = FakeConnection()
        self.connections.append(connection)
        return connection


class ManualTimerHandle:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.fired = False
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualTimer:
    """Timer whose callbacks only run when a test fires them."""

    def __init__(self):
        self.handles: List[ManualTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimerHandle:
        handle = ManualTimerHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualTimerHandle]:
        return [h for h in self.handles if not h.fired and not h.cancelled()]

    @property
    def delays(self) -> List[float]:
        return [h.delay for h in self.handles]

    def fire_next(self) -> None:
        handle = self.pending[0]
        handle.fired = True
        handle.callback()


async def _settle(rounds: int = 20) -> None:
    """Let pending tasks on the loop run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def error_handler():
    return ErrorHandler()


@pytest.fixture
def received():
    """Collects application messages passed to the message handler."""
    return []


@pytest_asyncio.fixture
async def supervisor(transport, timer, error_handler, received):
    """A supervisor wired to the fake transport and manual timer."""
    supervisor = ConnectionSupervisor(
        "ws://test.invalid/channel",
        transport=transport,
        timer=timer,
        error_handler=error_handler,
        message_handler=received.append,
    )
    yield supervisor
    await supervisor.dispose()


@pytest.fixture
def settle():
    """Coroutine function that runs the loop until pending work blocks."""
    return _settle
