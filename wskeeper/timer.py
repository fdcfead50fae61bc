"""
One-shot delayed callbacks for reconnect scheduling.

The supervisor only needs to schedule a single callback and be able to cancel
it, so the facility is a narrow protocol. AsyncioTimer binds it to the event
loop the supervisor runs on; tests substitute a manually advanced timer.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Handle for a scheduled callback. asyncio.TimerHandle satisfies it."""

    def cancel(self) -> None:
        ...

    def cancelled(self) -> bool:
        ...


class Timer(Protocol):
    """Schedules a callback to run once after ``delay`` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioTimer:
    """Timer backed by ``loop.call_later``.

    Uses the running loop at scheduling time unless a loop is given, so the
    callback always runs on the same loop as the supervisor.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        logger.debug(f"Scheduling callback in {delay:.3f}s")
        return loop.call_later(delay, callback)
