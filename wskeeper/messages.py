"""
Inbound message decoding and outbound serialization.

Inbound payloads are decoded into one of two variants:

- ``ControlSignal``: the payload is exactly one of the configured sentinel
  strings ("background" / "foreground").
- ``ApplicationMessage``: everything else, handed to the message handler.

Decoding never raises. Payloads that are not valid UTF-8 or not JSON still
become an ``ApplicationMessage``, with the undecodable parts left as None.
"""

import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from wskeeper.config.models import SentinelConfig

logger = logging.getLogger(__name__)


class SignalKind(Enum):
    """Control signals carried by sentinel payloads."""

    BACKGROUND = "background"
    FOREGROUND = "foreground"


@dataclass(frozen=True)
class ControlSignal:
    kind: SignalKind
    raw: Union[str, bytes]


@dataclass(frozen=True)
class ApplicationMessage:
    """
    A general inbound message.

    Attributes:
        raw: The payload exactly as the transport delivered it
        text: The payload as text, None if it was not valid UTF-8
        data: The JSON-decoded payload, None if it was not JSON
    """

    raw: Union[str, bytes]
    text: Optional[str] = None
    data: Any = None


InboundMessage = Union[ControlSignal, ApplicationMessage]

MessageHandler = Callable[[ApplicationMessage], Union[None, Awaitable[None]]]
Hook = Callable[[], Union[None, Awaitable[None]]]
Serializer = Callable[[Any], Union[str, bytes]]


def _noop_background() -> None:
    logger.info("Background signal received (no audio hook attached)")


def _noop_foreground() -> None:
    logger.info("Foreground signal received (no audio hook attached)")


@dataclass
class SideEffectHooks:
    """
    Actions triggered by control signals.

    on_background starts looping audio playback; on_foreground stops it.
    The playback itself lives outside this package.
    """

    on_background: Hook = _noop_background
    on_foreground: Hook = _noop_foreground

    def for_signal(self, kind: SignalKind) -> Hook:
        if kind is SignalKind.BACKGROUND:
            return self.on_background
        return self.on_foreground


def _as_text(raw: Union[str, bytes]) -> Optional[str]:
    if isinstance(raw, str):
        return raw
    try:
        return bytes(raw).decode("utf-8")
    except (UnicodeDecodeError, TypeError):
        return None


def decode_message(
    raw: Union[str, bytes], sentinels: Optional[SentinelConfig] = None
) -> InboundMessage:
    """Decode a raw inbound payload into a control signal or application message."""
    sentinels = sentinels or SentinelConfig()
    text = _as_text(raw)

    # Sentinels are compared verbatim, before any JSON parsing.
    if text == sentinels.background:
        return ControlSignal(SignalKind.BACKGROUND, raw)
    if text == sentinels.foreground:
        return ControlSignal(SignalKind.FOREGROUND, raw)

    data = None
    if text is not None:
        try:
            data = json.loads(text)
        except ValueError:
            logger.debug("Inbound payload is not JSON, passing it through as text")

    return ApplicationMessage(raw=raw, text=text, data=data)


def json_serializer(message: Any) -> str:
    """Default outbound serializer."""
    return json.dumps(message)


async def call_handler(handler: Callable, *args) -> None:
    """Call a sync or async handler. Exceptions propagate to the caller."""
    result = handler(*args)
    if inspect.isawaitable(result):
        await result
