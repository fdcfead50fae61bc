"""
Transport layer for the connection supervisor.

The supervisor talks to the network only through the ``Transport`` and
``Connection`` protocols defined here. ``WebSocketTransport`` is the
production implementation on top of the ``websockets`` library.

Contract:
- ``Transport.open(endpoint)`` completes the handshake and returns a
  ``Connection``, or raises a ``TransportError``.
- Iterating a ``Connection`` yields raw payloads (``str`` or ``bytes``).
  Iteration ends normally on a clean close and raises on an abnormal one.
- ``Connection.close()`` starts the close handshake; iteration terminates
  once it completes.
"""

import asyncio
import logging
from typing import AsyncIterator, Dict, Optional, Protocol, Union

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import (
    ConnectionClosed,
    InvalidHandshake,
    InvalidStatus,
    InvalidURI,
)

from wskeeper.config.models import TransportConfig

logger = logging.getLogger(__name__)

Payload = Union[str, bytes]

# HTTP statuses on the handshake response that mean the server refused us
AUTH_REJECTION_STATUSES = frozenset({401, 403})


class TransportError(Exception):
    """Base class for errors raised by a Transport."""


class TransportConnectError(TransportError):
    """The handshake could not be completed."""


class AuthenticationError(TransportConnectError):
    """The server rejected the handshake as unauthenticated or forbidden."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class Connection(Protocol):
    """An open socket: outbound sink plus inbound stream."""

    async def send(self, data: Payload) -> None:
        ...

    async def close(self) -> None:
        ...

    def __aiter__(self) -> AsyncIterator[Payload]:
        ...

    @property
    def close_code(self) -> Optional[int]:
        """Close code received from the peer, None while open or if none was sent."""
        ...


class Transport(Protocol):
    """Opens connections to an endpoint."""

    async def open(self, endpoint: str) -> Connection:
        ...


class WebSocketConnection:
    """Connection backed by a ``websockets`` client connection."""

    def __init__(self, websocket: ClientConnection):
        self.websocket = websocket

    async def send(self, data: Payload) -> None:
        await self.websocket.send(data)

    async def close(self) -> None:
        await self.websocket.close()

    async def __aiter__(self) -> AsyncIterator[Payload]:
        # websockets ends iteration on a normal closure and raises
        # ConnectionClosedError otherwise.
        async for message in self.websocket:
            yield message

    @property
    def close_code(self) -> Optional[int]:
        return self.websocket.close_code


class WebSocketTransport:
    """Transport that opens WebSocket connections with the ``websockets`` client."""

    def __init__(self, config: Optional[TransportConfig] = None):
        self.config = config or TransportConfig()

    def _connect_kwargs(self) -> Dict:
        kwargs = {
            "ping_interval": self.config.ping_interval,
            "ping_timeout": self.config.ping_timeout,
            "open_timeout": self.config.open_timeout,
            "close_timeout": self.config.close_timeout,
            "max_size": self.config.max_size,
        }
        if self.config.headers:
            kwargs["additional_headers"] = dict(self.config.headers)
        return kwargs

    async def open(self, endpoint: str) -> WebSocketConnection:
        """Connect to ``endpoint`` and return the open connection.

        Raises:
            AuthenticationError: handshake rejected with 401 or 403
            TransportConnectError: any other handshake or network failure
        """
        logger.info(f"Connecting to {endpoint}")
        try:
            websocket = await connect(endpoint, **self._connect_kwargs())
        except InvalidStatus as e:
            status_code = e.response.status_code
            if status_code in AUTH_REJECTION_STATUSES:
                raise AuthenticationError(
                    f"Handshake rejected with HTTP {status_code}", status_code
                ) from e
            raise TransportConnectError(
                f"Handshake rejected with HTTP {status_code}"
            ) from e
        except InvalidURI as e:
            raise TransportConnectError(f"Invalid endpoint: {endpoint}") from e
        except (InvalidHandshake, ConnectionClosed) as e:
            raise TransportConnectError(f"Handshake failed: {e}") from e
        except (OSError, asyncio.TimeoutError) as e:
            raise TransportConnectError(f"Could not reach {endpoint}: {e!r}") from e

        logger.info(f"Connected to {endpoint}")
        return WebSocketConnection(websocket)
