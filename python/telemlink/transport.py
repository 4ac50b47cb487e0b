"""Transport adapters for telemlink sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from websockets.asyncio.client import connect
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidHandshake,
    InvalidURI,
)
from websockets.uri import parse_uri

logger = logging.getLogger(__name__)

# Bridge endpoint (must match the bridge's WebSocket listener)
DEFAULT_PORT = 8081
DEFAULT_PATH = "/ws"

# Largest single message accepted from the bridge
MAX_MESSAGE_SIZE = 1_048_576


class ConstructionError(ValueError):
    """The endpoint was rejected before any connection attempt."""


class TransportError(ConnectionError):
    """Opening the connection failed, or it dropped abnormally."""


def endpoint_url(host: str, secure: bool = False,
                 port: int = DEFAULT_PORT, path: str = DEFAULT_PATH) -> str:
    """Build the bridge endpoint, ``wss`` when the host context is secure."""
    scheme = "wss" if secure else "ws"
    return f"{scheme}://{host}:{port}{path}"


class Transport(Protocol):
    """Abstract text-message transport.

    ``read()`` returns the next message, or None once the peer has closed
    the connection cleanly.
    """

    url: str

    async def open(self) -> None: ...
    async def read(self) -> str | None: ...
    async def close(self) -> None: ...


class TransportFactory(Protocol):
    def __call__(self, url: str) -> Transport: ...


class WebSocketTransport:
    """WebSocket client transport (requires websockets)."""

    def __init__(self, url: str, open_timeout: float = 10.0,
                 close_timeout: float = 5.0):
        try:
            parse_uri(url)
        except InvalidURI as e:
            raise ConstructionError(f"invalid endpoint {url!r}: {e}") from e
        self.url = url
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout
        self._ws = None

    async def open(self) -> None:
        try:
            self._ws = await connect(
                self.url,
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
                max_size=MAX_MESSAGE_SIZE,
            )
        # ValueError covers hosts the resolver rejects (UnicodeError on IDNA)
        except (OSError, ValueError, InvalidHandshake,
                asyncio.TimeoutError) as e:
            raise TransportError(f"could not connect to {self.url}: {e}") from e

    async def read(self) -> str | None:
        if self._ws is None:
            raise TransportError("transport is not open")
        try:
            msg = await self._ws.recv()
        except ConnectionClosedOK:
            return None
        except ConnectionClosed as e:
            raise TransportError(f"connection to {self.url} lost: {e}") from e
        if isinstance(msg, bytes):
            msg = msg.decode("utf-8", errors="replace")
        return msg

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
