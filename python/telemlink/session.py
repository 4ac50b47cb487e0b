"""Session manager: one live connection with bounded automatic reconnect.

All work happens on a single asyncio loop. One task per connection pumps
the transport; the reconnect delay is a cancellable ``call_later`` handle.
Consumers observe the session through a :class:`SessionListener`.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import queue
from dataclasses import dataclass
from typing import Protocol

from .decoder import ClassifiedRecord, decode
from .transport import (
    Transport,
    TransportError,
    TransportFactory,
    WebSocketTransport,
    endpoint_url,
)

logger = logging.getLogger(__name__)

MAX_RECONNECT_ATTEMPTS = 5
RECONNECT_DELAY = 2.0  # seconds


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = MAX_RECONNECT_ATTEMPTS
    delay: float = RECONNECT_DELAY


class SessionState(enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


class CloseReason(enum.Enum):
    UNEXPECTED = "unexpected"
    USER = "user"


class EventKind(enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERRORED = "errored"
    RECORD = "record"


@dataclass(frozen=True)
class SessionEvent:
    kind: EventKind
    message: str = ""
    record: ClassifiedRecord | None = None
    reason: CloseReason | None = None


class SessionListener(Protocol):
    """Receives session events, in order, on the session's loop."""

    def on_connected(self, message: str) -> None: ...
    def on_disconnected(self, message: str, reason: CloseReason) -> None: ...
    def on_error(self, message: str) -> None: ...
    def on_record(self, record: ClassifiedRecord) -> None: ...


class QueueListener:
    """Listener that turns callbacks into a channel of SessionEvent values.

    Safe to drain from another thread.  With ``maxsize > 0`` events that
    arrive while the queue is full are dropped, never waited on.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: queue.Queue[SessionEvent] = queue.Queue(maxsize)
        self.dropped = 0

    def _put(self, event: SessionEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            logger.warning("event queue full, dropped %s event (%d total)",
                           event.kind.value, self.dropped)

    def on_connected(self, message: str) -> None:
        self._put(SessionEvent(EventKind.CONNECTED, message))

    def on_disconnected(self, message: str, reason: CloseReason) -> None:
        self._put(SessionEvent(EventKind.DISCONNECTED, message,
                               reason=reason))

    def on_error(self, message: str) -> None:
        self._put(SessionEvent(EventKind.ERRORED, message))

    def on_record(self, record: ClassifiedRecord) -> None:
        self._put(SessionEvent(EventKind.RECORD, record=record))

    def drain(self) -> list[SessionEvent]:
        """Return all queued events, oldest first."""
        events: list[SessionEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events


class SessionManager:
    """Owns at most one connection to the bridge and reconnects on loss.

    ``start()`` and ``stop()`` must be called from the loop the session
    runs on.
    """

    def __init__(self, listener: SessionListener, *,
                 host: str = "localhost", secure: bool = False,
                 policy: RetryPolicy | None = None,
                 transport_factory: TransportFactory = WebSocketTransport):
        self.host = host
        self.secure = secure
        self._listener = listener
        self._policy = policy or RetryPolicy()
        self._factory = transport_factory
        self._state = SessionState.IDLE
        self._retries = 0
        self._stopped = False
        self._task: asyncio.Task | None = None
        self._transport: Transport | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._done = asyncio.Event()

    @property
    def url(self) -> str:
        return endpoint_url(self.host, self.secure)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def retries(self) -> int:
        return self._retries

    @property
    def done(self) -> bool:
        """True once no further automatic connection attempt will happen."""
        return self._done.is_set()

    async def wait_stopped(self) -> None:
        await self._done.wait()

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._state in (SessionState.CONNECTING, SessionState.OPEN):
            logger.warning("start() ignored: session is already %s",
                           self._state.value)
            return
        self._cancel_reconnect()
        self._retries = 0
        self._stopped = False
        self._done.clear()
        self._connect()

    def stop(self) -> None:
        # Exhaust the budget first so no close path can schedule a retry
        self._retries = self._policy.max_attempts
        self._stopped = True
        self._cancel_reconnect()

        task = self._task
        self._task = None
        self._transport = None
        self._state = SessionState.CLOSED
        if task is not None:
            # The detached task closes its own transport
            task.cancel()

        self._emit("on_disconnected", f"disconnected from {self.url}",
                   CloseReason.USER)
        self._done.set()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def _connect(self) -> None:
        url = self.url
        try:
            transport = self._factory(url)
        except ValueError as e:
            # No close follows a failed construction, so nothing retries
            self._state = SessionState.FAILED
            self._emit("on_error", f"cannot connect to {url}: {e}")
            self._done.set()
            return

        logger.debug("connecting to %s (retry %d/%d)", url,
                     self._retries, self._policy.max_attempts)
        self._state = SessionState.CONNECTING
        self._transport = transport
        self._task = asyncio.get_running_loop().create_task(
            self._run(transport))

    async def _run(self, transport: Transport) -> None:
        me = asyncio.current_task()
        reason = CloseReason.UNEXPECTED
        try:
            await transport.open()
            self._on_open()
            while True:
                payload = await transport.read()
                if payload is None:
                    break
                self._on_payload(payload)
        except TransportError as e:
            self._emit("on_error", str(e))
        except asyncio.CancelledError:
            reason = CloseReason.USER
        except Exception as e:
            logger.exception("connection to %s failed", self.url)
            self._emit("on_error", f"connection to {self.url} failed: {e}")

        if self._task is me:
            if reason is CloseReason.USER:
                # Cancelled from outside stop(), e.g. loop shutdown
                self._retries = self._policy.max_attempts
                self._stopped = True
            self._on_close(reason)
        await self._shutdown(transport)

    def _on_open(self) -> None:
        self._state = SessionState.OPEN
        self._retries = 0
        logger.info("connected to %s", self.url)
        self._emit("on_connected", f"connected to {self.url}")

    def _on_payload(self, payload: str) -> None:
        me = asyncio.current_task()
        for record in decode(payload):
            # A listener may stop the session mid-payload
            if self._stopped or self._task is not me:
                return
            self._emit("on_record", record)

    def _on_close(self, reason: CloseReason) -> None:
        self._state = SessionState.CLOSED
        self._task = None
        self._transport = None
        self._emit("on_disconnected", f"disconnected from {self.url}", reason)

        if self._retries < self._policy.max_attempts:
            self._retries += 1
            logger.info("reconnecting in %.1fs (attempt %d/%d)",
                        self._policy.delay, self._retries,
                        self._policy.max_attempts)
            loop = asyncio.get_running_loop()
            self._reconnect_handle = loop.call_later(
                self._policy.delay, self._reconnect)
        else:
            if not self._stopped:
                logger.warning("giving up on %s after %d reconnect attempts",
                               self.url, self._policy.max_attempts)
            self._done.set()

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self._stopped:
            return
        self._connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    async def _shutdown(self, transport: Transport) -> None:
        try:
            await transport.close()
        except Exception:
            logger.exception("error while closing %s", transport.url)

    def _emit(self, method: str, *args) -> None:
        try:
            getattr(self._listener, method)(*args)
        except Exception:
            logger.exception("session listener %s failed", method)
