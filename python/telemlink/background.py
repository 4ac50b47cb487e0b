"""Run a SessionManager on a private event loop for polling display loops.

The session itself stays single-threaded: every call into the manager is
marshalled onto the worker thread's loop, and events come back through a
:class:`~telemlink.session.QueueListener` that the caller drains once per
frame.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading

from .session import (
    QueueListener,
    RetryPolicy,
    SessionEvent,
    SessionManager,
    SessionState,
)
from .transport import TransportFactory, WebSocketTransport

logger = logging.getLogger(__name__)


class BackgroundSession:
    """A SessionManager driven from a worker thread."""

    def __init__(self, host: str = "localhost", secure: bool = False, *,
                 policy: RetryPolicy | None = None,
                 transport_factory: TransportFactory = WebSocketTransport):
        self.events = QueueListener()
        self._manager = SessionManager(
            self.events, host=host, secure=secure, policy=policy,
            transport_factory=transport_factory)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="telemlink-session", daemon=True)
        self._thread.start()

    @property
    def url(self) -> str:
        return self._manager.url

    @property
    def state(self) -> SessionState:
        return self._manager.state

    def set_endpoint(self, host: str, secure: bool = False) -> None:
        """Change the endpoint used by the next ``start()``."""
        def apply() -> None:
            self._manager.host = host
            self._manager.secure = secure
        self._call(apply)

    def start(self) -> None:
        self._call(self._manager.start)

    def stop(self) -> None:
        self._call(self._manager.stop)

    def poll(self) -> list[SessionEvent]:
        """Return events emitted since the last call."""
        return self.events.drain()

    def close(self, timeout: float = 5.0) -> None:
        """Stop the session, wait for its transport to close, end the thread."""
        if not self._thread.is_alive():
            return
        fut = asyncio.run_coroutine_threadsafe(self._aclose(), self._loop)
        try:
            fut.result(timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("session did not shut down within %.1fs", timeout)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        if not self._thread.is_alive():
            self._loop.close()

    def _call(self, fn) -> None:
        self._loop.call_soon_threadsafe(fn)

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _aclose(self) -> None:
        if self._manager.state is not SessionState.IDLE \
                and not self._manager.done:
            self._manager.stop()
        current = asyncio.current_task()
        pending = [t for t in asyncio.all_tasks() if t is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
