"""
Client synchronization manager

Owns one push connection to the /ws endpoint, reconnects with linear backoff
and dispatches inbound envelopes to registered handlers.

State machine::

    DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED -> (retry) CONNECTING -> ...

Handlers are registered on the manager, not on the connection, so they
survive reconnects. Everything runs on one asyncio event loop; dispatch is
synchronous and two dispatches never overlap.
"""
import asyncio
import contextlib
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import websockets

from ..config import settings
from ..core.envelope import EnvelopeError, EventType, decode_envelope, type_key

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]
Connector = Callable[[str], Awaitable[Any]]


class ConnectionState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


class SyncManager:
    """
    Reconnecting subscription manager for the push stream.

    Parameters:
        url: WebSocket URL of the push endpoint (e.g. ws://host:8000/ws)
        base_delay: Seconds; retry n waits base_delay * n
        max_attempts: Consecutive failed retries before giving up until reconnect()
        connector: Coroutine function url -> connection; defaults to websockets.connect.
            The connection must be async-iterable over text frames and have close().
    """

    def __init__(
        self,
        url: Optional[str] = None,
        base_delay: Optional[float] = None,
        max_attempts: Optional[int] = None,
        connector: Optional[Connector] = None,
    ):
        self.url = url or settings.ws_url
        self.base_delay = settings.ws_reconnect_base_delay_sec if base_delay is None else base_delay
        self.max_attempts = settings.ws_max_reconnect_attempts if max_attempts is None else max_attempts
        self._connector = connector or websockets.connect

        self.state = ConnectionState.DISCONNECTED
        self._handlers: Dict[str, List[Handler]] = {}
        self._attempts = 0
        self._conn = None
        self._reader: Optional[asyncio.Task] = None
        self._retry: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def attempts(self) -> int:
        """Reconnect attempts since the last successful connection"""
        return self._attempts

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    # -------- subscriptions --------
    def subscribe(self, event_type: Union[EventType, str], handler: Handler) -> Callable[[], None]:
        """
        Register a handler for one envelope type.

        Returns:
            Callable that removes this registration; effective for future dispatches only
        """
        key = type_key(event_type)
        self._handlers.setdefault(key, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(key)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def handler_count(self, event_type: Union[EventType, str]) -> int:
        return len(self._handlers.get(type_key(event_type), ()))

    def dispatch(self, raw: Union[str, bytes]) -> int:
        """
        Decode one frame and run every handler registered for its type, in order.

        A malformed frame is logged and dropped. A handler that raises is logged
        and does not stop the remaining handlers.

        Returns:
            int: Number of handlers that completed without raising
        """
        try:
            envelope = decode_envelope(raw)
        except EnvelopeError as e:
            logger.warning("[sync] dropping frame: %s", e)
            return 0

        completed = 0
        for handler in list(self._handlers.get(envelope.type, ())):
            try:
                handler(envelope.data)
                completed += 1
            except Exception:
                logger.exception("[sync] %s handler %r failed", envelope.type, handler)
        return completed

    # -------- connection lifecycle --------
    async def connect(self) -> bool:
        """
        Open the push connection if none is open or being opened.

        On failure a retry is scheduled according to the backoff policy.

        Returns:
            bool: True if the manager is connected when this returns
        """
        if self._closed:
            raise RuntimeError("SyncManager has been disconnected")
        if self.state is not ConnectionState.DISCONNECTED:
            return self.state is ConnectionState.CONNECTED

        self.state = ConnectionState.CONNECTING
        try:
            conn = await self._connector(self.url)
        except Exception as e:
            logger.warning("[sync] connect to %s failed: %r", self.url, e)
            self.state = ConnectionState.DISCONNECTED
            self._schedule_reconnect()
            return False

        if self._closed:
            await conn.close()
            return False

        self._conn = conn
        self._attempts = 0
        self.state = ConnectionState.CONNECTED
        logger.info("[sync] connected to %s", self.url)
        self._reader = asyncio.create_task(self._read_loop(conn))
        return True

    async def reconnect(self) -> bool:
        """Manual reconnect: resets the attempt counter, e.g. after the manager gave up."""
        if self._retry is not None:
            self._retry.cancel()
            self._retry = None
        self._attempts = 0
        return await self.connect()

    async def disconnect(self) -> None:
        """
        Close the connection and clear every handler registration.

        Terminal: the manager cannot connect again afterwards.
        """
        self._closed = True
        self._handlers.clear()
        if self._retry is not None:
            self._retry.cancel()
            self._retry = None

        conn, reader = self._conn, self._reader
        self._conn = None
        self._reader = None
        self.state = ConnectionState.DISCONNECTED

        if conn is not None:
            await conn.close()
        if reader is not None:
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

    async def _read_loop(self, conn) -> None:
        try:
            async for raw in conn:
                self.dispatch(raw)
        except websockets.ConnectionClosed as e:
            logger.info("[sync] connection closed: %s", e)
        except Exception as e:
            logger.warning("[sync] connection error: %r", e)
        self._connection_lost(conn)

    def _connection_lost(self, conn) -> None:
        if self._conn is not conn:
            return  # Already replaced or closed on purpose
        self._conn = None
        self._reader = None
        self.state = ConnectionState.DISCONNECTED
        logger.info("[sync] disconnected from %s", self.url)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._closed:
            return
        if self._retry is not None and not self._retry.done():
            return
        if self._attempts >= self.max_attempts:
            logger.error("[sync] giving up after %d reconnect attempts; call reconnect() to retry", self._attempts)
            return
        self._attempts += 1
        delay = self.base_delay * self._attempts
        logger.info("[sync] reconnect attempt %d/%d in %.1fs", self._attempts, self.max_attempts, delay)
        self._retry = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._retry = None
        if not self._closed:
            await self.connect()
