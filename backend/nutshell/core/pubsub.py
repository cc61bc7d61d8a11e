# nutshell/core/pubsub.py
"""
Broadcast hub for WebSocket fan-out.

Every mutation that reaches the database is announced to every open
connection as a {type, data} envelope. There is no per-client filtering:
viewers decide locally what is relevant to them.
"""
import asyncio
import logging
import uuid
from typing import Any, Dict, Union

from starlette.websockets import WebSocket

from .envelope import EventType, encode_envelope, type_key

logger = logging.getLogger(__name__)


class BroadcastHub:
    """
    Registry of open push connections.

    Architecture:
    - Router is responsible for ws.accept(); this module only handles registration and sends
    - publish() is called once, after the persistence write that produced the change
    - A connection whose send fails is dropped from the registry; the others are unaffected

    Data structure:
    - _connections: Dict[connection_id, WebSocket]
    """
    def __init__(self):
        self._connections: Dict[str, WebSocket] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    # -------- register / unregister (no accept, only bookkeeping) --------
    def register(self, ws: WebSocket) -> str:
        """
        Register an accepted WebSocket connection.

        Args:
            ws: WebSocket connection to register

        Returns:
            str: Connection ID used to unregister later
        """
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = ws
        logger.info("[hub] registered %s (%d open)", connection_id, len(self._connections))
        return connection_id

    def unregister(self, connection_id: str) -> None:
        """Remove a connection; unknown IDs are ignored."""
        if self._connections.pop(connection_id, None) is not None:
            logger.info("[hub] unregistered %s (%d open)", connection_id, len(self._connections))

    # -------- publish --------
    async def publish(self, event_type: Union[EventType, str], payload: Any) -> int:
        """
        Send an envelope to every currently open connection.

        All connections receive the same serialized frame. Sends run
        concurrently so one slow client does not delay the rest.

        Args:
            event_type: Envelope type (e.g. EventType.TRANSCRIPT_ADDED)
            payload: JSON-serializable data

        Returns:
            int: Number of connections the frame was delivered to
        """
        msg = encode_envelope(event_type, payload)
        conns = list(self._connections.items())
        if not conns:
            return 0
        results = await asyncio.gather(*(self._send(cid, ws, msg) for cid, ws in conns))
        delivered = sum(1 for ok in results if ok)
        logger.debug("[hub] %s delivered to %d/%d", type_key(event_type), delivered, len(conns))
        return delivered

    async def _send(self, connection_id: str, ws: WebSocket, msg: str) -> bool:
        try:
            await ws.send_text(msg)
            return True
        except Exception as e:
            logger.info("[hub] send to %s failed, dropping: %r", connection_id, e)
            self.unregister(connection_id)
            return False


# Global hub instance used by the API routers
hub = BroadcastHub()
