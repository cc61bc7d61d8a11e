import json
import logging

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from nutshell.core.envelope import EventType, encode_envelope
from nutshell.core.pubsub import hub

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


@router.websocket("/ws")
async def ws_events(ws: WebSocket):
    """
    WebSocket endpoint for the live push stream.

    Every connected viewer receives every envelope published by the hub:
    {"type": "<event_type>", "data": <json>}. Clients decide relevance locally.

    Message flow:
    1. Client connects; the server registers it with the hub
    2. Server pushes envelopes after each persisted mutation
    3. Client may send {"type": "ping"}; server answers {"type": "pong", "data": null}
    4. On disconnect or error the connection is unregistered

    Args:
        ws: WebSocket connection object
    """
    await ws.accept()
    connection_id = hub.register(ws)
    try:
        while True:
            raw = await ws.receive_text()
            try:
                msg = json.loads(raw)
            except ValueError:
                logger.debug("[ws] %s sent non-JSON frame, ignored", connection_id)
                continue
            if isinstance(msg, dict) and msg.get("type") == EventType.PING.value:
                await ws.send_text(encode_envelope(EventType.PONG, None))
    except WebSocketDisconnect:
        logger.info("[ws] %s disconnected", connection_id)
    except Exception as e:
        logger.warning("[ws] %s error: %r", connection_id, e)
    finally:
        hub.unregister(connection_id)
