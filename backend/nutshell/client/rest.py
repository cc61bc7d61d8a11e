"""
Snapshot reads and periodic reconciliation.

Push delivery is best effort; a periodic full read closes whatever gaps a
dropped connection left behind.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..config import settings
from .state import LiveEventState

logger = logging.getLogger(__name__)

SnapshotFetcher = Callable[[str], Awaitable[Dict[str, Any]]]


class SnapshotClient:
    """Thin httpx wrapper around GET {api_base_url}/events/{id}/snapshot."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch_snapshot(self, event_id: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(f"{self.base_url}/events/{event_id}/snapshot")
            resp.raise_for_status()
            return resp.json()["data"]


async def reconcile_once(state: LiveEventState, fetch: SnapshotFetcher) -> bool:
    """Fetch one snapshot and fold it into `state`. Returns False if the read or the apply failed."""
    since = state.snapshot_mark()
    try:
        snapshot = await fetch(state.event_id)
    except Exception as e:
        logger.warning("[reconcile] snapshot for event %s failed: %r", state.event_id, e)
        return False
    try:
        state.apply_snapshot(snapshot, since=since)
    except Exception as e:
        logger.warning("[reconcile] snapshot for event %s rejected: %r", state.event_id, e)
        return False
    return True


async def reconcile_forever(state: LiveEventState, fetch: SnapshotFetcher, interval: Optional[float] = None) -> None:
    """Reconcile immediately, then every `interval` seconds until cancelled."""
    interval = settings.reconcile_interval_sec if interval is None else interval
    while True:
        await reconcile_once(state, fetch)
        await asyncio.sleep(interval)
