"""
Insight pipeline

Decides when to run the extraction engine and turns its drafts into stored,
broadcast insights:
- periodically, every N transcript segments observed for an event
- on demand, from the generate-insights endpoint

Runs for the same event never overlap. Errors stay inside the pipeline.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from ..config import settings
from ..core.envelope import EventType
from ..core.pubsub import BroadcastHub, hub
from ..models import Insight, InsightStatus, Transcript
from ..schemas import InsightOut
from .insight_extraction import InsightExtractionEngine, insight_engine

logger = logging.getLogger(__name__)


class InsightPipeline:
    """Persist-then-notify wrapper around the extraction engine"""

    def __init__(
        self,
        engine: Optional[InsightExtractionEngine] = None,
        publisher: Optional[BroadcastHub] = None,
        every_n: Optional[int] = None,
        window: Optional[int] = None,
    ):
        self.engine = engine or insight_engine
        self.hub = publisher or hub
        self._every_n = every_n
        self._window = window
        self._counts: Dict[int, int] = {}
        self._locks: Dict[int, asyncio.Lock] = {}

    @property
    def every_n(self) -> int:
        return settings.insight_every_n_segments if self._every_n is None else self._every_n

    @property
    def window(self) -> int:
        return settings.insight_segment_window if self._window is None else self._window

    def pending(self, event_id: int) -> int:
        """Segments counted toward the next periodic run"""
        return self._counts.get(event_id, 0)

    def _lock(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = self._locks[event_id] = asyncio.Lock()
        return lock

    async def on_segment_added(self, event_id: int) -> List[Insight]:
        """
        Count a new segment and run an extraction every `every_n` segments.

        Meant to run after the ingestion response has been sent. Never raises.
        """
        n = self.every_n
        if n <= 0:
            return []
        count = self._counts.get(event_id, 0) + 1
        if count < n:
            self._counts[event_id] = count
            return []
        self._counts[event_id] = 0

        if self._lock(event_id).locked():
            logger.info("[pipeline] event %s extraction already running, skipping periodic run", event_id)
            return []
        try:
            return await self.generate(event_id)
        except Exception:
            logger.exception("[pipeline] periodic extraction for event %s failed", event_id)
            return []

    async def generate(self, event_id: int, publish: bool = True) -> List[Insight]:
        """
        Extract, persist and (optionally) broadcast insights for an event.

        Parameters:
            event_id: Event to analyse
            publish: Send `insights_generated` once the rows are stored

        Returns:
            Stored Insight rows (possibly empty)
        """
        if not self.engine.is_available():
            return []

        async with self._lock(event_id):
            segments = await (
                Transcript.filter(table__event_id=event_id)
                .order_by("-timestamp", "-id")
                .limit(self.window)
            )
            drafts = await self.engine.extract(event_id, segments, limit=self.window)

            saved = []
            for d in drafts:
                saved.append(await Insight.create(
                    event_id=event_id,
                    type=d.type,
                    title=d.title,
                    description=d.description,
                    confidence=d.confidence,
                    related_table_ids=d.related_table_ids,
                    evidence_count=d.evidence_count,
                    status=InsightStatus.PENDING,
                ))

        if saved and publish:
            await self.hub.publish(
                EventType.INSIGHTS_GENERATED,
                [InsightOut.from_model(i).model_dump(mode="json") for i in saved],
            )
        return saved


# Global singleton
insight_pipeline = InsightPipeline()
