"""
Unit tests for services.insight_pipeline module.
Tests the periodic trigger, persistence, broadcast and the no-overlap rule.
"""
import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from nutshell.core.pubsub import BroadcastHub
from nutshell.models import Event, Insight, InsightStatus, InsightType, Table, Transcript
from nutshell.services.insight_extraction import InsightDraft
from nutshell.services.insight_pipeline import InsightPipeline


pytestmark = pytest.mark.asyncio


class MockWebSocket:
    def __init__(self):
        self.sent_texts = []

    async def send_text(self, text: str):
        self.sent_texts.append(text)


def _engine(drafts=None, available=True):
    engine = MagicMock()
    engine.is_available.return_value = available
    engine.extract = AsyncMock(return_value=drafts or [])
    return engine


async def _seed(n_segments: int = 3):
    event = await Event.create(name="Summit")
    table = await Table.create(event=event, join_code="ABC123", name="T1")
    for i in range(n_segments):
        await Transcript.create(table=table, speaker="Ana", text=f"line {i}")
    return event, table


async def test_generate_persists_pending_and_broadcasts_once(db):
    event, table = await _seed()
    hub = BroadcastHub()
    ws = MockWebSocket()
    hub.register(ws)
    engine = _engine([
        InsightDraft(type=InsightType.THEME, title="Uptime", related_table_ids=[table.id]),
        InsightDraft(type=InsightType.ACTION_ITEM, title="Send deck", confidence=0.6),
    ])
    pipeline = InsightPipeline(engine=engine, publisher=hub)

    saved = await pipeline.generate(event.id)

    assert len(saved) == 2
    assert await Insight.filter(event_id=event.id, status=InsightStatus.PENDING).count() == 2
    assert len(ws.sent_texts) == 1
    frame = json.loads(ws.sent_texts[0])
    assert frame["type"] == "insights_generated"
    assert [i["title"] for i in frame["data"]] == ["Uptime", "Send deck"]
    assert frame["data"][0]["relatedTableIds"] == [table.id]


async def test_generate_passes_window_newest_first(db):
    event, _ = await _seed(5)
    engine = _engine()
    pipeline = InsightPipeline(engine=engine, publisher=BroadcastHub(), window=3)

    await pipeline.generate(event.id)

    _, segments = engine.extract.call_args.args[:2]
    assert [s.text for s in segments] == ["line 4", "line 3", "line 2"]


async def test_generate_without_publish(db):
    event, _ = await _seed()
    hub = BroadcastHub()
    ws = MockWebSocket()
    hub.register(ws)
    pipeline = InsightPipeline(engine=_engine([InsightDraft(type=InsightType.THEME, title="t")]), publisher=hub)

    saved = await pipeline.generate(event.id, publish=False)

    assert len(saved) == 1
    assert ws.sent_texts == []


async def test_empty_extraction_does_not_broadcast(db):
    event, _ = await _seed()
    hub = BroadcastHub()
    ws = MockWebSocket()
    hub.register(ws)
    pipeline = InsightPipeline(engine=_engine([]), publisher=hub)

    assert await pipeline.generate(event.id) == []
    assert ws.sent_texts == []


async def test_unavailable_engine_is_a_no_op(db):
    event, _ = await _seed()
    engine = _engine(available=False)
    pipeline = InsightPipeline(engine=engine, publisher=BroadcastHub())

    assert await pipeline.generate(event.id) == []
    engine.extract.assert_not_called()


async def test_periodic_trigger_every_n_segments(db):
    event, _ = await _seed()
    engine = _engine()
    pipeline = InsightPipeline(engine=engine, publisher=BroadcastHub(), every_n=3)

    for _ in range(2):
        await pipeline.on_segment_added(event.id)
    assert engine.extract.call_count == 0
    assert pipeline.pending(event.id) == 2

    await pipeline.on_segment_added(event.id)
    assert engine.extract.call_count == 1
    assert pipeline.pending(event.id) == 0

    for _ in range(3):
        await pipeline.on_segment_added(event.id)
    assert engine.extract.call_count == 2


async def test_counts_are_per_event(db):
    engine = _engine()
    pipeline = InsightPipeline(engine=engine, publisher=BroadcastHub(), every_n=2)

    await pipeline.on_segment_added(1)
    await pipeline.on_segment_added(2)

    assert engine.extract.call_count == 0
    assert pipeline.pending(1) == 1
    assert pipeline.pending(2) == 1


async def test_periodic_run_skipped_while_extraction_in_progress(db):
    """Runs for one event never overlap; a periodic trigger during a run is dropped."""
    event, _ = await _seed()
    release = asyncio.Event()
    started = asyncio.Event()

    async def slow_extract(*args, **kwargs):
        started.set()
        await release.wait()
        return []

    engine = _engine()
    engine.extract = AsyncMock(side_effect=slow_extract)
    pipeline = InsightPipeline(engine=engine, publisher=BroadcastHub(), every_n=1)

    running = asyncio.create_task(pipeline.generate(event.id))
    await started.wait()

    assert await pipeline.on_segment_added(event.id) == []
    release.set()
    await running

    assert engine.extract.call_count == 1


async def test_periodic_failure_is_contained(db):
    event, _ = await _seed()
    engine = _engine()
    engine.extract = AsyncMock(side_effect=RuntimeError("boom"))
    pipeline = InsightPipeline(engine=engine, publisher=BroadcastHub(), every_n=1)

    assert await pipeline.on_segment_added(event.id) == []


async def test_zero_disables_periodic_runs(db):
    engine = _engine()
    pipeline = InsightPipeline(engine=engine, publisher=BroadcastHub(), every_n=0)

    for _ in range(5):
        await pipeline.on_segment_added(1)

    engine.extract.assert_not_called()
