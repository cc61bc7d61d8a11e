from fastapi import APIRouter, BackgroundTasks, Query

from nutshell.core.envelope import EventType
from nutshell.core.pubsub import hub
from nutshell.models import Transcript
from nutshell.schemas import TranscriptIn, TranscriptOut
from nutshell.services.ingestion import ingest_segment
from nutshell.services.insight_pipeline import insight_pipeline
from .events import get_event_or_404
from .tables import get_table_or_404

router = APIRouter(tags=["transcripts"])


@router.get("/events/{event_id}/transcripts", response_model=dict)
async def list_event_transcripts(event_id: int, limit: int = Query(500, ge=1, le=5000)):
    await get_event_or_404(event_id)
    rows = await Transcript.filter(table__event_id=event_id).order_by("-timestamp", "-id").limit(limit)
    return {"success": True, "data": [TranscriptOut.from_model(t, event_id).model_dump(mode="json") for t in rows]}


@router.get("/tables/{table_id}/transcripts", response_model=dict)
async def list_table_transcripts(table_id: int, limit: int = Query(500, ge=1, le=5000)):
    table = await get_table_or_404(table_id)
    rows = await Transcript.filter(table_id=table_id).order_by("-timestamp", "-id").limit(limit)
    return {"success": True, "data": [TranscriptOut.from_model(t, table.event_id).model_dump(mode="json") for t in rows]}


@router.post("/tables/{table_id}/transcripts", response_model=dict)
async def append_transcript(table_id: int, body: TranscriptIn, background_tasks: BackgroundTasks):
    """
    Append a transcript segment to a table.

    The utterance is scored for sentiment before it is stored (neutral 0 when
    scoring fails). After the write, `transcript_added` is broadcast and the
    segment counts toward the event's next periodic insight extraction; both
    run after the response and cannot fail this request.

    Args:
        table_id: Numeric table id
        body: Request body containing:
            - speaker: str | None
            - text: str (utterance)
            - isQuote: bool (flagged as a quotable moment)
        background_tasks: Broadcast + extraction trigger

    Returns:
        dict: {"success": True, "data": Transcript segment (numeric tableId)}

    Raises:
        HTTPException (404): If the table does not exist
        HTTPException (422): If text is empty
    """
    table = await get_table_or_404(table_id)
    transcript = await ingest_segment(table, body.text, speaker=body.speaker, is_quote=body.isQuote)
    data = TranscriptOut.from_model(transcript, table.event_id).model_dump(mode="json")
    background_tasks.add_task(hub.publish, EventType.TRANSCRIPT_ADDED, data)
    background_tasks.add_task(insight_pipeline.on_segment_added, table.event_id)
    return {"success": True, "data": data}
