from collections import OrderedDict

from fastapi import APIRouter, HTTPException, Query, status

from nutshell.models import Event, Insight, Table, Transcript
from nutshell.schemas import EventIn, EventOut, InsightOut, TableOut, TranscriptOut

router = APIRouter(prefix="/events", tags=["events"])


async def get_event_or_404(event_id: int) -> Event:
    event = await Event.get_or_none(id=event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="EVENT_NOT_FOUND")
    return event


@router.get("", response_model=dict)
async def list_events():
    rows = await Event.all().order_by("-created_at", "-id")
    return {"success": True, "data": [EventOut.from_model(e).model_dump(mode="json") for e in rows]}


@router.post("", response_model=dict)
async def create_event(body: EventIn):
    event = await Event.create(name=body.name.strip(), location=body.location, status=body.status)
    return {"success": True, "data": EventOut.from_model(event).model_dump(mode="json")}


@router.get("/{event_id}", response_model=dict)
async def get_event(event_id: int):
    event = await get_event_or_404(event_id)
    tables_count = await Table.filter(event_id=event_id).count()
    data = EventOut.from_model(event).model_dump(mode="json")
    data["tablesCount"] = tables_count
    return {"success": True, "data": data}


@router.get("/{event_id}/snapshot", response_model=dict)
async def get_event_snapshot(
    event_id: int,
    transcript_limit: int = Query(500, ge=1, le=5000, alias="transcriptLimit"),
    insight_limit: int = Query(200, ge=1, le=2000, alias="insightLimit"),
):
    """
    Full-state read used by clients to (re)build their local picture.

    Clients apply this on first load and periodically afterwards as a
    reconciliation pass alongside the incremental push stream.

    Args:
        event_id: Event to snapshot
        transcript_limit: Most recent transcript segments to include
        insight_limit: Most recent insights to include

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - data: dict with:
                - event: Event object
                - tables: All tables of the event (numeric id + join code)
                - transcripts: Recent segments, newest first
                - insights: Recent insights, newest first

    Raises:
        HTTPException (404): If the event does not exist
    """
    event = await get_event_or_404(event_id)
    tables = await Table.filter(event_id=event_id).order_by("id")
    transcripts = await (
        Transcript.filter(table__event_id=event_id)
        .order_by("-timestamp", "-id")
        .limit(transcript_limit)
    )
    insights = await Insight.filter(event_id=event_id).order_by("-created_at", "-id").limit(insight_limit)
    return {
        "success": True,
        "data": {
            "event": EventOut.from_model(event).model_dump(mode="json"),
            "tables": [TableOut.from_model(t).model_dump(mode="json") for t in tables],
            "transcripts": [TranscriptOut.from_model(t, event_id).model_dump(mode="json") for t in transcripts],
            "insights": [InsightOut.from_model(i).model_dump(mode="json") for i in insights],
        },
    }


@router.get("/{event_id}/sentiment-data", response_model=dict)
async def get_sentiment_timeline(event_id: int):
    """
    Average transcript sentiment per minute for an event, oldest first.

    Returns:
        dict: {"success": True, "data": [{"time": "HH:MM", "sentiment": float}, ...]}
    """
    await get_event_or_404(event_id)
    rows = await Transcript.filter(table__event_id=event_id).order_by("timestamp", "id")
    buckets: "OrderedDict[str, list]" = OrderedDict()
    for t in rows:
        key = t.timestamp.strftime("%H:%M")
        buckets.setdefault(key, []).append(t.sentiment or 0.0)
    data = [{"time": k, "sentiment": sum(v) / len(v)} for k, v in buckets.items()]
    return {"success": True, "data": data}
