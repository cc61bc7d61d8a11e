from fastapi import APIRouter, HTTPException, status

from nutshell.models import Transcript
from nutshell.schemas import AssistantQueryIn, CoachTipIn
from nutshell.services.assistant import EventAssistant, event_assistant
from .events import get_event_or_404
from .tables import get_table_or_404

router = APIRouter(tags=["assistant"])


def _require_model():
    if not event_assistant.is_available():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="AI_NOT_CONFIGURED")


@router.post("/events/{event_id}/ai/query", response_model=dict)
async def query_event(event_id: int, body: AssistantQueryIn):
    """
    Answer an organizer's question from the event's most recent transcripts.

    Returns:
        dict: {"success": True, "data": {"answer": str}}

    Raises:
        HTTPException (404): If the event does not exist
        HTTPException (503): If no model provider is configured
    """
    await get_event_or_404(event_id)
    _require_model()
    rows = await (
        Transcript.filter(table__event_id=event_id)
        .order_by("-timestamp", "-id")
        .limit(EventAssistant.QUERY_WINDOW)
    )
    answer = await event_assistant.answer_query(body.query, rows)
    return {"success": True, "data": {"answer": answer}}


@router.post("/tables/{table_id}/coach-tip", response_model=dict)
async def coach_tip(table_id: int, body: CoachTipIn):
    """
    Suggest one facilitation tip from the agenda and the table's recent discussion.

    Returns:
        dict: {"success": True, "data": {"tip": str}}

    Raises:
        HTTPException (404): If the table does not exist
        HTTPException (503): If no model provider is configured
    """
    await get_table_or_404(table_id)
    _require_model()
    rows = await Transcript.filter(table_id=table_id).order_by("-timestamp", "-id").limit(EventAssistant.TIP_WINDOW)
    tip = await event_assistant.coach_tip(body.agenda, rows)
    return {"success": True, "data": {"tip": tip}}
