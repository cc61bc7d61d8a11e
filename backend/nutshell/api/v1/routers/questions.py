from fastapi import APIRouter, BackgroundTasks

from nutshell.core.envelope import EventType
from nutshell.core.pubsub import hub
from nutshell.models import AttendeeQuestion
from nutshell.schemas import QuestionIn, QuestionOut
from .events import get_event_or_404

router = APIRouter(prefix="/events/{event_id}/questions", tags=["questions"])


@router.get("", response_model=dict)
async def list_questions(event_id: int):
    await get_event_or_404(event_id)
    rows = await AttendeeQuestion.filter(event_id=event_id).order_by("-votes", "-created_at", "-id")
    return {"success": True, "data": [QuestionOut.from_model(q).model_dump(mode="json") for q in rows]}


@router.post("", response_model=dict)
async def submit_question(event_id: int, body: QuestionIn, background_tasks: BackgroundTasks):
    """Store an attendee question and broadcast `question_added`. Anonymous questions drop askedBy."""
    await get_event_or_404(event_id)
    q = await AttendeeQuestion.create(
        event_id=event_id,
        question=body.question.strip(),
        asked_by=None if body.isAnonymous else body.askedBy,
        is_anonymous=body.isAnonymous,
    )
    data = QuestionOut.from_model(q).model_dump(mode="json")
    background_tasks.add_task(hub.publish, EventType.QUESTION_ADDED, data)
    return {"success": True, "data": data}
