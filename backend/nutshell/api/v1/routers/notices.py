from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from nutshell.core.envelope import EventType
from nutshell.core.pubsub import hub
from nutshell.models import Notice, Table
from nutshell.schemas import BroadcastIn, NoticeOut, NoticePush
from .events import get_event_or_404
from .tables import get_table_or_404

router = APIRouter(tags=["notices"])


@router.post("/events/{event_id}/broadcast", response_model=dict)
async def broadcast_notice(event_id: int, body: BroadcastIn, background_tasks: BackgroundTasks):
    """
    Send a notice to selected tables, or to the whole event when no tables are given.

    One Notice row is stored per target table (a single row with no table for
    an event-wide notice); a single `notice` envelope is broadcast.

    Args:
        event_id: Event the notice belongs to
        body: Request body containing:
            - message: str
            - tableIds: list[int] | None (numeric table ids)

    Returns:
        dict: {"success": True, "data": [Notice, ...]}

    Raises:
        HTTPException (404): If the event does not exist
        HTTPException (400): If a table id does not belong to the event
    """
    await get_event_or_404(event_id)
    table_ids = list(dict.fromkeys(body.tableIds or []))
    if table_ids:
        known = set(await Table.filter(event_id=event_id, id__in=table_ids).values_list("id", flat=True))
        unknown = [t for t in table_ids if t not in known]
        if unknown:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="UNKNOWN_TABLE")
        notices = [await Notice.create(event_id=event_id, table_id=t, message=body.message) for t in table_ids]
    else:
        notices = [await Notice.create(event_id=event_id, message=body.message)]

    push = NoticePush(eventId=event_id, tableIds=table_ids or None, message=body.message)
    background_tasks.add_task(hub.publish, EventType.NOTICE, push.model_dump(mode="json"))
    return {"success": True, "data": [NoticeOut.from_model(n).model_dump(mode="json") for n in notices]}


@router.get("/tables/{table_id}/notices", response_model=dict)
async def read_table_notices(table_id: int):
    """
    Return unread notices addressed to a table and mark them read.

    Notices are read once: a second call returns only notices sent since.
    """
    await get_table_or_404(table_id)
    rows = await Notice.filter(table_id=table_id, is_read=False).order_by("-created_at", "-id")
    if rows:
        await Notice.filter(id__in=[n.id for n in rows]).update(is_read=True)
    return {"success": True, "data": [NoticeOut.from_model(n).model_dump(mode="json") for n in rows]}
