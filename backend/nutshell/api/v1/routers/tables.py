from fastapi import APIRouter, BackgroundTasks, HTTPException, status
from tortoise import timezone

from nutshell.core.envelope import EventType
from nutshell.core.pubsub import hub
from nutshell.models import Table, TableStatus
from nutshell.schemas import TableCreateIn, TableOut, TableUpdateIn
from .events import get_event_or_404

router = APIRouter(tags=["tables"])

# Request field -> model attribute
_UPDATABLE = {
    "name": "name",
    "session": "session",
    "topic": "topic",
    "status": "status",
    "isHot": "is_hot",
}


async def get_table_or_404(table_id: int) -> Table:
    table = await Table.get_or_none(id=table_id)
    if not table:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="TABLE_NOT_FOUND")
    return table


@router.get("/events/{event_id}/tables", response_model=dict)
async def list_tables(event_id: int):
    await get_event_or_404(event_id)
    rows = await Table.filter(event_id=event_id).order_by("id")
    return {"success": True, "data": [TableOut.from_model(t).model_dump(mode="json") for t in rows]}


@router.post("/events/{event_id}/tables", response_model=dict)
async def create_table(event_id: int, body: TableCreateIn, background_tasks: BackgroundTasks):
    """
    Create a table for an event and announce it with `table_created`.

    A fresh 6-character join code is assigned; the table starts OFFLINE.

    Args:
        event_id: Owning event
        body: Request body with name and optional session/topic
        background_tasks: Used to broadcast after the response is produced

    Returns:
        dict: {"success": True, "data": Table object (numeric id + joinCode)}

    Raises:
        HTTPException (404): If the event does not exist
    """
    await get_event_or_404(event_id)
    table = await Table.create(
        event_id=event_id,
        join_code=await Table.unused_join_code(),
        name=body.name.strip(),
        session=body.session,
        topic=body.topic,
        status=TableStatus.OFFLINE,
    )
    data = TableOut.from_model(table).model_dump(mode="json")
    background_tasks.add_task(hub.publish, EventType.TABLE_CREATED, data)
    return {"success": True, "data": data}


@router.put("/tables/{table_id}", response_model=dict)
async def update_table(table_id: int, body: TableUpdateIn, background_tasks: BackgroundTasks):
    """
    Update mutable table fields and announce the new record with `table_updated`.

    Only fields present in the body are changed. The join code is immutable.

    Raises:
        HTTPException (404): If the table does not exist
    """
    table = await get_table_or_404(table_id)
    changes = body.model_dump(exclude_unset=True)
    for field, attr in _UPDATABLE.items():
        if field in changes and changes[field] is not None:
            setattr(table, attr, changes[field])
    await table.save()
    data = TableOut.from_model(table).model_dump(mode="json")
    background_tasks.add_task(hub.publish, EventType.TABLE_UPDATED, data)
    return {"success": True, "data": data}


@router.delete("/tables/{table_id}", response_model=dict)
async def delete_table(table_id: int, background_tasks: BackgroundTasks):
    """
    Delete a table (and its transcript segments) and announce `table_deleted`.

    The envelope carries the last known record so clients can drop it by id.

    Raises:
        HTTPException (404): If the table does not exist
    """
    table = await get_table_or_404(table_id)
    data = TableOut.from_model(table).model_dump(mode="json")
    await table.delete()
    background_tasks.add_task(hub.publish, EventType.TABLE_DELETED, data)
    return {"success": True, "data": {"id": table_id, "deleted": True}}


@router.get("/tables/join/{join_code}", response_model=dict)
async def join_table(join_code: str, background_tasks: BackgroundTasks):
    """
    Resolve a typed join code to its table and mark the table ACTIVE.

    Lookup is case-insensitive. Joining counts as audio activity.

    Raises:
        HTTPException (404): If no table has this join code
    """
    table = await Table.get_or_none(join_code=join_code.strip().upper())
    if not table:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="TABLE_NOT_FOUND")
    table.status = TableStatus.ACTIVE
    table.last_audio = timezone.now()
    await table.save(update_fields=["status", "last_audio"])
    data = TableOut.from_model(table).model_dump(mode="json")
    background_tasks.add_task(hub.publish, EventType.TABLE_UPDATED, data)
    return {"success": True, "data": data}
