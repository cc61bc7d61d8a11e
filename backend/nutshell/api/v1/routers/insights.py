from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status

from nutshell.core.envelope import EventType
from nutshell.core.pubsub import hub
from nutshell.models import Insight, InsightStatus
from nutshell.schemas import InsightIn, InsightOut, InsightUpdateIn
from nutshell.services.insight_pipeline import insight_pipeline
from .events import get_event_or_404

router = APIRouter(tags=["insights"])


@router.get("/events/{event_id}/insights", response_model=dict)
async def list_insights(event_id: int, limit: int = Query(200, ge=1, le=2000)):
    await get_event_or_404(event_id)
    rows = await Insight.filter(event_id=event_id).order_by("-created_at", "-id").limit(limit)
    return {"success": True, "data": [InsightOut.from_model(i).model_dump(mode="json") for i in rows]}


@router.post("/events/{event_id}/insights", response_model=dict)
async def create_insight(event_id: int, body: InsightIn, background_tasks: BackgroundTasks):
    """
    Record a manually flagged insight (e.g. a facilitator's golden nugget).

    Raises:
        HTTPException (404): If the event does not exist
    """
    await get_event_or_404(event_id)
    insight = await Insight.create(
        event_id=event_id,
        type=body.type,
        title=body.title.strip(),
        description=body.description,
        confidence=body.confidence,
        related_table_ids=list(dict.fromkeys(body.relatedTableIds)),
        evidence_count=body.evidenceCount,
        status=InsightStatus.PENDING,
    )
    data = InsightOut.from_model(insight).model_dump(mode="json")
    background_tasks.add_task(hub.publish, EventType.INSIGHT_ADDED, data)
    return {"success": True, "data": data}


@router.put("/insights/{insight_id}", response_model=dict)
async def update_insight(insight_id: int, body: InsightUpdateIn, background_tasks: BackgroundTasks):
    """
    Update an insight (review status, wording) and broadcast `insight_updated`.

    Raises:
        HTTPException (404): If the insight does not exist
    """
    insight = await Insight.get_or_none(id=insight_id)
    if not insight:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="INSIGHT_NOT_FOUND")
    changes = body.model_dump(exclude_unset=True)
    for field in ("title", "confidence", "status"):
        if field in changes and changes[field] is not None:
            setattr(insight, field, changes[field])
    # An explicit null clears the description
    if "description" in changes:
        insight.description = changes["description"]
    await insight.save()
    data = InsightOut.from_model(insight).model_dump(mode="json")
    background_tasks.add_task(hub.publish, EventType.INSIGHT_UPDATED, data)
    return {"success": True, "data": data}


@router.post("/events/{event_id}/generate-insights", response_model=dict)
async def generate_insights(event_id: int, background_tasks: BackgroundTasks):
    """
    Run the insight extraction engine for an event on demand.

    Stored drafts are returned and broadcast once as `insights_generated`.
    A failed or malformed model call simply yields an empty list.

    Returns:
        dict: {"success": True, "data": [Insight, ...]}

    Raises:
        HTTPException (404): If the event does not exist
        HTTPException (503): If no model provider is configured
    """
    await get_event_or_404(event_id)
    if not insight_pipeline.engine.is_available():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="AI_NOT_CONFIGURED")
    saved = await insight_pipeline.generate(event_id, publish=False)
    data = [InsightOut.from_model(i).model_dump(mode="json") for i in saved]
    if data:
        background_tasks.add_task(hub.publish, EventType.INSIGHTS_GENERATED, data)
    return {"success": True, "data": data}
