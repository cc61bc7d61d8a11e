# nutshell/schemas/live.py
"""
Pydantic schemas for the live event endpoints and push payloads.
Out models are the wire shape shared by REST responses and broadcast envelopes
(camelCase, numeric ids); In models validate request bodies.
"""
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from nutshell.models import (
    AttendeeQuestion,
    Event,
    Insight,
    InsightStatus,
    InsightType,
    Notice,
    Table,
    TableStatus,
    Transcript,
)


def iso(value: Optional[dt.datetime]) -> Optional[str]:
    """Render a datetime as ISO-8601 UTC with a Z suffix."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


# ===== Out =====
class EventOut(BaseModel):
    id: int
    name: str
    location: Optional[str] = None
    status: str
    createdAt: str

    @classmethod
    def from_model(cls, e: Event) -> "EventOut":
        return cls(id=e.id, name=e.name, location=e.location, status=e.status, createdAt=iso(e.created_at))


class TableOut(BaseModel):
    id: int  # Persistent numeric id
    eventId: int
    joinCode: str  # Human-facing identifier
    name: str
    session: Optional[str] = None
    topic: Optional[str] = None
    status: TableStatus
    isHot: bool = False
    lastAudio: Optional[str] = None
    lastTranscript: Optional[str] = None
    createdAt: str

    @classmethod
    def from_model(cls, t: Table) -> "TableOut":
        return cls(
            id=t.id,
            eventId=t.event_id,
            joinCode=t.join_code,
            name=t.name,
            session=t.session,
            topic=t.topic,
            status=t.status,
            isHot=t.is_hot,
            lastAudio=iso(t.last_audio),
            lastTranscript=iso(t.last_transcript),
            createdAt=iso(t.created_at),
        )


class TranscriptOut(BaseModel):
    id: int
    eventId: int  # Lets clients ignore segments of other events
    tableId: int  # Numeric table id; clients translate to join code
    timestamp: str
    speaker: Optional[str] = None
    text: str
    sentiment: float = 0.0
    isQuote: bool = False

    @classmethod
    def from_model(cls, t: Transcript, event_id: int) -> "TranscriptOut":
        return cls(
            id=t.id,
            eventId=event_id,
            tableId=t.table_id,
            timestamp=iso(t.timestamp),
            speaker=t.speaker,
            text=t.text,
            sentiment=t.sentiment,
            isQuote=t.is_quote,
        )


class InsightOut(BaseModel):
    id: int
    eventId: int
    type: InsightType
    title: str
    description: Optional[str] = None
    confidence: float
    relatedTableIds: List[int] = []
    evidenceCount: int = 0
    status: InsightStatus
    createdAt: str

    @classmethod
    def from_model(cls, i: Insight) -> "InsightOut":
        return cls(
            id=i.id,
            eventId=i.event_id,
            type=i.type,
            title=i.title,
            description=i.description,
            confidence=i.confidence,
            relatedTableIds=list(i.related_table_ids or []),
            evidenceCount=i.evidence_count,
            status=i.status,
            createdAt=iso(i.created_at),
        )


class NoticeOut(BaseModel):
    id: int
    eventId: int
    tableId: Optional[int] = None
    message: str
    isRead: bool = False
    createdAt: str

    @classmethod
    def from_model(cls, n: Notice) -> "NoticeOut":
        return cls(
            id=n.id,
            eventId=n.event_id,
            tableId=n.table_id,
            message=n.message,
            isRead=n.is_read,
            createdAt=iso(n.created_at),
        )


class QuestionOut(BaseModel):
    id: int
    eventId: int
    question: str
    askedBy: Optional[str] = None
    isAnonymous: bool = True
    votes: int = 0
    answered: bool = False
    createdAt: str

    @classmethod
    def from_model(cls, q: AttendeeQuestion) -> "QuestionOut":
        return cls(
            id=q.id,
            eventId=q.event_id,
            question=q.question,
            askedBy=q.asked_by,
            isAnonymous=q.is_anonymous,
            votes=q.votes,
            answered=q.answered,
            createdAt=iso(q.created_at),
        )


class NoticePush(BaseModel):
    """Payload of the `notice` envelope."""
    eventId: int
    tableIds: Optional[List[int]] = None  # None / empty = whole event
    message: str


# ===== In =====
class EventIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    location: Optional[str] = None
    status: str = Field(default="UPCOMING", pattern="^(UPCOMING|LIVE|COMPLETED)$")


class TableCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    session: Optional[str] = None
    topic: Optional[str] = None


class TableUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    session: Optional[str] = None
    topic: Optional[str] = None
    status: Optional[TableStatus] = None
    isHot: Optional[bool] = None


class TranscriptIn(BaseModel):
    speaker: Optional[str] = None
    text: str = Field(min_length=1)
    isQuote: bool = False


class InsightIn(BaseModel):
    type: InsightType
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    relatedTableIds: List[int] = []
    evidenceCount: int = Field(default=1, ge=0)


class InsightUpdateIn(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    status: Optional[InsightStatus] = None


class BroadcastIn(BaseModel):
    message: str = Field(min_length=1)
    tableIds: Optional[List[int]] = None


class QuestionIn(BaseModel):
    question: str = Field(min_length=1)
    askedBy: Optional[str] = None
    isAnonymous: bool = True


class AssistantQueryIn(BaseModel):
    query: str = Field(min_length=1)


class AgendaItemIn(BaseModel):
    phase: str
    text: str


class CoachTipIn(BaseModel):
    agenda: List[AgendaItemIn] = []
