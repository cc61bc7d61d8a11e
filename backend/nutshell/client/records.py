"""
Client-side records

Frozen dataclasses for the viewer's local picture. Tables are keyed by join
code; transcripts and insights keep the numeric ids they arrived with so they
can be re-keyed once the table snapshot catches up.
"""
import datetime as dt
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional, Tuple

IdMapper = Callable[[Any], str]


def parse_time(value: Optional[str]) -> Optional[dt.datetime]:
    if not value:
        return None
    return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class LocalTable:
    id: str  # join code
    db_id: int
    event_id: str
    name: str
    session: str = "General Session"
    topic: str = "General Discussion"
    status: str = "OFFLINE"
    is_hot: bool = False

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "LocalTable":
        return cls(
            id=data["joinCode"],
            db_id=int(data["id"]),
            event_id=str(data["eventId"]),
            name=data["name"],
            session=data.get("session") or "General Session",
            topic=data.get("topic") or "General Discussion",
            status=data.get("status") or "OFFLINE",
            is_hot=bool(data.get("isHot")),
        )


@dataclass(frozen=True)
class LocalTranscript:
    id: str
    table_id: str  # join code, or the raw numeric id while the table is unknown
    table_db_id: int
    timestamp: Optional[dt.datetime]
    speaker: str
    text: str
    sentiment: float = 0.0
    is_quote: bool = False
    event_id: Optional[str] = None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any], mapper: IdMapper) -> "LocalTranscript":
        event_id = data.get("eventId")
        return cls(
            id=str(data["id"]),
            event_id=None if event_id is None else str(event_id),
            table_id=mapper(data["tableId"]),
            table_db_id=int(data["tableId"]),
            timestamp=parse_time(data.get("timestamp")),
            speaker=data.get("speaker") or "Unknown",
            text=data["text"],
            sentiment=float(data.get("sentiment") or 0.0),
            is_quote=bool(data.get("isQuote")),
        )

    def rekey(self, mapper: IdMapper) -> "LocalTranscript":
        table_id = mapper(self.table_db_id)
        return self if table_id == self.table_id else replace(self, table_id=table_id)


@dataclass(frozen=True)
class LocalInsight:
    id: str
    event_id: str
    type: str
    title: str
    description: str = ""
    confidence: float = 0.8
    related_table_ids: Tuple[str, ...] = ()
    related_table_db_ids: Tuple[int, ...] = ()
    evidence_count: int = 0
    timestamp: Optional[dt.datetime] = None
    status: Optional[str] = None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any], mapper: IdMapper) -> "LocalInsight":
        db_ids = tuple(int(t) for t in data.get("relatedTableIds") or [])
        confidence = data.get("confidence")
        return cls(
            id=str(data["id"]),
            event_id=str(data["eventId"]),
            type=data["type"],
            title=data["title"],
            description=data.get("description") or "",
            confidence=0.8 if confidence is None else float(confidence),
            related_table_ids=tuple(mapper(t) for t in db_ids),
            related_table_db_ids=db_ids,
            evidence_count=int(data.get("evidenceCount") or 0),
            timestamp=parse_time(data.get("createdAt")),
            status=data.get("status"),
        )

    def rekey(self, mapper: IdMapper) -> "LocalInsight":
        related = tuple(mapper(t) for t in self.related_table_db_ids)
        return self if related == self.related_table_ids else replace(self, related_table_ids=related)


@dataclass(frozen=True)
class LocalNotice:
    event_id: str
    message: str
    table_db_ids: Tuple[int, ...] = ()  # empty = whole event
    received_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "LocalNotice":
        return cls(
            event_id=str(data["eventId"]),
            message=data["message"],
            table_db_ids=tuple(int(t) for t in data.get("tableIds") or []),
        )

    def addresses(self, table_db_id: Optional[int]) -> bool:
        return not self.table_db_ids or (table_db_id is not None and table_db_id in self.table_db_ids)


@dataclass(frozen=True)
class LocalQuestion:
    id: str
    event_id: str
    question: str
    asked_by: Optional[str] = None
    votes: int = 0
    answered: bool = False
    timestamp: Optional[dt.datetime] = None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "LocalQuestion":
        return cls(
            id=str(data["id"]),
            event_id=str(data["eventId"]),
            question=data["question"],
            asked_by=data.get("askedBy"),
            votes=int(data.get("votes") or 0),
            answered=bool(data.get("answered")),
            timestamp=parse_time(data.get("createdAt")),
        )

