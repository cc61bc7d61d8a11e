# nutshell/core/envelope.py
"""
Push envelope contract shared by the broadcast hub and the client sync manager.

Every push notification is a JSON text frame of the form::

    {"type": "<event_type>", "data": <json>}
"""
import json
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ValidationError


class EventType(str, Enum):
    """Known envelope types."""
    TABLE_CREATED = "table_created"
    TABLE_UPDATED = "table_updated"
    TABLE_DELETED = "table_deleted"
    TRANSCRIPT_ADDED = "transcript_added"
    INSIGHT_ADDED = "insight_added"
    INSIGHT_UPDATED = "insight_updated"
    INSIGHTS_GENERATED = "insights_generated"
    NOTICE = "notice"
    QUESTION_ADDED = "question_added"
    PING = "ping"
    PONG = "pong"


class EnvelopeError(ValueError):
    """Raised when an inbound frame is not a valid envelope."""


class Envelope(BaseModel):
    type: str
    data: Any = None


def type_key(event_type: Union[EventType, str]) -> str:
    """Normalize an EventType or raw string to the wire value."""
    if isinstance(event_type, EventType):
        return event_type.value
    return event_type


def encode_envelope(event_type: Union[EventType, str], data: Any) -> str:
    return json.dumps({"type": type_key(event_type), "data": data})


def decode_envelope(raw: Union[str, bytes]) -> Envelope:
    """
    Parse a raw text/binary frame into an Envelope.

    Raises:
        EnvelopeError: If the frame is not JSON or lacks a string "type"
    """
    try:
        return Envelope.model_validate_json(raw)
    except ValidationError as e:
        raise EnvelopeError(f"malformed envelope: {e.error_count()} error(s)") from e
