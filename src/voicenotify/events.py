"""
Canonical inbound events.

The agent host has shipped several event shapes over time (permission.updated
vs permission.asked, permissionID vs requestID, ...). Everything is mapped to
one NotifyEvent here so the orchestrator never sees protocol differences.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    USER_MESSAGE = "user-message"
    PERMISSION_ASKED = "permission-asked"
    PERMISSION_REPLIED = "permission-replied"
    QUESTION_ASKED = "question-asked"
    QUESTION_REPLIED = "question-replied"
    QUESTION_REJECTED = "question-rejected"
    SESSION_IDLE = "session-idle"
    SESSION_CREATED = "session-created"

    @property
    def kind(self) -> str | None:
        """Batchable notification kind this event belongs to, if any."""
        if self.value.startswith("permission-"):
            return "permission"
        if self.value.startswith("question-"):
            return "question"
        return None

    @property
    def is_request(self) -> bool:
        return self in (EventType.PERMISSION_ASKED, EventType.QUESTION_ASKED)

    @property
    def is_response(self) -> bool:
        return self in (
            EventType.PERMISSION_REPLIED,
            EventType.QUESTION_REPLIED,
            EventType.QUESTION_REJECTED,
        )


@dataclass(frozen=True)
class NotifyEvent:
    """One inbound event, already normalized."""

    type: EventType
    request_id: str | None = None  # permission / question id
    session_id: str | None = None
    message_id: str | None = None
    role: str | None = None
    created_at: float | None = None  # wall-clock seconds
    question_count: int = 1
    response: str | None = None
    received_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "request_id": self.request_id,
            "session_id": self.session_id,
            "message_id": self.message_id,
            "role": self.role,
            "created_at": self.created_at,
            "question_count": self.question_count,
            "response": self.response,
        }


# Raw host type → canonical type
_TYPE_MAP: dict[str, EventType] = {
    "message.updated": EventType.USER_MESSAGE,
    "permission.updated": EventType.PERMISSION_ASKED,  # SDK < 1.1
    "permission.asked": EventType.PERMISSION_ASKED,
    "permission.replied": EventType.PERMISSION_REPLIED,
    "question.asked": EventType.QUESTION_ASKED,
    "question.replied": EventType.QUESTION_REPLIED,
    "question.rejected": EventType.QUESTION_REJECTED,
    "session.idle": EventType.SESSION_IDLE,
    "session.created": EventType.SESSION_CREATED,
}

# Milliseconds since epoch are > 1e12, seconds are ~1.7e9
_MS_THRESHOLD = 1e12


def _first(props: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = props.get(key)
        if value not in (None, ""):
            return value
    return None


def _to_seconds(value: Any) -> float | None:
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return None
    if ts <= 0:
        return None
    return ts / 1000.0 if ts > _MS_THRESHOLD else ts


def _question_count(props: dict[str, Any]) -> int:
    questions = props.get("questions")
    if isinstance(questions, list):
        return max(1, len(questions))
    return 1


def normalize_event(raw: dict[str, Any]) -> NotifyEvent | None:
    """Map a raw host payload to a NotifyEvent, or None if irrelevant."""
    if not isinstance(raw, dict):
        return None
    event_type = _TYPE_MAP.get(str(raw.get("type", "")))
    if event_type is None:
        return None

    props = raw.get("properties") or {}
    if not isinstance(props, dict):
        props = {}

    if event_type is EventType.USER_MESSAGE:
        info = props.get("info") or {}
        if not isinstance(info, dict):
            return None
        times = info.get("time")
        created = times.get("created") if isinstance(times, dict) else None
        return NotifyEvent(
            type=event_type,
            message_id=info.get("id") or None,
            role=info.get("role"),
            session_id=info.get("sessionID"),
            created_at=_to_seconds(created),
        )

    if event_type in (EventType.SESSION_IDLE, EventType.SESSION_CREATED):
        session_id = _first(props, "sessionID")
        if session_id is None and isinstance(props.get("info"), dict):
            session_id = props["info"].get("id")
        return NotifyEvent(type=event_type, session_id=session_id)

    # Permission / question requests and responses
    request_id = _first(props, "permissionID", "requestID", "id")
    return NotifyEvent(
        type=event_type,
        request_id=str(request_id) if request_id is not None else None,
        session_id=_first(props, "sessionID"),
        question_count=_question_count(props)
        if event_type is EventType.QUESTION_ASKED
        else 1,
        response=_first(props, "response", "reply"),
    )
