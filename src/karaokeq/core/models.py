from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


SONG_REQUESTS = "song_requests"
STUDENTS = "students"
AUDIT_LOGS = "audit_logs"
NOTIFICATIONS = "notifications"

OWNER_ADDED_ID = "owner-added"
GUEST_ADDED_ID = "lobby-guest"

# Requests filed under these ids have no participant profile.
UNOWNED_IDS = (OWNER_ADDED_ID, GUEST_ADDED_ID)


@dataclass
class SongRequest:
    id: str
    title: str
    karaoke_url: str
    participant_id: str
    participant_name: str
    status: str = "pending"
    order: Optional[int] = None
    submission_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "SongRequest":
        # Older documents used the student*/song* field names.
        order = data.get("order")
        return cls(
            id=doc_id,
            title=str(data.get("title") or data.get("songTitle") or ""),
            karaoke_url=str(data.get("karaokeUrl") or data.get("songUrl") or ""),
            participant_id=str(data.get("participantId") or data.get("studentId") or ""),
            participant_name=str(data.get("participantName") or data.get("studentName") or ""),
            status=str(data.get("status") or "pending"),
            order=int(order) if isinstance(order, (int, float)) else None,
            submission_date=data.get("submissionDate") or data.get("timestamp"),
        )


@dataclass
class Participant:
    id: str
    name: str
    role: str = "student"
    disabled: bool = False

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "Participant":
        return cls(
            id=doc_id,
            name=str(data.get("name") or ""),
            role=str(data.get("role") or "student"),
            disabled=bool(data.get("disabled", False)),
        )


@dataclass
class AuditLog:
    id: str
    actor_id: str
    actor_name: str
    action: str
    details: str
    timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "AuditLog":
        return cls(
            id=doc_id,
            actor_id=str(data.get("actorId") or ""),
            actor_name=str(data.get("actorName") or ""),
            action=str(data.get("action") or ""),
            details=str(data.get("details") or ""),
            timestamp=data.get("timestamp"),
        )


@dataclass
class Notification:
    id: str
    message: str
    request_id: str
    to: str = "owner"
    type: str = "new_song_request"
    read: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "Notification":
        return cls(
            id=doc_id,
            message=str(data.get("message") or ""),
            request_id=str(data.get("requestId") or ""),
            to=str(data.get("to") or "owner"),
            type=str(data.get("type") or "new_song_request"),
            read=bool(data.get("read", False)),
            created_at=data.get("createdAt"),
        )
