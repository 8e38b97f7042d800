from typing import Any, Dict, Mapping

from karaokeq.core.models import NOTIFICATIONS


OWNER_RECIPIENT = "owner"
NEW_SONG_REQUEST = "new_song_request"

UNKNOWN_REQUESTER = "Biri"
UNKNOWN_SONG = "Bilinmeyen Şarkı"


def request_message(data: Mapping[str, Any]) -> str:
    requester = data.get("participantName") or data.get("studentName") or UNKNOWN_REQUESTER
    title = data.get("title") or data.get("songTitle") or UNKNOWN_SONG
    return f"{requester} — {title} isteği gönderdi"


def build_owner_notification(request_id: str, data: Mapping[str, Any], created_at: Any) -> Dict[str, Any]:
    """Notification document written when a song request is created.

    ``created_at`` is passed in so the caller can use a server timestamp.
    """
    return {
        "to": OWNER_RECIPIENT,
        "type": NEW_SONG_REQUEST,
        "message": request_message(data),
        "requestId": request_id,
        "createdAt": created_at,
        "read": False,
    }


def notify_owner(db: Any, request_id: str, data: Mapping[str, Any], created_at: Any) -> str:
    """Append the owner notification for a new request; returns its id."""
    ref = db.collection(NOTIFICATIONS).document()
    ref.set(build_owner_notification(request_id, data, created_at))
    return ref.id
