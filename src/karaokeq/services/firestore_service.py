import logging
from typing import Any, Dict, List, Optional, Sequence

try:
    from google.cloud import firestore
    from google.cloud.firestore_v1.base_query import FieldFilter
except ModuleNotFoundError as exc:
    raise ModuleNotFoundError(
        "Missing dependency 'google-cloud-firestore'. Run: pip install -e ."
    ) from exc
from google.api_core.exceptions import GoogleAPICallError

from karaokeq.config.settings import settings
from karaokeq.core.models import (
    AUDIT_LOGS,
    NOTIFICATIONS,
    SONG_REQUESTS,
    STUDENTS,
    UNOWNED_IDS,
    AuditLog,
    Participant,
    SongRequest,
)
from karaokeq.core.queue import ALL_STATUSES, PENDING, next_order
from karaokeq.core.roles import Roles, STUDENT


logger = logging.getLogger(__name__)

# Matches no document; used when the caller's roles cannot be determined.
NULL_SENTINEL = "null-sentinel-value"


class FirestoreServiceError(Exception):
    pass


class FirestoreService:
    def __init__(self, project_id: str = "", client: Any = None) -> None:
        if client is not None:
            self.db = client
            return
        if not project_id:
            raise FirestoreServiceError("Missing FIREBASE_PROJECT_ID in environment")
        self.db = firestore.Client(project=project_id)

    @classmethod
    def from_settings(cls) -> "FirestoreService":
        return cls(settings.firebase_project_id)

    # -- references and queries -------------------------------------------

    def song_ref(self, song_id: str):
        return self.db.collection(SONG_REQUESTS).document(song_id)

    def participant_ref(self, participant_id: str):
        return self.db.collection(STUDENTS).document(participant_id)

    def song_requests_query(self, roles: Optional[Roles], uid: Optional[str]):
        """Single entry point for reading the queue.

        Staff (and the signed-out lobby) see the whole queue by rank,
        participants only their own requests, newest first.
        """
        col = self.db.collection(SONG_REQUESTS)

        if not uid or roles is None or roles.is_staff:
            return col.order_by("order", direction=firestore.Query.ASCENDING)

        if roles.is_participant:
            return col.where(filter=FieldFilter("participantId", "==", uid)).order_by(
                "submissionDate", direction=firestore.Query.DESCENDING
            )

        return col.where(filter=FieldFilter("participantId", "==", NULL_SENTINEL))

    def participants_query(self):
        return self.db.collection(STUDENTS)

    def audit_logs_query(self):
        return self.db.collection(AUDIT_LOGS).order_by("timestamp", direction=firestore.Query.DESCENDING)

    def notifications_query(self):
        return self.db.collection(NOTIFICATIONS).where(filter=FieldFilter("read", "==", False))

    def _songs_of(self, participant_id: str):
        return self.db.collection(SONG_REQUESTS).where(filter=FieldFilter("participantId", "==", participant_id))

    # -- reads -------------------------------------------------------------

    def list_song_requests(self, roles: Optional[Roles], uid: Optional[str]) -> List[SongRequest]:
        docs = self.song_requests_query(roles, uid).stream()
        return [SongRequest.from_dict(doc.id, doc.to_dict() or {}) for doc in docs]

    def list_participants(self) -> List[Participant]:
        docs = self.participants_query().stream()
        results = [Participant.from_dict(doc.id, doc.to_dict() or {}) for doc in docs]
        results.sort(key=lambda row: row.name.lower())
        return results

    def list_audit_logs(self) -> List[AuditLog]:
        docs = self.audit_logs_query().stream()
        return [AuditLog.from_dict(doc.id, doc.to_dict() or {}) for doc in docs]

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        snap = self.participant_ref(participant_id).get()
        if not snap.exists:
            return None
        return Participant.from_dict(snap.id, snap.to_dict() or {})

    def max_order(self) -> Optional[int]:
        """Highest ``order`` in the queue, or None when it is empty."""
        query = self.db.collection(SONG_REQUESTS).order_by("order", direction=firestore.Query.DESCENDING).limit(1)
        for doc in query.stream():
            return SongRequest.from_dict(doc.id, doc.to_dict() or {}).order
        return None

    # -- participant profile ---------------------------------------------

    def ensure_participant(self, participant_id: str, name: str, role: str = STUDENT) -> None:
        ref = self.participant_ref(participant_id)
        if not ref.get().exists:
            ref.set(
                {
                    "id": participant_id,
                    "name": name,
                    "role": role,
                    "disabled": False,
                }
            )

    def set_participant_disabled(self, participant_id: str, disabled: bool) -> None:
        try:
            self.participant_ref(participant_id).update({"disabled": disabled})
        except GoogleAPICallError as exc:
            raise FirestoreServiceError(f"Could not update participant {participant_id}.") from exc

    def rename_participant(self, participant_id: str, new_name: str) -> int:
        """Rename a participant and every request that carries their name.

        Runs as one transaction; returns the number of requests renamed.
        """
        participant_ref = self.participant_ref(participant_id)
        songs_query = self._songs_of(participant_id)

        @firestore.transactional
        def _rename(transaction) -> int:
            snap = participant_ref.get(transaction=transaction)
            if not snap.exists:
                raise FirestoreServiceError("Participant not found.")
            song_snaps = list(songs_query.stream(transaction=transaction))

            transaction.update(participant_ref, {"name": new_name})
            for song in song_snaps:
                transaction.update(song.reference, {"participantName": new_name})
            return len(song_snaps)

        try:
            renamed = _rename(self.db.transaction())
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not rename participant.") from exc
        logger.info("Renamed participant %s and %d requests", participant_id, renamed)
        return renamed

    def delete_participant(self, participant_id: str) -> int:
        participant_ref = self.participant_ref(participant_id)
        songs_query = self._songs_of(participant_id)

        @firestore.transactional
        def _delete(transaction) -> int:
            song_snaps = list(songs_query.stream(transaction=transaction))
            transaction.delete(participant_ref)
            for song in song_snaps:
                transaction.delete(song.reference)
            return len(song_snaps)

        try:
            deleted = _delete(self.db.transaction())
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not delete participant.") from exc
        logger.info("Deleted participant %s and %d requests", participant_id, deleted)
        return deleted

    # -- song requests ---------------------------------------------------

    def add_song_request(
        self,
        *,
        participant_id: str,
        participant_name: str,
        title: str,
        url: str,
        status: str = PENDING,
    ) -> str:
        """Create a request at the end of the queue.

        The requester's profile is created in the same batch unless the
        request is filed under the staff or lobby-guest id.
        """
        if status not in ALL_STATUSES:
            raise FirestoreServiceError(f"Unknown status: {status}")

        order = next_order(self.max_order())
        batch = self.db.batch()

        if participant_id not in UNOWNED_IDS:
            batch.set(
                self.participant_ref(participant_id),
                {"id": participant_id, "name": participant_name},
                merge=True,
            )

        ref = self.db.collection(SONG_REQUESTS).document()
        batch.set(
            ref,
            {
                "id": ref.id,
                "title": title,
                "karaokeUrl": url,
                "participantId": participant_id,
                "participantName": participant_name,
                "status": status,
                "order": order,
                "submissionDate": firestore.SERVER_TIMESTAMP,
            },
        )
        try:
            batch.commit()
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not submit the song request.") from exc
        logger.info("Song request %s added at position %d", ref.id, order)
        return ref.id

    def update_song_request(self, song_id: str, *, title: str, url: str) -> None:
        try:
            self.song_ref(song_id).update({"title": title, "karaokeUrl": url})
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not update the song request.") from exc

    def set_song_status(self, song_id: str, status: str) -> None:
        if status not in ALL_STATUSES:
            raise FirestoreServiceError(f"Unknown status: {status}")
        try:
            self.song_ref(song_id).update({"status": status})
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not change the song status.") from exc

    def delete_song_request(self, song_id: str) -> None:
        try:
            self.song_ref(song_id).delete()
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not delete the song request.") from exc

    def reorder_song_requests(self, song_ids: Sequence[str]) -> None:
        """Persist ``order = index`` for every id in one atomic batch."""
        batch = self.db.batch()
        for index, song_id in enumerate(song_ids):
            batch.update(self.song_ref(song_id), {"order": index})
        try:
            batch.commit()
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not save the new queue order.") from exc
        logger.info("Queue reordered (%d songs)", len(song_ids))

    # -- audit log and notifications ---------------------------------------

    def append_audit_log(self, *, actor_id: str, actor_name: str, action: str, details: str) -> str:
        ref = self.db.collection(AUDIT_LOGS).document()
        entry: Dict[str, Any] = {
            "timestamp": firestore.SERVER_TIMESTAMP,
            "actorId": actor_id,
            "actorName": actor_name,
            "action": action,
            "details": details,
        }
        ref.set(entry)
        return ref.id

    def mark_notification_read(self, notification_id: str) -> None:
        try:
            self.db.collection(NOTIFICATIONS).document(notification_id).update({"read": True})
        except GoogleAPICallError as exc:
            raise FirestoreServiceError("Could not update the notification.") from exc
