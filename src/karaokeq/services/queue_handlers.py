import logging
from typing import List, Sequence

from karaokeq.core import audit
from karaokeq.core.credentials import capitalize_name
from karaokeq.core.models import GUEST_ADDED_ID, OWNER_ADDED_ID, Participant, SongRequest
from karaokeq.core.queue import ALL_STATUSES, can_participant_edit
from karaokeq.core.validation import SongSubmission, validate_song
from karaokeq.services.audit_trail import AuditTrail
from karaokeq.services.firestore_service import FirestoreService, FirestoreServiceError
from karaokeq.state.queue_state import QueueState
from karaokeq.state.session_state import SessionState


logger = logging.getLogger(__name__)


class AccessDeniedError(Exception):
    pass


class QueueHandlers:
    """Queue and user mutations, each followed by an audit entry.

    Role checks here mirror what the security rules enforce server-side so
    the UI can fail early with a readable message.
    """

    def __init__(self, fs: FirestoreService, session: SessionState) -> None:
        self.fs = fs
        self.session = session
        self.audit = AuditTrail(fs, session)
        self.queue = QueueState(self._persist_order)

    def _require_staff(self) -> None:
        if not self.session.roles.is_staff:
            raise AccessDeniedError("Only admins and the owner can do this.")

    def _require_owner(self) -> None:
        if not self.session.roles.is_owner:
            raise AccessDeniedError("Only the owner can do this.")

    # -- song requests -----------------------------------------------------

    def add_song(self, submission: SongSubmission, *, participant_id: str = "", participant_name: str = "") -> str:
        """Submit a request.

        Participants submit under their own uid. Staff entering a request
        for someone else, and lobby guests sharing one anonymous session,
        are stored under a sentinel id with the name typed into the form.
        """
        roles = self.session.roles
        if not self.session.uid:
            raise AccessDeniedError("Sign in to request a song.")
        if participant_id and participant_id != self.session.uid and not roles.is_staff:
            raise AccessDeniedError("You can only request songs for yourself.")

        action = audit.SONG_ADDED
        if participant_id or roles.is_participant:
            uid = participant_id or self.session.uid
            requester = participant_name or self.session.display_name or submission.requester_name or "Unknown"
        elif roles.is_staff:
            uid = OWNER_ADDED_ID
            requester = submission.requester_name or self.session.actor_name
            if roles.is_owner:
                action = audit.SONG_ADDED_BY_OWNER
        else:
            uid = GUEST_ADDED_ID
            requester = submission.requester_name or "Unknown"

        song_id = self.fs.add_song_request(
            participant_id=uid,
            participant_name=requester,
            title=submission.title,
            url=submission.url,
        )
        self.audit.record(action, audit.song_added(submission.title, requester))
        return song_id

    def update_song(self, song: SongRequest, title: str, url: str) -> None:
        if not self.session.roles.is_staff and not can_participant_edit(song, self.session.uid or ""):
            raise AccessDeniedError("You can only edit your own requests before they are reviewed.")
        title, url = validate_song(title, url)
        self.fs.update_song_request(song.id, title=title, url=url)
        self.audit.record(audit.SONG_UPDATED, audit.song_updated(song.id, title))

    def set_status(self, song: SongRequest, status: str) -> None:
        self._require_staff()
        if status not in ALL_STATUSES:
            raise FirestoreServiceError(f"Unknown status: {status}")
        self.fs.set_song_status(song.id, status)
        self.audit.record(audit.SONG_STATUS_CHANGED, audit.status_changed(song.title, status))

    def delete_song(self, song: SongRequest) -> None:
        self._require_staff()
        self.fs.delete_song_request(song.id)
        self.audit.record(audit.SONG_DELETED, audit.song_deleted(song.title, song.participant_name))

    def _persist_order(self, songs: List[SongRequest]) -> None:
        self.fs.reorder_song_requests([song.id for song in songs])

    def reorder(self, new_sequence: Sequence[SongRequest]) -> List[SongRequest]:
        """Apply ``new_sequence`` locally, then persist it.

        On failure the local queue is restored and the error propagates.
        """
        self._require_staff()
        songs = self.queue.reorder(new_sequence)
        self.audit.record(audit.QUEUE_REORDERED, "Song order was rearranged.")
        return songs

    def move(self, old_index: int, new_index: int) -> List[SongRequest]:
        self._require_staff()
        if old_index == new_index:
            return self.queue.songs
        songs = self.queue.move(old_index, new_index)
        self.audit.record(audit.QUEUE_REORDERED, "Song order was rearranged.")
        return songs

    # -- users (owner only) -----------------------------------------------

    def rename_participant(self, participant: Participant, first_name: str, last_name: str) -> str:
        self._require_owner()
        first = capitalize_name(first_name)
        last = capitalize_name(last_name)
        if not first or not last:
            raise FirestoreServiceError("First and last name are required.")
        new_name = f"{first} {last}"
        self.fs.rename_participant(participant.id, new_name)
        self.audit.record(audit.USER_RENAMED, audit.renamed(participant.name, new_name, participant.id))
        return new_name

    def set_disabled(self, participant: Participant, disabled: bool) -> None:
        self._require_owner()
        if participant.id == self.session.uid:
            raise AccessDeniedError("You cannot suspend your own account.")
        self.fs.set_participant_disabled(participant.id, disabled)
        action = audit.USER_DISABLED if disabled else audit.USER_ENABLED
        self.audit.record(action, audit.participant_flag(participant.name, participant.id))

    def delete_participant(self, participant: Participant) -> int:
        self._require_owner()
        deleted = self.fs.delete_participant(participant.id)
        self.audit.record(audit.USER_DELETED, audit.participant_flag(participant.name, participant.id))
        return deleted

    def mark_notification_read(self, notification_id: str) -> None:
        self._require_owner()
        self.fs.mark_notification_read(notification_id)
