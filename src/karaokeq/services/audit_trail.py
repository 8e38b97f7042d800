import logging

from google.api_core.exceptions import GoogleAPICallError

from karaokeq.services.firestore_service import FirestoreService
from karaokeq.state.session_state import SessionState


logger = logging.getLogger(__name__)


class AuditTrail:
    """Appends audit entries on behalf of the signed-in actor.

    Appends run after the mutation they describe has succeeded. A failed
    append is logged and does not undo that mutation.
    """

    def __init__(self, fs: FirestoreService, session: SessionState) -> None:
        self.fs = fs
        self.session = session

    def record(self, action: str, details: str) -> None:
        if not self.session.uid:
            logger.warning("Skipping audit entry %s without a session", action)
            return
        try:
            self.fs.append_audit_log(
                actor_id=self.session.uid,
                actor_name=self.session.actor_name,
                action=action,
                details=details,
            )
        except GoogleAPICallError as exc:
            logger.warning("Audit entry %s was not written: %s", action, exc)
