import logging
from typing import Callable, Optional

from karaokeq.core import audit
from karaokeq.core.credentials import build_credentials, capitalize_name
from karaokeq.core.models import Participant
from karaokeq.core.roles import PARTICIPANT, Roles, profile_role
from karaokeq.services.audit_trail import AuditTrail
from karaokeq.services.auth_service import AuthResult, AuthServiceError, FirebaseAuthService
from karaokeq.services.firestore_service import FirestoreService
from karaokeq.services.live_query import LiveDocument
from karaokeq.services.queue_handlers import AccessDeniedError
from karaokeq.state.session_state import SessionState


logger = logging.getLogger(__name__)

SUSPENDED_MESSAGE = "This account has been suspended."


class AccountService:
    """Session lifecycle for the name + PIN identity scheme."""

    def __init__(self, auth: FirebaseAuthService, fs: FirestoreService, session: SessionState) -> None:
        self.auth = auth
        self.fs = fs
        self.session = session
        self.audit = AuditTrail(fs, session)

    def _start_session(self, result: AuthResult, display_name: str) -> None:
        self.session.uid = result.uid
        self.session.email = result.email
        self.session.display_name = result.display_name or display_name
        self.session.id_token = result.id_token
        self.session.refresh_token = result.refresh_token

    def sign_up(self, first_name: str, last_name: str, pin: str, role: str = PARTICIPANT) -> Roles:
        creds = build_credentials(first_name, last_name, pin, role)
        result = self.auth.sign_up(creds.email, creds.password, creds.display_name)
        self._start_session(result, creds.display_name)
        self.fs.ensure_participant(result.uid, creds.display_name, profile_role(role))
        logger.info("Account created for %s", creds.email)
        return self.session.roles

    def sign_in(self, first_name: str, last_name: str, pin: str, role: str = PARTICIPANT) -> Roles:
        creds = build_credentials(first_name, last_name, pin, role)
        result = self.auth.sign_in(creds.email, creds.password)
        self._start_session(result, creds.display_name)
        self.fs.ensure_participant(result.uid, self.session.display_name or creds.display_name, profile_role(role))
        self.check_active()
        logger.info("Signed in %s", creds.email)
        return self.session.roles

    def start_guest_session(self) -> None:
        """Anonymous session used by the lobby form."""
        if self.session.is_authenticated:
            return
        result = self.auth.sign_in_anonymously()
        self._start_session(result, "")

    def begin_request(self) -> None:
        """Ready the session for a lobby request.

        Signed-in participants must still be active; anyone without a
        session gets an anonymous guest session.
        """
        if self.session.roles.is_participant:
            self.check_active()
            return
        self.start_guest_session()

    def sign_out(self) -> None:
        self.session.clear()

    def check_active(self) -> Optional[Participant]:
        """Terminate the session if the owner has suspended this account."""
        if not self.session.uid:
            raise AccessDeniedError("No active session.")
        participant = self.fs.get_participant(self.session.uid)
        if participant is not None and participant.disabled:
            logger.info("Suspended account %s signed out", self.session.uid)
            self.sign_out()
            raise AccessDeniedError(SUSPENDED_MESSAGE)
        return participant

    def queue_query(self):
        roles = self.session.roles
        if roles.is_participant:
            self.check_active()
        return self.fs.song_requests_query(roles, self.session.uid)

    def watch_own_profile(self, on_suspended: Callable[[], None]) -> Optional[LiveDocument]:
        """Sign out as soon as the participant document is flagged disabled."""
        if not self.session.uid:
            return None

        def _on_change(view: LiveDocument) -> None:
            participant = view.data
            if participant is not None and participant.disabled and self.session.uid:
                logger.info("Session of %s ended by suspension", self.session.uid)
                self.sign_out()
                view.stop()
                on_suspended()

        return LiveDocument(self.fs.participant_ref(self.session.uid), Participant.from_dict, _on_change).start()

    def rename_self(self, first_name: str, last_name: str) -> str:
        """Rename the signed-in participant everywhere.

        The display name is updated first; if the follow-up transaction
        fails the old display name is restored and the error re-raised.
        """
        first = capitalize_name(first_name)
        last = capitalize_name(last_name)
        if not first or not last:
            raise ValueError("First and last name are required.")
        if not self.session.uid or not self.session.id_token:
            raise AccessDeniedError("No active session.")

        old_name = self.session.display_name or ""
        new_name = f"{first} {last}"

        self.auth.update_display_name(self.session.id_token, new_name)
        self.session.display_name = new_name
        try:
            self.fs.rename_participant(self.session.uid, new_name)
        except Exception:
            logger.warning("Rename of %s failed, restoring display name", self.session.uid)
            self.session.display_name = old_name or None
            if old_name:
                try:
                    self.auth.update_display_name(self.session.id_token, old_name)
                except AuthServiceError as exc:
                    logger.warning("Could not restore display name: %s", exc)
            raise

        self.audit.record(audit.PROFILE_UPDATED, f'User: "{old_name}" -> "{new_name}"')
        return new_name

    def delete_self(self) -> None:
        if not self.session.uid or not self.session.id_token:
            raise AccessDeniedError("No active session.")
        uid = self.session.uid
        name = self.session.display_name or "Unknown"

        self.fs.delete_participant(uid)
        self.audit.record(audit.USER_DELETED_SELF, audit.participant_flag(name, uid))
        self.auth.delete_account(self.session.id_token)
        self.sign_out()
        logger.info("Participant %s deleted their account", uid)
