import threading
import unittest
from unittest.mock import MagicMock, patch

from fakes import FakeFirestore, ThreadedDocumentRef, fake_transactional

from karaokeq.core import audit
from karaokeq.core.models import AUDIT_LOGS, SONG_REQUESTS, STUDENTS
from karaokeq.services.account_service import SUSPENDED_MESSAGE, AccountService
from karaokeq.services.auth_service import AuthResult, AuthServiceError, FirebaseAuthService
from karaokeq.services.firestore_service import FirestoreService, FirestoreServiceError
from karaokeq.services.queue_handlers import AccessDeniedError
from karaokeq.state.session_state import SessionState


def auth_result(uid="p1", email="kim.lee@karaoke.participant.app", name="Kim Lee"):
    return AuthResult(uid=uid, email=email, id_token="id-token", refresh_token="refresh", display_name=name)


class AccountServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.db = FakeFirestore()
        self.fs = FirestoreService(client=self.db)
        self.auth = MagicMock(spec=FirebaseAuthService)
        self.session = SessionState()
        self.accounts = AccountService(self.auth, self.fs, self.session)
        patcher = patch("karaokeq.services.firestore_service.firestore.transactional", fake_transactional)
        patcher.start()
        self.addCleanup(patcher.stop)

    def sign_in_participant(self):
        self.auth.sign_in.return_value = auth_result()
        return self.accounts.sign_in("kim", "lee", "1234")


class SignInTests(AccountServiceTestCase):
    def test_sign_up_uses_name_and_pin_scheme(self):
        self.auth.sign_up.return_value = auth_result()
        roles = self.accounts.sign_up("kim", "LEE", "1234")
        self.auth.sign_up.assert_called_once_with("kim.lee@karaoke.participant.app", "1234KimLee", "Kim Lee")
        self.assertTrue(roles.is_participant)
        self.assertEqual(self.db.docs(STUDENTS)["p1"]["role"], "student")
        self.assertTrue(self.session.is_authenticated)

    def test_staff_profile_keeps_role(self):
        self.auth.sign_in.return_value = auth_result(uid="a1", email="kim.lee@karaoke.admin.app")
        roles = self.accounts.sign_in("kim", "lee", "9999", "admin")
        self.assertTrue(roles.is_admin)
        self.assertEqual(self.db.docs(STUDENTS)["a1"]["role"], "admin")

    def test_sign_in_creates_missing_profile(self):
        self.sign_in_participant()
        self.assertEqual(self.db.docs(STUDENTS)["p1"]["name"], "Kim Lee")

    def test_suspended_account_cannot_sign_in(self):
        self.db.seed(STUDENTS, "p1", {"id": "p1", "name": "Kim Lee", "disabled": True})
        with self.assertRaises(AccessDeniedError) as ctx:
            self.sign_in_participant()
        self.assertEqual(str(ctx.exception), SUSPENDED_MESSAGE)
        self.assertFalse(self.session.is_authenticated)

    def test_auth_errors_propagate(self):
        self.auth.sign_in.side_effect = AuthServiceError("INVALID_LOGIN_CREDENTIALS")
        with self.assertRaises(AuthServiceError):
            self.accounts.sign_in("kim", "lee", "1234")
        self.assertIsNone(self.session.uid)

    def test_guest_session_reused(self):
        self.auth.sign_in_anonymously.return_value = auth_result(uid="anon", email="", name="")
        self.accounts.start_guest_session()
        self.accounts.start_guest_session()
        self.auth.sign_in_anonymously.assert_called_once_with()
        self.assertEqual(self.session.uid, "anon")
        self.assertFalse(self.session.roles.is_known)


class SuspensionTests(AccountServiceTestCase):
    def test_queue_query_denied_once_suspended(self):
        self.sign_in_participant()
        self.fs.set_participant_disabled("p1", True)
        with self.assertRaises(AccessDeniedError):
            self.accounts.queue_query()
        self.assertIsNone(self.session.uid)

    def test_queue_query_for_active_participant(self):
        self.sign_in_participant()
        query = self.accounts.queue_query()
        self.assertEqual(query.filters[0].value, "p1")

    def test_watch_signs_out_on_suspension(self):
        self.sign_in_participant()
        suspended = []
        view = self.accounts.watch_own_profile(lambda: suspended.append(True))
        self.assertFalse(view.data.disabled)
        self.fs.set_participant_disabled("p1", True)
        self.assertEqual(suspended, [True])
        self.assertIsNone(self.session.uid)

    def test_watch_ends_session_from_listener_thread(self):
        ref = ThreadedDocumentRef(self.db.collection(STUDENTS).document("p1"))
        patcher = patch.object(self.fs, "participant_ref", return_value=ref)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.sign_in_participant()
        suspended = threading.Event()
        self.accounts.watch_own_profile(suspended.set)

        self.fs.set_participant_disabled("p1", True)
        ref.push()
        self.assertTrue(suspended.wait(2))
        self.assertTrue(ref.watch.closed.wait(2))
        self.assertEqual(ref.watch.errors, [])
        self.assertIsNone(self.session.uid)

    def test_watch_without_session(self):
        self.assertIsNone(self.accounts.watch_own_profile(lambda: None))

    def test_begin_request_refuses_suspended_participant(self):
        self.sign_in_participant()
        self.fs.set_participant_disabled("p1", True)
        with self.assertRaises(AccessDeniedError) as ctx:
            self.accounts.begin_request()
        self.assertEqual(str(ctx.exception), SUSPENDED_MESSAGE)
        self.assertIsNone(self.session.uid)
        self.auth.sign_in_anonymously.assert_not_called()

    def test_begin_request_keeps_active_participant(self):
        self.sign_in_participant()
        self.accounts.begin_request()
        self.assertEqual(self.session.uid, "p1")
        self.auth.sign_in_anonymously.assert_not_called()

    def test_begin_request_starts_guest_session(self):
        self.auth.sign_in_anonymously.return_value = auth_result(uid="anon", email="", name="")
        self.accounts.begin_request()
        self.accounts.begin_request()
        self.auth.sign_in_anonymously.assert_called_once_with()
        self.assertEqual(self.session.uid, "anon")


class ProfileTests(AccountServiceTestCase):
    def setUp(self):
        super().setUp()
        self.sign_in_participant()
        self.db.seed(
            SONG_REQUESTS,
            "s1",
            {"participantId": "p1", "participantName": "Kim Lee", "title": "Hello", "order": 0},
        )

    def test_rename_self_updates_everything(self):
        new_name = self.accounts.rename_self("kim", "park")
        self.assertEqual(new_name, "Kim Park")
        self.auth.update_display_name.assert_called_once_with("id-token", "Kim Park")
        self.assertEqual(self.session.display_name, "Kim Park")
        self.assertEqual(self.db.docs(SONG_REQUESTS)["s1"]["participantName"], "Kim Park")
        actions = [entry["action"] for entry in self.db.docs(AUDIT_LOGS).values()]
        self.assertEqual(actions, [audit.PROFILE_UPDATED])

    def test_failed_rename_restores_display_name(self):
        self.db.fail_commits = True
        with self.assertRaises(FirestoreServiceError):
            self.accounts.rename_self("kim", "park")
        self.assertEqual(self.session.display_name, "Kim Lee")
        self.assertEqual(self.auth.update_display_name.call_args_list[-1].args, ("id-token", "Kim Lee"))
        self.assertEqual(self.db.docs(SONG_REQUESTS)["s1"]["participantName"], "Kim Lee")

    def test_rename_requires_both_names(self):
        with self.assertRaises(ValueError):
            self.accounts.rename_self("kim", " ")
        self.auth.update_display_name.assert_not_called()

    def test_delete_self(self):
        self.accounts.delete_self()
        self.assertNotIn("p1", self.db.docs(STUDENTS))
        self.assertEqual(self.db.docs(SONG_REQUESTS), {})
        self.auth.delete_account.assert_called_once_with("id-token")
        self.assertFalse(self.session.is_authenticated)
        actions = [entry["action"] for entry in self.db.docs(AUDIT_LOGS).values()]
        self.assertEqual(actions, [audit.USER_DELETED_SELF])


if __name__ == "__main__":
    unittest.main()
