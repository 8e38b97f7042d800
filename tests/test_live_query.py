import threading
import unittest
from unittest.mock import MagicMock

from google.api_core.exceptions import PermissionDenied

from fakes import FakeFirestore, ThreadedDocumentRef

from karaokeq.core.models import SONG_REQUESTS, STUDENTS, Participant, SongRequest
from karaokeq.services.live_query import LiveCollection, LiveDocument


class LiveCollectionTests(unittest.TestCase):
    def setUp(self):
        self.db = FakeFirestore()
        self.db.seed(SONG_REQUESTS, "s1", {"title": "One", "order": 1})
        self.db.seed(SONG_REQUESTS, "s2", {"title": "Two", "order": 0})
        self.changes = []

    def test_initial_snapshot_and_updates(self):
        query = self.db.collection(SONG_REQUESTS).order_by("order")
        view = LiveCollection(query, SongRequest.from_dict, lambda v: self.changes.append([s.id for s in v.data]))
        view.start()
        self.assertFalse(view.loading)
        self.assertEqual(self.changes[-1], ["s2", "s1"])

        self.db.collection(SONG_REQUESTS).document("s3").set({"title": "Three", "order": 2})
        self.assertEqual(self.changes[-1], ["s2", "s1", "s3"])

        view.stop()
        self.db.collection(SONG_REQUESTS).document("s4").set({"title": "Four", "order": 3})
        self.assertEqual(len(self.changes[-1]), 3)

    def test_no_target_is_not_loading(self):
        view = LiveCollection(None, SongRequest.from_dict, self.changes.append).start()
        self.assertFalse(view.loading)
        self.assertEqual(view.data, [])
        self.assertEqual(self.changes, [view])

    def test_subscribe_failure_sets_error(self):
        query = MagicMock()
        query.on_snapshot.side_effect = PermissionDenied("rules")
        view = LiveCollection(query, SongRequest.from_dict).start()
        self.assertIsInstance(view.error, PermissionDenied)
        self.assertFalse(view.loading)

    def test_bad_snapshot_reports_error(self):
        def broken(doc_id, data):
            raise KeyError(doc_id)

        view = LiveCollection(self.db.collection(SONG_REQUESTS), broken).start()
        self.assertIsInstance(view.error, KeyError)


class LiveDocumentTests(unittest.TestCase):
    def test_missing_document_is_none(self):
        db = FakeFirestore()
        view = LiveDocument(db.collection(STUDENTS).document("p1"), Participant.from_dict).start()
        self.assertIsNone(view.data)
        db.collection(STUDENTS).document("p1").set({"name": "Kim Lee"})
        self.assertEqual(view.data.name, "Kim Lee")


class ThreadedListenerTests(unittest.TestCase):
    def setUp(self):
        self.db = FakeFirestore()
        self.ref = ThreadedDocumentRef(self.db.collection(STUDENTS).document("p1"))

    def test_stop_from_snapshot_callback(self):
        done = threading.Event()

        def on_change(view):
            if view.data is not None and view.data.disabled:
                view.stop()
                done.set()

        view = LiveDocument(self.ref, Participant.from_dict, on_change).start()
        self.db.seed(STUDENTS, "p1", {"name": "Kim Lee", "disabled": True})
        self.ref.push()
        self.assertTrue(done.wait(2))
        self.assertTrue(self.ref.watch.closed.wait(2))
        self.assertEqual(self.ref.watch.errors, [])
        self.assertTrue(view.stopped)

    def test_snapshots_after_stop_are_ignored(self):
        seen = []
        delivered = threading.Event()

        def on_change(view):
            seen.append(view.data)
            delivered.set()

        view = LiveDocument(self.ref, Participant.from_dict, on_change).start()
        self.assertTrue(delivered.wait(2))
        view.stop()
        self.assertTrue(self.ref.watch.closed.is_set())
        view._on_snapshot([self.db.collection(STUDENTS).document("p1").get()], [], None)
        self.assertEqual(seen, [None])


if __name__ == "__main__":
    unittest.main()
