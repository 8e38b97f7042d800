"""In-memory stand-ins for the Firestore client used by the service tests."""
import copy
import itertools
import queue
import threading
from datetime import datetime, timezone

from google.api_core.exceptions import Aborted, NotFound
from google.cloud import firestore


_ids = itertools.count(1)


def _resolve(data):
    return {
        key: datetime.now(timezone.utc) if value is firestore.SERVER_TIMESTAMP else value
        for key, value in data.items()
    }


def fake_transactional(fn):
    def run(transaction):
        result = fn(transaction)
        transaction.commit()
        return result

    return run


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data) if data is not None else None

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeWatch:
    def __init__(self, watchers, entry):
        self._watchers = watchers
        self._entry = entry
        self.active = True

    def unsubscribe(self):
        self.active = False
        if self._entry in self._watchers:
            self._watchers.remove(self._entry)


class FakeDocumentRef:
    def __init__(self, db, collection, doc_id):
        self.db = db
        self.collection_name = collection
        self.id = doc_id

    def _docs(self):
        return self.db.data.setdefault(self.collection_name, {})

    def get(self, transaction=None):
        return FakeSnapshot(self, self._docs().get(self.id))

    def set(self, data, merge=False):
        self.db.apply([("set", self, data, merge)])

    def update(self, data):
        self.db.apply([("update", self, data, False)])

    def delete(self):
        self.db.apply([("delete", self, None, False)])

    def on_snapshot(self, callback):
        entry = (self, callback)
        self.db.watchers.append(entry)
        callback([self.get()], [], None)
        return FakeWatch(self.db.watchers, entry)


class FakeQuery:
    def __init__(self, db, collection, filters=(), orders=(), limit=None):
        self.db = db
        self.collection_name = collection
        self.filters = list(filters)
        self.orders = list(orders)
        self.max_results = limit

    def where(self, filter=None):
        return FakeQuery(self.db, self.collection_name, self.filters + [filter], self.orders, self.max_results)

    def order_by(self, field_path, direction=firestore.Query.ASCENDING):
        orders = self.orders + [(field_path, direction)]
        return FakeQuery(self.db, self.collection_name, self.filters, orders, self.max_results)

    def limit(self, count):
        return FakeQuery(self.db, self.collection_name, self.filters, self.orders, count)

    def _matches(self, data):
        for item in self.filters:
            value = data.get(item.field_path)
            if item.op_string == "==" and value != item.value:
                return False
        return True

    def stream(self, transaction=None):
        docs = self.db.data.get(self.collection_name, {})
        snaps = [
            FakeSnapshot(FakeDocumentRef(self.db, self.collection_name, doc_id), data)
            for doc_id, data in docs.items()
            if self._matches(data)
            # Firestore leaves out documents that lack an ordered field.
            and all(field_path in data for field_path, _ in self.orders)
        ]
        for field_path, direction in reversed(self.orders):
            snaps.sort(
                key=lambda snap: (snap.to_dict().get(field_path) is None, snap.to_dict().get(field_path) or 0),
                reverse=direction == firestore.Query.DESCENDING,
            )
        if self.max_results is not None:
            snaps = snaps[: self.max_results]
        return iter(snaps)

    def on_snapshot(self, callback):
        entry = (self, callback)
        self.db.watchers.append(entry)
        callback(list(self.stream()), [], None)
        return FakeWatch(self.db.watchers, entry)


class FakeCollection(FakeQuery):
    def __init__(self, db, name):
        super().__init__(db, name)

    def document(self, doc_id=None):
        return FakeDocumentRef(self.db, self.collection_name, doc_id or f"auto-{next(_ids)}")


class FakeWriteBatch:
    def __init__(self, db):
        self.db = db
        self.ops = []
        self.committed = False

    def set(self, ref, data, merge=False):
        self.ops.append(("set", ref, data, merge))

    def update(self, ref, data):
        self.ops.append(("update", ref, data, False))

    def delete(self, ref):
        self.ops.append(("delete", ref, None, False))

    def commit(self):
        if self.db.fail_commits:
            raise Aborted("commit rejected")
        self.db.apply(self.ops)
        self.committed = True


class FakeTransaction(FakeWriteBatch):
    pass


class FakeFirestore:
    """Just enough of ``firestore.Client`` for the services under test.

    Writes are all-or-nothing per batch or transaction. Set ``fail_commits``
    to make every commit raise ``Aborted``.
    """

    def __init__(self):
        self.data = {}
        self.watchers = []
        self.fail_commits = False
        self.batches = []

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        batch = FakeWriteBatch(self)
        self.batches.append(batch)
        return batch

    def transaction(self):
        return FakeTransaction(self)

    def apply(self, ops):
        for kind, ref, _, _ in ops:
            if kind == "update" and ref.id not in self.data.get(ref.collection_name, {}):
                raise NotFound(f"No document to update: {ref.collection_name}/{ref.id}")
        for kind, ref, data, merge in ops:
            docs = self.data.setdefault(ref.collection_name, {})
            if kind == "delete":
                docs.pop(ref.id, None)
            elif kind == "set" and not merge:
                docs[ref.id] = _resolve(data)
            else:
                docs.setdefault(ref.id, {}).update(_resolve(data))
        self._notify()

    def _notify(self):
        for target, callback in list(self.watchers):
            if isinstance(target, FakeDocumentRef):
                callback([target.get()], [], None)
            else:
                callback(list(target.stream()), [], None)

    # -- helpers for assertions -------------------------------------------

    def docs(self, collection):
        return self.data.get(collection, {})

    def seed(self, collection, doc_id, data):
        self.data.setdefault(collection, {})[doc_id] = dict(data)


class ThreadedWatch:
    """Delivers snapshots on its own consumer thread and joins it on unsubscribe.

    ``unsubscribe`` from the consumer thread fails the way the real
    listener does, with ``RuntimeError: cannot join current thread``.
    """

    def __init__(self, callback):
        self.callback = callback
        self.errors = []
        self.closed = threading.Event()
        self._queue = queue.Queue()
        self._thread = threading.Thread(target=self._consume, daemon=True)
        self._thread.start()

    def _consume(self):
        while True:
            snapshots = self._queue.get()
            if snapshots is None:
                return
            try:
                self.callback(snapshots, [], None)
            except Exception as exc:
                self.errors.append(exc)

    def deliver(self, snapshots):
        self._queue.put(snapshots)

    def unsubscribe(self):
        self._queue.put(None)
        self._thread.join()
        self.closed.set()


class ThreadedDocumentRef:
    """Wraps a document reference so ``on_snapshot`` runs on a ThreadedWatch."""

    def __init__(self, ref):
        self.ref = ref
        self.id = ref.id
        self.watch = None

    def __getattr__(self, name):
        return getattr(self.ref, name)

    def on_snapshot(self, callback):
        self.watch = ThreadedWatch(callback)
        self.push()
        return self.watch

    def push(self):
        self.watch.deliver([self.ref.get()])
