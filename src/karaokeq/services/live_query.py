"""Live views over Firestore queries and documents.

Each view exposes ``data``, ``loading`` and ``error`` and calls
``on_change`` whenever one of them changes. Snapshot callbacks arrive on
the listener's background thread.
"""
import logging
import threading
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from google.api_core.exceptions import GoogleAPICallError


logger = logging.getLogger(__name__)

T = TypeVar("T")
Mapper = Callable[[str, Dict[str, Any]], T]


class _LiveView(Generic[T]):
    def __init__(self, target: Any, mapper: Mapper, on_change: Optional[Callable[["_LiveView"], None]] = None) -> None:
        self.target = target
        self.mapper = mapper
        self.on_change = on_change
        self.loading = target is not None
        self.error: Optional[Exception] = None
        self.stopped = False
        self._watch = None
        self._callback_thread: Optional[int] = None

    def start(self) -> "_LiveView":
        if self.target is None:
            self.loading = False
            self._notify()
            return self
        self.loading = True
        self.error = None
        self.stopped = False
        try:
            watch = self.target.on_snapshot(self._on_snapshot)
        except GoogleAPICallError as exc:
            logger.warning("Could not subscribe: %s", exc)
            self._fail(exc)
            return self
        # The first snapshot may already have asked to stop.
        if self.stopped:
            watch.unsubscribe()
        else:
            self._watch = watch
        return self

    def stop(self) -> None:
        """Unsubscribe; later snapshots are ignored.

        The listener joins its consumer thread on unsubscribe, so a stop
        issued from inside a snapshot callback is handed to another thread.
        """
        self.stopped = True
        watch, self._watch = self._watch, None
        if watch is None:
            return
        if self._callback_thread == threading.get_ident():
            threading.Thread(target=watch.unsubscribe, daemon=True).start()
        else:
            watch.unsubscribe()

    def _on_snapshot(self, snapshots, changes, read_time) -> None:
        if self.stopped:
            return
        self._callback_thread = threading.get_ident()
        try:
            try:
                self._apply(snapshots)
            except Exception as exc:
                logger.exception("Failed to apply snapshot")
                self._fail(exc)
                return
            self.loading = False
            self.error = None
            self._notify()
        finally:
            self._callback_thread = None

    def _apply(self, snapshots) -> None:
        raise NotImplementedError

    def _fail(self, exc: Exception) -> None:
        self.error = exc
        self.loading = False
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)


class LiveCollection(_LiveView[T]):
    """Rows of a query, in the order the query returns them."""

    def __init__(self, query: Any, mapper: Mapper, on_change=None) -> None:
        super().__init__(query, mapper, on_change)
        self.data: List[T] = []

    def _apply(self, snapshots) -> None:
        self.data = [self.mapper(snap.id, snap.to_dict() or {}) for snap in snapshots]


class LiveDocument(_LiveView[T]):
    """A single document; ``data`` is None while it does not exist."""

    def __init__(self, doc_ref: Any, mapper: Mapper, on_change=None) -> None:
        super().__init__(doc_ref, mapper, on_change)
        self.data: Optional[T] = None

    def _apply(self, snapshots) -> None:
        snap = snapshots[0] if snapshots else None
        if snap is None or not snap.exists:
            self.data = None
            return
        self.data = self.mapper(snap.id, snap.to_dict() or {})
