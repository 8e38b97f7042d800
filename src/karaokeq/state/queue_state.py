import logging
from typing import Callable, List, Sequence

from karaokeq.core.models import SongRequest
from karaokeq.core.queue import move_song, sort_by_order


logger = logging.getLogger(__name__)


class QueueState:
    """Local, optimistically updated copy of the staff queue.

    ``persist`` receives the new sequence and must raise if it was not
    written; the previous list is restored in that case.
    """

    def __init__(self, persist: Callable[[List[SongRequest]], None]) -> None:
        self._persist = persist
        self.songs: List[SongRequest] = []

    def replace(self, songs: Sequence[SongRequest]) -> None:
        self.songs = sort_by_order(songs)

    def reorder(self, new_sequence: Sequence[SongRequest]) -> List[SongRequest]:
        previous = list(self.songs)
        self.songs = list(new_sequence)
        try:
            self._persist(self.songs)
        except Exception:
            logger.warning("Reorder failed, restoring %d songs", len(previous))
            self.songs = previous
            raise
        return self.songs

    def move(self, old_index: int, new_index: int) -> List[SongRequest]:
        if old_index == new_index:
            return self.songs
        return self.reorder(move_song(self.songs, old_index, new_index))
