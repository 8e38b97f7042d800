import math
from typing import Dict, Iterable, List, Optional, Sequence

from karaokeq.core.models import SongRequest


PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
QUEUED = "queued"
PLAYING = "playing"
PLAYED = "played"

CURATION_STATUSES = (PENDING, APPROVED, REJECTED)
PLAYBACK_STATUSES = (QUEUED, PLAYING, PLAYED)
ALL_STATUSES = CURATION_STATUSES + PLAYBACK_STATUSES

# A participant may still edit a request while it has not been decided on.
UNRESOLVED_STATUSES = (PENDING, QUEUED)


def _order_key(song: SongRequest) -> float:
    return math.inf if song.order is None else song.order


def sort_by_order(songs: Iterable[SongRequest]) -> List[SongRequest]:
    return sorted(songs, key=_order_key)


def move_song(songs: Sequence[SongRequest], old_index: int, new_index: int) -> List[SongRequest]:
    """Return a new list with the song at ``old_index`` moved to ``new_index``."""
    if not 0 <= old_index < len(songs):
        raise IndexError(f"old_index {old_index} out of range")
    if not 0 <= new_index < len(songs):
        raise IndexError(f"new_index {new_index} out of range")

    result = list(songs)
    song = result.pop(old_index)
    result.insert(new_index, song)
    return result


def next_order(max_order: Optional[int]) -> int:
    """Position after the current last song."""
    return 0 if max_order is None else max_order + 1


def filter_songs(songs: Iterable[SongRequest], text: str) -> List[SongRequest]:
    needle = (text or "").strip().lower()
    if not needle:
        return list(songs)
    return [
        song
        for song in songs
        if needle in song.title.lower() or needle in song.participant_name.lower()
    ]


def group_by_status(songs: Iterable[SongRequest]) -> Dict[str, List[SongRequest]]:
    groups: Dict[str, List[SongRequest]] = {status: [] for status in ALL_STATUSES}
    for song in songs:
        groups.setdefault(song.status, []).append(song)
    return groups


def can_participant_edit(song: SongRequest, uid: str) -> bool:
    return bool(uid) and song.participant_id == uid and song.status in UNRESOLVED_STATUSES
