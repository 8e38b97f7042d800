SONG_ADDED = "SONG_ADDED"
SONG_ADDED_BY_OWNER = "SONG_ADDED_BY_OWNER"
SONG_UPDATED = "SONG_UPDATED"
SONG_STATUS_CHANGED = "SONG_STATUS_CHANGED"
SONG_DELETED = "SONG_DELETED"
QUEUE_REORDERED = "QUEUE_REORDERED"
PROFILE_UPDATED = "PROFILE_UPDATED"
USER_RENAMED = "USER_RENAMED"
USER_DISABLED = "USER_DISABLED"
USER_ENABLED = "USER_ENABLED"
USER_DELETED = "USER_DELETED"
USER_DELETED_SELF = "USER_DELETED_SELF"


def song_added(title: str, requester: str) -> str:
    return f'Song: "{title}", requested by: {requester}'


def song_updated(song_id: str, title: str) -> str:
    return f'Song ID: {song_id}, new title: "{title}"'


def status_changed(title: str, status: str) -> str:
    return f'"{title}" -> {status}'


def song_deleted(title: str, requester: str) -> str:
    return f'Deleted: "{title}" by {requester}'


def renamed(old_name: str, new_name: str, participant_id: str) -> str:
    return f'User: "{old_name}" -> "{new_name}" (ID: {participant_id})'


def participant_flag(name: str, participant_id: str) -> str:
    return f'User: "{name}" (ID: {participant_id})'
