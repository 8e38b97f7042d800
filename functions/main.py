import logging
import os
import sys
from pathlib import Path
from typing import Optional


def _find_src_dir(start_file: Path) -> Optional[Path]:
    env_src = os.getenv("KARAOKEQ_SRC_DIR", "").strip()
    if env_src:
        env_path = Path(env_src)
        if (env_path / "karaokeq" / "core" / "notifications.py").exists():
            return env_path

    for parent in (start_file.parent, *start_file.parents):
        if (parent / "karaokeq" / "core" / "notifications.py").exists():
            return parent

        candidate = parent / "src"
        if (candidate / "karaokeq").exists():
            return candidate

    return None


SRC_DIR = _find_src_dir(Path(__file__).resolve())
if SRC_DIR is not None and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from firebase_admin import firestore, initialize_app
from firebase_functions import firestore_fn

from karaokeq.core.notifications import notify_owner


initialize_app()
logger = logging.getLogger(__name__)


@firestore_fn.on_document_created(document="song_requests/{requestId}")
def notify_owner_on_song_request(event: firestore_fn.Event[Optional[firestore_fn.DocumentSnapshot]]) -> None:
    snap = event.data
    if snap is None:
        return

    request_id = event.params.get("requestId", snap.id)
    notification_id = notify_owner(
        firestore.client(),
        request_id,
        snap.to_dict() or {},
        firestore.SERVER_TIMESTAMP,
    )
    logger.info("Notification %s written for request %s", notification_id, request_id)
