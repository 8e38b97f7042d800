from typing import Set
import flet as ft

from karaokeq.core.models import SongRequest
from karaokeq.core.queue import (
    APPROVED,
    PENDING,
    PLAYBACK_STATUSES,
    REJECTED,
    filter_songs,
    group_by_status,
)
from karaokeq.core.validation import ValidationError
from karaokeq.services.firestore_service import FirestoreServiceError
from karaokeq.services.live_query import LiveCollection
from karaokeq.services.queue_handlers import AccessDeniedError, QueueHandlers
from karaokeq.state.app_state import AppState
from karaokeq.ui.components import SongEditor, StatusLine, song_card


ERRORS = (FirestoreServiceError, AccessDeniedError, ValidationError, IndexError)


def build_queue_panel(page: ft.Page, app_state: AppState, handlers: QueueHandlers, status: StatusLine) -> ft.Column:
    """Live staff queue: curation, playback status, edit, reorder, delete."""
    search = ft.TextField(label="Search songs...", width=400)
    pending_list = ft.Column(spacing=8)
    queue_list = ft.Column(spacing=8)
    summary = ft.Text()
    visited: Set[str] = set()
    live = LiveCollection(handlers.fs.song_requests_query(app_state.session.roles, app_state.session.uid), SongRequest.from_dict)

    def run(action, done: str) -> None:
        try:
            action()
            status.show(done, is_error=False)
        except ERRORS as exc:
            status.show(str(exc))
        render()

    def on_edit_save(song: SongRequest, title: str, url: str) -> None:
        try:
            handlers.update_song(song, title, url)
            editor.close()
            status.show("Song updated.", is_error=False)
        except ERRORS as exc:
            status.show(f"Update failed: {exc}")

    editor = SongEditor(on_edit_save)

    def open_link(song: SongRequest) -> None:
        visited.add(song.id)
        page.launch_url(song.karaoke_url)
        render()

    def curation_actions(song: SongRequest):
        reviewed = song.id in visited
        return [
            ft.TextButton("Open Link", on_click=lambda _: open_link(song)),
            ft.Button(
                "Approve",
                disabled=not reviewed,
                tooltip=None if reviewed else "Open the link first",
                on_click=lambda _: run(lambda: handlers.set_status(song, APPROVED), "Approved."),
            ),
            ft.OutlinedButton(
                "Reject",
                disabled=not reviewed,
                tooltip=None if reviewed else "Open the link first",
                on_click=lambda _: run(lambda: handlers.set_status(song, REJECTED), "Rejected."),
            ),
        ]

    def queue_actions(song: SongRequest, index: int, total: int):
        playback = ft.Dropdown(
            width=150,
            label="Status",
            value=song.status if song.status in PLAYBACK_STATUSES else None,
            options=[ft.dropdown.Option(value) for value in PLAYBACK_STATUSES],
            on_change=lambda e: run(lambda: handlers.set_status(song, e.control.value), f"Status set to {e.control.value}."),
        )
        return [
            ft.IconButton(
                icon=ft.Icons.ARROW_UPWARD,
                tooltip="Move up",
                disabled=index == 0,
                on_click=lambda _: run(lambda: handlers.move(index, index - 1), "Queue reordered."),
            ),
            ft.IconButton(
                icon=ft.Icons.ARROW_DOWNWARD,
                tooltip="Move down",
                disabled=index == total - 1,
                on_click=lambda _: run(lambda: handlers.move(index, index + 1), "Queue reordered."),
            ),
            playback,
            ft.TextButton("Open Link", on_click=lambda _: open_link(song)),
            ft.TextButton("Edit", on_click=lambda _: (editor.open(song), page.update())),
            ft.TextButton("Delete", on_click=lambda _: run(lambda: handlers.delete_song(song), "Song removed from the queue.")),
        ]

    def render() -> None:
        pending_list.controls.clear()
        queue_list.controls.clear()

        if live.error is not None:
            queue_list.controls.append(ft.Text(f"Could not load the queue: {live.error}", color=ft.Colors.RED_400))
            page.update()
            return

        songs = handlers.queue.songs
        groups = group_by_status(songs)
        summary.value = ", ".join(f"{name}: {len(groups.get(name, []))}" for name in (PENDING, APPROVED, REJECTED))

        for song in groups.get(PENDING, []):
            pending_list.controls.append(song_card(song, curation_actions(song)))
        if not pending_list.controls:
            pending_list.controls.append(ft.Text("Nothing is waiting for approval."))

        # Reordering works on positions in the full queue, so filtered rows keep their real index.
        shown = {song.id for song in filter_songs(songs, search.value or "")}
        for index, song in enumerate(songs):
            if song.id not in shown:
                continue
            position = ft.Text(f"#{index + 1}", weight=ft.FontWeight.BOLD)
            queue_list.controls.append(song_card(song, queue_actions(song, index, len(songs)), leading=position))
        if not queue_list.controls:
            queue_list.controls.append(ft.Text("The queue is empty."))
        page.update()

    def on_snapshot(view: LiveCollection) -> None:
        handlers.queue.replace(view.data)
        render()

    live.on_change = on_snapshot
    app_state.track(live.start())
    search.on_change = lambda _: render()

    return ft.Column(
        controls=[
            ft.Text("Awaiting Approval", size=20, weight=ft.FontWeight.BOLD),
            summary,
            pending_list,
            ft.Divider(),
            ft.Text("Current Queue", size=20, weight=ft.FontWeight.BOLD),
            search,
            editor.control,
            queue_list,
        ]
    )
