from typing import Callable, List, Optional
import flet as ft

from karaokeq.core.models import SongRequest
from karaokeq.core.queue import APPROVED, PENDING, PLAYED, PLAYING, QUEUED, REJECTED


DATE_TIME_FMT = "%Y-%m-%d %H:%M"

STATUS_COLORS = {
    PENDING: ft.Colors.AMBER_400,
    APPROVED: ft.Colors.GREEN_400,
    REJECTED: ft.Colors.RED_400,
    QUEUED: ft.Colors.BLUE_GREY_400,
    PLAYING: ft.Colors.PINK_400,
    PLAYED: ft.Colors.GREY_500,
}


class StatusLine:
    """Inline message used in place of toasts."""

    def __init__(self, page: ft.Page) -> None:
        self.page = page
        self.control = ft.Text(color=ft.Colors.RED_400)

    def show(self, message: str, is_error: bool = True) -> None:
        self.control.value = message
        self.control.color = ft.Colors.RED_400 if is_error else ft.Colors.GREEN_400
        self.page.update()


def format_when(value) -> str:
    return value.strftime(DATE_TIME_FMT) if hasattr(value, "strftime") else "-"


def status_badge(status: str) -> ft.Container:
    return ft.Container(
        content=ft.Text(status, size=12, color=ft.Colors.WHITE),
        bgcolor=STATUS_COLORS.get(status, ft.Colors.GREY_700),
        padding=ft.padding.symmetric(horizontal=8, vertical=2),
        border_radius=8,
    )


def song_card(
    song: SongRequest,
    actions: List[ft.Control],
    show_requester: bool = True,
    leading: Optional[ft.Control] = None,
) -> ft.Card:
    subtitle = song.participant_name if show_requester else format_when(song.submission_date)
    header: List[ft.Control] = []
    if leading is not None:
        header.append(leading)
    header.extend(
        [
            status_badge(song.status),
            ft.Text(song.title or "Untitled", weight=ft.FontWeight.BOLD),
        ]
    )
    return ft.Card(
        content=ft.Container(
            padding=12,
            content=ft.Column(
                controls=[
                    ft.Row(controls=header),
                    ft.Text(subtitle),
                    ft.Text(song.karaoke_url, size=12, color=ft.Colors.PINK_200, selectable=True),
                    ft.Row(controls=actions, wrap=True),
                ]
            ),
        )
    )


class SongEditor:
    """Inline title/URL editor shared by staff and participant screens."""

    def __init__(self, on_save: Callable[[SongRequest, str, str], None]) -> None:
        self.on_save = on_save
        self.song: Optional[SongRequest] = None
        self.title = ft.TextField(label="Song Title", width=350)
        self.url = ft.TextField(label="Karaoke URL", width=450)
        self.control = ft.Column(
            visible=False,
            controls=[
                ft.Text("Edit Request", size=18, weight=ft.FontWeight.BOLD),
                self.title,
                self.url,
                ft.Row(
                    controls=[
                        ft.Button("Save", on_click=self._save),
                        ft.TextButton("Cancel", on_click=lambda _: self.close()),
                    ]
                ),
            ],
        )

    def open(self, song: SongRequest) -> None:
        self.song = song
        self.title.value = song.title
        self.url.value = song.karaoke_url
        self.control.visible = True

    def close(self) -> None:
        self.song = None
        self.control.visible = False
        if self.control.page:
            self.control.page.update()

    def _save(self, _) -> None:
        if self.song is None:
            return
        self.on_save(self.song, self.title.value or "", self.url.value or "")


def name_fields(width: int = 220) -> tuple[ft.TextField, ft.TextField]:
    return (
        ft.TextField(label="First Name", width=width),
        ft.TextField(label="Last Name", width=width),
    )
