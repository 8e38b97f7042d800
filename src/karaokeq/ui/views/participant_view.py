from typing import Callable
import flet as ft

from karaokeq.core.credentials import split_display_name
from karaokeq.core.models import SongRequest
from karaokeq.core.queue import can_participant_edit
from karaokeq.core.validation import ValidationError, validate_submission
from karaokeq.services.account_service import AccountService
from karaokeq.services.auth_service import AuthServiceError, FirebaseAuthService
from karaokeq.services.firestore_service import FirestoreService, FirestoreServiceError
from karaokeq.services.live_query import LiveCollection
from karaokeq.services.queue_handlers import AccessDeniedError, QueueHandlers
from karaokeq.state.app_state import AppState
from karaokeq.ui.components import SongEditor, StatusLine, name_fields, song_card


def build_participant_view(page: ft.Page, app_state: AppState, on_signed_out: Callable[[], None]) -> ft.View:
    fs = FirestoreService.from_settings()
    session = app_state.session
    handlers = QueueHandlers(fs, session)
    accounts = AccountService(FirebaseAuthService.from_settings(), fs, session)
    errors = (AuthServiceError, FirestoreServiceError, AccessDeniedError, ValidationError, ValueError)

    status = StatusLine(page)
    song_title = ft.TextField(label="Song Title", width=350)
    song_url = ft.TextField(label="Karaoke URL", width=450)
    song_list = ft.Column(spacing=8)
    first_name, last_name = name_fields()
    profile_panel = ft.Column(visible=False)

    def on_edit_save(song: SongRequest, title: str, url: str) -> None:
        try:
            handlers.update_song(song, title, url)
            editor.close()
            status.show("Request updated.", is_error=False)
        except errors as exc:
            status.show(f"Update failed: {exc}")

    editor = SongEditor(on_edit_save)

    def render(view: LiveCollection) -> None:
        song_list.controls.clear()
        if view.error is not None:
            song_list.controls.append(ft.Text(f"Could not load your requests: {view.error}", color=ft.Colors.RED_400))
        elif view.loading:
            song_list.controls.append(ft.ProgressRing())
        elif not view.data:
            song_list.controls.append(ft.Text("You haven't requested any songs yet."))
        for song in view.data:
            actions = [ft.TextButton("Open Link", on_click=lambda _, url=song.karaoke_url: page.launch_url(url))]
            if can_participant_edit(song, session.uid or ""):
                actions.append(ft.TextButton("Edit", on_click=lambda _, s=song: (editor.open(s), page.update())))
            song_list.controls.append(song_card(song, actions, show_requester=False))
        page.update()

    def on_suspended() -> None:
        app_state.notice = "Your account has been suspended."
        on_signed_out()

    try:
        query = accounts.queue_query()
    except AccessDeniedError as exc:
        song_list.controls.append(ft.Text(str(exc), color=ft.Colors.RED_400))
        query = None

    if query is not None:
        app_state.track(LiveCollection(query, SongRequest.from_dict, render).start())
        app_state.track(accounts.watch_own_profile(on_suspended))

    def on_add(_):
        try:
            submission = validate_submission(song_title.value or "", song_url.value or "", require_name=False)
            handlers.add_song(submission)
            song_title.value = ""
            song_url.value = ""
            status.show("Song request sent.", is_error=False)
        except errors as exc:
            status.show(f"Failed to add song: {exc}")

    def toggle_profile(_):
        first, last = split_display_name(session.display_name or "")
        first_name.value = first
        last_name.value = last
        profile_panel.visible = not profile_panel.visible
        page.update()

    def on_profile_save(_):
        try:
            new_name = accounts.rename_self(first_name.value or "", last_name.value or "")
            profile_panel.visible = False
            status.show(f"Profile updated: {new_name}", is_error=False)
        except errors as exc:
            status.show(f"Profile update failed: {exc}")

    def on_delete_account(_):
        try:
            accounts.delete_self()
        except errors as exc:
            status.show(
                "Please sign in again and retry." if getattr(exc, "code", "") == "CREDENTIAL_TOO_OLD_LOGIN_AGAIN"
                else f"Could not delete your account: {exc}"
            )
            return
        app_state.notice = "Your account and all of your requests were deleted."
        on_signed_out()

    def on_sign_out(_):
        accounts.sign_out()
        on_signed_out()

    profile_panel.controls = [
        ft.Text("Edit Profile", size=18, weight=ft.FontWeight.BOLD),
        ft.Text("Fix typos in your first or last name."),
        ft.Row(controls=[first_name, last_name]),
        ft.Row(
            controls=[
                ft.Button("Save Changes", on_click=on_profile_save),
                ft.TextButton("Delete My Account", on_click=on_delete_account),
            ]
        ),
    ]

    return ft.View(
        route="/participant",
        controls=[
            ft.AppBar(
                title=ft.Text(f"Karaoke Queue - {session.display_name or 'Participant'}"),
                actions=[
                    ft.TextButton("Edit Profile", on_click=toggle_profile),
                    ft.TextButton("Sign Out", on_click=on_sign_out),
                ],
            ),
            ft.Container(
                padding=20,
                content=ft.Column(
                    scroll=ft.ScrollMode.AUTO,
                    controls=[
                        profile_panel,
                        ft.Text("Request a Song", size=22, weight=ft.FontWeight.BOLD),
                        song_title,
                        song_url,
                        ft.Button("Send Request", on_click=on_add),
                        status.control,
                        editor.control,
                        ft.Divider(),
                        ft.Text("My Requests", size=20, weight=ft.FontWeight.BOLD),
                        song_list,
                    ],
                ),
            ),
        ],
    )
