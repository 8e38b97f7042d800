from typing import Callable
import flet as ft

from karaokeq.core.routing import landing_route
from karaokeq.core.validation import ValidationError, validate_submission
from karaokeq.services.account_service import AccountService
from karaokeq.services.auth_service import AuthServiceError, FirebaseAuthService
from karaokeq.services.firestore_service import FirestoreService, FirestoreServiceError
from karaokeq.services.queue_handlers import AccessDeniedError, QueueHandlers
from karaokeq.state.app_state import AppState
from karaokeq.ui.components import StatusLine, name_fields


def build_lobby_view(page: ft.Page, app_state: AppState, on_login: Callable[[], None]) -> ft.View:
    fs = FirestoreService.from_settings()
    session = app_state.session
    handlers = QueueHandlers(fs, session)
    accounts = AccountService(FirebaseAuthService.from_settings(), fs, session)

    # Signed-in participants always request under their own name.
    as_participant = session.roles.is_participant
    first_name, last_name = name_fields()
    name_row = ft.Row(alignment=ft.MainAxisAlignment.CENTER, controls=[first_name, last_name], visible=not as_participant)
    requesting_as = ft.Text(f"Requesting as {session.display_name or 'you'}", visible=as_participant)
    song_title = ft.TextField(label="Song Title", width=450)
    song_url = ft.TextField(label="Song URL (https://...)", width=450)
    status = StatusLine(page)
    submit_button = ft.Button("Send")

    def on_submit(_):
        nonlocal as_participant
        try:
            submission = validate_submission(
                song_title.value or "",
                song_url.value or "",
                first_name.value,
                last_name.value,
                require_name=not as_participant,
            )
        except ValidationError as exc:
            status.show(str(exc))
            return

        submit_button.disabled = True
        submit_button.text = "Sending..."
        page.update()
        try:
            accounts.begin_request()
            handlers.add_song(submission)
            first_name.value = ""
            last_name.value = ""
            song_title.value = ""
            song_url.value = ""
            status.show("Your song request has been received. Thanks for joining in!", is_error=False)
        except (AuthServiceError, FirestoreServiceError, AccessDeniedError) as exc:
            status.show(f"Submission failed: {exc}")
            if as_participant and not session.is_authenticated:
                # Suspended mid-visit; the form falls back to guest entry.
                as_participant = False
                name_row.visible = True
                requesting_as.visible = False
        finally:
            submit_button.disabled = False
            submit_button.text = "Send"
            page.update()

    submit_button.on_click = on_submit

    header_actions = [ft.OutlinedButton("Sign In", on_click=lambda _: on_login())]
    home = landing_route(session.roles)
    if home != "/":
        header_actions.insert(0, ft.Button("My Page", on_click=lambda _: page.go(home)))

    notice = ft.Text(app_state.notice, color=ft.Colors.AMBER_400, visible=bool(app_state.notice))
    app_state.notice = ""

    return ft.View(
        route="/",
        controls=[
            ft.AppBar(title=ft.Text("Karaoke Queue"), actions=header_actions),
            ft.Container(
                alignment=ft.alignment.center,
                padding=20,
                content=ft.Column(
                    horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                    controls=[
                        ft.Text("Request a Song!", size=30, weight=ft.FontWeight.BOLD),
                        ft.Text("Add your favourite karaoke track to the list. Names are capitalized for you."),
                        notice,
                        name_row,
                        requesting_as,
                        song_title,
                        song_url,
                        submit_button,
                        status.control,
                    ],
                ),
            ),
        ],
    )
