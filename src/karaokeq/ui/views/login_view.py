from typing import Callable
import flet as ft

from karaokeq.core.credentials import CredentialError
from karaokeq.core.roles import ADMIN, OWNER, PARTICIPANT
from karaokeq.services.account_service import AccountService
from karaokeq.services.auth_service import AuthServiceError, FirebaseAuthService
from karaokeq.services.firestore_service import FirestoreService, FirestoreServiceError
from karaokeq.services.queue_handlers import AccessDeniedError
from karaokeq.state.app_state import AppState
from karaokeq.ui.components import StatusLine, name_fields


def build_login_view(
    page: ft.Page,
    app_state: AppState,
    on_authenticated: Callable[[], None],
    on_back: Callable[[], None],
) -> ft.View:
    accounts = AccountService(FirebaseAuthService.from_settings(), FirestoreService.from_settings(), app_state.session)

    role = ft.Dropdown(
        width=220,
        label="I am",
        value=PARTICIPANT,
        options=[
            ft.dropdown.Option(PARTICIPANT, "Participant"),
            ft.dropdown.Option(ADMIN, "Admin"),
            ft.dropdown.Option(OWNER, "Owner"),
        ],
    )
    first_name, last_name = name_fields()
    pin = ft.TextField(label="4-Digit PIN", password=True, can_reveal_password=True, width=220)
    status = StatusLine(page)

    def on_role_change(_):
        pin.label = "4-Digit PIN" if role.value == PARTICIPANT else "Staff PIN"
        pin.max_length = 4 if role.value == PARTICIPANT else None
        page.update()

    role.on_change = on_role_change
    pin.max_length = 4

    def _run(action) -> None:
        try:
            action(first_name.value or "", last_name.value or "", pin.value or "", role.value or PARTICIPANT)
        except (CredentialError, AuthServiceError, AccessDeniedError, FirestoreServiceError) as exc:
            pin.value = ""
            status.show(str(exc))
            return
        on_authenticated()

    def on_sign_in(_):
        _run(accounts.sign_in)

    def on_sign_up(_):
        if role.value != PARTICIPANT:
            status.show("Staff accounts are provisioned by the owner. Please sign in.")
            return
        _run(accounts.sign_up)

    return ft.View(
        route="/login",
        controls=[
            ft.AppBar(title=ft.Text("Karaoke Queue - Sign In")),
            ft.Container(
                alignment=ft.alignment.center,
                padding=20,
                content=ft.Column(
                    horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                    controls=[
                        ft.Text("Welcome back", size=30, weight=ft.FontWeight.BOLD),
                        ft.Text("Enter your name and PIN. New participants can create an account here."),
                        role,
                        ft.Row(alignment=ft.MainAxisAlignment.CENTER, controls=[first_name, last_name]),
                        pin,
                        ft.Row(
                            alignment=ft.MainAxisAlignment.CENTER,
                            controls=[
                                ft.Button("Sign In", on_click=on_sign_in),
                                ft.OutlinedButton("Sign Up", on_click=on_sign_up),
                                ft.TextButton("Back to Lobby", on_click=lambda _: on_back()),
                            ],
                        ),
                        status.control,
                    ],
                ),
            ),
        ],
    )
