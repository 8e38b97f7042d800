from typing import Callable
import flet as ft

from karaokeq.services.account_service import AccountService
from karaokeq.services.auth_service import FirebaseAuthService
from karaokeq.services.firestore_service import FirestoreService
from karaokeq.services.queue_handlers import QueueHandlers
from karaokeq.state.app_state import AppState
from karaokeq.ui.components import StatusLine
from karaokeq.ui.views.queue_panel import build_queue_panel


def build_admin_view(page: ft.Page, app_state: AppState, on_signed_out: Callable[[], None]) -> ft.View:
    fs = FirestoreService.from_settings()
    session = app_state.session
    handlers = QueueHandlers(fs, session)
    accounts = AccountService(FirebaseAuthService.from_settings(), fs, session)
    status = StatusLine(page)

    def on_sign_out(_):
        accounts.sign_out()
        on_signed_out()

    return ft.View(
        route="/admin",
        controls=[
            ft.AppBar(
                title=ft.Text(f"Admin Panel - {session.display_name or 'Admin'}"),
                actions=[
                    ft.TextButton("Lobby", on_click=lambda _: page.go("/")),
                    ft.TextButton("Sign Out", on_click=on_sign_out),
                ],
            ),
            ft.Container(
                padding=20,
                content=ft.Column(
                    scroll=ft.ScrollMode.AUTO,
                    controls=[
                        status.control,
                        build_queue_panel(page, app_state, handlers, status),
                    ],
                ),
            ),
        ],
    )
