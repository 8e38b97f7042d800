from typing import Callable, Dict, Optional
import flet as ft

from karaokeq.core.models import AuditLog, Notification, Participant
from karaokeq.core.validation import ValidationError, validate_submission
from karaokeq.services.account_service import AccountService
from karaokeq.services.auth_service import FirebaseAuthService
from karaokeq.services.firestore_service import FirestoreService, FirestoreServiceError
from karaokeq.services.live_query import LiveCollection
from karaokeq.services.queue_handlers import AccessDeniedError, QueueHandlers
from karaokeq.state.app_state import AppState
from karaokeq.ui.components import StatusLine, format_when, name_fields
from karaokeq.ui.views.queue_panel import build_queue_panel


def build_owner_view(page: ft.Page, app_state: AppState, on_signed_out: Callable[[], None]) -> ft.View:
    fs = FirestoreService.from_settings()
    session = app_state.session
    handlers = QueueHandlers(fs, session)
    accounts = AccountService(FirebaseAuthService.from_settings(), fs, session)
    errors = (FirestoreServiceError, AccessDeniedError, ValidationError)
    status = StatusLine(page)

    # -- add song on behalf of someone -------------------------------------
    req_first, req_last = name_fields()
    song_title = ft.TextField(label="Song Title", width=350)
    song_url = ft.TextField(label="Karaoke URL", width=450)

    def on_add(_):
        try:
            submission = validate_submission(
                song_title.value or "",
                song_url.value or "",
                req_first.value,
                req_last.value,
            )
            handlers.add_song(submission)
            req_first.value = ""
            req_last.value = ""
            song_title.value = ""
            song_url.value = ""
            status.show(f'"{submission.title}" added for {submission.requester_name}.', is_error=False)
        except errors as exc:
            status.show(f"Failed to add song: {exc}")

    add_section = ft.Column(
        controls=[
            ft.Text("Add Song", size=20, weight=ft.FontWeight.BOLD),
            ft.Row(controls=[req_first, req_last]),
            song_title,
            song_url,
            ft.Button("Add to Queue", on_click=on_add),
        ]
    )

    # -- users -------------------------------------------------------------
    user_search = ft.TextField(label="Search users...", width=400)
    user_list = ft.Column(spacing=8)
    rename_first, rename_last = name_fields()
    rename_target: Dict[str, Optional[Participant]] = {"participant": None}
    rename_panel = ft.Column(visible=False)
    users = LiveCollection(fs.participants_query(), Participant.from_dict)

    def user_action(action, done: str) -> None:
        try:
            action()
            status.show(done, is_error=False)
        except errors as exc:
            status.show(str(exc))

    def open_rename(participant: Participant) -> None:
        first, _, last = participant.name.partition(" ")
        rename_first.value = first
        rename_last.value = last
        rename_target["participant"] = participant
        rename_panel.visible = True
        page.update()

    def on_rename_save(_):
        participant = rename_target["participant"]
        if participant is None:
            return
        try:
            new_name = handlers.rename_participant(participant, rename_first.value or "", rename_last.value or "")
            rename_panel.visible = False
            rename_target["participant"] = None
            status.show(f"{participant.name} is now {new_name}.", is_error=False)
        except errors as exc:
            status.show(f"Rename failed: {exc}")

    rename_panel.controls = [
        ft.Text("Rename User", size=18, weight=ft.FontWeight.BOLD),
        ft.Row(controls=[rename_first, rename_last]),
        ft.Row(
            controls=[
                ft.Button("Save", on_click=on_rename_save),
                ft.TextButton("Cancel", on_click=lambda _: (setattr(rename_panel, "visible", False), page.update())),
            ]
        ),
    ]

    def user_row(participant: Participant) -> ft.Card:
        is_self = participant.id == session.uid
        label = "Enable" if participant.disabled else "Suspend"
        return ft.Card(
            content=ft.Container(
                padding=12,
                content=ft.Row(
                    wrap=True,
                    controls=[
                        ft.Text(participant.name or participant.id, weight=ft.FontWeight.BOLD),
                        ft.Text(participant.role, size=12),
                        ft.Text("suspended", color=ft.Colors.RED_400, visible=participant.disabled),
                        ft.TextButton("Rename", on_click=lambda _: open_rename(participant)),
                        ft.TextButton(
                            label,
                            disabled=is_self,
                            on_click=lambda _: user_action(
                                lambda: handlers.set_disabled(participant, not participant.disabled),
                                f"{participant.name} was {'enabled' if participant.disabled else 'suspended'}.",
                            ),
                        ),
                        ft.TextButton(
                            "Delete",
                            disabled=is_self,
                            on_click=lambda _: user_action(
                                lambda: handlers.delete_participant(participant),
                                f"{participant.name} and their requests were deleted.",
                            ),
                        ),
                    ],
                ),
            )
        )

    def render_users(_=None) -> None:
        user_list.controls.clear()
        if users.error is not None:
            user_list.controls.append(ft.Text(f"Could not load users: {users.error}", color=ft.Colors.RED_400))
        else:
            needle = (user_search.value or "").strip().lower()
            rows = sorted(users.data, key=lambda row: row.name.lower())
            for participant in rows:
                if needle and needle not in participant.name.lower():
                    continue
                user_list.controls.append(user_row(participant))
            if not user_list.controls:
                user_list.controls.append(ft.Text("No users found."))
        page.update()

    users.on_change = render_users
    user_search.on_change = render_users

    users_section = ft.Column(
        controls=[
            ft.Text("Users", size=20, weight=ft.FontWeight.BOLD),
            user_search,
            rename_panel,
            user_list,
        ]
    )

    # -- audit log ---------------------------------------------------------
    log_list = ft.Column(spacing=4)
    logs = LiveCollection(fs.audit_logs_query(), AuditLog.from_dict)

    def render_logs(view: LiveCollection) -> None:
        log_list.controls.clear()
        if view.error is not None:
            log_list.controls.append(ft.Text(f"Could not load the audit log: {view.error}", color=ft.Colors.RED_400))
        for entry in view.data:
            log_list.controls.append(
                ft.Text(f"{format_when(entry.timestamp)}  {entry.actor_name}  {entry.action}  {entry.details}", size=12)
            )
        page.update()

    logs.on_change = render_logs
    logs_section = ft.Column(
        controls=[ft.Text("Audit Log", size=20, weight=ft.FontWeight.BOLD), log_list]
    )

    # -- notifications -----------------------------------------------------
    notice_list = ft.Column(spacing=4)
    notices_button = ft.TextButton("Notifications")
    notices = LiveCollection(fs.notifications_query(), Notification.from_dict)

    def render_notices(view: LiveCollection) -> None:
        notice_list.controls.clear()
        notices_button.text = f"Notifications ({len(view.data)})" if view.data else "Notifications"
        for item in view.data:
            notice_list.controls.append(
                ft.Row(
                    controls=[
                        ft.Text(item.message),
                        ft.Text(format_when(item.created_at), size=12),
                        ft.TextButton(
                            "Mark read",
                            on_click=lambda _, nid=item.id: user_action(
                                lambda: handlers.mark_notification_read(nid), "Notification dismissed."
                            ),
                        ),
                    ]
                )
            )
        if not view.data:
            notice_list.controls.append(ft.Text("No new notifications."))
        page.update()

    notices.on_change = render_notices
    notices_section = ft.Column(
        controls=[ft.Text("Notifications", size=20, weight=ft.FontWeight.BOLD), notice_list]
    )

    queue_section = build_queue_panel(page, app_state, handlers, status)
    for view in (users, logs, notices):
        app_state.track(view.start())

    sections = {
        "queue": queue_section,
        "add": add_section,
        "users": users_section,
        "logs": logs_section,
        "notifications": notices_section,
    }

    def show_section(name: str) -> None:
        for key, section in sections.items():
            section.visible = key == name
        page.update()

    notices_button.on_click = lambda _: show_section("notifications")
    show_section_controls = [
        ft.TextButton("Queue", on_click=lambda _: show_section("queue")),
        ft.TextButton("Add Song", on_click=lambda _: show_section("add")),
        ft.TextButton("Users", on_click=lambda _: show_section("users")),
        ft.TextButton("Audit Log", on_click=lambda _: show_section("logs")),
        notices_button,
    ]
    for key, section in sections.items():
        section.visible = key == "queue"

    def on_sign_out(_):
        accounts.sign_out()
        on_signed_out()

    return ft.View(
        route="/owner",
        controls=[
            ft.AppBar(
                title=ft.Text(f"Owner Panel - {session.display_name or 'Owner'}"),
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
                        ft.Row(controls=show_section_controls, wrap=True),
                        status.control,
                        *sections.values(),
                    ],
                ),
            ),
        ],
    )
