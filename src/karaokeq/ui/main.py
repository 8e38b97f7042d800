import logging

import flet as ft

from karaokeq.config.logging_setup import configure_logging
from karaokeq.config.settings import settings
from karaokeq.core.routing import ADMIN_HOME, LOBBY, LOGIN, OWNER_HOME, PARTICIPANT_HOME, landing_route, resolve_route
from karaokeq.services.auth_service import AuthServiceError
from karaokeq.services.firestore_service import FirestoreServiceError
from karaokeq.state.app_state import AppState, app_state
from karaokeq.ui.views.admin_view import build_admin_view
from karaokeq.ui.views.lobby_view import build_lobby_view
from karaokeq.ui.views.login_view import build_login_view
from karaokeq.ui.views.owner_view import build_owner_view
from karaokeq.ui.views.participant_view import build_participant_view


logger = logging.getLogger(__name__)


class KaraokeApp:
    def __init__(self, page: ft.Page, state: AppState) -> None:
        self.page = page
        self.state = state
        self.page.title = "Karaoke Queue"
        self.page.theme_mode = ft.ThemeMode.DARK
        self.page.on_route_change = self.handle_route_change
        self.page.on_view_pop = self.handle_view_pop

    def run(self) -> None:
        self.page.go(self.page.route or LOBBY)

    def go_home(self) -> None:
        self.page.go(landing_route(self.state.session.roles))

    def go_lobby(self) -> None:
        self.page.go(LOBBY)

    def build_view(self, route: str) -> ft.View:
        if route == LOGIN:
            return build_login_view(self.page, self.state, on_authenticated=self.go_home, on_back=self.go_lobby)
        if route == OWNER_HOME:
            return build_owner_view(self.page, self.state, on_signed_out=self.go_lobby)
        if route == ADMIN_HOME:
            return build_admin_view(self.page, self.state, on_signed_out=self.go_lobby)
        if route == PARTICIPANT_HOME:
            return build_participant_view(self.page, self.state, on_signed_out=self.go_lobby)
        return build_lobby_view(self.page, self.state, on_login=lambda: self.page.go(LOGIN))

    def handle_route_change(self, _: ft.RouteChangeEvent) -> None:
        self.state.stop_subscriptions()
        requested = self.page.route or LOBBY
        route = resolve_route(requested, self.state.session.roles)
        if route != requested:
            logger.info("Redirecting %s to %s", requested, route)
            self.page.go(route)
            return

        self.page.views.clear()
        try:
            self.page.views.append(self.build_view(route))
        except (AuthServiceError, FirestoreServiceError) as exc:
            logger.error("Could not open %s: %s", route, exc)
            self.page.views.append(
                ft.View(route=route, controls=[ft.Text(f"Service unavailable: {exc}", color=ft.Colors.RED_400)])
            )
        self.page.update()

    def handle_view_pop(self, _: ft.ViewPopEvent) -> None:
        self.go_lobby()


def main(page: ft.Page) -> None:
    KaraokeApp(page, app_state).run()


def run() -> None:
    configure_logging()
    ft.app(
        target=main,
        view=ft.AppView.WEB_BROWSER if settings.web_mode else ft.AppView.FLET_APP,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
