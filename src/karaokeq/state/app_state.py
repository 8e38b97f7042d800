from dataclasses import dataclass, field
from typing import Any, List

from karaokeq.state.session_state import SessionState


@dataclass
class AppState:
    session: SessionState = field(default_factory=SessionState)
    notice: str = ""
    subscriptions: List[Any] = field(default_factory=list)

    def track(self, view: Any) -> Any:
        if view is not None:
            self.subscriptions.append(view)
        return view

    def stop_subscriptions(self) -> None:
        for view in self.subscriptions:
            view.stop()
        self.subscriptions.clear()


app_state = AppState()
