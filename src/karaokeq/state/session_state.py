from dataclasses import dataclass
from typing import Optional

from karaokeq.core.roles import Roles, derive_roles


@dataclass
class SessionState:
    uid: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.uid and self.id_token)

    @property
    def roles(self) -> Roles:
        return derive_roles(self.email)

    @property
    def actor_name(self) -> str:
        return self.display_name or self.email or "Unknown"

    def clear(self) -> None:
        self.uid = None
        self.email = None
        self.display_name = None
        self.id_token = None
        self.refresh_token = None
