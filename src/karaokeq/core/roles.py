from dataclasses import dataclass
from typing import Optional


OWNER = "owner"
ADMIN = "admin"
PARTICIPANT = "participant"

# Participant documents keep the legacy "student" label for their role field.
STUDENT = "student"

ROLE_DOMAINS = {
    OWNER: "karaoke.owner.app",
    ADMIN: "karaoke.admin.app",
    PARTICIPANT: "karaoke.participant.app",
}


@dataclass(frozen=True)
class Roles:
    is_owner: bool = False
    is_admin: bool = False
    is_participant: bool = False

    @property
    def is_staff(self) -> bool:
        return self.is_owner or self.is_admin

    @property
    def is_known(self) -> bool:
        return self.is_owner or self.is_admin or self.is_participant

    @property
    def name(self) -> Optional[str]:
        if self.is_owner:
            return OWNER
        if self.is_admin:
            return ADMIN
        if self.is_participant:
            return PARTICIPANT
        return None


NO_ROLES = Roles()


def derive_roles(email: Optional[str]) -> Roles:
    """Map an authenticated email to its role triple.

    Only the domain suffix is inspected. No stored claim is consulted, so the
    result is the same for the same email string every time.
    """
    if not email:
        return NO_ROLES

    address = email.strip().lower()
    if address.endswith("@" + ROLE_DOMAINS[OWNER]):
        return Roles(is_owner=True)
    if address.endswith("@" + ROLE_DOMAINS[ADMIN]):
        return Roles(is_admin=True)
    if address.endswith("@" + ROLE_DOMAINS[PARTICIPANT]):
        return Roles(is_participant=True)
    return NO_ROLES


def profile_role(role: str) -> str:
    """Value stored in the ``role`` field of a participant document."""
    if role in (OWNER, ADMIN):
        return role
    return STUDENT
