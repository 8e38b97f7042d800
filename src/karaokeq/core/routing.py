from karaokeq.core.roles import Roles


LOBBY = "/"
LOGIN = "/login"
PARTICIPANT_HOME = "/participant"
ADMIN_HOME = "/admin"
OWNER_HOME = "/owner"

PUBLIC_ROUTES = (LOBBY, LOGIN)


def landing_route(roles: Roles) -> str:
    if roles.is_owner:
        return OWNER_HOME
    if roles.is_admin:
        return ADMIN_HOME
    if roles.is_participant:
        return PARTICIPANT_HOME
    return LOBBY


def can_access(route: str, roles: Roles) -> bool:
    if route in PUBLIC_ROUTES:
        return True
    if route == OWNER_HOME:
        return roles.is_owner
    if route == ADMIN_HOME:
        return roles.is_staff
    if route == PARTICIPANT_HOME:
        return roles.is_participant
    return False


def resolve_route(route: str, roles: Roles) -> str:
    """Route to actually display for a requested one."""
    if can_access(route, roles):
        return route
    return landing_route(roles)
