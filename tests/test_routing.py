import unittest

from karaokeq.core.roles import NO_ROLES, Roles
from karaokeq.core.routing import (
    ADMIN_HOME,
    LOBBY,
    LOGIN,
    OWNER_HOME,
    PARTICIPANT_HOME,
    can_access,
    landing_route,
    resolve_route,
)


OWNER = Roles(is_owner=True)
ADMIN = Roles(is_admin=True)
PARTICIPANT = Roles(is_participant=True)


class RoutingTests(unittest.TestCase):
    def test_landing_route(self):
        self.assertEqual(landing_route(OWNER), OWNER_HOME)
        self.assertEqual(landing_route(ADMIN), ADMIN_HOME)
        self.assertEqual(landing_route(PARTICIPANT), PARTICIPANT_HOME)
        self.assertEqual(landing_route(NO_ROLES), LOBBY)

    def test_public_routes_open_to_everyone(self):
        for roles in (OWNER, ADMIN, PARTICIPANT, NO_ROLES):
            self.assertTrue(can_access(LOBBY, roles))
            self.assertTrue(can_access(LOGIN, roles))

    def test_admin_screen_is_staff_only(self):
        self.assertTrue(can_access(ADMIN_HOME, OWNER))
        self.assertTrue(can_access(ADMIN_HOME, ADMIN))
        self.assertFalse(can_access(ADMIN_HOME, PARTICIPANT))
        self.assertFalse(can_access(ADMIN_HOME, NO_ROLES))

    def test_owner_and_participant_screens(self):
        self.assertTrue(can_access(OWNER_HOME, OWNER))
        self.assertFalse(can_access(OWNER_HOME, ADMIN))
        self.assertTrue(can_access(PARTICIPANT_HOME, PARTICIPANT))
        self.assertFalse(can_access(PARTICIPANT_HOME, OWNER))

    def test_unknown_route_denied(self):
        self.assertFalse(can_access("/settings", OWNER))

    def test_resolve_route_redirects(self):
        self.assertEqual(resolve_route(OWNER_HOME, PARTICIPANT), PARTICIPANT_HOME)
        self.assertEqual(resolve_route(ADMIN_HOME, NO_ROLES), LOBBY)
        self.assertEqual(resolve_route(ADMIN_HOME, OWNER), ADMIN_HOME)


if __name__ == "__main__":
    unittest.main()
