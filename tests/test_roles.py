"""Role store: colors, access grants across servers, moderator flag, protected deletion."""

import unittest

from pydantic import ValidationError as PydanticValidationError

from cacophony.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from cacophony.models import Access, Membership, Role
from cacophony.models.role import pack_color, unpack_color
from cacophony.schemas.membership import MembershipCreate
from cacophony.schemas.role import Color, RoleCreate, RoleRead, RoleUpdate
from cacophony.schemas.room import RoomCreate
from cacophony.services import memberships, roles, rooms
from tests.support import DatabaseTestCase


class TestColorPacking(unittest.TestCase):
    def test_pack_and_unpack(self) -> None:
        self.assertEqual(pack_color(255, 0, 128), 0xFF0080)
        self.assertEqual(unpack_color(0xFF0080), (255, 0, 128))

    def test_out_of_range_channel_is_rejected_not_clamped(self) -> None:
        with self.assertRaises(ValueError):
            pack_color(256, 0, 0)
        with self.assertRaises(ValueError):
            pack_color(0, -1, 0)

    def test_color_schema_bounds(self) -> None:
        Color(r=0, g=255, b=0)
        with self.assertRaises(PydanticValidationError):
            Color(r=0, g=300, b=0)

    def test_role_read_unpacks_stored_integer(self) -> None:
        role = Role(id=1, title="mods", server_id=1, color=0x102030, is_admin=False)
        self.assertEqual(RoleRead.model_validate(role).color, Color(r=0x10, g=0x20, b=0x30))


class TestRoleStore(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.owner = self.make_user("owner")
        self.server = self.make_server("Guild", self.owner)
        self.other = self.make_server("Other Guild", self.owner)

    def test_create_defaults_to_white_non_admin(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        self.assertEqual(role.color, Color(r=255, g=255, b=255))
        self.assertFalse(role.is_admin)
        self.assertEqual(self.db.get(Role, role.id).color, 0xFFFFFF)

    def test_create_on_missing_server(self) -> None:
        with self.assertRaises(NotFoundError):
            roles.create_role(self.db, 999, RoleCreate(title="ghost"))

    def test_out_of_range_color_from_unvalidated_input(self) -> None:
        bad = Color.model_construct(r=256, g=0, b=0)
        with self.assertRaises(ValidationError):
            roles.create_role(self.db, self.server.id, RoleCreate.model_construct(
                title="loud", color=bad, is_admin=False
            ))

    def test_update_color_and_title(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        updated = roles.update_role(
            self.db, role.id, RoleUpdate(title="visitor", color=Color(r=1, g=2, b=3))
        )
        self.assertEqual(updated.title, "visitor")
        self.assertEqual(self.db.get(Role, role.id).color, pack_color(1, 2, 3))

    def test_empty_patch_is_rejected(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        with self.assertRaises(ValidationError):
            roles.update_role(self.db, role.id, RoleUpdate())

    def test_access_requires_same_server(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        foreign_room = self.other.rooms[0]
        with self.assertRaises(ForbiddenError):
            roles.add_access(self.db, role.id, foreign_room.id)
        self.assertEqual(self.count(Access, Access.role_id == role.id), 0)

    def test_duplicate_grant_conflicts(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        room = self.server.rooms[0]
        roles.add_access(self.db, role.id, room.id)
        with self.assertRaises(ConflictError):
            roles.add_access(self.db, role.id, room.id)

    def test_grant_on_missing_room_or_role(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        with self.assertRaises(NotFoundError):
            roles.add_access(self.db, role.id, 999)
        with self.assertRaises(NotFoundError):
            roles.add_access(self.db, 999, self.server.rooms[0].id)

    def test_change_moderator_status_sets_and_toggles(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        room = self.server.rooms[0]
        roles.add_access(self.db, role.id, room.id)
        self.assertTrue(roles.change_moderator_status(self.db, role.id, room.id).is_moderator)
        self.assertFalse(roles.change_moderator_status(self.db, role.id, room.id).is_moderator)
        self.assertTrue(
            roles.change_moderator_status(self.db, role.id, room.id, is_moderator=True).is_moderator
        )
        with self.assertRaises(NotFoundError):
            roles.change_moderator_status(self.db, role.id, 999)

    def test_remove_access(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        room = self.server.rooms[0]
        roles.add_access(self.db, role.id, room.id)
        roles.remove_access(self.db, role.id, room.id)
        with self.assertRaises(NotFoundError):
            roles.remove_access(self.db, role.id, room.id)

    def test_listing_granted_rooms_and_roles(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        extra = rooms.create_room(self.db, self.server.id, RoomCreate(name="off-topic"))
        roles.add_access(self.db, role.id, extra.id, is_moderator=True)
        granted = roles.list_granted_rooms(self.db, role.id)
        self.assertEqual([(g.room_id, g.is_moderator) for g in granted], [(extra.id, True)])
        admin_role = self.role_titled(self.server, "admin")
        self.assertEqual(
            [g.role_id for g in rooms.list_granted_roles(self.db, extra.id)],
            [admin_role.id, role.id],
        )

    def test_new_admin_role_moderates_every_existing_room(self) -> None:
        extra = rooms.create_room(self.db, self.server.id, RoomCreate(name="off-topic"))
        mods = roles.create_role(self.db, self.server.id, RoleCreate(title="mods", is_admin=True))
        granted = roles.list_granted_rooms(self.db, mods.id)
        self.assertEqual(
            [(g.room_id, g.is_moderator) for g in granted],
            [(self.server.rooms[0].id, True), (extra.id, True)],
        )
        self.assertEqual(self.count(Access, Access.room_id == self.other.rooms[0].id), 1)

    def test_role_with_members_cannot_be_removed(self) -> None:
        member_role = self.role_titled(self.server, "member")
        joiner = self.make_user("joiner")
        membership = memberships.create_membership(
            self.db, self.server.id, MembershipCreate(user_id=joiner.id, role_id=member_role.id)
        )
        with self.assertRaises(ConflictError):
            roles.remove_role(self.db, member_role.id)
        self.assertIsNotNone(self.db.get(Role, member_role.id))
        self.assertEqual(self.db.get(Membership, membership.id).role_id, member_role.id)

    def test_remove_unused_role_drops_its_grants(self) -> None:
        role = roles.create_role(self.db, self.server.id, RoleCreate(title="guest"))
        roles.add_access(self.db, role.id, self.server.rooms[0].id)
        removed = roles.remove_role(self.db, role.id)
        self.assertEqual(removed.id, role.id)
        self.assertIsNone(self.db.get(Role, role.id))
        self.assertEqual(self.count(Access, Access.role_id == role.id), 0)

    def test_role_detail_lists_members_and_access(self) -> None:
        admin_role = self.role_titled(self.server, "admin")
        detail = roles.get_role(self.db, admin_role.id)
        self.assertEqual([m.nickname for m in detail.members], ["owner"])
        self.assertEqual([a.room_id for a in detail.access], [self.server.rooms[0].id])
        self.assertTrue(detail.access[0].is_moderator)

    def test_ensure_role_on_server(self) -> None:
        foreign_role = self.other.roles[0]
        with self.assertRaises(ForbiddenError):
            roles.ensure_role_on_server(self.db, self.server.id, foreign_role.id)
        with self.assertRaises(NotFoundError):
            roles.ensure_role_on_server(self.db, self.server.id, 999)


if __name__ == "__main__":
    unittest.main()
