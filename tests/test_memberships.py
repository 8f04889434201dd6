"""Membership store: defaults, nickname uniqueness per server, role scope, removal."""

import unittest

from cacophony.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from cacophony.models import Membership, Post, Reaction
from cacophony.schemas.membership import MembershipCreate, MembershipUpdate
from cacophony.schemas.post import PostCreate
from cacophony.services import memberships, posts
from tests.support import DatabaseTestCase


class TestMembershipStore(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.owner = self.make_user("owner")
        self.server = self.make_server("Guild", self.owner)
        self.other = self.make_server("Elsewhere", self.owner)
        self.member_role = self.role_titled(self.server, "member")
        self.joiner = self.make_user("joiner")

    def join(self, user, nickname=None, server=None, role=None):
        server = server or self.server
        role = role or self.role_titled(server, "member")
        return memberships.create_membership(
            self.db,
            server.id,
            MembershipCreate(user_id=user.id, role_id=role.id, nickname=nickname),
        )

    def test_nickname_and_picture_default_to_the_user(self) -> None:
        membership = self.join(self.joiner)
        self.assertEqual(membership.nickname, "joiner")
        self.assertEqual(membership.role.id, self.member_role.id)

    def test_role_from_another_server_is_forbidden(self) -> None:
        foreign_role = self.role_titled(self.other, "member")
        with self.assertRaises(ForbiddenError):
            self.join(self.joiner, role=foreign_role)

    def test_unknown_user(self) -> None:
        with self.assertRaises(NotFoundError):
            memberships.create_membership(
                self.db, self.server.id, MembershipCreate(user_id=999, role_id=self.member_role.id)
            )

    def test_joining_twice_conflicts(self) -> None:
        self.join(self.joiner)
        with self.assertRaises(ConflictError):
            self.join(self.joiner, nickname="again")

    def test_nickname_unique_within_server_only(self) -> None:
        self.join(self.joiner, nickname="sam")
        third = self.make_user("third")
        with self.assertRaises(ConflictError):
            self.join(third, nickname="sam")
        self.join(third, nickname="sam", server=self.other)
        self.assertEqual(self.count(Membership, Membership.nickname == "sam"), 2)

    def test_nickname_comparison_is_case_sensitive(self) -> None:
        self.join(self.joiner, nickname="Sam")
        third = self.make_user("third")
        self.assertEqual(self.join(third, nickname="sam").nickname, "sam")

    def test_update_nickname_conflict(self) -> None:
        self.join(self.joiner, nickname="sam")
        third = self.join(self.make_user("third"))
        with self.assertRaises(ConflictError):
            memberships.update_nickname(self.db, third.id, "sam")
        self.assertEqual(self.db.get(Membership, third.id).nickname, "third")

    def test_update_role_must_stay_on_server(self) -> None:
        membership = self.join(self.joiner)
        foreign_role = self.role_titled(self.other, "admin")
        with self.assertRaises(ForbiddenError):
            memberships.update_role(self.db, membership.id, foreign_role.id)
        admin_role = self.role_titled(self.server, "admin")
        self.assertEqual(
            memberships.update_role(self.db, membership.id, admin_role.id).role.id, admin_role.id
        )

    def test_generic_update_rejects_empty_patch(self) -> None:
        membership = self.join(self.joiner)
        with self.assertRaises(ValidationError):
            memberships.update_membership(self.db, membership.id, MembershipUpdate())

    def test_find_filters(self) -> None:
        joined = self.join(self.joiner)
        self.assertEqual(
            [m.id for m in memberships.find_by_user(self.db, self.joiner.id)], [joined.id]
        )
        self.assertEqual(len(memberships.find_by_server(self.db, self.server.id)), 2)
        self.assertEqual(
            [m.id for m in memberships.find_by_role(self.db, self.member_role.id)], [joined.id]
        )
        self.assertEqual(
            len(memberships.find_memberships(self.db, user_id=self.owner.id, server_id=self.other.id)),
            1,
        )
        with self.assertRaises(ValidationError):
            memberships.find_memberships(self.db)
        with self.assertRaises(NotFoundError):
            memberships.find_by_user(self.db, 999)

    def test_detail_includes_reachable_rooms(self) -> None:
        owner_membership = self.server.members[0]
        detail = memberships.get_membership(self.db, owner_membership.id)
        self.assertEqual([a.room_id for a in detail.access], [self.server.rooms[0].id])

    def test_remove_keeps_posts_and_reactions_unattributed(self) -> None:
        owner_membership = self.server.members[0]
        room = self.server.rooms[0]
        post = posts.create_post(self.db, owner_membership.id, room.id, PostCreate(content="hi"))
        posts.add_reaction(self.db, owner_membership.id, post.id, "wave")

        removed = memberships.remove_membership(self.db, owner_membership.id)

        self.assertEqual(removed.id, owner_membership.id)
        self.assertIsNone(self.db.get(Membership, owner_membership.id))
        self.db.expire_all()
        self.assertIsNone(self.db.get(Post, post.id).member_id)
        reactions = self.db.query(Reaction).filter(Reaction.post_id == post.id).all()
        self.assertEqual([(r.member_id, r.type) for r in reactions], [(None, "wave")])


if __name__ == "__main__":
    unittest.main()
