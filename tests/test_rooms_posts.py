"""Room and post/reaction stores: naming, write access, threads, aggregation, removal."""

import unittest
from unittest.mock import patch

from sqlalchemy.exc import SQLAlchemyError

from cacophony.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from cacophony.models import Access, Post, Reaction, Room
from cacophony.schemas.membership import MembershipCreate
from cacophony.schemas.post import PostCreate
from cacophony.schemas.room import RoomCreate, RoomUpdate
from cacophony.services import memberships, posts, roles, rooms
from tests.support import DatabaseTestCase


class RoomFixture(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.owner = self.make_user("owner")
        self.server = self.make_server("Guild", self.owner)
        self.other = self.make_server("Elsewhere", self.owner)
        self.room = self.server.rooms[0]
        self.admin = self.server.members[0]
        member_role = self.role_titled(self.server, "member")
        self.member = memberships.create_membership(
            self.db,
            self.server.id,
            MembershipCreate(user_id=self.make_user("pat").id, role_id=member_role.id),
        )


class TestRoomStore(RoomFixture):
    def test_names_unique_per_server_only(self) -> None:
        with self.assertRaises(ConflictError):
            rooms.create_room(self.db, self.server.id, RoomCreate(name="Main Room"))
        created = rooms.create_room(self.db, self.other.id, RoomCreate(name="lobby"))
        again = rooms.create_room(self.db, self.server.id, RoomCreate(name="lobby"))
        self.assertNotEqual(created.id, again.id)
        self.assertEqual(again.type, "text")

    def test_create_on_missing_server(self) -> None:
        with self.assertRaises(NotFoundError):
            rooms.create_room(self.db, 999, RoomCreate(name="void"))

    def test_rename(self) -> None:
        extra = rooms.create_room(self.db, self.server.id, RoomCreate(name="extra"))
        self.assertEqual(rooms.update_room(self.db, extra.id, RoomUpdate(name="bonus")).name, "bonus")
        with self.assertRaises(ConflictError):
            rooms.update_room(self.db, extra.id, RoomUpdate(name="Main Room"))
        with self.assertRaises(ValidationError):
            rooms.update_room(self.db, extra.id, RoomUpdate())

    def test_detail_members_come_from_access_grants(self) -> None:
        detail = rooms.get_room(self.db, self.room.id)
        self.assertEqual([m.member_id for m in detail.members], [self.admin.id])
        self.assertTrue(detail.members[0].is_moderator)

        roles.add_access(self.db, self.member.role.id, self.room.id)
        detail = rooms.get_room(self.db, self.room.id)
        self.assertEqual({m.member_id for m in detail.members}, {self.admin.id, self.member.id})

    def test_new_room_is_moderated_by_admin_roles(self) -> None:
        side = rooms.create_room(self.db, self.server.id, RoomCreate(name="side"))
        detail = rooms.get_room(self.db, side.id)
        self.assertEqual([m.member_id for m in detail.members], [self.admin.id])
        self.assertTrue(detail.members[0].is_moderator)
        granted = rooms.list_granted_roles(self.db, side.id)
        self.assertEqual([(g.title, g.is_moderator) for g in granted], [("admin", True)])

    def test_ensure_room_on_server(self) -> None:
        with self.assertRaises(ForbiddenError):
            rooms.ensure_room_on_server(self.db, self.other.id, self.room.id)
        with self.assertRaises(NotFoundError):
            rooms.ensure_room_on_server(self.db, self.server.id, 999)

    def test_remove_cascades_and_returns_posts(self) -> None:
        first = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="one"))
        posts.create_post(
            self.db, self.admin.id, self.room.id, PostCreate(content="two", threaded_from=first.id)
        )
        posts.add_reaction(self.db, self.admin.id, first.id, "thumbs_up")

        removed = rooms.remove_room(self.db, self.room.id)

        self.assertEqual([p.content for p in removed.posts], ["one", "two"])
        self.assertEqual(removed.posts[0].reactions, {"thumbs_up": [self.admin.id]})
        self.assertIsNone(self.db.get(Room, self.room.id))
        self.assertEqual(self.count(Post), 0)
        self.assertEqual(self.count(Reaction), 0)
        self.assertEqual(self.count(Access, Access.room_id == self.room.id), 0)

    def test_failed_step_rolls_back_room_removal(self) -> None:
        roles.add_access(self.db, self.member.role.id, self.room.id)
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="keep"))
        posts.add_reaction(self.db, self.member.id, post.id, "up")
        real_query = self.db.query

        def failing_query(*entities):
            if entities and entities[0] is Access:
                raise SQLAlchemyError("simulated storage fault")
            return real_query(*entities)

        with patch.object(self.db, "query", side_effect=failing_query):
            with self.assertRaises(SQLAlchemyError):
                rooms.remove_room(self.db, self.room.id)

        self.assertIsNotNone(self.db.get(Room, self.room.id))
        self.assertEqual(self.count(Post, Post.room_id == self.room.id), 1)
        self.assertEqual(self.count(Reaction), 1)
        self.assertEqual(self.count(Access, Access.room_id == self.room.id), 2)


class TestPostStore(RoomFixture):
    def test_admin_role_posts_through_its_grant(self) -> None:
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="hello"))
        self.assertEqual(post.member_id, self.admin.id)
        self.assertIsNone(post.threaded_from)

        roles.remove_access(self.db, self.admin.role.id, self.room.id)
        with self.assertRaises(UnauthorizedError):
            posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="again"))

    def test_reacting_needs_the_same_room_access(self) -> None:
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="hi"))
        with self.assertRaises(UnauthorizedError):
            posts.add_reaction(self.db, self.member.id, post.id, "wave")
        self.assertEqual(self.count(Reaction), 0)

        roles.add_access(self.db, self.member.role.id, self.room.id)
        reaction = posts.add_reaction(self.db, self.member.id, post.id, "wave")
        self.assertEqual((reaction.member_id, reaction.type), (self.member.id, "wave"))

    def test_member_needs_an_access_grant(self) -> None:
        with self.assertRaises(UnauthorizedError):
            posts.create_post(self.db, self.member.id, self.room.id, PostCreate(content="hi"))
        roles.add_access(self.db, self.member.role.id, self.room.id)
        post = posts.create_post(self.db, self.member.id, self.room.id, PostCreate(content="hi"))
        self.assertEqual(post.member_id, self.member.id)

    def test_blank_content_is_rejected(self) -> None:
        for content in ("", "   \n"):
            with self.assertRaises(ValidationError):
                posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content=content))
        self.assertEqual(self.count(Post), 0)

    def test_cannot_post_into_another_servers_room(self) -> None:
        with self.assertRaises(ForbiddenError):
            posts.create_post(
                self.db, self.member.id, self.other.rooms[0].id, PostCreate(content="hi")
            )

    def test_thread_parent_must_exist_in_same_room(self) -> None:
        with self.assertRaises(NotFoundError):
            posts.create_post(
                self.db, self.admin.id, self.room.id, PostCreate(content="x", threaded_from=999)
            )
        side = rooms.create_room(self.db, self.server.id, RoomCreate(name="side"))
        parent = posts.create_post(self.db, self.admin.id, side.id, PostCreate(content="p"))
        with self.assertRaises(ForbiddenError):
            posts.create_post(
                self.db, self.admin.id, self.room.id, PostCreate(content="x", threaded_from=parent.id)
            )

    def test_reactions_grouped_by_type_in_order(self) -> None:
        roles.add_access(self.db, self.member.role.id, self.room.id)
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="vote"))
        posts.add_reaction(self.db, self.member.id, post.id, "up")
        posts.add_reaction(self.db, self.admin.id, post.id, "up")
        posts.add_reaction(self.db, self.admin.id, post.id, "down")

        found = posts.find_posts(self.db, self.room.id)
        self.assertEqual(found[0].reactions, {"up": [self.member.id, self.admin.id], "down": [self.admin.id]})
        self.assertEqual(found[0].poster.nickname, "owner")
        self.assertEqual(posts.get_post(self.db, post.id).reactions, found[0].reactions)

    def test_find_posts(self) -> None:
        self.assertEqual(posts.find_posts(self.db, self.room.id), [])
        with self.assertRaises(NotFoundError):
            posts.find_posts(self.db, 999)

    def test_duplicate_reaction_conflicts(self) -> None:
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="x"))
        posts.add_reaction(self.db, self.admin.id, post.id, "up")
        with self.assertRaises(ConflictError):
            posts.add_reaction(self.db, self.admin.id, post.id, "up")

    def test_reaction_from_another_server_is_forbidden(self) -> None:
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="x"))
        outsider = self.other.members[0]
        with self.assertRaises(ForbiddenError):
            posts.add_reaction(self.db, outsider.id, post.id, "up")

    def test_list_and_remove_reaction(self) -> None:
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="x"))
        posts.add_reaction(self.db, self.admin.id, post.id, "up")
        self.assertEqual([r.type for r in posts.list_reactions(self.db, post.id)], ["up"])
        removed = posts.remove_reaction(self.db, self.admin.id, post.id, "up")
        self.assertEqual(removed.type, "up")
        self.assertEqual(posts.list_reactions(self.db, post.id), [])
        with self.assertRaises(NotFoundError):
            posts.remove_reaction(self.db, self.admin.id, post.id, "up")

    def test_delete_returns_post_with_its_reactions(self) -> None:
        post = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="x"))
        posts.add_reaction(self.db, self.admin.id, post.id, "up")
        removed = posts.delete_post(self.db, post.id)
        self.assertEqual(removed.reactions, {"up": [self.admin.id]})
        self.assertEqual(self.count(Reaction), 0)
        with self.assertRaises(NotFoundError):
            posts.get_post(self.db, post.id)

    def test_deleting_a_parent_unthreads_replies(self) -> None:
        parent = posts.create_post(self.db, self.admin.id, self.room.id, PostCreate(content="p"))
        reply = posts.create_post(
            self.db, self.admin.id, self.room.id, PostCreate(content="r", threaded_from=parent.id)
        )
        posts.delete_post(self.db, parent.id)
        self.db.expire_all()
        self.assertIsNone(self.db.get(Post, reply.id).threaded_from)


if __name__ == "__main__":
    unittest.main()
