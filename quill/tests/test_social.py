"""Tests for likes and comments."""

import pytest
from sqlalchemy import func, select

from quill.services import social
from quill.services.errors import NotFoundError, OwnershipError
from quill.services.events import COMMENT_CREATED, LIKE_TOGGLED, get_event_bus
from quill.tables import Comment, Like


class TestToggleLike:
    def test_two_toggles_restore_state(self, db, reader, make_post):
        post = make_post(status="published")
        post.likes = 5
        db.commit()

        first = social.toggle_like(db, reader, post.id)
        assert first.liked is True
        assert first.likes_count == 6
        assert social.is_liked(db, reader, post.id)

        second = social.toggle_like(db, reader, post.id)
        assert second.liked is False
        assert second.likes_count == 5
        assert not social.is_liked(db, reader, post.id)

    def test_decrement_floors_at_zero(self, db, reader, make_post):
        post = make_post(status="published")
        db.add(Like(user_id=reader.id, blog_post_id=post.id))
        db.commit()  # like row exists but the counter says 0

        state = social.toggle_like(db, reader, post.id)
        assert state.liked is False
        assert state.likes_count == 0

    def test_concurrent_duplicate_resolves_to_liked(self, db, reader, make_post, mocker):
        post = make_post(status="published")
        post.likes = 1
        db.add(Like(user_id=reader.id, blog_post_id=post.id))
        db.commit()

        # Simulate a request that checked before the competing like landed:
        # the delete finds nothing, so the insert hits the unique constraint.
        real_execute = db.execute
        calls = {"n": 0}

        def execute(statement, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                return mocker.Mock(rowcount=0)
            return real_execute(statement, *args, **kwargs)

        mocker.patch.object(db, "execute", side_effect=execute)
        state = social.toggle_like(db, reader, post.id)

        assert state.liked is True
        assert state.likes_count == 1
        count = db.scalar(select(func.count(Like.id)).where(Like.blog_post_id == post.id))
        assert count == 1

    def test_publishes_event(self, db, reader, make_post):
        events = []
        get_event_bus().subscribe(LIKE_TOGGLED, events.append)
        post = make_post(status="published")
        social.toggle_like(db, reader, post.id)
        assert events[0].payload["liked"] is True
        assert events[0].payload["likes"] == 1

    def test_missing_post(self, db, reader):
        with pytest.raises(NotFoundError):
            social.toggle_like(db, reader, "missing")


def test_recount_likes(db, author, reader, make_post):
    post = make_post(status="published")
    db.add_all(
        [
            Like(user_id=author.id, blog_post_id=post.id),
            Like(user_id=reader.id, blog_post_id=post.id),
        ]
    )
    post.likes = 7
    db.commit()

    assert social.recount_likes(db) == 1
    assert post.likes == 2
    assert social.recount_likes(db) == 0


class TestComments:
    def test_create_and_list_newest_first(self, db, author, reader, make_post):
        events = []
        get_event_bus().subscribe(COMMENT_CREATED, events.append)
        post = make_post(status="published")

        social.create_comment(db, reader, post.id, "  first  ")
        social.create_comment(db, author, post.id, "second")
        social.create_comment(db, reader, post.id, "third")

        comments = social.list_comments(db, post.id)
        assert [c.content for c in comments] == ["third", "second", "first"]
        assert comments[1].author.username == "ada"
        assert len(events) == 3

    def test_list_with_limit(self, db, reader, make_post):
        post = make_post(status="published")
        for i in range(4):
            social.create_comment(db, reader, post.id, f"comment {i}")
        preview = social.list_comments(db, post.id, limit=2)
        assert [c.content for c in preview] == ["comment 3", "comment 2"]

    def test_comment_on_missing_post(self, db, reader):
        with pytest.raises(NotFoundError):
            social.create_comment(db, reader, "missing", "hello")

    def test_update_by_author(self, db, reader, make_post):
        comment = social.create_comment(db, reader, make_post(status="published").id, "typo")
        assert social.update_comment(db, reader, comment.id, "fixed").content == "fixed"

    def test_update_by_other_user(self, db, author, reader, make_post):
        comment = social.create_comment(db, reader, make_post(status="published").id, "mine")
        with pytest.raises(OwnershipError, match="edit your own"):
            social.update_comment(db, author, comment.id, "hijacked")

    def test_delete(self, db, author, reader, make_post):
        comment = social.create_comment(db, reader, make_post(status="published").id, "bye")
        with pytest.raises(OwnershipError):
            social.delete_comment(db, author, comment.id)
        social.delete_comment(db, reader, comment.id)
        assert db.get(Comment, comment.id) is None

    def test_delete_missing(self, db, reader):
        with pytest.raises(NotFoundError, match="Comment not found"):
            social.delete_comment(db, reader, "missing")


def test_deleting_post_cascades(db, author, reader, make_post):
    from quill.services.posts import delete_post

    post = make_post(status="published")
    social.create_comment(db, reader, post.id, "hello")
    social.toggle_like(db, reader, post.id)

    delete_post(db, author, post.id)

    assert db.scalar(select(func.count(Comment.id))) == 0
    assert db.scalar(select(func.count(Like.id))) == 0


class TestDraftVisibility:
    def test_reader_cannot_like_or_comment_on_draft(self, db, reader, make_post):
        draft = make_post()
        with pytest.raises(NotFoundError):
            social.toggle_like(db, reader, draft.id)
        with pytest.raises(NotFoundError):
            social.create_comment(db, reader, draft.id, "sneaky")

    def test_draft_comments_listed_for_owner_only(self, db, author, reader, make_post):
        draft = make_post()
        social.create_comment(db, author, draft.id, "note to self")

        assert [c.content for c in social.list_comments(db, draft.id, viewer=author)] == [
            "note to self"
        ]
        with pytest.raises(NotFoundError):
            social.list_comments(db, draft.id, viewer=reader)
        with pytest.raises(NotFoundError):
            social.list_comments(db, draft.id)
