"""Tests for the comment, like, website, and user endpoints."""

from quill.tables import Comment

OTHER_CLERK_ID = "user_test_reader"


class TestComments:
    async def test_create_and_list(self, client, login, make_post, reader):
        post = make_post(status="published")
        login(OTHER_CLERK_ID)

        created = await client.post(
            "/api/comments", json={"blogPostId": post.id, "content": "  Great read!  "}
        )
        await client.post("/api/comments", json={"blogPostId": post.id, "content": "Second"})

        assert created.status_code == 200
        comment = created.json()["comment"]
        assert comment["content"] == "Great read!"
        assert comment["author"]["username"] == "grace"

        login(None)
        listed = await client.get("/api/comments", params={"blogPostId": post.id})
        preview = await client.get("/api/comments", params={"blogPostId": post.id, "limit": 1})

        assert [c["content"] for c in listed.json()["comments"]] == ["Second", "Great read!"]
        assert [c["content"] for c in preview.json()["comments"]] == ["Second"]

    async def test_blank_comment_rejected(self, client, login, make_post):
        post = make_post()
        login()

        response = await client.post(
            "/api/comments", json={"blogPostId": post.id, "content": "   "}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_list_requires_post_id(self, client):
        response = await client.get("/api/comments")
        assert response.status_code == 400

    async def test_draft_comments_hidden_from_others(self, client, login, make_post, reader):
        draft = make_post()
        login(OTHER_CLERK_ID)

        created = await client.post(
            "/api/comments", json={"blogPostId": draft.id, "content": "Early look"}
        )
        listed = await client.get("/api/comments", params={"blogPostId": draft.id})
        liked = await client.post("/api/like", json={"blogPostId": draft.id})

        assert created.status_code == 404
        assert listed.status_code == 404
        assert liked.status_code == 404

        login()
        own = await client.get("/api/comments", params={"blogPostId": draft.id})
        assert own.json() == {"success": True, "comments": []}

    async def test_comment_on_missing_post(self, client, login, author):
        login()
        response = await client.post(
            "/api/comments", json={"blogPostId": "missing", "content": "Hello"}
        )
        assert response.status_code == 404

    async def test_edit_own_comment_only(self, client, login, make_post, reader):
        post = make_post(status="published")
        login(OTHER_CLERK_ID)
        created = await client.post(
            "/api/comments", json={"blogPostId": post.id, "content": "Tpyo"}
        )
        comment_id = created.json()["comment"]["id"]

        fixed = await client.put(
            "/api/comments", json={"commentId": comment_id, "content": "Typo"}
        )
        assert fixed.json()["comment"]["content"] == "Typo"

        login()
        hijack = await client.put(
            "/api/comments", json={"commentId": comment_id, "content": "Mine now"}
        )
        assert hijack.status_code == 403
        assert hijack.json()["error"] == "You can only edit your own comments"

    async def test_delete_comment(self, client, login, make_post, reader, db):
        post = make_post(status="published")
        login(OTHER_CLERK_ID)
        created = await client.post(
            "/api/comments", json={"blogPostId": post.id, "content": "Bye"}
        )
        comment_id = created.json()["comment"]["id"]

        login()
        forbidden = await client.delete("/api/comments", params={"commentId": comment_id})
        assert forbidden.status_code == 403

        login(OTHER_CLERK_ID)
        deleted = await client.delete("/api/comments", params={"commentId": comment_id})
        assert deleted.json() == {"success": True}
        db.expire_all()
        assert db.get(Comment, comment_id) is None

        missing = await client.delete("/api/comments", params={"commentId": comment_id})
        assert missing.status_code == 404
        assert missing.json()["error"] == "Comment not found"


class TestLikes:
    async def test_toggle_and_check(self, client, login, make_post, reader):
        post = make_post(status="published")
        login(OTHER_CLERK_ID)

        liked = await client.post("/api/like", json={"blogPostId": post.id})
        check = await client.get("/api/like/check", params={"blogPostId": post.id})
        unliked = await client.post("/api/like", json={"blogPostId": post.id})

        assert liked.json() == {"success": True, "liked": True, "likesCount": 1}
        assert check.json() == {"success": True, "liked": True}
        assert unliked.json() == {"success": True, "liked": False, "likesCount": 0}

    async def test_requires_auth(self, client, make_post):
        post = make_post()
        response = await client.post("/api/like", json={"blogPostId": post.id})
        assert response.status_code == 401

    async def test_missing_post(self, client, login, author):
        login()
        response = await client.post("/api/like", json={"blogPostId": "missing"})
        assert response.status_code == 404


class TestWebsite:
    DOCUMENT = "<!DOCTYPE html><html><body>{TITLE}{CONTENT}</body></html>"

    def _designed(self, db, post):
        post.ai_generated_html = self.DOCUMENT
        post.is_ai_designed = True
        db.commit()
        return post

    async def test_serves_designed_document(self, client, make_post, db, mock_settings):
        mock_settings.website_cache_seconds = 120
        post = self._designed(db, make_post(status="published"))

        response = await client.get(f"/api/website/{post.id}")

        assert response.status_code == 200
        assert response.text == self.DOCUMENT
        assert response.headers["Cache-Control"] == "public, max-age=120"

    async def test_served_by_slug(self, client, make_post, db):
        self._designed(db, make_post(title="Designed Post", status="published"))

        response = await client.get("/api/website/designed-post")

        assert response.status_code == 200
        assert response.text == self.DOCUMENT

    async def test_designed_draft_served_to_owner_only(
        self, client, login, make_post, db, reader
    ):
        post = self._designed(db, make_post())

        login(None)
        assert (await client.get(f"/api/website/{post.id}")).status_code == 404
        login(OTHER_CLERK_ID)
        assert (await client.get(f"/api/website/{post.id}")).status_code == 404

        login()
        response = await client.get(f"/api/website/{post.id}")
        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "private, no-store"

    async def test_undesigned_post_not_found(self, client, make_post):
        post = make_post(status="published")

        response = await client.get(f"/api/website/{post.id}")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "Website not found or not designed" in response.text

    async def test_unknown_id(self, client):
        response = await client.get("/api/website/nope")
        assert response.status_code == 404


class TestUsers:
    async def test_sync_creates_then_updates(self, client, login):
        login("user_new")

        created = await client.post(
            "/api/users/sync",
            json={"email": "new@example.com", "firstName": "ignored", "first_name": "Nia"},
        )
        updated = await client.post("/api/users/sync", json={"username": "nia"})

        assert created.status_code == 200
        user = created.json()["user"]
        assert user["clerk_user_id"] == "user_new"
        assert user["username"] == "new"
        assert user["first_name"] == "Nia"

        again = updated.json()["user"]
        assert again["id"] == user["id"]
        assert again["username"] == "nia"
        assert again["email"] == "new@example.com"

    async def test_me(self, client, login, author):
        login()
        response = await client.get("/api/users/me")
        assert response.json()["user"]["username"] == "ada"

    async def test_sync_requires_auth(self, client):
        response = await client.post("/api/users/sync", json={})
        assert response.status_code == 401
