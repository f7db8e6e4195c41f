"""Tests for post CRUD, comments, images and authorization."""

from uuid import uuid4

import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestAccounts:
    async def test_register_and_login(self, api_client):
        res = await api_client.post("/auth/register", json={"userName": "carol", "password": "correct horse"})
        assert res.status_code == 201
        assert res.json()["userName"] == "carol"
        assert "passwordHash" not in res.json()

        res = await api_client.post("/auth/login", json={"userName": "carol", "password": "correct horse"})
        assert res.status_code == 200
        assert res.json()["tokenType"] == "bearer"

    async def test_duplicate_user_name(self, api_client):
        body = {"userName": "carol", "password": "correct horse"}
        assert (await api_client.post("/auth/register", json=body)).status_code == 201
        assert (await api_client.post("/auth/register", json=body)).status_code == 409

    async def test_bad_password(self, api_client):
        await api_client.post("/auth/register", json={"userName": "carol", "password": "correct horse"})
        res = await api_client.post("/auth/login", json={"userName": "carol", "password": "wrong horse"})
        assert res.status_code == 401

    async def test_token_round_trip_allows_posting(self, api_client):
        await api_client.post("/auth/register", json={"userName": "carol", "password": "correct horse"})
        token = (await api_client.post("/auth/login", json={"userName": "carol", "password": "correct horse"})).json()["accessToken"]
        res = await api_client.post("/posts", data={"title": "hello"}, headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 201


class TestCreatePost:
    async def test_requires_token(self, api_client):
        res = await api_client.post("/posts", data={"title": "hello"})
        assert res.status_code == 401

    async def test_rejects_garbage_token(self, api_client):
        res = await api_client.post("/posts", data={"title": "hello"}, headers={"Authorization": "Bearer nope"})
        assert res.status_code == 401

    async def test_creates_post_for_requesting_user(self, api_client, make_user, headers_for, now):
        alice = await make_user("alice")
        res = await api_client.post(
            "/posts",
            data={"title": "hello", "link": "https://example.com", "body": "first"},
            headers=headers_for(alice.id),
        )
        assert res.status_code == 201
        post = res.json()
        assert post["authorId"] == str(alice.id)
        assert post["score"] == 0
        assert post["link"] == "https://example.com"
        assert post["image"] is None

    async def test_unknown_user_cannot_post(self, api_client, headers_for):
        res = await api_client.post("/posts", data={"title": "hello"}, headers=headers_for(uuid4()))
        assert res.status_code == 404

    async def test_image_is_stored_and_served(self, api_client, make_user, headers_for):
        alice = await make_user("alice")
        res = await api_client.post(
            "/posts",
            data={"title": "with picture"},
            files={"image": ("pic.png", PNG_BYTES, "image/png")},
            headers=headers_for(alice.id),
        )
        assert res.status_code == 201
        image = res.json()["image"]
        assert image["mimeType"] == "image/png"
        assert image["size"] == len(PNG_BYTES)

        res = await api_client.get(f"/posts/{res.json()['id']}/image")
        assert res.status_code == 200
        assert res.headers["content-type"] == "image/png"
        assert res.content == PNG_BYTES

    async def test_non_image_attachment_is_rejected(self, api_client, make_user, headers_for):
        alice = await make_user("alice")
        res = await api_client.post(
            "/posts",
            data={"title": "with text"},
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=headers_for(alice.id),
        )
        assert res.status_code == 400

    async def test_post_without_image_has_no_image_endpoint(self, api_client, make_user, make_post):
        alice = await make_user("alice")
        post = await make_post(alice.id)
        res = await api_client.get(f"/posts/{post.id}/image")
        assert res.status_code == 404


class TestGetPost:
    async def test_resolves_author_and_comment_authors(self, api_client, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice.id, title="hello", comments=2, comment_author_id=bob.id)

        res = await api_client.get(f"/posts/{post.id}")

        assert res.status_code == 200
        data = res.json()
        assert data["author"]["id"] == str(alice.id)
        assert data["author"]["userName"] == "alice"
        assert "createdAt" in data["author"]
        assert "passwordHash" not in data["author"]
        assert [c["body"] for c in data["comments"]] == ["comment 0", "comment 1"]
        assert {c["author"]["userName"] for c in data["comments"]} == {"bob"}

    async def test_not_found(self, api_client):
        res = await api_client.get(f"/posts/{uuid4()}")
        assert res.status_code == 404

    async def test_dangling_comment_author(self, api_client, make_user, make_post):
        alice = await make_user("alice")
        post = await make_post(alice.id, comments=1, comment_author_id=uuid4())
        res = await api_client.get(f"/posts/{post.id}")
        assert res.status_code == 500


class TestEditPost:
    async def test_author_can_edit_text_fields(self, api_client, make_user, make_post, headers_for):
        alice = await make_user("alice")
        post = await make_post(alice.id, title="before", score=7)

        res = await api_client.patch(
            f"/posts/{post.id}", json={"title": "after", "body": "new body"}, headers=headers_for(alice.id)
        )

        assert res.status_code == 200
        data = res.json()
        assert data["title"] == "after"
        assert data["body"] == "new body"
        assert data["score"] == 7
        assert data["authorId"] == str(alice.id)

    async def test_score_and_author_are_not_editable(self, api_client, make_user, make_post, headers_for):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice.id, score=3)

        res = await api_client.patch(
            f"/posts/{post.id}", json={"score": 999, "authorId": str(bob.id)}, headers=headers_for(alice.id)
        )

        assert res.status_code == 200
        assert res.json()["score"] == 3
        assert res.json()["authorId"] == str(alice.id)

    @pytest.mark.parametrize("field", ["title", "body"])
    async def test_null_for_required_field_is_rejected(self, api_client, make_user, make_post, headers_for, field):
        alice = await make_user("alice")
        post = await make_post(alice.id, title="kept")

        res = await api_client.patch(f"/posts/{post.id}", json={field: None}, headers=headers_for(alice.id))

        assert res.status_code == 422
        data = (await api_client.get(f"/posts/{post.id}")).json()
        assert data["title"] == "kept"
        assert data["body"] == "body of kept"

    async def test_null_link_clears_it(self, api_client, make_user, make_post, headers_for):
        alice = await make_user("alice")
        post = await make_post(alice.id)
        res = await api_client.patch(
            f"/posts/{post.id}", json={"link": "https://example.com"}, headers=headers_for(alice.id)
        )
        assert res.json()["link"] == "https://example.com"

        res = await api_client.patch(f"/posts/{post.id}", json={"link": None}, headers=headers_for(alice.id))

        assert res.status_code == 200
        assert res.json()["link"] is None

    async def test_non_author_is_forbidden_and_post_unchanged(self, api_client, make_user, make_post, headers_for):
        alice = await make_user("alice")
        mallory = await make_user("mallory")
        post = await make_post(alice.id, title="original")

        res = await api_client.patch(f"/posts/{post.id}", json={"title": "defaced"}, headers=headers_for(mallory.id))

        assert res.status_code == 403
        assert (await api_client.get(f"/posts/{post.id}")).json()["title"] == "original"

    async def test_missing_post_is_not_found_before_authorization(self, api_client, make_user, headers_for):
        mallory = await make_user("mallory")
        res = await api_client.patch(f"/posts/{uuid4()}", json={"title": "x"}, headers=headers_for(mallory.id))
        assert res.status_code == 404


class TestDeletePost:
    async def test_author_can_delete(self, api_client, make_user, make_post, headers_for):
        alice = await make_user("alice")
        post = await make_post(alice.id, comments=2)

        res = await api_client.delete(f"/posts/{post.id}", headers=headers_for(alice.id))

        assert res.status_code == 200
        assert res.json() == {"message": "post deleted"}
        assert (await api_client.get(f"/posts/{post.id}")).status_code == 404
        assert (await api_client.get("/posts")).json()["totalPages"] == 0

    async def test_non_author_is_forbidden_and_post_kept(self, api_client, make_user, make_post, headers_for):
        alice = await make_user("alice")
        mallory = await make_user("mallory")
        post = await make_post(alice.id)

        res = await api_client.delete(f"/posts/{post.id}", headers=headers_for(mallory.id))

        assert res.status_code == 403
        assert (await api_client.get(f"/posts/{post.id}")).status_code == 200

    async def test_missing_post(self, api_client, make_user, headers_for):
        alice = await make_user("alice")
        res = await api_client.delete(f"/posts/{uuid4()}", headers=headers_for(alice.id))
        assert res.status_code == 404


class TestComments:
    async def test_comment_count_follows_new_comments(self, api_client, make_user, make_post, headers_for):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice.id)

        for body in ("first!", "second"):
            res = await api_client.post(f"/posts/{post.id}/comments", json={"body": body}, headers=headers_for(bob.id))
            assert res.status_code == 201
            assert res.json()["author"]["userName"] == "bob"

        feed = (await api_client.get("/posts")).json()
        assert feed["posts"][0]["commentCount"] == 2

    async def test_comment_on_missing_post(self, api_client, make_user, headers_for):
        bob = await make_user("bob")
        res = await api_client.post(f"/posts/{uuid4()}/comments", json={"body": "hi"}, headers=headers_for(bob.id))
        assert res.status_code == 404


@pytest.mark.parametrize("path", ["/health"])
async def test_health(api_client, path):
    res = await api_client.get(path)
    assert res.status_code == 200
    assert res.json() == {"ok": True}
    assert res.headers["x-content-type-options"] == "nosniff"
    assert "server-timing" in res.headers
