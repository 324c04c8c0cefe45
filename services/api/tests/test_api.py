"""
HTTP surface, end to end through the FastAPI app.
"""
from urllib.parse import urlparse

from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError

from conftest import PASSWORD, signup_body
from postboard.deps import get_post_store
from postboard.main import app


async def _feed(client, headers) -> list[dict]:
    resp = await client.get("/api/post/posts", headers=headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "success"
    return body["posts"]


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_post_comment_reply_like_flow(client, register):
    user_a, headers_a = await register("a@x.com", "Ann", "Able")
    user_b, headers_b = await register("b@x.com", "Ben", "Baker")

    resp = await client.post(
        "/api/post/content",
        json={"content": "hello", "images": [{"url": "https://cdn.example.com/p.png"}]},
        headers=headers_a,
    )
    assert resp.status_code == 200
    assert resp.json() == {"status": "success"}

    [post] = await _feed(client, headers_b)
    post_id = post["post_id"]

    resp = await client.post(f"/api/post/comment/{post_id}", json={"content": "nice"}, headers=headers_b)
    assert resp.status_code == 200

    [post] = await _feed(client, headers_b)
    comment_id = post["comments"][0]["id"]

    resp = await client.post(
        f"/api/post/reply/{post_id}/{comment_id}", json={"content": "thanks"}, headers=headers_b
    )
    assert resp.status_code == 200

    resp = await client.post(f"/api/post/like/{post_id}", headers=headers_a)
    assert resp.status_code == 200

    posts = await _feed(client, headers_a)
    assert len(posts) == 1
    post = posts[0]
    assert post["content"] == "hello"
    assert post["images"] == [{"url": "https://cdn.example.com/p.png"}]
    assert post["author"] == {
        "first_name": "Ann",
        "last_name": "Able",
        "profile_pic": "https://cdn.example.com/ann.png",
    }
    assert post["view_count"] == 0
    [comment] = post["comments"]
    assert comment["content"] == "nice"
    assert comment["user"]["id"] == user_b["user_id"]
    assert [r["content"] for r in comment["replies"]] == ["thanks"]
    assert [like["user"]["id"] for like in post["likes"]] == [user_a["user_id"]]

    resp = await client.post(f"/api/post/like/{post_id}", headers=headers_a)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Post already liked"}
    assert len((await _feed(client, headers_a))[0]["likes"]) == 1


async def test_unlike(client, register):
    _, headers = await register("a@x.com")
    await client.post("/api/post/content", json={"content": "hi", "images": []}, headers=headers)
    [post] = await _feed(client, headers)

    resp = await client.post(f"/api/post/unlike/{post['post_id']}", headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Post not liked"}

    await client.post(f"/api/post/like/{post['post_id']}", headers=headers)
    resp = await client.post(f"/api/post/unlike/{post['post_id']}", headers=headers)
    assert resp.status_code == 200
    assert (await _feed(client, headers))[0]["likes"] == []


async def test_missing_post_and_comment(client, register):
    _, headers = await register("a@x.com")
    await client.post("/api/post/content", json={"content": "hi", "images": []}, headers=headers)
    [post] = await _feed(client, headers)

    resp = await client.post("/api/post/comment/nope", json={"content": "x"}, headers=headers)
    assert resp.status_code == 404
    assert resp.json() == {"message": "Post not found"}

    resp = await client.post(f"/api/post/reply/{post['post_id']}/nope", json={"content": "x"}, headers=headers)
    assert resp.status_code == 404
    assert resp.json() == {"message": "Comment not found"}

    resp = await client.post("/api/post/like/nope", headers=headers)
    assert resp.status_code == 404

    assert (await _feed(client, headers))[0]["comments"] == []


async def test_my_posts(client, register):
    user_a, headers_a = await register("a@x.com", "Ann")
    _, headers_b = await register("b@x.com", "Ben")
    await client.post("/api/post/content", json={"content": "from a", "images": []}, headers=headers_a)
    await client.post("/api/post/content", json={"content": "from b", "images": []}, headers=headers_b)

    resp = await client.get("/api/post/myposts", headers=headers_a)
    assert resp.status_code == 200
    posts = resp.json()["posts"]
    assert [p["content"] for p in posts] == ["from a"]
    assert posts[0]["user_id"] == user_a["user_id"]
    assert len(await _feed(client, headers_a)) == 2


async def test_auth_is_required(client):
    resp = await client.get("/api/post/posts")
    assert resp.status_code == 401
    assert resp.json() == {"message": "You must be logged in."}

    resp = await client.post(
        "/api/post/content",
        json={"content": "hi", "images": []},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401


async def test_invalid_payload(client, register):
    _, headers = await register("a@x.com")
    resp = await client.post("/api/post/content", json={"content": "no images"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid request payload"}


async def test_signup_verify_login(client, mailer):
    resp = await client.post("/api/auth/signup", json=signup_body("New@Example.com"))
    assert resp.status_code == 200
    assert mailer.outbox[-1]["subject"] == "Verify your account"

    resp = await client.post("/api/auth/signup", json=signup_body("new@example.com"))
    assert resp.status_code == 400
    assert resp.json() == {"message": "User already exists"}

    login = {"email": "new@example.com", "password": PASSWORD}
    resp = await client.post("/api/auth/login", json=login)
    assert resp.status_code == 401
    assert resp.json() == {"message": "Please verify your email"}

    resp = await client.post("/api/auth/verify-email", json={"email": "new@example.com", "otp": "000000x"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid OTP"}

    resp = await client.post("/api/auth/resend-verification-email", json={"email": "new@example.com"})
    assert resp.status_code == 200
    otp = mailer.last_otp("new@example.com")

    resp = await client.post("/api/auth/verify-email", json={"email": "new@example.com", "otp": otp})
    assert resp.status_code == 200
    assert resp.json() == {"status": True, "message": "Account verified successfully"}

    resp = await client.post("/api/auth/resend-verification-email", json={"email": "new@example.com"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Account already verified"}

    resp = await client.post("/api/auth/login", json=login)
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["email"] == "new@example.com"
    assert "password_hash" not in user
    assert "email_verification_otp" not in user


async def test_forgot_and_reset_password(client, register, mailer):
    await register("a@x.com")

    resp = await client.post("/api/auth/forgot-password", json={"email": "nobody@x.com"})
    assert resp.status_code == 404

    resp = await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    assert resp.status_code == 200
    token = mailer.last_reset_token("a@x.com")

    resp = await client.post("/api/auth/reset-password", json={"token": token, "password": "changed-pass"})
    assert resp.status_code == 200

    resp = await client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert resp.status_code == 401
    resp = await client.post("/api/auth/login", json={"email": "a@x.com", "password": "changed-pass"})
    assert resp.status_code == 200


async def test_profile_edit_keeps_embedded_snapshots(client, register):
    user_a, headers_a = await register("a@x.com", "Ann", "Able")
    _, headers_b = await register("b@x.com", "Ben", "Baker")
    await client.post("/api/post/content", json={"content": "hello", "images": []}, headers=headers_a)
    [post] = await _feed(client, headers_b)
    await client.post(f"/api/post/comment/{post['post_id']}", json={"content": "nice"}, headers=headers_b)
    await client.post(f"/api/post/like/{post['post_id']}", headers=headers_b)

    edit = {
        "email": "b@x.com",
        "first_name": "Benjamin",
        "last_name": "Baker",
        "dob": "1990-01-01",
        "qualification": "MSc",
        "exp_in_year": "4",
        "skills": "go",
        "marital_status": "single",
        "city": "Berlin",
        "profile_pic": "ben-new.png",
    }
    resp = await client.put("/api/me/edit-profile", json=edit, headers=headers_b)
    assert resp.status_code == 200

    resp = await client.get("/api/me/me", headers=headers_b)
    me = resp.json()["user"]
    assert me["first_name"] == "Benjamin"
    assert me["city"] == "Berlin"
    assert me["profile_pic"] == "https://cdn.example.com/ben-new.png"

    [post] = await _feed(client, headers_a)
    assert post["comments"][0]["user"]["first_name"] == "Ben"
    assert post["comments"][0]["user"]["profile_pic"] == "https://cdn.example.com/ben.png"
    assert post["likes"][0]["user"]["first_name"] == "Ben"

    edit["email"] = "A@x.com"
    resp = await client.put("/api/me/edit-profile", json=edit, headers=headers_b)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Email already in use"}


async def test_signed_upload_url(client):
    resp = await client.get("/api/uploader/signed-upload-url", params={"content_type": "image/png"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["file_name"].endswith(".png")
    url = urlparse(body["upload_url"])
    assert url.path.endswith(body["file_name"])
    assert "X-Amz-Signature" in url.query

    resp = await client.get("/api/uploader/signed-upload-url")
    assert resp.status_code == 400

    resp = await client.get("/api/uploader/signed-upload-url", params={"content_type": "png"})
    assert resp.status_code == 400


async def test_passwords_longer_than_bcrypt_allows_are_rejected(client, register, mailer):
    resp = await client.post("/api/auth/signup", json=signup_body("long@x.com", password="p" * 80))
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid request payload"}

    # 72 ASCII bytes is the limit; multi-byte characters count by encoded size
    resp = await client.post("/api/auth/signup", json=signup_body("edge@x.com", password="p" * 72))
    assert resp.status_code == 200
    resp = await client.post("/api/auth/signup", json=signup_body("wide@x.com", password="é" * 40))
    assert resp.status_code == 400

    await register("a@x.com")
    await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    token = mailer.last_reset_token("a@x.com")
    resp = await client.post("/api/auth/reset-password", json={"token": token, "password": "q" * 80})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid request payload"}

    resp = await client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert resp.status_code == 200


async def test_image_objects_drop_unknown_keys(client, register):
    _, headers = await register("a@x.com")
    resp = await client.post(
        "/api/post/content",
        json={"content": "hi", "images": [{"url": "https://cdn.example.com/p.png", "width": 640}]},
        headers=headers,
    )
    assert resp.status_code == 200
    [post] = await _feed(client, headers)
    assert post["images"] == [{"url": "https://cdn.example.com/p.png"}]


async def test_cors_preflight(client):
    resp = await client.options(
        "/api/post/posts",
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "GET" in resp.headers["access-control-allow-methods"]

    resp = await client.get("/health", headers={"Origin": "https://app.example.com"})
    assert resp.headers["access-control-allow-origin"] == "*"


async def test_internal_errors_are_logged_and_hidden(client, register, caplog):
    _, headers = await register("a@x.com")

    def failing_post_store():
        raise SQLAlchemyError("connection lost")

    app.dependency_overrides[get_post_store] = failing_post_store
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.post("/api/post/like/anything", headers=headers)

    assert resp.status_code == 500
    assert resp.json() == {"message": "Something went wrong"}
    assert any("Unhandled error on POST /api/post/like/anything" in r.getMessage() for r in caplog.records)
