import asyncio
from datetime import timedelta

from app.core.exceptions import ExternalServiceError
from app.core.security import create_access_token
from app.services.email_service import get_email_service
from utils import time_utils

API = "/api/v1"


def run(coro):
    return asyncio.run(coro)


def register(client, email="maker@example.com", **overrides):
    body = {
        "name": "Maker",
        "email": email,
        "password": "secret123",
        "role": "user",
    }
    body.update(overrides)
    return client.post(f"{API}/auth/register", json=body)


def test_register_creates_unverified_user_and_sends_code(client, db, outbox):
    response = register(client, email="  Maker@Example.com ")
    assert response.status_code == 200
    assert response.json()["data"] == {"email": "maker@example.com", "message": "Verification email sent"}

    user = run(db.users.find_one({"email": "maker@example.com"}))
    assert user["is_verified"] is False
    assert user["hours_balance"] == 4
    assert len(user["email_verification_token"]) == 6
    assert "password_hash" in user and user["password_hash"] != "secret123"

    assert len(outbox) == 1
    assert outbox[0]["to"] == "maker@example.com"
    assert f"/api/v1/auth/verify-email/{user['email_verification_token']}" in outbox[0]["html"]


def test_register_duplicate_email(client, make_user):
    make_user(email="taken@example.com")
    response = register(client, email="taken@example.com")
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"


def test_register_cannot_self_assign_admin(client, db):
    response = register(client, role="admin")
    assert response.status_code == 400
    assert run(db.users.count_documents({})) == 0


def test_register_short_password_rejected(client):
    response = register(client, password="123")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_register_removes_user_when_email_fails(client, db, monkeypatch):
    async def failing_send(to, subject, html):
        raise ExternalServiceError("Email could not be sent")

    monkeypatch.setattr(get_email_service(), "send", failing_send)

    response = register(client)
    assert response.status_code == 500
    assert response.json()["message"] == "Email could not be sent"
    assert run(db.users.count_documents({})) == 0


def test_verify_email_returns_token_and_marks_verified(client, db):
    register(client)
    user = run(db.users.find_one({"email": "maker@example.com"}))

    response = client.get(f"{API}/auth/verify-email/{user['email_verification_token']}")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["role"] == "user"
    assert response.cookies.get("token")

    user = run(db.users.find_one({"_id": user["_id"]}))
    assert user["is_verified"] is True
    assert user["email_verification_token"] is None


def test_verification_code_expires_after_thirty_minutes(client, db, monkeypatch):
    register(client)
    user = run(db.users.find_one({"email": "maker@example.com"}))
    code = user["email_verification_token"]
    expires = user["email_verification_expire"]
    assert expires - user["created_at"] <= timedelta(minutes=30, seconds=1)

    monkeypatch.setattr(time_utils, "utcnow", lambda: expires)
    response = client.get(f"{API}/auth/verify-email/{code}")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_OR_EXPIRED_TOKEN"

    monkeypatch.setattr(time_utils, "utcnow", lambda: expires - timedelta(seconds=1))
    response = client.get(f"{API}/auth/verify-email/{code}")
    assert response.status_code == 200


def test_resend_verification(client, db, outbox, make_user):
    register(client)
    old = run(db.users.find_one({"email": "maker@example.com"}))["email_verification_token"]

    response = client.post(f"{API}/auth/resend-verification", json={"email": "maker@example.com"})
    assert response.status_code == 200
    assert response.json()["data"]["message"] == "Verification email resent"
    assert len(outbox) == 2

    verified = make_user(email="done@example.com")
    response = client.post(f"{API}/auth/resend-verification", json={"email": verified["email"]})
    assert response.status_code == 400
    assert response.json()["message"] == "Email already verified"

    response = client.post(f"{API}/auth/resend-verification", json={"email": "nobody@example.com"})
    assert response.status_code == 404
    assert old is not None


def test_login(client, make_user):
    user = make_user(email="login@example.com")

    response = client.post(f"{API}/auth/login", json={"email": "login@example.com", "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["user"] == {"id": str(user["_id"]), "name": user["name"], "email": "login@example.com"}

    response = client.post(f"{API}/auth/login", json={"email": "login@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"

    response = client.post(f"{API}/auth/login", json={"email": "login@example.com"})
    assert response.status_code == 400


def test_login_unverified(client, make_user):
    make_user(email="pending@example.com", verified=False)
    response = client.post(f"{API}/auth/login", json={"email": "pending@example.com", "password": "secret123"})
    assert response.status_code == 401
    assert response.json()["message"] == "Please verify your email first"


def test_me_requires_token(client, make_user, auth):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401

    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401

    user = make_user()
    response = client.get(f"{API}/auth/me", headers=auth(user))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == str(user["_id"])
    assert "password_hash" not in data


def test_token_from_cookie(client, make_user):
    user = make_user()
    client.cookies.set("token", create_access_token(str(user["_id"]), user["role"]))
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 200


def test_deleted_user_token_rejected(client, db, make_user, auth):
    user = make_user()
    headers = auth(user)
    run(db.users.delete_one({"_id": user["_id"]}))
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 401


def test_unverified_user_limited_to_verification_routes(client, make_user, auth):
    user = make_user(verified=False)
    headers = auth(user)

    assert client.get(f"{API}/auth/me", headers=headers).status_code == 403
    assert client.get(f"{API}/quotations/my-quotations", headers=headers).status_code == 403
    assert client.get(f"{API}/auth/logout", headers=headers).status_code == 200


def test_update_details_and_password(client, make_user, auth):
    user = make_user()
    other = make_user(email="other@example.com")
    headers = auth(user)

    response = client.put(f"{API}/auth/updatedetails", json={"name": "Renamed", "company": {"name": "Acme"}}, headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Renamed"
    assert data["company"]["name"] == "Acme"

    response = client.put(f"{API}/auth/updatedetails", json={"email": other["email"]}, headers=headers)
    assert response.status_code == 400

    response = client.put(
        f"{API}/auth/updatepassword",
        json={"current_password": "nope-nope", "new_password": "newsecret"},
        headers=headers,
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Password is incorrect"

    response = client.put(
        f"{API}/auth/updatepassword",
        json={"current_password": "secret123", "new_password": "newsecret"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["token"]

    response = client.post(f"{API}/auth/login", json={"email": user["email"], "password": "newsecret"})
    assert response.status_code == 200
