import asyncio

from app.models.notification import NotificationType
from app.services.notification_service import get_notification_service

API = "/api/v1"


def run(coro):
    return asyncio.run(coro)


def test_admin_creates_user(client, db, make_user, auth):
    headers = auth(make_user(role="admin"))

    response = client.post(
        f"{API}/users",
        json={"name": "Plant", "email": "Plant@Example.com", "password": "secret123", "role": "company"},
        headers=headers,
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "plant@example.com"
    assert data["role"] == "company"
    assert data["hours_balance"] == 4
    assert data["is_verified"] is True
    assert "password_hash" not in data

    response = client.post(
        f"{API}/users",
        json={"name": "Again", "email": "plant@example.com", "password": "secret123"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"


def test_admin_routes_reject_non_admins(client, make_user, auth):
    user = make_user()
    headers = auth(user)

    assert client.get(f"{API}/users", headers=headers).status_code == 403
    assert client.put(f"{API}/users/{user['_id']}", json={"hours_balance": 99}, headers=headers).status_code == 403
    assert client.delete(f"{API}/users/{user['_id']}", headers=headers).status_code == 403


def test_list_users_paginates(client, make_user, auth):
    headers = auth(make_user(role="admin"))
    for _ in range(3):
        make_user()

    response = client.get(f"{API}/users?page=2&limit=3", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["pagination"] == {"prev": {"page": 1, "limit": 3}}
    assert all("password_hash" not in u for u in body["data"])


def test_admin_updates_user(client, db, make_user, auth):
    headers = auth(make_user(role="admin"))
    user = make_user(hours=1)
    other = make_user()

    response = client.put(
        f"{API}/users/{user['_id']}",
        json={"hours_balance": 10, "company": {"name": "Acme", "gst_number": "GST-1"}},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["hours_balance"] == 10
    assert data["company"]["name"] == "Acme"

    response = client.put(f"{API}/users/{user['_id']}", json={"hours_balance": -1}, headers=headers)
    assert response.status_code == 400

    response = client.put(f"{API}/users/{user['_id']}", json={"email": other["email"]}, headers=headers)
    assert response.status_code == 400
    assert run(db.users.find_one({"_id": user["_id"]}))["email"] == user["email"]


def test_get_user_self_or_admin(client, make_user, auth):
    user = make_user()
    stranger = make_user()
    admin = make_user(role="admin")

    assert client.get(f"{API}/users/{user['_id']}", headers=auth(user)).status_code == 200
    assert client.get(f"{API}/users/{user['_id']}", headers=auth(admin)).status_code == 200
    assert client.get(f"{API}/users/{user['_id']}", headers=auth(stranger)).status_code == 403


def test_user_hours(client, make_user, auth):
    user = make_user(hours=7.5, name="Ann")
    stranger = make_user()
    admin = make_user(role="admin")

    response = client.get(f"{API}/users/{user['_id']}/hours", headers=auth(user))
    assert response.status_code == 200
    assert response.json()["data"] == {"id": str(user["_id"]), "name": "Ann", "role": "user", "hours": 7.5}

    assert client.get(f"{API}/users/{user['_id']}/hours", headers=auth(admin)).status_code == 200
    assert client.get(f"{API}/users/{user['_id']}/hours", headers=auth(stranger)).status_code == 403


def test_delete_user_removes_notifications(client, db, make_user, auth):
    headers = auth(make_user(role="admin"))
    user = make_user()
    run(get_notification_service().notify(user["_id"], "Quote Raised", "Ready", NotificationType.QUOTE_RAISED))

    response = client.delete(f"{API}/users/{user['_id']}", headers=headers)
    assert response.status_code == 200
    assert run(db.users.find_one({"_id": user["_id"]})) is None
    assert run(db.notifications.count_documents({"user": user["_id"]})) == 0

    assert client.delete(f"{API}/users/{user['_id']}", headers=headers).status_code == 404
