import asyncio

from app.models.notification import NotificationType
from app.services.notification_service import get_notification_service
from utils import email_templates

API = "/api/v1"


def run(coro):
    return asyncio.run(coro)


def notify(user, title="Quote Raised"):
    return run(get_notification_service().notify(
        user["_id"], title, f"{title} for Bracket", NotificationType.QUOTE_RAISED
    ))


def test_list_only_own_notifications(client, make_user, auth):
    user = make_user()
    other = make_user()
    notify(user, "First")
    notify(user, "Second")
    notify(other)

    response = client.get(f"{API}/notifications", headers=auth(user))
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert {n["title"] for n in body["data"]} == {"First", "Second"}
    assert all(n["is_read"] is False for n in body["data"])


def test_mark_as_read(client, db, make_user, auth):
    user = make_user()
    notification = notify(user)

    response = client.put(f"{API}/notifications/{notification['_id']}/read", headers=auth(user))
    assert response.status_code == 200
    assert response.json()["data"]["is_read"] is True
    assert run(db.notifications.find_one({"_id": notification["_id"]}))["is_read"] is True


def test_delete_notification(client, db, make_user, auth):
    user = make_user()
    notification = notify(user)

    response = client.delete(f"{API}/notifications/{notification['_id']}", headers=auth(user))
    assert response.status_code == 200
    assert run(db.notifications.count_documents({})) == 0

    response = client.delete(f"{API}/notifications/{notification['_id']}", headers=auth(user))
    assert response.status_code == 404


def test_other_users_notifications_are_forbidden(client, db, make_user, auth):
    owner = make_user()
    stranger = make_user()
    notification = notify(owner)
    headers = auth(stranger)

    assert client.put(f"{API}/notifications/{notification['_id']}/read", headers=headers).status_code == 403
    assert client.delete(f"{API}/notifications/{notification['_id']}", headers=headers).status_code == 403
    assert run(db.notifications.find_one({"_id": notification["_id"]}))["is_read"] is False


def test_failed_email_does_not_raise(client, monkeypatch):
    service = get_notification_service()

    async def broken_send(to, subject, html):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(service.mailer, "send", broken_send)
    assert run(service.email("someone@example.com", "Hello", email_templates.QUOTE_RAISED_TO_USER, {
        "userName": "Ann", "projectName": "Bracket", "requiredHour": 3, "projectLink": "http://x",
    })) is False
