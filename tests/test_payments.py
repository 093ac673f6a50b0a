import asyncio
import hashlib
import hmac
import os

import pytest
from pymongo.errors import PyMongoError

from app.services import payment_service
from app.services.paypal_service import get_paypal_service
from app.services.razorpay_service import get_razorpay_service

API = "/api/v1"
SECRET = "rzp_test_secret"


def run(coro):
    return asyncio.run(coro)


def sign(order_id, payment_id, secret=SECRET):
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def razorpay(monkeypatch):
    """Razorpay client with a known secret and orders of 50000 paise for 5 hours."""
    service = get_razorpay_service()
    monkeypatch.setattr(service, "key_secret", SECRET)

    async def fake_fetch(order_id):
        return {"id": order_id, "amount": 50000, "currency": "INR", "notes": {"hours": "5"}}

    monkeypatch.setattr(service, "fetch_order", fake_fetch)
    return service


def paypal_capture(order_id, status="COMPLETED", value="20.00", hours="2"):
    return {
        "id": order_id,
        "status": status,
        "purchase_units": [{"payments": {"captures": [
            {"id": "CAPTURE-1", "amount": {"value": value}, "custom_id": hours},
        ]}}],
    }


def verify_body(order_id="order_1", payment_id="pay_1", signature=None, **extra):
    body = {
        "gateway": "razorpay",
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature or sign(order_id, payment_id),
        "amount": 50000,
        "hours": 5,
    }
    body.update(extra)
    return body


def test_razorpay_verify_credits_hours(client, db, razorpay, make_user, auth):
    user = make_user(hours=4)

    response = client.post(f"{API}/payments/verify", json=verify_body(), headers=auth(user))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["hours_balance"] == 9
    assert data["payment"]["status"] == "success"
    assert data["payment"]["order_id"] == "order_1"
    assert data["payment"]["hours_purchased"] == 5

    assert run(db.users.find_one({"_id": user["_id"]}))["hours_balance"] == 9


def test_tampered_signature_is_rejected_without_side_effects(client, db, razorpay, make_user, auth):
    user = make_user(hours=4)
    body = verify_body(signature=sign("order_1", "pay_1", secret="someone-else"))

    response = client.post(f"{API}/payments/verify", json=body, headers=auth(user))
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_SIGNATURE"
    assert run(db.payments.count_documents({})) == 0
    assert run(db.users.find_one({"_id": user["_id"]}))["hours_balance"] == 4


def test_duplicate_verification_credits_once(client, db, razorpay, make_user, auth):
    user = make_user(hours=0)
    headers = auth(user)

    assert client.post(f"{API}/payments/verify", json=verify_body(), headers=headers).status_code == 200
    response = client.post(f"{API}/payments/verify", json=verify_body(), headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "DUPLICATE_PAYMENT"

    assert run(db.payments.count_documents({})) == 1
    assert run(db.users.find_one({"_id": user["_id"]}))["hours_balance"] == 5


def test_verify_rejects_unknown_gateway_and_missing_amounts(client, razorpay, make_user, auth):
    user = make_user()
    headers = auth(user)

    response = client.post(f"{API}/payments/verify", json=verify_body(gateway="bitcoin"), headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payment gateway"

    response = client.post(f"{API}/payments/verify", json=verify_body(hours=None), headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Amount and hours are required"


def test_paypal_verify(client, db, make_user, auth, monkeypatch):
    user = make_user(hours=1)
    captured = []

    async def fake_capture(order_id):
        captured.append(order_id)
        return paypal_capture(order_id)

    monkeypatch.setattr(get_paypal_service(), "capture_order", fake_capture)
    body = {"gateway": "paypal", "paypal_order_id": "PP-1", "amount": 2000, "hours": 2}

    response = client.post(f"{API}/payments/verify", json=body, headers=auth(user))
    assert response.status_code == 200
    assert response.json()["data"]["payment"]["payment_id"] == "CAPTURE-1"
    assert run(db.users.find_one({"_id": user["_id"]}))["hours_balance"] == 3

    # The duplicate is caught before a second capture is attempted
    response = client.post(f"{API}/payments/verify", json=body, headers=auth(user))
    assert response.status_code == 400
    assert captured == ["PP-1"]


def test_paypal_incomplete_capture(client, db, make_user, auth, monkeypatch):
    user = make_user(hours=1)

    async def fake_capture(order_id):
        return {"id": order_id, "status": "PAYER_ACTION_REQUIRED"}

    monkeypatch.setattr(get_paypal_service(), "capture_order", fake_capture)
    body = {"gateway": "paypal", "paypal_order_id": "PP-2", "amount": 2000, "hours": 2}

    response = client.post(f"{API}/payments/verify", json=body, headers=auth(user))
    assert response.status_code == 400
    assert response.json()["code"] == "PAYMENT_INCOMPLETE"
    assert run(db.payments.count_documents({})) == 0


def test_create_order(client, make_user, auth, monkeypatch):
    user = make_user()
    headers = auth(user)

    async def fake_order(amount, hours):
        return {"id": "order_42", "amount": amount, "currency": "INR", "notes": {"hours": f"{hours:g}"}}

    monkeypatch.setattr(get_razorpay_service(), "create_order", fake_order)

    response = client.post(f"{API}/payments/order", json={"amount": 50000, "hours": 5}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "order": {"id": "order_42", "amount": 50000, "currency": "INR", "notes": {"hours": "5"}},
        "gateway": "razorpay",
    }

    response = client.post(f"{API}/payments/order", json={"amount": 50000}, headers=headers)
    assert response.status_code == 400

    response = client.post(f"{API}/payments/order", json={"amount": 1, "hours": 1, "gateway": "cash"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payment gateway"


def test_history_newest_first(client, razorpay, make_user, auth):
    user = make_user()
    other = make_user()
    headers = auth(user)
    client.post(f"{API}/payments/verify", json=verify_body("order_a", "pay_a"), headers=headers)
    client.post(f"{API}/payments/verify", json=verify_body("order_b", "pay_b"), headers=headers)
    client.post(f"{API}/payments/verify", json=verify_body("order_c", "pay_c"), headers=auth(other))

    response = client.get(f"{API}/payments/history", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert {p["order_id"] for p in body["data"]} == {"order_a", "order_b"}


def test_purchase_order_submission(client, db, storage, make_user, make_quotation, auth):
    owner = make_user(hours=0)
    quotation = make_quotation(owner, status="quoted", required_hour=5)

    response = client.post(
        f"{API}/payments/purchase-order",
        data={"amount": "250", "hours": "5", "quotation_id": str(quotation["_id"])},
        files={"file": ("PO 2024.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth(owner),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Purchase order submitted for approval and linked to quotation"
    payment = body["data"]
    assert payment["gateway"] == "purchase_order"
    assert payment["status"] == "pending"
    assert payment["file_type"] == "PDF"
    assert payment["purchase_order_file"].startswith("/uploads/purchase_orders/")
    assert os.path.exists(os.path.join(str(storage), payment["purchase_order_file"].lstrip("/")))

    stored = run(db.quotations.find_one({"_id": quotation["_id"]}))
    assert str(stored["payment"]) == payment["id"]
    assert stored["po_status"] == "requested"
    assert run(db.users.find_one({"_id": owner["_id"]}))["hours_balance"] == 0


def test_purchase_order_checks(client, db, storage, make_user, make_quotation, auth):
    owner = make_user()
    stranger = make_user()
    quotation = make_quotation(owner)
    url = f"{API}/payments/purchase-order"
    form = {"amount": "250", "hours": "5", "quotation_id": str(quotation["_id"])}

    # Extension allowed but MIME type is not
    response = client.post(url, data=form, files={"file": ("po.pdf", b"MZ", "application/x-msdownload")}, headers=auth(owner))
    assert response.status_code == 400

    response = client.post(url, data=form, files={"file": ("po.pdf", b"%PDF", "application/pdf")}, headers=auth(stranger))
    assert response.status_code == 403

    response = client.post(url, data={"amount": "250", "hours": "5"}, files={"file": ("po.pdf", b"%PDF", "application/pdf")}, headers=auth(owner))
    assert response.status_code == 400
    assert response.json()["message"] == "Quotation ID is required"

    assert run(db.payments.count_documents({})) == 0
    assert not any(files for _, _, files in os.walk(str(storage)))


def test_razorpay_credit_follows_the_order_not_the_client(client, db, razorpay, make_user, auth):
    user = make_user(hours=0)

    response = client.post(f"{API}/payments/verify", json=verify_body(hours=500), headers=auth(user))
    assert response.status_code == 400
    assert response.json()["message"] == "Amount and hours do not match the order"

    response = client.post(f"{API}/payments/verify", json=verify_body(amount=100), headers=auth(user))
    assert response.status_code == 400

    assert run(db.payments.count_documents({})) == 0
    assert run(db.users.find_one({"_id": user["_id"]}))["hours_balance"] == 0


def test_paypal_capture_terms_must_match(client, db, make_user, auth, monkeypatch):
    user = make_user(hours=0)

    async def fake_capture(order_id):
        return paypal_capture(order_id, value="1.00", hours="2")

    monkeypatch.setattr(get_paypal_service(), "capture_order", fake_capture)
    body = {"gateway": "paypal", "paypal_order_id": "PP-3", "amount": 2000, "hours": 2}

    response = client.post(f"{API}/payments/verify", json=body, headers=auth(user))
    assert response.status_code == 400
    assert run(db.payments.count_documents({})) == 0
    assert run(db.users.find_one({"_id": user["_id"]}))["hours_balance"] == 0


def purchase_order(client, quotation, headers):
    return client.post(
        f"{API}/payments/purchase-order",
        data={"amount": "250", "hours": "5", "quotation_id": str(quotation["_id"])},
        files={"file": ("po.pdf", b"%PDF-1.4", "application/pdf")},
        headers=headers,
    )


def test_purchase_order_file_removed_when_payment_insert_fails(client, db, storage, make_user, make_quotation, auth, fail_writes):
    owner = make_user()
    quotation = make_quotation(owner, status="quoted", required_hour=5)
    fail_writes(payment_service, "get_payments_collection", "insert_one")

    with pytest.raises(PyMongoError):
        purchase_order(client, quotation, auth(owner))

    assert not any(files for _, _, files in os.walk(str(storage)))
    assert run(db.payments.count_documents({})) == 0


def test_purchase_order_rolled_back_when_quotation_link_fails(client, db, storage, make_user, make_quotation, auth, fail_writes):
    owner = make_user()
    quotation = make_quotation(owner, status="quoted", required_hour=5)
    fail_writes(payment_service, "get_quotations_collection", "update_one")

    with pytest.raises(PyMongoError):
        purchase_order(client, quotation, auth(owner))

    assert not any(files for _, _, files in os.walk(str(storage)))
    assert run(db.payments.count_documents({})) == 0
    stored = run(db.quotations.find_one({"_id": quotation["_id"]}))
    assert stored.get("po_status") != "requested"
    assert stored.get("payment") is None
