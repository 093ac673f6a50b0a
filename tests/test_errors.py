from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.main import app
from app.core.exceptions import (
    ResourceNotFoundError,
    InsufficientHoursError,
    ExternalServiceError,
)

client = TestClient(app, raise_server_exceptions=False)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    raise ResourceNotFoundError(message="Item not found")


@app.get("/test-business-error")
def trigger_business_error():
    raise InsufficientHoursError("Not enough hours. You have 1 hours but need 3")


@app.get("/test-upstream-error")
def trigger_upstream_error():
    raise ExternalServiceError("Email could not be sent")


@app.get("/test-unhandled-error")
def trigger_unhandled_error():
    raise RuntimeError("boom")


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert "message" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data == {"success": False, "message": "Item not found", "code": "NOT_FOUND"}


def test_business_rule_error_is_400_with_specific_code():
    response = client.get("/test-business-error")
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "INSUFFICIENT_HOURS"
    assert "need 3" in data["message"]


def test_upstream_failure_is_500():
    response = client.get("/test-upstream-error")
    assert response.status_code == 500
    assert response.json()["code"] == "UPSTREAM_FAILURE"


def test_unhandled_exception_uses_envelope():
    response = client.get("/test-unhandled-error")
    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "INTERNAL_ERROR"


def test_liveness_check():
    response = client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}
