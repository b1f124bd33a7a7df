from fastapi.testclient import TestClient
from pydantic import BaseModel

from workisready.core.exceptions import PermissionDeniedError, ResourceNotFoundError
from workisready.main import app

client = TestClient(app)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    raise ResourceNotFoundError(message="Item not found")


@app.get("/test-forbidden")
def trigger_forbidden():
    raise PermissionDeniedError("Not authorized to modify this task")


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "HTTP_ERROR"
    assert "message" in data


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "price" in data["message"]
    assert len(data["details"]) > 0


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["message"] == "Item not found"
    assert data["success"] is False


def test_forbidden_exception():
    response = client.get("/test-forbidden")
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_process_time_header():
    response = client.get("/live")
    assert response.status_code == 200
    assert "X-Process-Time" in response.headers
