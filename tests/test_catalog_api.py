from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_registry
from app.main import app
from app.schemas.auth import AuthUser
from app.services.registry import CatalogRegistry

AUTH = {"Authorization": "Bearer token-1"}


class FakeAuth:
    def __init__(self):
        self.users = {"token-1": AuthUser(id="owner-1", email="seller@example.com")}

    async def get_user(self, access_token):
        return self.users.get(access_token)

    async def close(self):
        pass


@pytest.fixture
def client(record_store, asset_store, make_product):
    record_store.seed(make_product(1, "Azul Shirt", price="12.34", day=1))
    record_store.seed(make_product(2, "Red Hat", description="Wool", day=2))
    registry = CatalogRegistry(FakeAuth(), lambda provider: record_store, lambda provider: asset_store)
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_requires_authentication(client):
    assert client.get("/api/v1/catalog/products").status_code == 401
    assert client.get("/api/v1/catalog/products", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_list_and_search(client):
    response = client.get("/api/v1/catalog/products", headers=AUTH)

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "ready"
    assert [item["name"] for item in data["items"]] == ["Red Hat", "Azul Shirt"]
    assert data["items"][1]["price_display"] == "R$\xa012,34"

    data = client.get("/api/v1/catalog/products", params={"q": "AZUL"}, headers=AUTH).json()
    assert [item["name"] for item in data["items"]] == ["Azul Shirt"]
    assert data["total"] == 2


def test_add_product_flow(client, calls):
    client.get("/api/v1/catalog/products", headers=AUTH)

    opened = client.post("/api/v1/catalog/session", json={}, headers=AUTH).json()
    assert opened["state"] == "OPEN"
    assert opened["mode"] == "add"

    client.patch("/api/v1/catalog/session", json={"name": "Green Scarf"}, headers=AUTH)
    priced = client.post("/api/v1/catalog/session/price", json={"text": "1990"}, headers=AUTH).json()
    assert priced["draft"]["price_text"] == "19,90"

    selected = client.put(
        "/api/v1/catalog/session/image",
        files={"file": ("scarf.png", b"\x89PNG....", "image/png")},
        headers=AUTH,
    ).json()
    assert selected["draft"]["pending_image"] == "scarf.png"

    response = client.post("/api/v1/catalog/session/commit", headers=AUTH)

    assert response.status_code == 200
    product = response.json()
    assert product["name"] == "Green Scarf"
    assert Decimal(product["price"]) == Decimal("19.90")
    assert product["image_path"].startswith("https://cdn.test/produtos/owner-1/")
    assert [call[0] for call in calls] == ["record.list", "asset.upload", "record.create"]

    listing = client.get("/api/v1/catalog/products", headers=AUTH).json()
    assert [item["name"] for item in listing["items"]] == ["Green Scarf", "Red Hat", "Azul Shirt"]
    assert client.get("/api/v1/catalog/session", headers=AUTH).json()["state"] == "CLOSED"


def test_edit_existing_product(client):
    client.get("/api/v1/catalog/products", headers=AUTH)

    opened = client.post("/api/v1/catalog/session", json={"product_id": 2}, headers=AUTH).json()
    assert opened["mode"] == "edit"
    assert opened["draft"]["description"] == "Wool"

    client.patch("/api/v1/catalog/session", json={"price": "7.5"}, headers=AUTH)
    response = client.post("/api/v1/catalog/session/commit", headers=AUTH)

    assert response.status_code == 200
    assert response.json()["price_display"] == "R$\xa07,50"
    listing = client.get("/api/v1/catalog/products", headers=AUTH).json()
    assert [item["id"] for item in listing["items"]] == [2, 1]


def test_commit_validation_error(client, calls):
    client.post("/api/v1/catalog/session", json={}, headers=AUTH)

    response = client.post("/api/v1/catalog/session/commit", headers=AUTH)

    assert response.status_code == 422
    assert set(response.json()["detail"]["errors"]) == {"name", "price"}
    assert calls == []
    assert client.get("/api/v1/catalog/session", headers=AUTH).json()["state"] == "OPEN"


def test_commit_without_open_form_conflicts(client):
    assert client.post("/api/v1/catalog/session/commit", headers=AUTH).status_code == 409


def test_open_unknown_product_is_404(client):
    client.get("/api/v1/catalog/products", headers=AUTH)

    response = client.post("/api/v1/catalog/session", json={"product_id": 99}, headers=AUTH)

    assert response.status_code == 404


def test_cancel_session(client):
    client.post("/api/v1/catalog/session", json={}, headers=AUTH)
    client.patch("/api/v1/catalog/session", json={"name": "Draft"}, headers=AUTH)

    cancelled = client.delete("/api/v1/catalog/session", headers=AUTH).json()

    assert cancelled["state"] == "CLOSED"
    assert cancelled["draft"] is None
    assert client.patch("/api/v1/catalog/session", json={"name": "Late"}, headers=AUTH).status_code == 409


def test_delete_requires_confirmation(client, calls):
    client.get("/api/v1/catalog/products", headers=AUTH)

    declined = client.delete("/api/v1/catalog/products/1", headers=AUTH).json()
    assert declined["deleted"] is False
    assert declined["confirm"]
    assert not any(call[0] == "record.delete" for call in calls)

    confirmed = client.delete("/api/v1/catalog/products/1", params={"confirm": "true"}, headers=AUTH).json()
    assert confirmed == {"deleted": True}

    listing = client.get("/api/v1/catalog/products", headers=AUTH).json()
    assert [item["id"] for item in listing["items"]] == [2]


def test_delete_failure_reports_error(client, record_store):
    client.get("/api/v1/catalog/products", headers=AUTH)
    record_store.fail_on.add("delete")

    response = client.delete("/api/v1/catalog/products/1", params={"confirm": "true"}, headers=AUTH)

    assert response.status_code == 502
    assert response.json()["detail"]["message"] == "Error deleting product. Try again."
    listing = client.get("/api/v1/catalog/products", headers=AUTH).json()
    assert len(listing["items"]) == 2


def test_share_link(client):
    client.get("/api/v1/catalog/products", headers=AUTH)

    response = client.get("/api/v1/catalog/products/2/share", headers=AUTH)

    assert response.status_code == 200
    assert response.json()["url"].startswith("https://wa.me/?text=")
    assert client.get("/api/v1/catalog/products/99/share", headers=AUTH).status_code == 404


def test_cookie_session_login_and_logout(client):
    assert client.post("/api/v1/auth/session", json={"access_token": "bad"}).status_code == 401

    user = client.post("/api/v1/auth/session", json={"access_token": "token-1"}).json()
    assert user["id"] == "owner-1"
    assert client.get("/api/v1/catalog/products").status_code == 200
    assert client.get("/api/v1/auth/me").json()["email"] == "seller@example.com"

    client.delete("/api/v1/auth/session")
    assert client.get("/api/v1/catalog/products").status_code == 401


def test_null_fields_leave_draft_unchanged(client):
    client.post("/api/v1/catalog/session", json={}, headers=AUTH)
    client.patch("/api/v1/catalog/session", json={"name": "Green Scarf"}, headers=AUTH)

    response = client.patch("/api/v1/catalog/session", json={"name": None, "description": None}, headers=AUTH)

    assert response.status_code == 200
    assert response.json()["draft"]["name"] == "Green Scarf"
    assert response.json()["draft"]["description"] == ""


def test_oversized_price_is_rejected_on_commit(client):
    client.post("/api/v1/catalog/session", json={}, headers=AUTH)
    client.patch("/api/v1/catalog/session", json={"name": "Green Scarf"}, headers=AUTH)

    patched = client.patch("/api/v1/catalog/session", json={"price": "1e30"}, headers=AUTH)
    assert patched.status_code == 200

    response = client.post("/api/v1/catalog/session/commit", headers=AUTH)

    assert response.status_code == 422
    assert set(response.json()["detail"]["errors"]) == {"price"}
    assert client.get("/api/v1/catalog/session", headers=AUTH).json()["state"] == "OPEN"
