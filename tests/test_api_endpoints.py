"""Test API endpoints through the full application (SQLite file in a temp dir)."""

import io
import threading

import pytest
from fastapi.testclient import TestClient
from PIL import Image

import app.models  # noqa: F401
from app.core.database import Base, engine
from app.services.active_business import ActiveBusinessSelector
from app.services.entity_store import EntityStore
from app.services.image_storage import MAX_IMAGE_SIZE
from main import app as fastapi_app

ADMIN = {"email": "admin@example.com", "password": "secret-password"}


@pytest.fixture
def client():
    """Fresh database and store for every test."""
    Base.metadata.drop_all(bind=engine)
    with TestClient(fastapi_app) as test_client:
        yield test_client


@pytest.fixture
def headers(client):
    response = client.post("/api/auth/login", json=ADMIN)
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}", "X-Device-Id": "laptop"}


def create_business(client, headers, name="Tienda Centro", **extra):
    response = client.post("/api/businesses/", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 201
    return response.json()


def create_product(client, headers, business_id, name="Bicicleta", **extra):
    payload = {"businessId": business_id, "name": name, "price": 150.5, "category": "Deportes", **extra}
    response = client.post("/api/products/", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestAuthEndpoints:
    """POST /api/auth/login, /logout and GET /session."""

    def test_private_routes_need_a_token(self, client):
        response = client.get("/api/businesses/")
        assert response.status_code == 401

    def test_bad_credentials_return_provider_message(self, client):
        response = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid login credentials"

    def test_session_and_logout(self, client, headers):
        session = client.get("/api/auth/session", headers=headers)
        assert session.status_code == 200
        assert session.json()["user"]["email"] == ADMIN["email"]

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/session", headers=headers).status_code == 401


class TestBusinessEndpoints:
    """CRUD and active selection for /api/businesses."""

    def test_create_and_list(self, client, headers):
        business = create_business(client, headers, description="Ropa y calzado")

        assert business["name"] == "Tienda Centro"
        assert "createdAt" in business

        listing = client.get("/api/businesses/", headers=headers).json()
        assert [b["id"] for b in listing] == [business["id"]]

    def test_update(self, client, headers):
        business = create_business(client, headers)

        response = client.put(f"/api/businesses/{business['id']}", json={"name": "Tienda Norte"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Tienda Norte"
        assert response.json()["description"] == business["description"]

    def test_unknown_business(self, client, headers):
        assert client.get("/api/businesses/missing", headers=headers).status_code == 404
        assert client.delete("/api/businesses/missing", headers=headers).status_code == 404

    def test_select_active_business(self, client, headers):
        business = create_business(client, headers)

        response = client.put("/api/businesses/active", json={"businessId": business["id"]}, headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Negocio activo: Tienda Centro"
        active = client.get("/api/businesses/active", headers=headers).json()
        assert active["business"]["id"] == business["id"]

    def test_select_unknown_business(self, client, headers):
        response = client.put("/api/businesses/active", json={"businessId": "missing"}, headers=headers)
        assert response.status_code == 404

    def test_delete_cascades_to_products(self, client, headers):
        business = create_business(client, headers)
        product = create_product(client, headers, business["id"])

        response = client.delete(f"/api/businesses/{business['id']}", headers=headers)

        assert response.status_code == 204
        assert client.get(f"/api/businesses/{business['id']}", headers=headers).status_code == 404
        assert client.get(f"/api/products/{product['id']}", headers=headers).status_code == 404


class TestProductEndpoints:
    """CRUD, listings and status changes for /api/products."""

    def test_create_uses_camel_case(self, client, headers):
        business = create_business(client, headers)
        product = create_product(client, headers, business["id"])

        assert product["businessId"] == business["id"]
        assert product["postedToMarketplace"] is False
        assert product["status"] == "available"

    def test_price_must_be_positive(self, client, headers):
        business = create_business(client, headers)
        payload = {"businessId": business["id"], "name": "Gratis", "price": 0, "category": "Otros"}

        response = client.post("/api/products/", json=payload, headers=headers)

        assert response.status_code == 422
        assert response.json()["detail"] == "Validation Error"

    def test_unknown_business(self, client, headers):
        payload = {"businessId": "missing", "name": "Casco", "price": 10, "category": "Deportes"}
        assert client.post("/api/products/", json=payload, headers=headers).status_code == 404

    def test_list_defaults_to_active_business(self, client, headers):
        first = create_business(client, headers, name="Uno")
        second = create_business(client, headers, name="Dos")
        create_product(client, headers, first["id"], name="Mesa")
        create_product(client, headers, second["id"], name="Silla")
        client.put("/api/businesses/active", json={"businessId": second["id"]}, headers=headers)

        listing = client.get("/api/products/", headers=headers).json()

        assert [p["name"] for p in listing["items"]] == ["Silla"]
        assert listing["items"][0]["businessName"] == "Dos"
        assert listing["totalUnfiltered"] == 1

    def test_list_filters_and_pages(self, client, headers):
        business = create_business(client, headers)
        for index in range(5):
            create_product(client, headers, business["id"], name=f"Libro {index}", category="Libros")
        create_product(client, headers, business["id"], name="Lámpara", category="Hogar y Jardín")

        params = {"business_id": business["id"], "category": "Libros", "per_page": 2, "page": 3}
        listing = client.get("/api/products/", params=params, headers=headers).json()

        assert listing["total"] == 5
        assert listing["totalPages"] == 3
        assert listing["page"] == 3
        assert len(listing["items"]) == 1
        assert listing["totalUnfiltered"] == 6

    def test_mark_sold_and_sold_listing(self, client, headers):
        business = create_business(client, headers)
        product = create_product(client, headers, business["id"])
        create_product(client, headers, business["id"], name="Casco")

        response = client.post(f"/api/products/{product['id']}/sold", headers=headers)
        assert response.json()["status"] == "sold"

        sold = client.get("/api/products/sold", headers=headers).json()
        assert [p["id"] for p in sold["items"]] == [product["id"]]

        dashboard = client.get("/api/dashboard/", headers=headers).json()
        assert dashboard["totalProducts"] == 2
        assert dashboard["availableProducts"] == 1

    def test_marketplace_toggle(self, client, headers):
        business = create_business(client, headers)
        product = create_product(client, headers, business["id"])

        response = client.post(f"/api/products/{product['id']}/marketplace", json={"posted": True}, headers=headers)

        assert response.status_code == 200
        assert response.json()["postedToMarketplace"] is True

    def test_update_and_delete(self, client, headers):
        business = create_business(client, headers)
        product = create_product(client, headers, business["id"])

        updated = client.put(f"/api/products/{product['id']}", json={"price": 99.9}, headers=headers)
        assert updated.json()["price"] == 99.9
        assert updated.json()["name"] == product["name"]

        assert client.delete(f"/api/products/{product['id']}", headers=headers).status_code == 204
        assert client.get(f"/api/products/{product['id']}", headers=headers).status_code == 404

    def test_categories(self, client, headers):
        data = client.get("/api/products/categories", headers=headers).json()

        assert data["count"] == 10
        assert "Electrónica" in data["categories"]


class TestNotificationEndpoints:
    """Feed, device-local viewed state and the server read flag."""

    def test_feed_and_device_local_viewed_state(self, client, headers):
        create_business(client, headers)

        feed = client.get("/api/notifications/", headers=headers).json()
        assert [item["title"] for item in feed["items"]] == ["Nuevo negocio"]
        assert feed["unreadCount"] == 1

        client.post("/api/notifications/open", headers=headers)

        assert client.get("/api/notifications/", headers=headers).json()["unreadCount"] == 0
        phone = {**headers, "X-Device-Id": "phone"}
        assert client.get("/api/notifications/", headers=phone).json()["unreadCount"] == 1

    def test_synthetic_no_products_entry(self, client, headers):
        business = create_business(client, headers)
        client.put("/api/businesses/active", json={"businessId": business["id"]}, headers=headers)
        client.post("/api/notifications/open", headers=headers)

        items = client.get("/api/notifications/", headers=headers).json()["items"]

        assert items[-1]["id"] == "no-products"
        assert items[-1]["unread"] is True

    def test_read_flag_and_delete(self, client, headers):
        create_business(client, headers)
        notification_id = client.get("/api/notifications/", headers=headers).json()["items"][0]["id"]

        assert client.post(f"/api/notifications/{notification_id}/read", headers=headers).status_code == 200
        item = client.get("/api/notifications/", headers=headers).json()["items"][0]
        assert item["read"] is True

        assert client.delete(f"/api/notifications/{notification_id}", headers=headers).status_code == 204
        assert client.get("/api/notifications/", headers=headers).json()["items"] == []

    def test_clear_all(self, client, headers):
        business = create_business(client, headers)
        create_product(client, headers, business["id"])

        assert client.post("/api/notifications/read-all", headers=headers).status_code == 200
        assert client.delete("/api/notifications/", headers=headers).status_code == 204
        assert client.get("/api/notifications/", headers=headers).json()["items"] == []


class TestImageEndpoint:
    """POST /api/images/{folder}."""

    def png_file(self):
        buffer = io.BytesIO()
        Image.new("RGB", (2, 2)).save(buffer, format="PNG")
        return {"file": ("foto.png", buffer.getvalue(), "image/png")}

    def test_upload(self, client, headers):
        response = client.post("/api/images/products", files=self.png_file(), headers=headers)

        assert response.status_code == 200
        assert "/marketplace-images/products/" in response.json()["url"]

    def test_unknown_folder(self, client, headers):
        response = client.post("/api/images/avatars", files=self.png_file(), headers=headers)
        assert response.status_code == 400

    def test_wrong_type(self, client, headers):
        files = {"file": ("notes.txt", b"hello", "text/plain")}
        response = client.post("/api/images/products", files=files, headers=headers)

        assert response.status_code == 400
        assert "Tipo de archivo no válido" in response.json()["detail"]

    def test_oversized_upload_is_rejected(self, client, headers):
        files = {"file": ("grande.png", b"0" * (MAX_IMAGE_SIZE + 1), "image/png")}

        response = client.post("/api/images/products", files=files, headers=headers)

        assert response.status_code == 400
        assert "demasiado grande" in response.json()["detail"]


class TestEventLoopConfinement:
    """Cache and selector state only change on the event-loop thread."""

    def record_threads(self, monkeypatch):
        threads = {"merge": set(), "select": set()}
        original_upsert = EntityStore._upsert
        original_select = ActiveBusinessSelector.select

        def upsert(store, *args, **kwargs):
            threads["merge"].add(threading.current_thread().name)
            return original_upsert(store, *args, **kwargs)

        def select(selector, *args, **kwargs):
            threads["select"].add(threading.current_thread().name)
            return original_select(selector, *args, **kwargs)

        monkeypatch.setattr(EntityStore, "_upsert", upsert)
        monkeypatch.setattr(ActiveBusinessSelector, "select", select)
        return threads

    def test_selection_runs_on_the_same_thread_as_merges(self, client, headers, monkeypatch):
        threads = self.record_threads(monkeypatch)

        business = create_business(client, headers)
        client.put("/api/businesses/active", json={"businessId": business["id"]}, headers=headers)

        assert len(threads["merge"]) == 1
        assert threads["select"] == threads["merge"]

    def test_feed_routes_run_on_the_loop_thread(self, client, headers, monkeypatch):
        threads = self.record_threads(monkeypatch)
        seen = set()
        center = fastapi_app.state.notification_center
        original_open = center.open_panel

        def open_panel(device_id):
            seen.add(threading.current_thread().name)
            return original_open(device_id)

        monkeypatch.setattr(center, "open_panel", open_panel)

        create_business(client, headers)
        client.post("/api/notifications/open", headers=headers)

        assert seen == threads["merge"]
