"""Shared test fixtures for the dashboard service."""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
_tmp_dir = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp_dir, "api.db")
os.environ["LOCAL_STORAGE_PATH"] = ""
os.environ["IMAGE_BACKEND"] = "local"
os.environ["MEDIA_ROOT"] = os.path.join(_tmp_dir, "media")
os.environ["MEDIA_URL"] = "http://testserver/media"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "secret-password"
os.environ["REALTIME_ENABLED"] = "true"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402

from app.core.database import build_engine, build_session_factory, init_db  # noqa: E402
from app.core.local_storage import LocalStorage  # noqa: E402
from app.core.realtime import ChangeFeed  # noqa: E402
from app.schemas.business import Business  # noqa: E402
from app.schemas.product import Product  # noqa: E402
from app.services.active_business import ActiveBusinessSelector  # noqa: E402
from app.services.entity_store import EntityStore  # noqa: E402
from app.services.image_storage import ImageStorage  # noqa: E402
from app.services.remote_database import RemoteDatabase  # noqa: E402

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class RecordingImageStorage(ImageStorage):
    """Image storage double that records calls into a shared log."""

    bucket = "marketplace-images"

    def __init__(self, calls=None, fail_delete=False):
        self.calls = calls if calls is not None else []
        self.fail_delete = fail_delete
        self.deleted = []

    async def upload(self, data, filename, content_type, folder):
        url = f"http://testserver/media/{self.bucket}/{folder}/{filename}"
        self.calls.append(("upload", url))
        return url

    async def delete(self, public_url):
        self.calls.append(("delete_image", public_url))
        self.deleted.append(public_url)
        if self.fail_delete:
            raise RuntimeError("storage unavailable")


class RecordingDatabase(RemoteDatabase):
    """RemoteDatabase that logs the delete calls into the shared log."""

    def __init__(self, session_factory, feed, calls):
        super().__init__(session_factory, feed)
        self.calls = calls

    async def delete_products_by_business(self, business_id):
        self.calls.append(("delete_products", business_id))
        return await super().delete_products_by_business(business_id)

    async def delete_business(self, business_id):
        self.calls.append(("delete_business", business_id))
        return await super().delete_business(business_id)

    async def delete_product(self, product_id):
        self.calls.append(("delete_product", product_id))
        return await super().delete_product(product_id)


@pytest.fixture
def engine(tmp_path):
    """Fresh database file per test; worker threads each get their own connection."""
    db_engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def calls():
    """Ordered log of remote side effects."""
    return []


@pytest.fixture
def database(session_factory, feed, calls):
    return RecordingDatabase(session_factory, feed, calls)


@pytest.fixture
def images(calls):
    return RecordingImageStorage(calls)


@pytest.fixture
def local_storage():
    return LocalStorage()


@pytest.fixture
def selector(local_storage):
    return ActiveBusinessSelector(local_storage)


@pytest.fixture
def store(database, feed, images, selector):
    return EntityStore(database, feed, images, selector)


def make_business(business_id="1", name="Tienda", created_at=NOW, **kwargs):
    return Business(id=business_id, name=name, created_at=created_at, **kwargs)


def make_product(product_id="10", business_id="1", created_at=NOW, **kwargs):
    values = {
        "name": f"Producto {product_id}",
        "price": 100.0,
        "category": "Electrónica",
    }
    values.update(kwargs)
    return Product(id=product_id, business_id=business_id, created_at=created_at, **values)


def days_ago(days):
    return NOW - timedelta(days=days)
