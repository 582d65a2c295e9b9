"""Tests for image validation and the local and Supabase storage backends."""

import io
import threading

import httpx
import pytest
from PIL import Image

from app.core.exceptions import ImageUploadError, InvalidImageError
from app.services import image_storage
from app.services.image_storage import (
    MAX_IMAGE_SIZE,
    LocalImageStorage,
    SupabaseImageStorage,
    build_object_path,
    object_path_from_url,
    validate_image,
)


def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestValidation:

    def test_valid_png_passes(self):
        validate_image("foto.png", "image/png", png_bytes())

    def test_wrong_content_type(self):
        with pytest.raises(InvalidImageError, match="Tipo de archivo no válido"):
            validate_image("doc.pdf", "application/pdf", b"%PDF-1.4")

    def test_too_large(self):
        with pytest.raises(InvalidImageError, match="demasiado grande"):
            validate_image("big.png", "image/png", b"0" * (MAX_IMAGE_SIZE + 1))

    def test_not_an_image(self):
        with pytest.raises(InvalidImageError, match="no es una imagen válida"):
            validate_image("fake.png", "image/png", b"definitely not a png")


class TestPaths:

    def test_object_path_layout(self):
        path = build_object_path("products", "Foto.JPG")

        folder, name = path.split("/")
        assert folder == "products"
        assert name.endswith(".jpg")
        assert build_object_path("products", "Foto.JPG") != path

    def test_extension_must_be_short_and_alphanumeric(self):
        path = build_object_path("products", "x./../escaped", "image/png")

        assert "/" not in path.split("/", 1)[1]
        assert path.endswith(".png")
        assert build_object_path("products", "foto", "image/webp").endswith(".webp")
        assert build_object_path("products", "foto.jpeg!!").endswith(".bin")

    def test_unknown_folder(self):
        with pytest.raises(InvalidImageError):
            build_object_path("avatars", "a.png")

    def test_object_path_from_url(self):
        url = "https://abc.supabase.co/storage/v1/object/public/marketplace-images/products/1-ab.png"

        assert object_path_from_url(url, "marketplace-images") == "products/1-ab.png"
        assert object_path_from_url("https://cdn.example.com/x.png", "marketplace-images") is None


class TestLocalImageStorage:

    async def test_upload_then_delete(self, tmp_path):
        storage = LocalImageStorage(str(tmp_path), "http://testserver/media")

        url = await storage.upload(png_bytes(), "foto.png", "image/png", "businesses")

        assert url.startswith("http://testserver/media/marketplace-images/businesses/")
        stored = tmp_path / "marketplace-images" / object_path_from_url(url, "marketplace-images")
        assert stored.exists()

        await storage.delete(url)
        assert not stored.exists()

    async def test_delete_is_best_effort(self, tmp_path):
        storage = LocalImageStorage(str(tmp_path), "http://testserver/media")

        await storage.delete("http://testserver/media/marketplace-images/products/missing.png")
        await storage.delete("https://elsewhere.example.com/photo.png")
        await storage.delete("http://testserver/media/marketplace-images/../../etc/passwd")

    async def test_invalid_upload_writes_nothing(self, tmp_path):
        storage = LocalImageStorage(str(tmp_path), "http://testserver/media")

        with pytest.raises(InvalidImageError):
            await storage.upload(b"nope", "x.png", "image/png", "products")

        assert not (tmp_path / "marketplace-images").exists()

    async def test_validation_runs_off_the_event_loop(self, tmp_path, monkeypatch):
        threads = []
        original = image_storage.validate_image

        def validate(*args):
            threads.append(threading.current_thread())
            return original(*args)

        monkeypatch.setattr(image_storage, "validate_image", validate)
        storage = LocalImageStorage(str(tmp_path), "http://testserver/media")

        await storage.upload(png_bytes(), "foto.png", "image/png", "products")

        assert threads and threads[0] is not threading.current_thread()


class TestSupabaseImageStorage:

    @pytest.fixture
    def mock_supabase(self, monkeypatch):
        """Route every httpx.AsyncClient through a MockTransport and record the requests."""
        seen = []
        responses = {"status": 200}

        def handler(request):
            seen.append(request)
            return httpx.Response(responses["status"], json={"Key": "ok"})

        original = httpx.AsyncClient

        def client_factory(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            return original(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_factory)
        return seen, responses

    async def test_upload_returns_public_url(self, mock_supabase):
        seen, _ = mock_supabase
        storage = SupabaseImageStorage("https://abc.supabase.co", "key")

        url = await storage.upload(png_bytes(), "foto.png", "image/png", "products")

        assert url.startswith("https://abc.supabase.co/storage/v1/object/public/marketplace-images/products/")
        assert seen[0].method == "POST"
        assert seen[0].headers["Authorization"] == "Bearer key"
        assert seen[0].headers["Content-Type"] == "image/png"

    async def test_upload_failure_raises(self, mock_supabase):
        _, responses = mock_supabase
        responses["status"] = 500
        storage = SupabaseImageStorage("https://abc.supabase.co", "key")

        with pytest.raises(ImageUploadError):
            await storage.upload(png_bytes(), "foto.png", "image/png", "products")

    async def test_delete_failure_is_swallowed(self, mock_supabase):
        seen, responses = mock_supabase
        responses["status"] = 500
        storage = SupabaseImageStorage("https://abc.supabase.co", "key")

        await storage.delete(
            "https://abc.supabase.co/storage/v1/object/public/marketplace-images/products/1-ab.png"
        )

        assert seen[0].method == "DELETE"
        assert b"products/1-ab.png" in seen[0].content
