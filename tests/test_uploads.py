import io

import pytest
from PIL import Image

from storefront.core.storage import StorageClient
from storefront.services.upload_service import UploadService, MAX_DIMENSION


def make_image(size=(3000, 1500), fmt="PNG", mode="RGB"):
    buffer = io.BytesIO()
    Image.new(mode, size, color="white").save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def stored(monkeypatch):
    uploads = {}

    def fake_upload(content, path, content_type):
        uploads[path] = (content, content_type)
        return f"https://files.test/storage/v1/object/public/products/{path}"

    monkeypatch.setattr(StorageClient, "upload", fake_upload)
    return uploads


def test_validate_rejects_wrong_type_and_garbage():
    assert UploadService.validate_image(b"%PDF", "application/pdf", "doc.pdf")[0] is False
    valid, error = UploadService.validate_image(b"not an image", "image/png", "x.png")
    assert valid is False
    assert error == "Invalid or corrupted image file"


def test_optimize_shrinks_to_bounds_as_webp():
    optimized = UploadService.optimize_image(make_image(mode="RGBA"))

    image = Image.open(io.BytesIO(optimized))
    assert image.format == "WEBP"
    assert max(image.size) == MAX_DIMENSION
    assert image.size == (2000, 1000)


def test_optimize_never_enlarges():
    image = Image.open(io.BytesIO(UploadService.optimize_image(make_image(size=(400, 300), fmt="JPEG"))))
    assert image.size == (400, 300)


def test_upload_optimized(stored):
    result = UploadService.upload_image(make_image(), "comò.png", "image/png")

    assert result["optimized"] is True
    assert result["content_type"] == "image/webp"
    assert result["key"].startswith("products/")
    assert result["key"].endswith(".webp")
    assert result["savings"]["saved_bytes"] == result["original_size"] - result["size"]
    assert stored[result["key"]][1] == "image/webp"


def test_upload_without_optimization_keeps_original(stored):
    content = make_image(size=(10, 10))

    result = UploadService.upload_image(content, "thumb.png", "image/png", optimize=False)

    assert result["optimized"] is False
    assert result["key"].endswith(".png")
    assert stored[result["key"]] == (content, "image/png")


async def test_upload_endpoint_requires_admin(client, customer_headers):
    response = await client.post(
        "/api/upload",
        files={"file": ("a.png", make_image(size=(10, 10)), "image/png")},
        headers=customer_headers,
    )
    assert response.status_code == 403


async def test_upload_endpoint(client, admin_headers, stored):
    response = await client.post(
        "/api/upload",
        files={"file": ("tavolo.png", make_image(size=(50, 50)), "image/png")},
        data={"optimize": "false"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["optimized"] is False
    assert body["url"].endswith(body["key"])
    assert body["filename"] == "tavolo.png"


async def test_upload_endpoint_rejects_invalid_type(client, admin_headers, stored):
    response = await client.post(
        "/api/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid file type: text/plain")
    assert stored == {}


async def test_delete_endpoint(client, admin_headers, monkeypatch):
    deleted = []
    monkeypatch.setattr(StorageClient, "delete", lambda path: deleted.append(path) or True)

    response = await client.delete("/api/upload/products/123-abc.webp", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["key"] == "products/123-abc.webp"
    assert deleted == ["products/123-abc.webp"]


async def test_upload_config_is_public(client):
    response = await client.get("/api/upload/config")

    assert response.json()["maxFileSizeMb"] == 10
    assert "image/webp" in response.json()["allowedTypes"]
