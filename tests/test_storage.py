import shutil

import cloudinary.uploader
import pytest

from vidshare.utils.storage import CloudinaryStorage, LocalStorage, extract_public_id, resource_type_from_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://res.cloudinary.com/demo/image/upload/v1700000000/avatars/abc123.png", "avatars/abc123"),
        ("https://res.cloudinary.com/demo/video/upload/v17/vidshare/videos/clip.mp4", "vidshare/videos/clip"),
        ("https://res.cloudinary.com/demo/image/upload/v1/sample", "sample"),
        ("https://res.cloudinary.com/demo/image/upload/v1/my%20photo.jpg", "my photo"),
        ("https://example.com/files/plain.jpg", "plain"),
        ("/media/v1700000000/thumbnails/abc.png", "thumbnails/abc"),
        ("", None),
    ],
)
def test_extract_public_id(url, expected):
    assert extract_public_id(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://res.cloudinary.com/demo/video/upload/v1/a.mp4", "video"),
        ("https://res.cloudinary.com/demo/image/upload/v1/a.png", "image"),
        ("https://res.cloudinary.com/demo/raw/upload/v1/a.bin", "raw"),
    ],
)
def test_resource_type_from_url(url, expected):
    assert resource_type_from_url(url) == expected


@pytest.fixture
def upload_file(tmp_path):
    path = tmp_path / "upload.png"
    path.write_bytes(b"image-bytes")
    return path


# ── Local backend ────────────────────────────────────────


async def test_local_store_and_delete(tmp_path, upload_file):
    storage = LocalStorage(base=tmp_path / "media")

    stored = await storage.store(upload_file, folder="avatars")

    assert stored is not None
    assert stored.url.startswith("/media/v")
    assert stored.public_id.startswith("avatars/")
    assert stored.resource_type == "image"
    assert not upload_file.exists()
    on_disk = tmp_path / "media" / stored.url[len("/media/"):]
    assert on_disk.read_bytes() == b"image-bytes"

    await storage.delete(stored.url)

    assert not on_disk.exists()


async def test_local_store_failure_removes_temp_file(tmp_path, upload_file, monkeypatch):
    def broken_copy(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(shutil, "copy2", broken_copy)
    storage = LocalStorage(base=tmp_path / "media")

    assert await storage.store(upload_file, folder="avatars") is None
    assert not upload_file.exists()


async def test_local_delete_stays_inside_base(tmp_path):
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")
    storage = LocalStorage(base=tmp_path / "media")

    await storage.delete("/media/../keep.txt")
    await storage.delete("https://elsewhere.example.com/keep.txt")

    assert outside.exists()


async def test_local_delete_missing_file_is_quiet(tmp_path):
    storage = LocalStorage(base=tmp_path / "media")

    await storage.delete("/media/v1/avatars/gone.png")
    await storage.delete("")


# ── Cloudinary backend ───────────────────────────────────


@pytest.fixture
def cloud():
    return CloudinaryStorage(cloud_name="demo", api_key="key", api_secret="secret", folder="vidshare")


async def test_cloudinary_store(cloud, upload_file, monkeypatch):
    calls = []

    def fake_upload(path, **kwargs):
        calls.append((path, kwargs))
        return {
            "secure_url": "https://res.cloudinary.com/demo/video/upload/v1/vidshare/videos/x.mp4",
            "public_id": "vidshare/videos/x",
            "resource_type": "video",
            "duration": 42.25,
        }

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    stored = await cloud.store(upload_file, folder="videos")

    assert stored.url.endswith("/vidshare/videos/x.mp4")
    assert stored.duration == 42.25
    assert stored.resource_type == "video"
    assert calls == [(str(upload_file), {"resource_type": "auto", "folder": "vidshare/videos"})]
    assert not upload_file.exists()


async def test_cloudinary_store_failure(cloud, upload_file, monkeypatch):
    def failing_upload(path, **kwargs):
        raise RuntimeError("network down")

    monkeypatch.setattr(cloudinary.uploader, "upload", failing_upload)

    assert await cloud.store(upload_file, folder="avatars") is None
    assert not upload_file.exists()


async def test_cloudinary_delete_uses_public_id_and_resource_type(cloud, monkeypatch):
    calls = []

    def fake_destroy(public_id, **kwargs):
        calls.append((public_id, kwargs))
        return {"result": "ok"}

    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)

    await cloud.delete("https://res.cloudinary.com/demo/video/upload/v1700000000/vidshare/videos/clip.mp4")

    assert calls == [("vidshare/videos/clip", {"resource_type": "video", "invalidate": True})]


async def test_cloudinary_delete_never_raises(cloud, monkeypatch):
    def failing_destroy(public_id, **kwargs):
        raise RuntimeError("network down")

    monkeypatch.setattr(cloudinary.uploader, "destroy", failing_destroy)

    await cloud.delete("https://res.cloudinary.com/demo/image/upload/v1/avatars/a.png")
    await cloud.delete("")
