import io
from types import SimpleNamespace

import pytest

from civicsense.core.exceptions import ValidationError
from civicsense.core.settings import settings
from civicsense.services import media_service
from civicsense.services.media_service import MediaService, format_file_size, media_type_for, sanitize_filename


def test_upload_image(client, png_bytes):
    response = client.post("/media/upload", files={"media": ("my photo.png", png_bytes, "image/png")})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["media_type"] == "image"
    assert body["original_name"] == "my photo.png"
    assert body["filename"].startswith("media-")
    assert body["filename"].endswith("-my_photo.png")
    assert body["url"] == f"/uploads/{body['filename']}"
    assert body["size"] == len(png_bytes)

    assert client.get(body["url"]).content == png_bytes


def test_upload_without_file(client):
    response = client.post("/media/upload")
    assert response.status_code == 400
    assert response.json()["detail"].startswith("No file uploaded")


def test_upload_rejects_type(client):
    response = client.post("/media/upload", files={"media": ("run.sh", b"echo hi", "application/x-sh")})
    assert response.status_code == 400
    assert "not allowed" in response.json()["detail"]


def test_upload_rejects_large_file(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    response = client.post("/media/upload", files={"media": ("clip.mp3", b"x" * 11, "audio/mpeg")})
    assert response.status_code == 400
    assert response.json()["detail"] == "File too large: maximum file size is 10 Bytes"


def test_media_info_and_delete(client, png_bytes):
    filename = client.post(
        "/media/upload", files={"media": ("a.png", png_bytes, "image/png")},
    ).json()["filename"]

    info = client.get(f"/media/info/{filename}")
    assert info.status_code == 200
    assert info.json()["size"] == len(png_bytes)

    deleted = client.delete(f"/media/{filename}")
    assert deleted.json() == {"success": True, "message": "File deleted successfully", "filename": filename}
    assert client.get(f"/media/info/{filename}").status_code == 404
    assert client.delete(f"/media/{filename}").status_code == 404


def test_resolve_rejects_paths_outside_upload_dir():
    with pytest.raises(ValidationError, match="Invalid filename"):
        MediaService()._resolve("../secrets.txt")


@pytest.mark.parametrize("size, expected", [
    (0, "0 Bytes"),
    (512, "512 Bytes"),
    (1536, "1.5 KB"),
    (10 * 1024 * 1024, "10 MB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_filename_helpers():
    assert sanitize_filename("../etc/pass wd") == ".._etc_pass_wd"
    assert media_type_for("video/mp4") == "video"
    assert media_type_for("application/pdf") == "unknown"


def test_read_upload_stops_at_size_limit(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    monkeypatch.setattr(media_service, "READ_CHUNK_BYTES", 4)
    body = io.BytesIO(b"x" * 1000)
    upload = SimpleNamespace(size=None, file=body)

    with pytest.raises(ValidationError, match="File too large"):
        MediaService().read_upload(upload)
    assert body.tell() == 12


def test_read_upload_rejects_declared_size_without_reading(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    body = io.BytesIO(b"x" * 1000)

    with pytest.raises(ValidationError, match="File too large"):
        MediaService().read_upload(SimpleNamespace(size=1000, file=body))
    assert body.tell() == 0


def test_read_upload_returns_content_within_limit(monkeypatch):
    monkeypatch.setattr(media_service, "READ_CHUNK_BYTES", 3)
    upload = SimpleNamespace(size=None, file=io.BytesIO(b"abcdefgh"))
    assert MediaService().read_upload(upload) == b"abcdefgh"
