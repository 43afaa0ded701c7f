# tests/services/test_storage.py
"""Tests for the local object storage backend."""

from __future__ import annotations

import pytest

from inkwell.core.errors import NotFoundError, ValidationError
from inkwell.services.storage import LocalObjectStorage, get_storage, sanitize_filename


@pytest.fixture()
def storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(tmp_path, "/media/")


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("photo.png", "photo.png"),
        ("my holiday (1).jpg", "my_holiday_1.jpg"),
        ("résumé photo.png", "resume_photo.png"),
        ("ñandú.jpg", "nandu.jpg"),
        ("../../etc/passwd", "etc_passwd"),
        ("", "upload"),
        (None, "upload"),
        ("...", "upload"),
    ],
)
def test_sanitize_filename(filename, expected) -> None:
    assert sanitize_filename(filename) == expected


def test_store_writes_file_and_returns_url(storage, tmp_path) -> None:
    stored = storage.store(b"GIF89a", "image/gif", "spin.gif")
    assert stored.key.startswith("post-images/")
    assert stored.url == f"/media/{stored.key}"
    assert (tmp_path / stored.key).read_bytes() == b"GIF89a"


def test_store_generates_unique_keys(storage) -> None:
    first = storage.store(b"a", "image/png", "same.png")
    second = storage.store(b"b", "image/png", "same.png")
    assert first.key != second.key


def test_store_rejects_disallowed_type(storage, tmp_path) -> None:
    with pytest.raises(ValidationError) as excinfo:
        storage.store(b"<svg/>", "image/svg+xml", "icon.svg")
    assert excinfo.value.details == [
        {
            "field": "image",
            "message": "Invalid file type. Only JPEG, PNG, and GIF images are allowed.",
        }
    ]
    assert not (tmp_path / "post-images").exists()


def test_delete_missing_object(storage) -> None:
    with pytest.raises(NotFoundError):
        storage.delete("post-images/nope.png")


def test_delete_outside_root_is_refused(storage, tmp_path) -> None:
    outside = tmp_path.parent / "outside.png"
    outside.write_bytes(b"keep me")
    with pytest.raises(NotFoundError):
        storage.delete("../outside.png")
    assert outside.exists()


def test_get_storage_follows_settings(upload_dir) -> None:
    backend = get_storage()
    assert backend.root == upload_dir
    assert backend.base_url == "/uploads"
