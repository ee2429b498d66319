from __future__ import annotations

import pytest

from src.photo_studio.media.media_service import StorageError, extension_for


def test_put_then_get_returns_bytes(storage) -> None:
    storage.put("u1/job.png", b"png", "image/png")

    assert storage.get("u1/job.png") == b"png"
    assert (storage.paths.bucket / "u1" / "job.png").is_file()


def test_put_overwrites_existing_object(storage) -> None:
    storage.put("u1/job.png", b"first", "image/png")
    storage.put("u1/job.png", b"second", "image/png")

    assert storage.get("u1/job.png") == b"second"


def test_public_url_is_derived_from_key(storage) -> None:
    assert storage.public_url("u1/my job.png") == (
        f"{storage.public_base_url}/public/studio-media/u1/my%20job.png"
    )


@pytest.mark.parametrize("key", ["../escape.png", "/etc/passwd", ""])
def test_keys_outside_bucket_are_rejected(storage, key) -> None:
    with pytest.raises(StorageError):
        storage.put(key, b"x", "image/png")


def test_missing_object_raises(storage) -> None:
    with pytest.raises(StorageError):
        storage.get("u1/none.png")
    with pytest.raises(KeyError):
        storage.open_path("u1/none.png")


@pytest.mark.parametrize(
    ("content_type", "extension"),
    [
        ("image/jpeg", "jpg"),
        ("image/webp; charset=binary", "webp"),
        ("image/png", "png"),
        (None, "png"),
        ("application/octet-stream", "png"),
    ],
)
def test_extension_for_content_type(content_type, extension) -> None:
    assert extension_for(content_type) == extension
