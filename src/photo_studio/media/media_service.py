"""Object storage for studio inputs and results."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..config import MediaPaths
from .public_media_links import build_public_media_url


class StorageError(Exception):
    """Raised when an object cannot be written or read."""


_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def extension_for(content_type: str | None) -> str:
    """Map a content type to a file extension, defaulting to png."""
    base = (content_type or "").split(";", 1)[0].strip().lower()
    return _EXTENSIONS.get(base, "png")


@dataclass(slots=True)
class ObjectStorage:
    """Filesystem bucket exposing put/get/public-url access."""

    paths: MediaPaths
    public_base_url: str

    def _resolve(self, key: str) -> Path:
        relative = PurePosixPath(key)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise StorageError(f"Invalid object key '{key}'")
        return self.paths.bucket.joinpath(*relative.parts)

    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Write ``data`` under ``key`` (overwriting) and return the key."""
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store '{key}': {exc}") from exc
        return key

    def get(self, key: str) -> bytes:
        path = self._resolve(key)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read '{key}': {exc}") from exc

    def open_path(self, key: str) -> Path:
        path = self._resolve(key)
        if not path.is_file():
            raise KeyError(key)
        return path

    def public_url(self, key: str) -> str:
        self._resolve(key)
        return build_public_media_url(self.public_base_url, key)
