"""Public media endpoint serving stored studio objects."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from ..media.media_service import ObjectStorage, StorageError


def build_public_media_router(storage: ObjectStorage) -> APIRouter:
    router = APIRouter(prefix="/public/studio-media", tags=["public-media"])

    @router.get("/{key:path}")
    def get_media(key: str) -> FileResponse:
        try:
            path = storage.open_path(key)
        except (KeyError, StorageError) as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found") from exc
        return FileResponse(path=path, media_type=_guess_mime(path.suffix), filename=path.name)

    return router


def _guess_mime(suffix: str) -> str:
    lowered = suffix.lower()
    if lowered in {".jpg", ".jpeg"}:
        return "image/jpeg"
    if lowered == ".png":
        return "image/png"
    if lowered == ".webp":
        return "image/webp"
    return "application/octet-stream"
