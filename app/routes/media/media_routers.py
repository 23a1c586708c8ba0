import logging
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from app.core.config import settings
from app.core.security import get_current_admin
from app.services.media_store import copy_limited, media_root, media_url, new_filename

logger = logging.getLogger(__name__)

media_router = APIRouter(prefix="/api/media", tags=["Media"])

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
}


@media_router.post("/upload", status_code=status.HTTP_201_CREATED, dependencies=[Depends(get_current_admin)])
def upload_media(file: UploadFile = File(...)):
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    filename = new_filename(Path(file.filename).suffix)
    size = copy_limited(file.file, media_root() / filename, settings.MAX_UPLOAD_MB * 1024 * 1024)
    if size < 0:
        raise HTTPException(status_code=400, detail=f"File is larger than {settings.MAX_UPLOAD_MB} MB")

    logger.info("Stored upload %s as %s (%d bytes)", file.filename, filename, size)
    return {"filename": filename, "path": media_url(filename), "url": media_url(filename)}


@media_router.get("/{file_path:path}")
def get_media(file_path: str):
    root = media_root()
    full_path = (root / file_path).resolve()
    if not full_path.is_relative_to(root) or not full_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    content_type = CONTENT_TYPES.get(full_path.suffix.lower(), "application/octet-stream")
    return FileResponse(full_path, media_type=content_type)
