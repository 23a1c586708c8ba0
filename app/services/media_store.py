"""Files under MEDIA_DIR, served back at /api/media/<name>."""

import uuid
from pathlib import Path
from typing import BinaryIO

from app.core.config import settings

CHUNK_SIZE = 1024 * 1024


def media_root() -> Path:
    root = Path(settings.MEDIA_DIR).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def media_url(filename: str) -> str:
    return f"/api/media/{filename}"


def new_filename(suffix: str) -> str:
    return f"{uuid.uuid4()}{suffix.lower()}"


def store_bytes(data: bytes, suffix: str) -> str:
    """Save content under a fresh uuid name and return its public url."""
    filename = new_filename(suffix)
    (media_root() / filename).write_bytes(data)
    return media_url(filename)


def copy_limited(src: BinaryIO, dest: Path, limit: int) -> int:
    """Copy src to dest in chunks. Returns the byte count, or -1 once more than limit bytes arrive."""
    size = 0
    with dest.open("wb") as out:
        for chunk in iter(lambda: src.read(CHUNK_SIZE), b""):
            size += len(chunk)
            if size > limit:
                break
            out.write(chunk)
    if size > limit:
        dest.unlink()
        return -1
    return size
