"""Avatar storage on the local filesystem under ``MEDIA_ROOT``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Final
from uuid import uuid4

from fastapi import UploadFile

from chatlink.config import get_settings
from chatlink.core.errors import InvalidRequest, NotFound, PayloadTooLarge

logger = logging.getLogger(__name__)
settings = get_settings()

_CHUNK_SIZE: Final[int] = 256 * 1024

AVATAR_EXTENSIONS: Final[dict[str, str]] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass(slots=True)
class StoredFile:
    """A file written by the storage layer."""

    file_name: str
    content_type: str | None
    file_size: int
    absolute_path: Path
    relative_path: str


def _media_root() -> Path:
    root = Path(settings.media_root).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _avatar_dir(user_id: int) -> Path:
    return _media_root() / "avatars" / f"user_{user_id}"


async def store_user_avatar(user_id: int, upload: UploadFile) -> StoredFile:
    """Write a new avatar for ``user_id`` and drop the previous ones.

    Each upload gets a fresh name so cached avatar URLs go stale with it.
    """

    extension = AVATAR_EXTENSIONS.get((upload.content_type or "").lower())
    if extension is None:
        await upload.close()
        raise InvalidRequest("Avatar must be a PNG, JPEG, GIF or WebP image")

    target_dir = _avatar_dir(user_id)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{uuid4().hex}{extension}"

    written = 0
    try:
        with target.open("wb") as buffer:
            while chunk := await upload.read(_CHUNK_SIZE):
                written += len(chunk)
                if written > settings.max_upload_size:
                    raise PayloadTooLarge("Avatar exceeds allowed size")
                buffer.write(chunk)
    except PayloadTooLarge:
        target.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()

    for previous in target_dir.iterdir():
        if previous != target and previous.is_file():
            previous.unlink(missing_ok=True)
    logger.info("Stored avatar for user %s (%s bytes)", user_id, written)

    return StoredFile(
        file_name=upload.filename or target.name,
        content_type=upload.content_type,
        file_size=written,
        absolute_path=target,
        relative_path=target.relative_to(_media_root()).as_posix(),
    )


def resolve_path(relative_path: str) -> Path:
    """Map a stored relative path back into ``MEDIA_ROOT``."""

    root = _media_root()
    candidate = (root / relative_path).resolve()
    if not candidate.is_relative_to(root) or not candidate.is_file():
        raise NotFound("File not found")
    return candidate
