from __future__ import annotations

import uuid
from pathlib import Path

from fastapi import Request

from citypulse.core.config import settings

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def photo_filename(issue_id: uuid.UUID, kind: str, content_type: str | None) -> str:
    suffix = ALLOWED_IMAGE_TYPES.get(content_type or "", ".bin")
    return f"issues/{issue_id}/{kind}-{uuid.uuid4().hex[:12]}{suffix}"


def save_file(filename: str, data: bytes) -> str:
    storage_dir = Path(settings.storage_dir)
    path = storage_dir / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return str(path)


def public_storage_url(request: Request, file_path: str) -> str:
    absolute = Path(file_path).resolve()
    storage_root = Path(settings.storage_dir).resolve()
    try:
        relative = absolute.relative_to(storage_root)
    except ValueError:
        relative = Path(Path(file_path).name)
    return str(request.url_for("storage", path=relative.as_posix()))
