"""Image upload storage.

Files are written to settings.upload_dir under a timestamp-based name
and served back by the static mount at /api/v1/uploads.
"""

import time
from pathlib import Path

import structlog
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from newsdesk.config import settings
from newsdesk.errors import ValidationFailed

logger = structlog.get_logger()

ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})
UPLOADS_PATH = "/api/v1/uploads"


def upload_root() -> Path:
    root = Path(settings.upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def _write(filename: str, content: bytes) -> None:
    (upload_root() / filename).write_bytes(content)


async def store_image(image: UploadFile) -> str:
    """Persist an uploaded image and return its public URL."""
    extension = Path(image.filename or "").suffix.lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationFailed(
            f"Unsupported image type. Allowed: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}"
        )

    content = await image.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise ValidationFailed(
            f"Image must not exceed {settings.max_upload_bytes // (1024 * 1024)} MB"
        )
    if not content:
        raise ValidationFailed("Image file is empty")

    filename = f"{time.time_ns()}{extension}"
    await run_in_threadpool(_write, filename, content)
    logger.info("upload.stored", filename=filename, size=len(content))
    return f"{settings.public_base_url.rstrip('/')}{UPLOADS_PATH}/{filename}"
