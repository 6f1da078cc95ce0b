import logging
import random
import shutil
import time
from pathlib import Path

from fastapi import UploadFile

from .config import settings
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
UPLOAD_KINDS = {"plants", "categories", "store"}


def uploads_root() -> Path:
    return Path(settings.UPLOADS_DIR).resolve()


def _kind_dir(kind: str) -> Path:
    if kind not in UPLOAD_KINDS:
        raise ValidationError(f"Unknown upload type '{kind}'")
    directory = uploads_root() / kind
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _upload_size(upload: UploadFile) -> int:
    upload.file.seek(0, 2)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def save_upload(upload: UploadFile, kind: str = "plants") -> str:
    """Store an uploaded image and return the URL it is served under."""
    extension = Path(upload.filename or "").suffix.lower()
    content_type = upload.content_type or ""
    if extension not in ALLOWED_EXTENSIONS or not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed")
    if _upload_size(upload) > settings.MAX_FILE_SIZE:
        raise ValidationError("File is too large")

    filename = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{extension}"
    file_path = _kind_dir(kind) / filename
    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(upload.file, buffer)
    logger.info(f"Stored upload {file_path}")
    return f"/uploads/{kind}/{filename}"


def delete_upload(kind: str, filename: str) -> None:
    file_path = _kind_dir(kind) / Path(filename).name
    if not file_path.is_file():
        raise NotFoundError("File not found")
    file_path.unlink()
    logger.info(f"Deleted upload {file_path}")
