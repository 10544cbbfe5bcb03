"""Local image storage for uploaded avatars and place pictures."""

import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

import structlog

from app.config import Settings
from app.core.exceptions import PersistenceException, ValidationException

logger = structlog.get_logger(__name__)

MIME_TYPE_MAP = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}


class FileStore:
    """Saves uploads under a random name and deletes them best-effort."""

    def __init__(self, upload_dir: str, max_bytes: int = 500_000):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileStore":
        return cls(upload_dir=settings.UPLOAD_DIR, max_bytes=settings.MAX_UPLOAD_BYTES)

    def store(self, stream: BinaryIO, content_type: Optional[str]) -> str:
        """Persist ``stream`` and return the stored file's path."""
        ext = MIME_TYPE_MAP.get(content_type or "")
        if ext is None:
            raise ValidationException("Invalid mime type!", details={"content_type": content_type})

        file_path = self.upload_dir / f"{uuid.uuid4().hex}.{ext}"

        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                shutil.copyfileobj(stream, f)
        except OSError as e:
            logger.error("File store failed", path=str(file_path), error=str(e))
            if file_path.exists():
                self.delete(str(file_path))
            raise PersistenceException("Could not store the uploaded file, please try again.") from e

        size = file_path.stat().st_size
        if size > self.max_bytes:
            self.delete(str(file_path))
            raise ValidationException("File too large!", details={"max_bytes": self.max_bytes})

        logger.info("File stored", path=str(file_path), size=size)
        return file_path.as_posix()

    def delete(self, file_path: str) -> bool:
        """Remove a stored file. Failures are logged, never raised."""
        try:
            Path(file_path).unlink()
        except OSError as e:
            logger.warning("File delete failed", path=file_path, error=str(e))
            return False
        logger.info("File deleted", path=file_path)
        return True
