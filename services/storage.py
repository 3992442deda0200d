import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}


class ImageStorage:
    """Profile images on local disk, referenced by a relative path string.

    Files live under ``<root>/profile-images`` and are addressed as
    ``<url_prefix>/profile-images/<name>`` on the user record.
    """

    subdir = "profile-images"

    def __init__(self, root: str, max_bytes: int, url_prefix: str = "uploads"):
        self.root = Path(root)
        self.max_bytes = max_bytes
        self.url_prefix = url_prefix.strip("/")

    @property
    def directory(self) -> Path:
        return self.root / self.subdir

    def _filename(self, upload: UploadFile) -> str:
        # extension follows the checked content type, never the client filename
        ext = ALLOWED_IMAGE_TYPES[upload.content_type]
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}"

    async def save(self, upload: UploadFile) -> str:
        if upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError("Invalid file type")

        content = await upload.read(self.max_bytes + 1)
        if len(content) > self.max_bytes:
            raise ValidationError("File upload error: File too large")

        self.directory.mkdir(parents=True, exist_ok=True)
        filename = self._filename(upload)
        (self.directory / filename).write_bytes(content)
        logger.info("Stored profile image %s (%d bytes)", filename, len(content))
        return f"{self.url_prefix}/{self.subdir}/{filename}"

    def resolve(self, relative_path: str) -> Optional[Path]:
        prefix = f"{self.url_prefix}/{self.subdir}/"
        if not relative_path or not relative_path.startswith(prefix):
            return None
        name = relative_path[len(prefix):]
        # reject anything that would leave the images directory
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.directory / name

    def delete(self, relative_path: Optional[str]) -> bool:
        path = self.resolve(relative_path) if relative_path else None
        if path is None or not path.exists():
            return False
        path.unlink()
        logger.info("Removed profile image %s", path.name)
        return True
