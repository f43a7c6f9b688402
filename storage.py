"""
Filesystem storage for uploaded photos.

Files land in UPLOAD_DIR and are served by the app under /uploads.
"""

import os
import random
import time
import logging
from typing import Optional

from errors import ValidationFailed

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class PhotoStorage:
    def __init__(self, root: str, url_prefix: str = "/uploads", max_bytes: int = MAX_UPLOAD_BYTES):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes
        os.makedirs(self.root, exist_ok=True)

    def _filename(self, original_name: str) -> str:
        ext = os.path.splitext(original_name or "")[1].lower()
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"photo-{suffix}{ext}"

    def store(self, data: bytes, original_name: str, content_type: Optional[str]) -> str:
        """Write an uploaded image and return the URL it is served from."""
        if not (content_type or "").startswith("image/"):
            raise ValidationFailed("Only image files are allowed")
        if len(data) > self.max_bytes:
            raise ValidationFailed(f"File too large (max {self.max_bytes // (1024 * 1024)}MB)")

        filename = self._filename(original_name)
        with open(os.path.join(self.root, filename), "wb") as fh:
            fh.write(data)
        logger.info("Stored upload %s (%d bytes)", filename, len(data))
        return f"{self.url_prefix}/{filename}"

    def path_for(self, url: str) -> Optional[str]:
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        name = os.path.basename(url[len(self.url_prefix) + 1:])
        return os.path.join(self.root, name) if name else None

    def delete(self, url: str) -> bool:
        """Remove a stored file; missing files and foreign URLs are ignored."""
        path = self.path_for(url)
        if not path or not os.path.exists(path):
            return False
        os.remove(path)
        logger.info("Deleted upload %s", path)
        return True
