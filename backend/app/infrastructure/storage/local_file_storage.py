"""Local filesystem storage for article attachments.

Storage layout:
    <upload_dir>/<filename>    — attachments, named by the upload middleware
"""

import asyncio
import logging
from pathlib import Path

from app.application.interfaces import FileStorage

logger = logging.getLogger(__name__)


class LocalFileStorage(FileStorage):
    """Infrastructure adapter for attachments kept on the local disk."""

    def __init__(self, upload_dir: str):
        self._upload_dir = Path(upload_dir)
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, filename: str) -> Path:
        """Map a stored filename to its path, refusing anything outside upload_dir."""
        root = self._upload_dir.resolve()
        path = (root / filename).resolve()
        if path.parent != root:
            raise ValueError(f"Refusing to touch a file outside the upload directory: {filename}")
        return path

    async def delete_file(self, filename: str) -> bool:
        path = self._resolve(filename)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.debug("Attachment already gone: %s", path)
            return False
        logger.info("Deleted attachment: %s", path)
        return True
