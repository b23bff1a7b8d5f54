"""Local file system collaborator for uploads and downloads."""
from pathlib import Path
from typing import BinaryIO, Optional

from core.logging_config import get_logger
from .base import FileSystem

logger = get_logger(__name__)


class LocalFileSystem(FileSystem):
    """Reads upload sources from and writes downloads to the local disk."""

    def open_read(self, path: str) -> BinaryIO:
        return open(Path(path), "rb")

    def open_write(self, path: str) -> BinaryIO:
        file_path = Path(path)
        # Create parent directories if needed
        file_path.parent.mkdir(parents=True, exist_ok=True)
        return open(file_path, "wb")

    def size(self, path: str) -> Optional[int]:
        try:
            return Path(path).stat().st_size
        except OSError as e:
            logger.debug("Could not stat local file", path=path, error=str(e))
            return None
