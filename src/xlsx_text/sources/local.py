"""Local file system source."""

from collections.abc import Iterator
import logging
import os
from pathlib import Path
from typing import IO, Any

from typing_extensions import override

from xlsx_text.errors import ArchiveError
from xlsx_text.sources.base import XLSX_MIME_TYPE, StreamSource

logger = logging.getLogger(__name__)


class LocalFileSource(StreamSource):
    """Read an xlsx file from disk in fixed-size chunks."""

    def __init__(self, file_path: str | os.PathLike[str], chunk_size: int = 16777216) -> None:
        """
        Args:
            file_path: Path to the xlsx file.
            chunk_size: Bytes per chunk (default: 16MB).

        Raises:
            ArchiveError: If the path does not exist or is not a regular file.
        """
        self.file_path = Path(file_path)
        self.chunk_size = chunk_size

        if not self.file_path.exists():
            raise ArchiveError(f"File not found: {file_path}")
        if not self.file_path.is_file():
            raise ArchiveError(f"Path is not a file: {file_path}")

        logger.info("LocalFileSource initialized for: %s", self.file_path)

    @override
    def get_stream(self) -> Iterator[bytes]:
        try:
            with self.file_path.open("rb") as f:
                while chunk := f.read(self.chunk_size):
                    yield chunk
        except OSError as e:
            logger.exception("Error reading file %s: %s", self.file_path, e)
            raise ArchiveError(f"Failed to read file {self.file_path}: {e}") from e

    @override
    def open_seekable(self) -> IO[bytes]:
        try:
            return self.file_path.open("rb")
        except OSError as e:
            logger.exception("Error opening file %s: %s", self.file_path, e)
            raise ArchiveError(f"Failed to open file {self.file_path}: {e}") from e

    @override
    def get_metadata(self) -> dict[str, Any]:
        try:
            size = self.file_path.stat().st_size
        except OSError:
            size = 0

        return {
            "size": size,
            "type": XLSX_MIME_TYPE,
            "source_type": "local",
            "path": str(self.file_path),
        }
