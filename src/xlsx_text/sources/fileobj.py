"""Source backed by an already-open binary file object."""

from collections.abc import Iterator
import logging
from typing import IO, Any, BinaryIO

from typing_extensions import override

from xlsx_text.errors import ArchiveError
from xlsx_text.sources.base import XLSX_MIME_TYPE, StreamSource

logger = logging.getLogger(__name__)


class FileObjectSource(StreamSource):
    """
    Read an xlsx container from a binary file object the caller owns.

    Seekable objects are read in place and never closed by this library.
    Non-seekable objects (pipes, response bodies) can only be streamed
    once; the archive layer spools that single pass to a temporary file.
    """

    def __init__(self, fileobj: BinaryIO, chunk_size: int = 16777216) -> None:
        if not hasattr(fileobj, "read"):
            raise ArchiveError(f"Not a readable file object: {fileobj!r}")

        self.fileobj = fileobj
        self.chunk_size = chunk_size
        self.seekable = _is_seekable(fileobj)
        self._start = fileobj.tell() if self.seekable else 0

        logger.info("FileObjectSource initialized (seekable=%s)", self.seekable)

    @override
    def get_stream(self) -> Iterator[bytes]:
        try:
            if self.seekable:
                self.fileobj.seek(self._start)
            while chunk := self.fileobj.read(self.chunk_size):
                yield chunk
        except (OSError, ValueError) as e:
            # ValueError: I/O operation on closed file
            logger.exception("Error reading file object: %s", e)
            raise ArchiveError(f"Failed to read file object: {e}") from e

    @override
    def open_seekable(self) -> IO[bytes]:
        if not self.seekable:
            return super().open_seekable()
        self.fileobj.seek(self._start)
        return _BorrowedFile(self.fileobj)

    @override
    def get_metadata(self) -> dict[str, Any]:
        size = 0
        if self.seekable:
            try:
                position = self.fileobj.tell()
                size = self.fileobj.seek(0, 2) - self._start
                self.fileobj.seek(position)
            except (OSError, ValueError):
                size = 0

        return {
            "size": size,
            "type": XLSX_MIME_TYPE,
            "source_type": "fileobj",
            "name": getattr(self.fileobj, "name", None),
        }


class _BorrowedFile:
    """Seekable view of a caller's file; closing it leaves the file open."""

    def __init__(self, fileobj: BinaryIO) -> None:
        self._fileobj = fileobj
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        return self._fileobj.read(size)

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._fileobj.seek(offset, whence)

    def tell(self) -> int:
        return self._fileobj.tell()

    def seekable(self) -> bool:
        return True

    def close(self) -> None:
        self.closed = True


def _is_seekable(fileobj: BinaryIO) -> bool:
    try:
        return bool(fileobj.seekable())
    except (AttributeError, OSError, ValueError):
        return False
