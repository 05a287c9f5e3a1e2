"""Named-part access to the xlsx (ZIP) container."""

import logging
from typing import IO, Any
import zipfile
import zlib

from xlsx_text.errors import ArchiveError
from xlsx_text.sources.base import StreamSource

logger = logging.getLogger(__name__)


class ArchiveEntry:
    """
    One open part of the container, read front to back as a binary file.

    Decompression happens as the entry is read, so ElementTree's pull
    parsers consume it without the part ever being held in memory.
    """

    def __init__(self, name: str, stream: IO[bytes]) -> None:
        self.name = name
        self._stream = stream

    def read(self, size: int = -1) -> bytes:
        try:
            return self._stream.read(size)
        except (zipfile.BadZipFile, zlib.error, OSError, EOFError) as e:
            logger.exception("Error decompressing %s: %s", self.name, e)
            raise ArchiveError(f"Failed to decompress {self.name}: {e}") from e

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def __enter__(self) -> "ArchiveEntry":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class Archive:
    """
    The xlsx container of a StreamSource, opened as a ZIP file.

    Entries are opened independently; reopening an entry is how callers
    rewind it. Closing the archive closes every entry still open.
    """

    def __init__(self, source: StreamSource) -> None:
        """
        Raises:
            ArchiveError: If the source cannot be read or is not a ZIP container.
        """
        self.source = source
        self._file = source.open_seekable()
        try:
            self._zip = zipfile.ZipFile(self._file)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as e:
            self._file.close()
            logger.exception("Error opening xlsx container: %s", e)
            raise ArchiveError(f"Failed to open xlsx container: {e}") from e

        self._names = frozenset(self._zip.namelist())
        self._entries: list[ArchiveEntry] = []
        self.closed = False
        logger.debug("Archive opened with %d entries", len(self._names))

    def namelist(self) -> list[str]:
        return self._zip.namelist()

    def has_entry(self, name: str) -> bool:
        return name in self._names

    def open_entry(self, name: str) -> ArchiveEntry | None:
        """
        Open the part called ``name``, or return None when it is absent.

        The caller owns the returned entry and should close it; any entry
        left open is closed with the archive.

        Raises:
            ArchiveError: If the archive is closed or the member is unreadable.
        """
        if self.closed:
            raise ArchiveError("Archive is closed")
        if name not in self._names:
            logger.debug("Archive entry %s not found", name)
            return None

        try:
            stream = self._zip.open(name)
        except (zipfile.BadZipFile, NotImplementedError, RuntimeError, OSError) as e:
            # NotImplementedError: unsupported compression; RuntimeError: encrypted member
            logger.exception("Error opening archive entry %s: %s", name, e)
            raise ArchiveError(f"Failed to open {name}: {e}") from e

        entry = ArchiveEntry(name, stream)
        self._entries = [e for e in self._entries if not e.closed]
        self._entries.append(entry)
        logger.debug("Opened archive entry %s", name)
        return entry

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for entry in self._entries:
            entry.close()
        self._entries.clear()
        self._zip.close()
        self._file.close()
