"""Byte sources for xlsx containers."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
import logging
import tempfile
from typing import IO, Any

logger = logging.getLogger(__name__)

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Spooled copies of remote containers larger than this move from memory to disk.
SPOOL_MAX_SIZE = 64 * 1024 * 1024


class StreamSource(ABC):
    """
    Where the bytes of an xlsx container come from.

    Implementations stream the container in chunks and must not load it
    into memory in one piece.
    """

    @abstractmethod
    def get_stream(self) -> Iterator[bytes]:
        """
        Yield the container bytes from the beginning, in chunks.

        Raises:
            ArchiveError: If the source cannot be read.
        """
        ...

    @abstractmethod
    def get_metadata(self) -> dict[str, Any]:
        """
        Describe the source.

        Returns:
            dict[str, Any]: At least 'size' (bytes, 0 when unknown), 'type'
            (MIME type) and 'source_type' ('local', 'fileobj', 'http', 's3').
        """
        ...

    def open_seekable(self) -> IO[bytes]:
        """
        Return a seekable binary file holding the container; the caller closes it.

        ZIP members are located through the central directory at the end of
        the container, so the archive needs random access. The default copies
        ``get_stream`` into a spooled temporary file, which stays in memory up
        to SPOOL_MAX_SIZE bytes and moves to disk beyond that.
        """
        spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)  # noqa: SIM115
        try:
            for chunk in self.get_stream():
                spool.write(chunk)
            spool.seek(0)
        except BaseException:
            spool.close()
            raise

        logger.debug("Spooled %s container to a temporary file", type(self).__name__)
        return spool  # type: ignore[return-value]

