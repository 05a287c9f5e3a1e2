"""Public API: open an xlsx container and walk its sheets row by row."""

from collections.abc import Iterator
import csv
import io
import logging
import os
from pathlib import Path
from typing import IO, Any, BinaryIO
from urllib.parse import urlparse

from xlsx_text.archive import Archive
from xlsx_text.errors import ArchiveError
from xlsx_text.sheet_stream import Cell, SheetStream
from xlsx_text.sources.base import StreamSource
from xlsx_text.sources.fileobj import FileObjectSource
from xlsx_text.sources.local import LocalFileSource
from xlsx_text.workbook_index import WorkbookIndex

logger = logging.getLogger(__name__)

SourceLike = str | os.PathLike[str] | BinaryIO | StreamSource


class XlsxTextReader:
    """
    Sequential text reader over the sheets of an xlsx workbook.

    Loads the workbook index when created, then hands out one SheetStream
    at a time through ``advance_sheet``. The current sheet stays valid until
    the next advance or ``close``.
    """

    def __init__(
        self,
        source: SourceLike,
        chunk_size: int = 16777216,
        **source_options: Any,
    ) -> None:
        """
        Open the container and load its workbook index.

        Args:
            source: One of:
                - StreamSource instance
                - binary file object
                - S3 URI: 's3://bucket/key'
                - HTTP URL: 'https://example.com/file.xlsx'
                - local path (str or PathLike)
            chunk_size: Size of chunks to read from the source (default: 16MB).
            **source_options: Source-specific options:
                - For S3: client
                - For HTTP: headers, auth, timeout

        Raises:
            ArchiveError: If the container cannot be opened or lacks the
                          workbook or relationships part.
            FormatError: If the workbook metadata is malformed.
        """
        self.source = self._create_source(source, chunk_size, source_options)
        self.chunk_size = chunk_size
        self.archive = Archive(self.source)
        self.sheet: SheetStream | None = None
        self.closed = False
        self._next_sheet = 0

        try:
            self.index = WorkbookIndex.load(self.archive)
        except Exception:
            self.close()
            raise

        logger.info(
            "XlsxTextReader opened (source=%s, sheets=%d)",
            self.source.get_metadata().get("source_type"),
            self.index.sheet_count,
        )

    @staticmethod
    def _create_source(
        source: SourceLike,
        chunk_size: int,
        options: dict[str, Any],
    ) -> StreamSource:
        """
        Pick a StreamSource implementation for ``source``.

        Raises:
            ArchiveError: If the source is not a supported kind.
            ValueError: If an S3 URI lacks a bucket or key.
        """
        if isinstance(source, StreamSource):
            return source

        if isinstance(source, os.PathLike):
            logger.info("Creating LocalFileSource for %s", source)
            return LocalFileSource(source, chunk_size=chunk_size)

        if not isinstance(source, str):
            if hasattr(source, "read"):
                return FileObjectSource(source, chunk_size=chunk_size)
            raise ArchiveError(f"Unsupported xlsx source: {source!r}")

        parsed = urlparse(source)

        if parsed.scheme == "s3":
            from xlsx_text.sources.s3 import S3Source

            bucket = parsed.netloc
            key = parsed.path.lstrip("/")
            if not bucket or not key:
                raise ValueError(f"Invalid S3 URI: {source}. Expected: s3://bucket/key")

            logger.info("Creating S3Source for s3://%s/%s", bucket, key)
            return S3Source(
                bucket=bucket,
                key=key,
                chunk_size=chunk_size,
                **{k: v for k, v in options.items() if k == "client"},
            )

        if parsed.scheme in ("http", "https"):
            from xlsx_text.sources.http import HTTPSource

            logger.info("Creating HTTPSource for %s", source)
            return HTTPSource(
                url=source,
                chunk_size=chunk_size,
                **{k: v for k, v in options.items() if k in ("headers", "auth", "timeout")},
            )

        logger.info("Creating LocalFileSource for %s", source)
        return LocalFileSource(source, chunk_size=chunk_size)

    def sheet_count(self) -> int:
        return self.index.sheet_count

    def sheet_names(self) -> list[str]:
        return self.index.sheet_names

    @property
    def sheet_name(self) -> str | None:
        """Name of the current sheet, or None before the first advance and after the last."""
        return self.sheet.name if self.sheet is not None else None

    def advance_sheet(self) -> bool:
        """
        Close the current sheet and move to the next one in workbook order.

        Returns:
            bool: True when ``sheet`` and ``sheet_name`` now refer to the next
            sheet; False when every sheet has been visited.
        """
        return self._open_next_sheet() is not None

    def iter_sheets(self) -> Iterator[SheetStream]:
        """Yield each remaining sheet; each one is closed when the next is requested."""
        while (sheet := self._open_next_sheet()) is not None:
            yield sheet

    def _open_next_sheet(self) -> SheetStream | None:
        self._close_sheet()
        if self.closed or self._next_sheet >= self.index.sheet_count:
            return None

        info = self.index.sheets[self._next_sheet]
        self._next_sheet += 1
        self.sheet = SheetStream(self.archive, self.index, info.name, info.part_path)
        logger.info(
            "Advanced to sheet %d/%d: %s", self._next_sheet, self.index.sheet_count, info.name
        )
        return self.sheet

    def open_sheet(self, sheet_name: str | None = None) -> SheetStream:
        """
        Open a sheet by name (first sheet by default), independent of ``advance_sheet``.

        The caller owns the returned stream and must close it.

        Raises:
            ValueError: If the workbook has no sheet with that name.
        """
        if not self.index.sheets:
            raise ValueError("Workbook has no sheets")
        if sheet_name is None:
            info = self.index.sheets[0]
        else:
            matches = [sheet for sheet in self.index.sheets if sheet.name == sheet_name]
            if not matches:
                raise ValueError(f"Sheet '{sheet_name}' not found in workbook")
            info = matches[0]
        return SheetStream(self.archive, self.index, info.name, info.part_path)

    def stream_rows(self, sheet_name: str | None = None) -> Iterator[list[str]]:
        """
        Stream one sheet's rows as lists of values positioned by column.

        Missing cells inside a row are padded with empty strings.
        """
        with self.open_sheet(sheet_name) as sheet:
            for cells in sheet.iter_rows():
                yield _dense_values(cells)

    def to_csv(
        self,
        output: str | os.PathLike[str] | IO[Any],
        sheet_name: str | None = None,
        delimiter: str = ",",
    ) -> int:
        """
        Write one sheet as CSV.

        Args:
            output: File path, binary file object or text file object. Objects
                opened in binary mode are written as UTF-8.
            sheet_name: Sheet to export (default: first sheet).
            delimiter: CSV field delimiter.

        Returns:
            int: Number of rows written.
        """
        if isinstance(output, (str, os.PathLike)):
            with Path(output).open("w", encoding="utf-8", newline="") as f:
                return self._write_csv(f, sheet_name, delimiter)

        if not _is_binary(output):
            return self._write_csv(output, sheet_name, delimiter)

        text_output = io.TextIOWrapper(output, encoding="utf-8", newline="")
        try:
            return self._write_csv(text_output, sheet_name, delimiter)
        finally:
            text_output.flush()
            text_output.detach()

    def _write_csv(self, output: IO[str], sheet_name: str | None, delimiter: str) -> int:
        writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)
        row_count = 0
        for values in self.stream_rows(sheet_name):
            writer.writerow(values)
            row_count += 1
            if row_count % 10000 == 0:
                logger.info("Processed %d rows", row_count)

        logger.info("CSV conversion complete: %d rows", row_count)
        return row_count

    def get_metadata(self) -> dict[str, Any]:
        return self.source.get_metadata()

    def _close_sheet(self) -> None:
        if self.sheet is not None:
            self.sheet.close()
            self.sheet = None

    def close(self) -> None:
        """Release the current sheet and every open archive entry."""
        self._close_sheet()
        self.closed = True
        self.archive.close()

    def __enter__(self) -> "XlsxTextReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open(  # noqa: A001
    source: SourceLike,
    chunk_size: int = 16777216,
    **source_options: Any,
) -> XlsxTextReader:
    """Open an xlsx workbook for streaming; see ``XlsxTextReader``."""
    return XlsxTextReader(source, chunk_size=chunk_size, **source_options)


def _dense_values(cells: list[Cell]) -> list[str]:
    if not cells:
        return []
    columns = {cell.column: cell.value for cell in cells}
    dense = [""] * max(columns)
    for column, value in columns.items():
        dense[column - 1] = value
    return dense


def _is_binary(output: IO[Any]) -> bool:
    # tempfile wrappers in text mode are not TextIOBase instances but expose ``mode``.
    if isinstance(output, (io.RawIOBase, io.BufferedIOBase)):
        return True
    return "b" in getattr(output, "mode", "")
