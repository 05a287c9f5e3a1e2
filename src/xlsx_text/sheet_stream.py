from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any
import xml.etree.ElementTree as ET

from xlsx_text.archive import Archive, ArchiveEntry
from xlsx_text.cell_reference import CellReference
from xlsx_text.errors import (
    ArchiveError,
    FormatError,
    InvalidReferenceError,
    UnresolvedCellError,
    UnsupportedTypeError,
)
from xlsx_text.merge_ranges import MergeRangeTable
from xlsx_text.ooxml import find_child, local_name, rich_text
from xlsx_text.workbook_index import WorkbookIndex

logger = logging.getLogger(__name__)

# Cell types whose <v> text is used exactly as stored.
LITERAL_TYPES = frozenset({"n", "b", "str"})


@dataclass(frozen=True)
class Cell:
    """A cell's normalized address and its resolved text."""

    reference: str
    value: str

    @property
    def column(self) -> int:
        return CellReference.parse(self.reference).column

    @property
    def row(self) -> int:
        return CellReference.parse(self.reference).row


class SheetState(Enum):
    NOT_STARTED = "not_started"
    POSITIONED = "positioned"
    EXHAUSTED = "exhausted"


class SheetStream:
    """
    Lazy row-by-row reader for one worksheet part.

    Creating the stream makes a full pass over the part to collect merge
    ranges, then reopens the part for row streaming. Rows are pulled one at
    a time with ``advance_row``; only the current row is held in memory.
    Any error closes the stream and discards the partially read row.
    """

    def __init__(self, archive: Archive, index: WorkbookIndex, name: str, part_path: str) -> None:
        self.name = name
        self.part_path = part_path
        self.index = index
        self.state = SheetState.NOT_STARTED
        self.row_number = 0
        self._row: list[Cell] = []

        with self._open_part(archive) as entry:
            self.merge_ranges = MergeRangeTable.scan(entry)

        # Rewind: row streaming needs a fresh pass over the part.
        self._entry: ArchiveEntry | None = self._open_part(archive)
        self._rows: Iterator[ET.Element] | None = self._iter_row_elements(self._entry)

        logger.debug(
            "SheetStream ready for %r (%s, %d merge ranges)",
            name,
            part_path,
            len(self.merge_ranges),
        )

    def _open_part(self, archive: Archive) -> ArchiveEntry:
        entry = archive.open_entry(self.part_path)
        if entry is None:
            raise ArchiveError(f"Missing worksheet part {self.part_path} for sheet {self.name!r}")
        return entry

    @staticmethod
    def _iter_row_elements(entry: ArchiveEntry) -> Iterator[ET.Element]:
        parent: ET.Element | None = None
        try:
            for event, elem in ET.iterparse(entry, events=("start", "end")):
                if event == "start":
                    if local_name(elem.tag) == "sheetData":
                        parent = elem
                    continue
                if local_name(elem.tag) == "row":
                    yield elem
                    # Free the row once the caller has moved past it.
                    elem.clear()
                    if parent is not None:
                        parent.remove(elem)
        except ET.ParseError as e:
            raise FormatError(f"Error parsing {entry.name}: {e}") from e

    def advance_row(self) -> bool:
        """
        Move to the next row in document order.

        Returns:
            bool: True when a row is available through ``current_row``;
            False once the sheet is exhausted.
        """
        self._row = []
        if self.state is SheetState.EXHAUSTED or self._rows is None:
            return False

        try:
            row_elem = next(self._rows, None)
            if row_elem is None:
                logger.debug("Sheet %r exhausted after %d rows", self.name, self.row_number)
                self.close()
                return False
            self._row = self._read_row(row_elem)
        except Exception:
            self._row = []
            self.close()
            raise

        self.row_number += 1
        self.state = SheetState.POSITIONED
        return True

    def current_row(self) -> list[Cell]:
        return list(self._row)

    def iter_rows(self) -> Iterator[list[Cell]]:
        """Yield every remaining row until the sheet is exhausted."""
        while self.advance_row():
            yield self.current_row()

    def _read_row(self, row_elem: ET.Element) -> list[Cell]:
        cells = []
        for cell_elem in row_elem:
            if local_name(cell_elem.tag) == "c":
                cells.append(self._read_cell(cell_elem, row_elem))
        return cells

    def _read_cell(self, cell_elem: ET.Element, row_elem: ET.Element) -> Cell:
        address = cell_elem.get("r")
        if address is None:
            raise FormatError(
                f"Cell without a reference in row {row_elem.get('r')} of sheet {self.name!r}"
            )
        ref = CellReference.parse(address)
        reference = ref.address

        value = self._resolve_value(cell_elem, ref, reference)
        if value is None:
            raise UnresolvedCellError(reference)

        if self.merge_ranges.is_anchor(ref):
            self.merge_ranges.record_anchor_value(ref, value)

        return Cell(reference, value)

    def _resolve_value(
        self, cell_elem: ET.Element, ref: CellReference, reference: str
    ) -> str | None:
        cell_type = cell_elem.get("t")
        style = cell_elem.get("s")

        if cell_type == "d":
            raise UnsupportedTypeError(reference, cell_type, "date cells are not supported")
        if cell_type == "e":
            raise UnsupportedTypeError(reference, cell_type, "error cells are not supported")

        if cell_type == "inlineStr":
            inline = find_child(cell_elem, "is")
            return rich_text(inline) if inline is not None else None

        value_elem = find_child(cell_elem, "v")

        if cell_type == "s":
            return self._shared_string(value_elem, reference)

        if cell_type is not None and cell_type not in LITERAL_TYPES:
            raise UnsupportedTypeError(reference, cell_type, "unknown cell type")

        if value_elem is not None:
            return value_elem.text or ""

        # No literal value: either covered by a merge range or genuinely empty.
        merged = self.merge_ranges.resolve(ref)
        if merged is not None:
            return merged
        if style is not None:
            raise UnsupportedTypeError(
                reference, cell_type, "styled cell has no literal value (number format)"
            )
        return ""

    def _shared_string(self, value_elem: ET.Element | None, reference: str) -> str:
        text = value_elem.text if value_elem is not None else None
        try:
            index = int(text or "")
        except ValueError:
            raise FormatError(
                f"Cell {reference}: invalid shared string index {text!r}"
            ) from None

        try:
            return self.index.get_shared_string(index)
        except InvalidReferenceError as e:
            raise InvalidReferenceError(index, e.count, reference) from e

    def close(self) -> None:
        """Release the worksheet part. Safe to call more than once."""
        self.state = SheetState.EXHAUSTED
        if self._rows is not None:
            close_rows = getattr(self._rows, "close", None)
            self._rows = None
            if close_rows is not None:
                close_rows()
        if self._entry is not None:
            self._entry.close()
            self._entry = None

    def __enter__(self) -> "SheetStream":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
