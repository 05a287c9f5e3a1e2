"""xlsx-text: stream cell text out of xlsx workbooks, row by row."""

from xlsx_text.cell_reference import CellReference
from xlsx_text.errors import (
    ArchiveError,
    FormatError,
    InvalidReferenceError,
    UnresolvedCellError,
    UnsupportedTypeError,
    XlsxTextError,
)
from xlsx_text.reader import XlsxTextReader, open
from xlsx_text.sheet_stream import Cell, SheetState, SheetStream

__all__ = [
    "ArchiveError",
    "Cell",
    "CellReference",
    "FormatError",
    "InvalidReferenceError",
    "SheetState",
    "SheetStream",
    "UnresolvedCellError",
    "UnsupportedTypeError",
    "XlsxTextError",
    "XlsxTextReader",
    "open",
]
