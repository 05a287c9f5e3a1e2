"""Exception hierarchy for xlsx-text."""


class XlsxTextError(Exception):
    """Base class for every error raised by xlsx-text."""


class ArchiveError(XlsxTextError, OSError):
    """The container cannot be opened or a required part is missing."""


class FormatError(XlsxTextError, ValueError):
    """Malformed cell address, XML part, or workbook structure."""


class InvalidReferenceError(XlsxTextError, IndexError):
    """A shared-string index points outside the shared-string table."""

    def __init__(self, index: int, count: int, reference: str | None = None) -> None:
        self.index = index
        self.count = count
        self.reference = reference
        message = f"Shared string index {index} out of range (table has {count} entries)"
        if reference:
            message = f"Cell {reference}: {message}"
        super().__init__(message)


class UnsupportedTypeError(XlsxTextError):
    """The cell holds a value this reader does not resolve to text."""

    def __init__(self, reference: str, cell_type: str | None, reason: str) -> None:
        self.reference = reference
        self.cell_type = cell_type
        super().__init__(f"Cannot read cell {reference} (type={cell_type!r}): {reason}")


class UnresolvedCellError(XlsxTextError):
    """No resolution rule produced a value for the cell."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Cannot resolve the value of cell {reference}")
