"""A1-style cell addresses."""

from dataclasses import dataclass
import re

from xlsx_text.errors import FormatError

_ADDRESS_PATTERN = re.compile(r"^([A-Z]+)([0-9]+)$")


def column_letters(column: int) -> str:
    """Convert a 1-based column number to its letters (1 -> 'A', 27 -> 'AA')."""
    if column < 1:
        raise FormatError(f"Column number must be >= 1, got {column}")

    letters: list[str] = []
    while column:
        column, remainder = divmod(column - 1, 26)
        letters.append(chr(ord("A") + remainder))
    return "".join(reversed(letters))


@dataclass(frozen=True)
class CellReference:
    """
    Immutable (column, row) position of a cell, both 1-based.

    Columns use bijective base-26: there is no zero digit, so
    'Z' is 26 and 'AA' is 27.
    """

    column: int
    row: int

    @classmethod
    def parse(cls, address: str) -> "CellReference":
        """
        Parse an address such as 'B7' (case-insensitive).

        Raises:
            FormatError: If the address does not match ``^[A-Z]+[0-9]+$``
                         or names row 0.
        """
        if not isinstance(address, str):
            raise FormatError(f"Invalid cell reference: {address!r}")

        match = _ADDRESS_PATTERN.match(address.strip().upper())
        if match is None:
            raise FormatError(f"Invalid cell reference: {address!r}")

        letters, digits = match.groups()
        column = 0
        for char in letters:
            column = column * 26 + (ord(char) - ord("A") + 1)

        row = int(digits)
        if row < 1:
            raise FormatError(f"Invalid cell reference: {address!r} (rows start at 1)")

        return cls(column=column, row=row)

    @classmethod
    def from_indices(cls, column: int, row: int) -> "CellReference":
        if column < 1 or row < 1:
            raise FormatError(f"Invalid cell position: column={column}, row={row}")
        return cls(column=column, row=row)

    @property
    def column_letters(self) -> str:
        return column_letters(self.column)

    @property
    def address(self) -> str:
        return f"{self.column_letters}{self.row}"

    def __str__(self) -> str:
        return self.address
