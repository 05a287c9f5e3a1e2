from collections.abc import Iterator
from dataclasses import dataclass
import logging
import xml.etree.ElementTree as ET

from xlsx_text.archive import ArchiveEntry
from xlsx_text.cell_reference import CellReference
from xlsx_text.errors import FormatError
from xlsx_text.ooxml import local_name

logger = logging.getLogger(__name__)


@dataclass
class MergeRange:
    """A rectangle of merged cells; only the top-left anchor holds a literal value."""

    top_left: CellReference
    bottom_right: CellReference
    resolved_value: str | None = None

    @classmethod
    def parse(cls, ref: str) -> "MergeRange":
        """Build a range from a ``mergeCell`` descriptor such as 'A1:B2' (or 'C3')."""
        first, separator, last = ref.partition(":")
        top_left = CellReference.parse(first)
        bottom_right = CellReference.parse(last) if separator else top_left
        if bottom_right.column < top_left.column or bottom_right.row < top_left.row:
            raise FormatError(f"Invalid merge range: {ref!r}")
        return cls(top_left, bottom_right)

    def contains(self, ref: CellReference) -> bool:
        return (
            self.top_left.column <= ref.column <= self.bottom_right.column
            and self.top_left.row <= ref.row <= self.bottom_right.row
        )


class MergeRangeTable:
    """
    Merge ranges of one worksheet and the anchor values read so far.

    Lookups are linear scans: worksheets carry few merge ranges.
    """

    def __init__(self, ranges: list[MergeRange] | None = None) -> None:
        self.ranges: list[MergeRange] = ranges or []

    @classmethod
    def scan(cls, entry: ArchiveEntry) -> "MergeRangeTable":
        """
        Collect every ``mergeCell`` of a worksheet part in one full pass.

        ``mergeCells`` follows ``sheetData`` in the worksheet schema, so the
        whole part has to be read; elements are cleared as they close so row
        data is never retained.

        Raises:
            FormatError: If the part is not well-formed or a range is invalid.
        """
        ranges: list[MergeRange] = []
        try:
            for _, elem in ET.iterparse(entry, events=("end",)):
                if local_name(elem.tag) == "mergeCell":
                    ref = elem.get("ref")
                    if ref:
                        ranges.append(MergeRange.parse(ref))
                elem.clear()
        except ET.ParseError as e:
            raise FormatError(f"Error parsing {entry.name}: {e}") from e

        logger.debug("Found %d merge ranges in %s", len(ranges), entry.name)
        return cls(ranges)

    def __len__(self) -> int:
        return len(self.ranges)

    def __iter__(self) -> Iterator[MergeRange]:
        return iter(self.ranges)

    def is_anchor(self, ref: CellReference) -> bool:
        """True if ``ref`` is the top-left of a range whose value is not yet known."""
        return any(r.top_left == ref and r.resolved_value is None for r in self.ranges)

    def record_anchor_value(self, ref: CellReference, value: str) -> None:
        for merge_range in self.ranges:
            if merge_range.top_left == ref and merge_range.resolved_value is None:
                merge_range.resolved_value = value

    def resolve(self, ref: CellReference) -> str | None:
        """
        Value propagated to ``ref`` from the first range enclosing it.

        None when no range encloses ``ref`` or that range's anchor has not
        been read yet.
        """
        for merge_range in self.ranges:
            if merge_range.contains(ref):
                return merge_range.resolved_value
        return None
