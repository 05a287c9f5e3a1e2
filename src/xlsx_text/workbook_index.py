from collections.abc import Iterable
import logging
import posixpath
from types import MappingProxyType
from typing import NamedTuple
import xml.etree.ElementTree as ET

from xlsx_text.archive import Archive, ArchiveEntry
from xlsx_text.errors import ArchiveError, FormatError, InvalidReferenceError
from xlsx_text.ooxml import XlsxNamespaces, XlsxPaths, local_name, rich_text

logger = logging.getLogger(__name__)

# Bytes fed to the shared-string pull parser at a time.
CHUNK_SIZE = 64 * 1024


class SheetInfo(NamedTuple):
    name: str
    part_path: str


class WorkbookIndex:
    """
    Workbook-level metadata needed to stream any sheet.

    Holds the relationship map, the ordered sheet list and the shared-string
    table. Built once by ``load`` and never modified afterwards.
    """

    def __init__(
        self,
        relationships: dict[str, str],
        sheets: Iterable[SheetInfo],
        shared_strings: Iterable[str],
    ) -> None:
        self.relationships = MappingProxyType(dict(relationships))
        self.sheets: tuple[SheetInfo, ...] = tuple(sheets)
        self.shared_strings: tuple[str, ...] = tuple(shared_strings)

    @classmethod
    def load(cls, archive: Archive) -> "WorkbookIndex":
        """
        Read relationships, then the sheet list, then the shared strings.

        Raises:
            ArchiveError: If the relationships or workbook part is missing.
            FormatError: If any of the parts is not well-formed.
        """
        relationships = _parse_relationships(_read_required(archive, XlsxPaths.WORKBOOK_RELS))
        sheets = _parse_sheets(_read_required(archive, XlsxPaths.WORKBOOK), relationships)

        shared_strings: list[str] = []
        entry = archive.open_entry(XlsxPaths.SHARED_STRINGS.value)
        if entry is None:
            logger.debug("No shared strings part, using an empty table")
        else:
            with entry:
                shared_strings = _parse_shared_strings(entry)

        logger.info(
            "Workbook index loaded: %d sheets, %d shared strings",
            len(sheets),
            len(shared_strings),
        )
        return cls(relationships, sheets, shared_strings)

    @property
    def sheet_count(self) -> int:
        return len(self.sheets)

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]

    @property
    def shared_string_count(self) -> int:
        return len(self.shared_strings)

    def get_shared_string(self, index: int) -> str:
        """
        Return the shared string at ``index``.

        Raises:
            InvalidReferenceError: If index is negative or past the end of the table.
        """
        if not 0 <= index < len(self.shared_strings):
            raise InvalidReferenceError(index, len(self.shared_strings))
        return self.shared_strings[index]


def _read_required(archive: Archive, part: XlsxPaths) -> bytes:
    entry = archive.open_entry(part.value)
    if entry is None:
        raise ArchiveError(f"Missing required part: {part.value}")
    with entry:
        return entry.read()


def _resolve_target(target: str) -> str:
    # Targets are relative to xl/ unless package-absolute ("/xl/worksheets/sheet1.xml").
    if target.startswith("/"):
        return posixpath.normpath(target.lstrip("/"))
    return posixpath.normpath(f"xl/{target}")


def _parse_relationships(data: bytes) -> dict[str, str]:
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise FormatError(f"Error parsing {XlsxPaths.WORKBOOK_RELS.value}: {e}") from e

    relationships: dict[str, str] = {}
    for elem in root:
        if local_name(elem.tag) != "Relationship":
            continue
        rel_id = elem.get("Id")
        target = elem.get("Target")
        if not rel_id or not target:
            raise FormatError(
                f"Relationship without Id or Target in {XlsxPaths.WORKBOOK_RELS.value}"
            )
        # External links (hyperlinks, linked workbooks) are not parts of this package.
        if elem.get("TargetMode") == "External":
            continue
        relationships[rel_id] = _resolve_target(target)

    logger.debug("Parsed %d workbook relationships", len(relationships))
    return relationships


def _parse_sheets(data: bytes, relationships: dict[str, str]) -> list[SheetInfo]:
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise FormatError(f"Error parsing {XlsxPaths.WORKBOOK.value}: {e}") from e

    rel_id_attribute = f"{{{XlsxNamespaces.REL.value}}}id"
    sheets: list[SheetInfo] = []

    for sheets_elem in root:
        if local_name(sheets_elem.tag) != "sheets":
            continue
        for sheet_elem in sheets_elem:
            if local_name(sheet_elem.tag) != "sheet":
                continue
            name = sheet_elem.get("name", "")
            rel_id = sheet_elem.get(rel_id_attribute)
            if rel_id is None or rel_id not in relationships:
                raise FormatError(f"Sheet {name!r} has no matching relationship (r:id={rel_id!r})")
            sheets.append(SheetInfo(name, relationships[rel_id]))

    return sheets


def _parse_shared_strings(entry: ArchiveEntry) -> list[str]:
    """Stream-parse the shared-string table, one entry per ``si`` item."""
    shared_strings: list[str] = []
    parser = ET.XMLPullParser(events=("end",))

    try:
        while chunk := entry.read(CHUNK_SIZE):
            parser.feed(chunk)
            _collect_items(parser, shared_strings)
        parser.close()
        _collect_items(parser, shared_strings)
    except ET.ParseError as e:
        raise FormatError(f"Error parsing {XlsxPaths.SHARED_STRINGS.value}: {e}") from e

    return shared_strings


def _collect_items(parser: ET.XMLPullParser, shared_strings: list[str]) -> None:
    for _, elem in parser.read_events():
        if local_name(elem.tag) == "si":
            shared_strings.append(rich_text(elem))
            elem.clear()
