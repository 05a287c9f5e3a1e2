"""Shared fixtures: hand-built xlsx packages with exact XML shapes."""

from collections.abc import Callable, Sequence
import io
from pathlib import Path
from xml.sax.saxutils import escape
import zipfile

import pytest

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PACKAGE_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
WORKSHEET_TYPE = f"{REL_NS}/worksheet"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'


def worksheet_xml(rows: str = "", merge_refs: Sequence[str] = (), merge_first: bool = False) -> str:
    """Worksheet part with the given <row> markup and optional mergeCells section."""
    merge = ""
    if merge_refs:
        items = "".join(f'<mergeCell ref="{ref}"/>' for ref in merge_refs)
        merge = f'<mergeCells count="{len(merge_refs)}">{items}</mergeCells>'

    body = f"{merge}<sheetData>{rows}</sheetData>" if merge_first else (
        f"<sheetData>{rows}</sheetData>{merge}"
    )
    return f'{XML_DECLARATION}<worksheet xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">{body}</worksheet>'


def shared_strings_xml(items: Sequence[str]) -> str:
    """Shared-string part; each item is raw <si> inner markup."""
    body = "".join(f"<si>{item}</si>" for item in items)
    return (
        f'{XML_DECLARATION}<sst xmlns="{MAIN_NS}" count="{len(items)}" '
        f'uniqueCount="{len(items)}">{body}</sst>'
    )


def plain_items(values: Sequence[str]) -> list[str]:
    return [f"<t>{escape(value)}</t>" for value in values]


def build_xlsx(
    sheets: Sequence[tuple[str, str]],
    shared_strings: Sequence[str] | None = None,
    shared_string_items: Sequence[str] | None = None,
    absolute_targets: bool = False,
    omit: Sequence[str] = (),
) -> bytes:
    """
    Assemble an xlsx container in memory.

    Args:
        sheets: (sheet name, worksheet XML) pairs in workbook order.
        shared_strings: Plain shared strings.
        shared_string_items: Raw <si> inner markup; overrides shared_strings.
        absolute_targets: Write relationship targets as '/xl/worksheets/...'.
        omit: Part names to leave out of the container.
    """
    parts: dict[str, str] = {}

    sheet_elems = []
    rel_elems = []
    for number, (name, xml) in enumerate(sheets, start=1):
        part = f"worksheets/sheet{number}.xml"
        parts[f"xl/{part}"] = xml
        target = f"/xl/{part}" if absolute_targets else part
        sheet_elems.append(f'<sheet name="{escape(name)}" sheetId="{number}" r:id="rId{number}"/>')
        rel_elems.append(
            f'<Relationship Id="rId{number}" Type="{WORKSHEET_TYPE}" Target="{target}"/>'
        )

    rel_elems.append(
        f'<Relationship Id="rIdStyles" Type="{REL_NS}/styles" Target="styles.xml"/>'
    )
    parts["xl/workbook.xml"] = (
        f'{XML_DECLARATION}<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
        f"<sheets>{''.join(sheet_elems)}</sheets></workbook>"
    )
    parts["xl/_rels/workbook.xml.rels"] = (
        f'{XML_DECLARATION}<Relationships xmlns="{PACKAGE_REL_NS}">'
        f"{''.join(rel_elems)}</Relationships>"
    )

    items = shared_string_items
    if items is None and shared_strings is not None:
        items = plain_items(shared_strings)
    if items is not None:
        parts["xl/sharedStrings.xml"] = shared_strings_xml(items)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in parts.items():
            if name not in omit:
                zf.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def xlsx_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing ``build_xlsx`` output to a file under tmp_path."""
    counter = 0

    def _make(*args: object, **kwargs: object) -> Path:
        nonlocal counter
        counter += 1
        path = tmp_path / f"book{counter}.xlsx"
        path.write_bytes(build_xlsx(*args, **kwargs))  # type: ignore[arg-type]
        return path

    return _make
