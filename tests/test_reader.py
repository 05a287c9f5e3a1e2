"""Tests for the XlsxTextReader public API."""

from collections.abc import Callable
import io
from pathlib import Path
import tempfile

import openpyxl
import pytest

import xlsx_text
from conftest import build_xlsx, worksheet_xml
from xlsx_text.errors import ArchiveError, UnsupportedTypeError
from xlsx_text.reader import XlsxTextReader
from xlsx_text.sheet_stream import Cell, SheetState
from xlsx_text.sources.fileobj import FileObjectSource
from xlsx_text.sources.local import LocalFileSource

TWO_SHEETS_ROWS = '<row r="1"><c r="A1" t="s"><v>0</v></c><c r="B1" t="s"><v>1</v></c></row>'


def two_sheet_workbook() -> bytes:
    return build_xlsx(
        [("Data", worksheet_xml(TWO_SHEETS_ROWS)), ("Empty", worksheet_xml())],
        shared_strings=["X", "Y"],
    )


class NonSeekable(io.RawIOBase):
    """Readable stream that refuses to seek, like a pipe or socket."""

    def __init__(self, data: bytes) -> None:
        self._data = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, buffer: bytearray) -> int:  # type: ignore[override]
        chunk = self._data.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)


def test_two_sheet_walkthrough(xlsx_file: Callable[..., Path]) -> None:
    """Test advancing through sheets and rows of a two-sheet workbook."""
    path = xlsx_file(
        [("Data", worksheet_xml(TWO_SHEETS_ROWS)), ("Empty", worksheet_xml())],
        shared_strings=["X", "Y"],
    )

    with xlsx_text.open(str(path)) as reader:
        assert reader.sheet_count() == 2
        assert reader.sheet_name is None

        assert reader.advance_sheet()
        assert reader.sheet_name == "Data"
        sheet = reader.sheet
        assert sheet is not None
        assert sheet.advance_row()
        assert sheet.current_row() == [Cell("A1", "X"), Cell("B1", "Y")]
        assert not sheet.advance_row()

        assert reader.advance_sheet()
        assert reader.sheet_name == "Empty"
        assert sheet.state is SheetState.EXHAUSTED
        assert reader.sheet is not None
        assert not reader.sheet.advance_row()

        assert not reader.advance_sheet()
        assert reader.sheet is None
        assert not reader.advance_sheet()


def test_advancing_closes_previous_sheet() -> None:
    """Test the previous sheet is released even if it was not fully read."""
    with XlsxTextReader(io.BytesIO(two_sheet_workbook())) as reader:
        reader.advance_sheet()
        first = reader.sheet
        assert first is not None

        reader.advance_sheet()
        assert first.state is SheetState.EXHAUSTED
        assert not first.advance_row()


def test_iter_sheets() -> None:
    """Test iterating sheets and their rows."""
    with XlsxTextReader(io.BytesIO(two_sheet_workbook())) as reader:
        result = {
            sheet.name: [[cell.value for cell in row] for row in sheet.iter_rows()]
            for sheet in reader.iter_sheets()
        }

    assert result == {"Data": [["X", "Y"]], "Empty": []}


def test_iter_sheets_tracks_current_sheet() -> None:
    """Test each yielded sheet is the reader's current sheet and iteration ends cleanly."""
    with XlsxTextReader(io.BytesIO(two_sheet_workbook())) as reader:
        seen = []
        for sheet in reader.iter_sheets():
            assert sheet is reader.sheet
            assert reader.sheet_name == sheet.name
            seen.append(sheet.name)

        assert seen == ["Data", "Empty"]
        assert reader.sheet is None
        assert not reader.advance_sheet()


def test_open_accepts_path_like(xlsx_file: Callable[..., Path]) -> None:
    """Test open() with a pathlib.Path."""
    path = xlsx_file([("Only", worksheet_xml())])

    with xlsx_text.open(path) as reader:
        assert isinstance(reader.source, LocalFileSource)
        assert reader.sheet_names() == ["Only"]


def test_open_accepts_file_object() -> None:
    """Test open() with a seekable binary file object, which stays open."""
    buffer = io.BytesIO(two_sheet_workbook())

    with xlsx_text.open(buffer) as reader:
        assert isinstance(reader.source, FileObjectSource)
        assert reader.sheet_names() == ["Data", "Empty"]

    assert not buffer.closed


def test_open_accepts_non_seekable_stream() -> None:
    """Test a non-seekable stream is spooled and still fully readable."""
    with xlsx_text.open(NonSeekable(two_sheet_workbook())) as reader:
        assert reader.advance_sheet()
        assert reader.sheet is not None
        assert reader.sheet.advance_row()
        assert [cell.value for cell in reader.sheet.current_row()] == ["X", "Y"]


def test_open_missing_file() -> None:
    """Test a nonexistent path raises ArchiveError."""
    with pytest.raises(ArchiveError, match="File not found"):
        xlsx_text.open("/nonexistent/path/file.xlsx")


def test_open_not_a_zip(tmp_path: Path) -> None:
    """Test a file that is not a ZIP container raises ArchiveError."""
    path = tmp_path / "fake.xlsx"
    path.write_bytes(b"test")

    with pytest.raises(ArchiveError):
        xlsx_text.open(path)


def test_open_without_workbook_part(xlsx_file: Callable[..., Path]) -> None:
    """Test a container lacking xl/workbook.xml raises ArchiveError."""
    path = xlsx_file([("Sheet1", worksheet_xml())], omit=["xl/workbook.xml"])

    with pytest.raises(ArchiveError, match="xl/workbook.xml"):
        xlsx_text.open(path)


def test_open_unsupported_source() -> None:
    """Test a source of an unknown kind raises ArchiveError."""
    with pytest.raises(ArchiveError, match="Unsupported"):
        xlsx_text.open(12345)  # type: ignore[arg-type]


def test_error_propagates_from_row() -> None:
    """Test a failing cell surfaces through the reader unchanged."""
    rows = '<row r="1"><c r="A1" t="e"><v>#DIV/0!</v></c></row>'
    data = build_xlsx([("Broken", worksheet_xml(rows))])

    with XlsxTextReader(io.BytesIO(data)) as reader:
        assert reader.advance_sheet()
        assert reader.sheet is not None
        with pytest.raises(UnsupportedTypeError, match="A1"):
            reader.sheet.advance_row()


def test_closed_reader_has_no_more_sheets() -> None:
    """Test advance_sheet returns False after close."""
    reader = XlsxTextReader(io.BytesIO(two_sheet_workbook()))
    reader.advance_sheet()
    sheet = reader.sheet
    reader.close()

    assert reader.sheet is None
    assert sheet is not None and sheet.state is SheetState.EXHAUSTED
    assert not reader.advance_sheet()


def test_stream_rows_pads_by_column() -> None:
    """Test stream_rows positions values by column."""
    rows = (
        '<row r="1"><c r="A1" t="str"><v>a</v></c><c r="C1" t="str"><v>c</v></c></row>'
        '<row r="2"><c r="B2" t="str"><v>b</v></c></row>'
    )
    data = build_xlsx([("Sheet1", worksheet_xml(rows))])

    with XlsxTextReader(io.BytesIO(data)) as reader:
        assert list(reader.stream_rows()) == [["a", "", "c"], ["", "b"]]


def test_stream_rows_by_sheet_name() -> None:
    """Test stream_rows selects a sheet by name and rejects unknown names."""
    with XlsxTextReader(io.BytesIO(two_sheet_workbook())) as reader:
        assert list(reader.stream_rows("Empty")) == []
        assert list(reader.stream_rows("Data")) == [["X", "Y"]]

        with pytest.raises(ValueError, match="not found"):
            list(reader.stream_rows("Missing"))


def test_open_sheet_is_independent_of_advance() -> None:
    """Test open_sheet does not move the advance_sheet cursor."""
    with XlsxTextReader(io.BytesIO(two_sheet_workbook())) as reader:
        with reader.open_sheet("Empty") as sheet:
            assert sheet.name == "Empty"

        assert reader.advance_sheet()
        assert reader.sheet_name == "Data"


def test_openpyxl_round_trip(tmp_path: Path) -> None:
    """Test text, numbers and booleans from an openpyxl workbook."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Sheet"
    ws.append(["Name", "Qty", "Price", "Active"])
    ws.append(["Widget", 3, 2.5, True])
    ws.append(["Gadget", -1, 10, False])
    path = tmp_path / "openpyxl.xlsx"
    wb.save(path)

    with XlsxTextReader(path) as reader:
        rows = list(reader.stream_rows("Sheet"))

    assert rows == [
        ["Name", "Qty", "Price", "Active"],
        ["Widget", "3", "2.5", "1"],
        ["Gadget", "-1", "10", "0"],
    ]


def test_to_csv_path_and_file_objects(tmp_path: Path) -> None:
    """Test CSV export to a path, a text stream and a binary stream."""
    rows = (
        '<row r="1"><c r="A1" t="str"><v>a,b</v></c><c r="C1" t="str"><v>c</v></c></row>'
        '<row r="2"><c r="A2" t="n"><v>1</v></c></row>'
    )
    data = build_xlsx([("Sheet1", worksheet_xml(rows))])
    expected = '"a,b",,c\r\n1\r\n'

    with XlsxTextReader(io.BytesIO(data)) as reader:
        csv_path = tmp_path / "out.csv"
        assert reader.to_csv(csv_path) == 2
        assert csv_path.read_bytes().decode("utf-8") == expected

        text = io.StringIO()
        reader.to_csv(text)
        assert text.getvalue() == expected

        binary = io.BytesIO()
        reader.to_csv(binary, delimiter=";")
        assert binary.getvalue().decode("utf-8") == "a,b;;c\r\n1\r\n"
        assert not binary.closed


def test_to_csv_text_mode_temporary_files() -> None:
    """Test CSV export to text-mode tempfile objects, which are not TextIOBase instances."""
    rows = '<row r="1"><c r="A1" t="str"><v>x</v></c><c r="B1" t="n"><v>2</v></c></row>'
    data = build_xlsx([("Sheet1", worksheet_xml(rows))])

    with XlsxTextReader(io.BytesIO(data)) as reader:
        with tempfile.NamedTemporaryFile("w+", newline="", encoding="utf-8") as named:
            assert reader.to_csv(named) == 1
            named.seek(0)
            assert named.read() == "x,2\r\n"

        with tempfile.SpooledTemporaryFile(mode="w+", newline="", encoding="utf-8") as spooled:
            assert reader.to_csv(spooled) == 1
            spooled.seek(0)
            assert spooled.read() == "x,2\r\n"

        with tempfile.NamedTemporaryFile("w+b") as binary:
            assert reader.to_csv(binary) == 1
            binary.seek(0)
            assert binary.read() == b"x,2\r\n"


def test_get_metadata() -> None:
    """Test metadata comes from the source."""
    data = two_sheet_workbook()
    with XlsxTextReader(io.BytesIO(data)) as reader:
        metadata = reader.get_metadata()

    assert metadata["source_type"] == "fileobj"
    assert metadata["size"] == len(data)


def test_create_source_s3() -> None:
    """Test an s3:// URI selects S3Source."""
    pytest.importorskip("boto3")
    from xlsx_text.sources.s3 import S3Source

    source = XlsxTextReader._create_source(
        "s3://my-bucket/path/to/file.xlsx", 16777216, {"client": object()}
    )
    assert isinstance(source, S3Source)
    assert source.bucket == "my-bucket"
    assert source.key == "path/to/file.xlsx"


def test_create_source_http() -> None:
    """Test an https:// URL selects HTTPSource and forwards options."""
    pytest.importorskip("httpx")
    from xlsx_text.sources.http import HTTPSource

    source = XlsxTextReader._create_source(
        "https://example.com/file.xlsx", 8192, {"timeout": 5, "client": "ignored"}
    )
    assert isinstance(source, HTTPSource)
    assert source.timeout == 5
    assert source.chunk_size == 8192


def test_invalid_s3_uri() -> None:
    """Test an S3 URI without a key is rejected."""
    pytest.importorskip("boto3")
    with pytest.raises(ValueError, match="Invalid S3 URI"):
        XlsxTextReader._create_source("s3://bucket-only", 16777216, {})


def test_stream_source_instance_is_used_directly() -> None:
    """Test a StreamSource passes through unchanged."""

    source = FileObjectSource(io.BytesIO(two_sheet_workbook()))
    with XlsxTextReader(source) as reader:
        assert reader.source is source
