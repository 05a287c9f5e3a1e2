"""Example: reading a workbook served over HTTPS."""

from xlsx_text import XlsxTextReader, XlsxTextError

try:
    reader = XlsxTextReader(
        "https://example.com/data/report.xlsx",
        headers={"User-Agent": "xlsx-text"},
        timeout=60,
    )
except XlsxTextError as e:
    raise SystemExit(f"Could not open workbook: {e}") from e

with reader:
    for i, row in enumerate(reader.stream_rows(), 1):
        print(f"Row {i}: {row}")
        if i == 20:
            break
