"""Command-line interface: xlsx sheets to CSV."""

import logging
import sys

import typer

from xlsx_text.errors import XlsxTextError
from xlsx_text.reader import XlsxTextReader

app = typer.Typer(add_completion=False)


@app.command()
def main(
    source: str = typer.Argument(
        ...,
        help="Workbook: /path/to/file.xlsx, s3://bucket/key, or https://url",
    ),
    sheet_name: str | None = typer.Option(
        None,
        help="Sheet to export (default: first sheet)",
    ),
    output: str | None = typer.Option(
        None,
        help="Output CSV file path (default: stdout)",
    ),
    list_sheets: bool = typer.Option(
        False,
        "--list-sheets",
        help="Print the sheet names in workbook order and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Export the text of an xlsx sheet as CSV.

    Shared strings are resolved and merged ranges repeat their top-left
    value in every covered cell.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)

    try:
        with XlsxTextReader(source) as reader:
            if list_sheets:
                for name in reader.sheet_names():
                    typer.echo(name)
                return

            if output:
                row_count = reader.to_csv(output, sheet_name=sheet_name)
                typer.echo(f"CSV written to: {output} ({row_count} rows)", err=True)
            else:
                reader.to_csv(sys.stdout.buffer, sheet_name=sheet_name)
                sys.stdout.buffer.flush()

    except ImportError as e:
        typer.echo(
            f"Error: Missing dependency: {e}\nInstall with: pip install xlsx-text[all]",
            err=True,
        )
        raise typer.Exit(code=1) from None
    except (XlsxTextError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        raise typer.Exit(code=1) from None


if __name__ == "__main__":
    app()
