"""Byte sources the archive layer can re-stream from the start."""

from xlsx_text.sources.base import StreamSource
from xlsx_text.sources.fileobj import FileObjectSource
from xlsx_text.sources.http import HTTPSource
from xlsx_text.sources.local import LocalFileSource
from xlsx_text.sources.s3 import S3Source

__all__ = [
    "FileObjectSource",
    "HTTPSource",
    "LocalFileSource",
    "S3Source",
    "StreamSource",
]
