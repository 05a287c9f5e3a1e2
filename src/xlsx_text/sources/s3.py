"""AWS S3 source."""

from collections.abc import Iterator
import logging
from typing import Any

from typing_extensions import override

from xlsx_text.errors import ArchiveError
from xlsx_text.sources.base import XLSX_MIME_TYPE, StreamSource

logger = logging.getLogger(__name__)


class S3Source(StreamSource):
    """Stream an xlsx object from S3 with a boto3 client; one GetObject per stream."""

    def __init__(
        self,
        bucket: str,
        key: str,
        client: Any = None,
        chunk_size: int = 16777216,
    ) -> None:
        """
        Args:
            bucket: S3 bucket name.
            key: Object key.
            client: boto3 S3 client; a default client is created when omitted.
            chunk_size: Bytes per chunk (default: 16MB).

        Raises:
            ImportError: If boto3 is not installed.
            ValueError: If bucket or key is empty.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 is required for S3Source. Install with: pip install xlsx-text[s3]"
            ) from e

        if not bucket or not key:
            raise ValueError("bucket and key must be non-empty")

        self.bucket = bucket
        self.key = key
        self.chunk_size = chunk_size
        self.client = client or boto3.client("s3")

        logger.info("S3Source initialized for s3://%s/%s", bucket, key)

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    @override
    def get_stream(self) -> Iterator[bytes]:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            body = self.client.get_object(Bucket=self.bucket, Key=self.key)["Body"]
            try:
                while chunk := body.read(self.chunk_size):
                    yield chunk
            finally:
                body.close()
        except (BotoCoreError, ClientError) as e:
            logger.exception("Error reading S3 object %s: %s", self.uri, e)
            raise ArchiveError(f"Failed to read S3 object {self.uri}: {e}") from e

    @override
    def get_metadata(self) -> dict[str, Any]:
        from botocore.exceptions import BotoCoreError, ClientError

        size = 0
        content_type = XLSX_MIME_TYPE
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=self.key)
            size = response.get("ContentLength", 0)
            content_type = response.get("ContentType", XLSX_MIME_TYPE)
        except (BotoCoreError, ClientError) as e:
            logger.warning("Could not retrieve metadata for %s: %s", self.uri, e)

        return {
            "size": size,
            "type": content_type,
            "source_type": "s3",
            "bucket": self.bucket,
            "key": self.key,
        }
