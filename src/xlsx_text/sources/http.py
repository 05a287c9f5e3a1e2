"""HTTP/HTTPS source."""

from collections.abc import Iterator
import logging
from typing import Any

from typing_extensions import override

from xlsx_text.errors import ArchiveError
from xlsx_text.sources.base import XLSX_MIME_TYPE, StreamSource

logger = logging.getLogger(__name__)


class HTTPSource(StreamSource):
    """
    Stream an xlsx container from an HTTP/HTTPS URL with httpx.

    Each ``get_stream`` issues a fresh GET. The archive layer downloads the
    container once into a spooled temporary file and reads parts from there.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        timeout: int = 30,
        chunk_size: int = 16777216,
    ) -> None:
        """
        Args:
            url: HTTP/HTTPS URL of the xlsx file.
            headers: Extra request headers.
            auth: (username, password) for basic auth.
            timeout: Request timeout in seconds (default: 30).
            chunk_size: Bytes per chunk (default: 16MB).

        Raises:
            ImportError: If httpx is not installed.
            ValueError: If the URL is not HTTP/HTTPS.
        """
        try:
            import httpx  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "httpx is required for HTTPSource. Install with: pip install xlsx-text[http]"
            ) from e

        if not url or not url.startswith(("http://", "https://")):
            raise ValueError("url must be a valid HTTP/HTTPS URL")

        self.url = url
        self.headers = headers or {}
        self.auth = auth
        self.timeout = timeout
        self.chunk_size = chunk_size

        logger.info("HTTPSource initialized for %s", url)

    @override
    def get_stream(self) -> Iterator[bytes]:
        import httpx

        try:
            with httpx.stream(
                "GET",
                self.url,
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
                follow_redirects=True,
            ) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                    if chunk:
                        yield chunk
        except httpx.HTTPError as e:
            logger.exception("Error reading from %s: %s", self.url, e)
            raise ArchiveError(f"Failed to read from {self.url}: {e}") from e

    @override
    def get_metadata(self) -> dict[str, Any]:
        import httpx

        size = 0
        content_type = XLSX_MIME_TYPE
        try:
            response = httpx.head(
                self.url,
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
            size = int(response.headers.get("content-length") or 0)
            content_type = response.headers.get("content-type", XLSX_MIME_TYPE)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Could not retrieve metadata for %s: %s", self.url, e)

        return {
            "size": size,
            "type": content_type,
            "source_type": "http",
            "url": self.url,
        }
