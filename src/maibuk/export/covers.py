# ABOUTME: Resolves a book's cover into image bytes for export.
# ABOUTME: Handles stored blobs, data URIs, local files, and remote URLs with retry.

import base64
import binascii
import logging
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import unquote_to_bytes

import httpx

from maibuk import __version__
from maibuk.models.types import Book

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


class CoverFetchError(Exception):
    """Raised when a cover image cannot be loaded from its source."""


@dataclass(frozen=True)
class CoverImage:
    """Cover image bytes ready to embed in an export."""

    data: bytes
    media_type: str

    @property
    def file_name(self) -> str:
        return f"images/cover.{_EXTENSIONS.get(self.media_type, 'img')}"

    def as_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for fetching binary resources over HTTP."""

    def get_bytes(self, url: str) -> tuple[bytes, str | None]: ...


class CoverHttpClient:
    """HTTP client with retry for cover image downloads.

    Wraps httpx.Client and retries transient failures (429, 5xx) with
    exponential backoff.
    """

    def __init__(
        self,
        *,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": f"maibuk/{__version__}"},
            "timeout": 30.0,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def get_bytes(self, url: str) -> tuple[bytes, str | None]:
        """Download a resource.

        Returns:
            The body and its media type (without parameters), if the server sent one.

        Raises:
            CoverFetchError: On non-retryable HTTP errors or exhausted retries.
        """
        attempts = 1 + self._max_retries
        last_status = 0
        for attempt in range(attempts):
            try:
                response = self._client.get(url)
                last_status = response.status_code
            except httpx.HTTPError as exc:
                raise CoverFetchError(f"Request failed: {url}: {exc}") from exc

            if response.status_code == 200:
                content_type = response.headers.get("content-type")
                media_type = content_type.split(";")[0].strip() if content_type else None
                return response.content, media_type

            if response.status_code not in _RETRYABLE_STATUS_CODES:
                raise CoverFetchError(f"HTTP {response.status_code} from {url}")

            if attempt < attempts - 1:
                delay = self._retry_delay * (2**attempt)
                logger.warning(
                    "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code,
                    url,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                time.sleep(delay)

        raise CoverFetchError(f"HTTP {last_status} from {url} after {attempts} attempts")

    def close(self) -> None:
        self._client.close()


def _sniff_media_type(data: bytes) -> str | None:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def decode_data_uri(uri: str) -> CoverImage:
    """Decode a ``data:`` URI into image bytes.

    Raises:
        CoverFetchError: If the URI is malformed.
    """
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:"):
        raise CoverFetchError("Malformed data URI")

    params = header[len("data:") :].split(";")
    media_type = params[0] or "application/octet-stream"
    if "base64" in params[1:]:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CoverFetchError(f"Invalid base64 in data URI: {exc}") from exc
    else:
        data = unquote_to_bytes(payload)
    return CoverImage(data=data, media_type=media_type)


def _read_local_cover(path: Path) -> CoverImage:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise CoverFetchError(f"Cannot read cover file {path}: {exc}") from exc
    guessed, _ = mimetypes.guess_type(path.name)
    media_type = guessed or _sniff_media_type(data) or "application/octet-stream"
    return CoverImage(data=data, media_type=media_type)


def load_cover(book: Book, client: HttpClient | None = None) -> CoverImage | None:
    """Load a book's cover image, or None if it has none.

    cover_image_path may be a data URI, an http(s) URL, or a local file path.

    Raises:
        CoverFetchError: If the cover source exists but cannot be loaded.
    """
    source = book.cover_image_path
    if not source:
        return None

    if source.startswith("data:"):
        return decode_data_uri(source)

    if source.startswith(("http://", "https://")):
        owned = client is None
        http = client or CoverHttpClient()
        try:
            data, media_type = http.get_bytes(source)
        finally:
            if owned and isinstance(http, CoverHttpClient):
                http.close()
        return CoverImage(
            data=data,
            media_type=media_type or _sniff_media_type(data) or "image/jpeg",
        )

    return _read_local_cover(Path(source).expanduser())


def resolve_cover(
    book: Book, client: HttpClient | None = None
) -> tuple[CoverImage | None, list[str]]:
    """Load a cover for export, downgrading failures to a warning.

    Returns:
        The cover (or None) and any warnings produced while loading it.
    """
    try:
        return load_cover(book, client), []
    except CoverFetchError as exc:
        logger.warning("Skipping cover for %s: %s", book.title, exc)
        return None, [f"Cover image could not be loaded: {exc}"]
