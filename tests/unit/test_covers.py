# ABOUTME: Unit tests for cover image loading.
# ABOUTME: Covers data URIs, local files, HTTP retry via a fake transport, and warning fallbacks.

import base64
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from maibuk.export.covers import (
    CoverFetchError,
    CoverHttpClient,
    CoverImage,
    HttpClient,
    decode_data_uri,
    load_cover,
    resolve_cover,
)
from maibuk.models.types import Book

BookFactory = Callable[..., Book]

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x01" * 16


class FakeTransport(httpx.BaseTransport):
    """Fake transport for httpx that returns canned responses."""

    def __init__(self, responses: list[httpx.Response] | None = None) -> None:
        self._responses = list(responses or [])
        self._call_count = 0

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self._call_count += 1
        if self._responses:
            return self._responses.pop(0)
        return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})

    @property
    def call_count(self) -> int:
        return self._call_count


class TestCoverImage:
    """Tests for CoverImage."""

    def test_file_name_follows_media_type(self) -> None:
        """The packaged file extension comes from the media type."""
        assert CoverImage(b"", "image/jpeg").file_name == "images/cover.jpg"
        assert CoverImage(b"", "image/png").file_name == "images/cover.png"

    def test_data_uri_round_trip(self) -> None:
        """A cover encoded as a data URI decodes to the same bytes."""
        cover = CoverImage(PNG_BYTES, "image/png")
        assert decode_data_uri(cover.as_data_uri()) == cover


class TestDecodeDataUri:
    """Tests for decode_data_uri."""

    def test_base64_payload(self) -> None:
        """Base64 payloads are decoded with their media type."""
        uri = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
        assert decode_data_uri(uri) == CoverImage(PNG_BYTES, "image/png")

    def test_percent_encoded_payload(self) -> None:
        """Non-base64 payloads are percent-decoded."""
        cover = decode_data_uri("data:image/svg+xml,%3Csvg%2F%3E")
        assert cover.data == b"<svg/>"
        assert cover.media_type == "image/svg+xml"

    def test_malformed_uri_raises(self) -> None:
        """A URI without a payload separator is rejected."""
        with pytest.raises(CoverFetchError, match="Malformed"):
            decode_data_uri("data:image/png;base64")

    def test_bad_base64_raises(self) -> None:
        """Invalid base64 is reported as a fetch error."""
        with pytest.raises(CoverFetchError, match="base64"):
            decode_data_uri("data:image/png;base64,***")


class TestCoverHttpClient:
    """Tests for CoverHttpClient."""

    def test_satisfies_protocol(self) -> None:
        """CoverHttpClient satisfies the HttpClient protocol."""
        client = CoverHttpClient(transport=FakeTransport())
        assert isinstance(client, HttpClient)
        client.close()

    def test_user_agent_header(self) -> None:
        """Requests identify the application."""
        client = CoverHttpClient(transport=FakeTransport())
        assert "maibuk/" in client._client.headers["user-agent"]
        client.close()

    def test_returns_body_and_media_type(self) -> None:
        """A 200 response yields its bytes and bare media type."""
        transport = FakeTransport(
            [httpx.Response(200, content=b"jpeg", headers={"content-type": "image/jpeg; q=1"})]
        )
        client = CoverHttpClient(transport=transport)
        assert client.get_bytes("https://example.com/c.jpg") == (b"jpeg", "image/jpeg")

    def test_retries_server_errors(self) -> None:
        """Transient 5xx responses are retried until success."""
        transport = FakeTransport([httpx.Response(503), httpx.Response(502)])
        client = CoverHttpClient(retry_delay=0.0, transport=transport)
        data, _ = client.get_bytes("https://example.com/c.png")
        assert data == PNG_BYTES
        assert transport.call_count == 3

    def test_gives_up_after_max_retries(self) -> None:
        """Persistent 429s exhaust the retry budget."""
        transport = FakeTransport([httpx.Response(429) for _ in range(5)])
        client = CoverHttpClient(max_retries=2, retry_delay=0.0, transport=transport)
        with pytest.raises(CoverFetchError, match="after 3 attempts"):
            client.get_bytes("https://example.com/c.png")
        assert transport.call_count == 3

    def test_not_found_is_not_retried(self) -> None:
        """A 404 fails immediately."""
        transport = FakeTransport([httpx.Response(404)])
        client = CoverHttpClient(retry_delay=0.0, transport=transport)
        with pytest.raises(CoverFetchError, match="HTTP 404"):
            client.get_bytes("https://example.com/c.png")
        assert transport.call_count == 1


class TestLoadCover:
    """Tests for load_cover and resolve_cover."""

    def test_no_cover(self, make_book: BookFactory) -> None:
        """Books without a cover reference load nothing."""
        assert load_cover(make_book()) is None

    def test_local_file(self, make_book: BookFactory, tmp_path: Path) -> None:
        """A filesystem path is read and typed from its extension."""
        path = tmp_path / "cover.png"
        path.write_bytes(PNG_BYTES)
        cover = load_cover(make_book(cover_image_path=str(path)))
        assert cover == CoverImage(PNG_BYTES, "image/png")

    def test_remote_url_uses_client(self, make_book: BookFactory) -> None:
        """http(s) references are downloaded through the supplied client."""
        client = CoverHttpClient(transport=FakeTransport())
        cover = load_cover(make_book(cover_image_path="https://example.com/c.png"), client)
        assert cover == CoverImage(PNG_BYTES, "image/png")

    def test_remote_media_type_sniffed(self, make_book: BookFactory) -> None:
        """Without a content type header the bytes decide the media type."""
        transport = FakeTransport([httpx.Response(200, content=PNG_BYTES)])
        client = CoverHttpClient(transport=transport)
        cover = load_cover(make_book(cover_image_path="https://example.com/c"), client)
        assert cover is not None
        assert cover.media_type == "image/png"

    def test_resolve_turns_failure_into_warning(self, make_book: BookFactory) -> None:
        """A cover that cannot be fetched yields no image and one warning."""
        client = CoverHttpClient(transport=FakeTransport([httpx.Response(404)]))
        cover, warnings = resolve_cover(
            make_book(cover_image_path="https://example.com/gone.png"), client
        )
        assert cover is None
        assert len(warnings) == 1
        assert warnings[0].startswith("Cover image could not be loaded")

    def test_resolve_success_has_no_warnings(self, make_book: BookFactory) -> None:
        """A loadable cover produces no warnings."""
        uri = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
        cover, warnings = resolve_cover(make_book(cover_image_path=uri))
        assert cover == CoverImage(PNG_BYTES, "image/png")
        assert warnings == []
