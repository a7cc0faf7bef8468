"""Tests for the request parser.

The parser reads a request head (request line plus header lines) from a binary
stream and turns it into an ``IncomingRequest``, or raises a ``ParseError``.
"""

import io

import pytest

from pageserver.models import ConnectionMode, IncomingRequest, MalformedRequest, RequestIOError
from pageserver.parser import parse_lines, parse_request, read_head, split_header


def _stream(raw: bytes) -> io.BytesIO:
    return io.BytesIO(raw)


class _BrokenStream:
    def readline(self, limit: int = -1) -> bytes:
        raise ConnectionResetError("peer reset")


class TestRequestLine:
    """Request line tokenisation."""

    def test_method_and_path(self) -> None:
        """Method and target come from the first two tokens."""
        req = parse_request(_stream(b"GET /index.html HTTP/1.1\r\n\r\n"))
        assert req.method == "GET"
        assert req.path == "/index.html"

    def test_version_token_optional(self) -> None:
        """A request line without the version token still parses."""
        req = parse_request(_stream(b"GET /a.txt\r\n\r\n"))
        assert req.path == "/a.txt"

    def test_extra_whitespace(self) -> None:
        """Tokens are split on any run of whitespace."""
        req = parse_request(_stream(b"GET   /a.txt \t HTTP/1.0\r\n\r\n"))
        assert (req.method, req.path) == ("GET", "/a.txt")

    def test_query_string_kept(self) -> None:
        """Query strings are passed through untouched."""
        req = parse_request(_stream(b"GET /page.html?x=1&y=2 HTTP/1.1\r\n\r\n"))
        assert req.path == "/page.html?x=1&y=2"

    def test_method_case_preserved(self) -> None:
        """The method is not normalised."""
        req = parse_request(_stream(b"get / HTTP/1.1\r\n\r\n"))
        assert req.method == "get"

    def test_single_token_is_malformed(self) -> None:
        """Fewer than two tokens is a malformed request."""
        with pytest.raises(MalformedRequest):
            parse_request(_stream(b"GET\r\n\r\n"))

    def test_blank_first_line_is_malformed(self) -> None:
        """An empty head is malformed."""
        with pytest.raises(MalformedRequest):
            parse_request(_stream(b"\r\nGET / HTTP/1.1\r\n\r\n"))

    def test_target_without_slash_is_malformed(self) -> None:
        """The path must start with a slash."""
        with pytest.raises(MalformedRequest):
            parse_request(_stream(b"GET index.html HTTP/1.1\r\n\r\n"))

    def test_invalid_utf8_is_malformed(self) -> None:
        """Undecodable bytes in the head are malformed."""
        with pytest.raises(MalformedRequest):
            parse_request(_stream(b"GET /\xff\xfe HTTP/1.1\r\n\r\n"))

    def test_oversized_head_is_malformed(self) -> None:
        """A head beyond the byte limit is malformed."""
        raw = b"GET / HTTP/1.1\r\nX-Long: " + b"a" * 200 + b"\r\n\r\n"
        with pytest.raises(MalformedRequest):
            parse_request(_stream(raw), max_header_bytes=64)

    def test_parse_lines_empty(self) -> None:
        """No lines at all is malformed."""
        with pytest.raises(MalformedRequest):
            parse_lines([])


class TestStreamHandling:
    """Reading the head from the stream."""

    def test_eof_before_anything(self) -> None:
        """A peer that closes without sending is an I/O failure."""
        with pytest.raises(RequestIOError):
            parse_request(_stream(b""))

    def test_read_error(self) -> None:
        """OSError from the stream becomes RequestIOError."""
        with pytest.raises(RequestIOError):
            parse_request(_BrokenStream())  # type: ignore[arg-type]

    def test_eof_ends_head(self) -> None:
        """End of stream terminates the head like a blank line."""
        lines = read_head(_stream(b"GET / HTTP/1.1\r\nHost: x"))
        assert lines == ["GET / HTTP/1.1", "Host: x"]

    def test_body_not_consumed(self) -> None:
        """Bytes after the blank line stay in the stream."""
        stream = _stream(b"GET / HTTP/1.1\r\nHost: x\r\n\r\nbody-bytes")
        read_head(stream)
        assert stream.read() == b"body-bytes"

    def test_bare_lf_line_endings(self) -> None:
        """LF-only line endings are accepted."""
        req = parse_request(_stream(b"GET /a.txt HTTP/1.1\nHost: x\n\n"))
        assert req.headers == (("Host", "x"),)


class TestHeaders:
    """Header retention and Connection handling."""

    def test_headers_ordered(self) -> None:
        """Headers keep their order and original name case."""
        raw = b"GET / HTTP/1.1\r\nHost: example\r\nAccept: */*\r\nHost: again\r\n\r\n"
        req = parse_request(_stream(raw))
        assert req.headers == (("Host", "example"), ("Accept", "*/*"), ("Host", "again"))

    def test_header_lookup_case_insensitive(self) -> None:
        """header() finds the first match ignoring name case."""
        req = IncomingRequest("GET", "/", (("CONNECTION", "keep-alive"), ("Connection", "close")))
        assert req.header("connection") == "keep-alive"
        assert req.header("missing") is None

    def test_split_header_without_colon(self) -> None:
        """A line with no colon is kept whole as the name."""
        assert split_header("not a header") == ("not a header", "")

    def test_split_header_value_with_colon(self) -> None:
        """Only the first colon separates name from value."""
        assert split_header("Host: localhost:8080") == ("Host", "localhost:8080")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("keep-alive", ConnectionMode.KEEP_ALIVE),
            ("Keep-Alive", ConnectionMode.KEEP_ALIVE),
            ("keep-alive, Upgrade", ConnectionMode.KEEP_ALIVE),
            ("close", ConnectionMode.CLOSE),
            ("upgrade", ConnectionMode.CLOSE),
        ],
    )
    def test_connection_mode(self, value: str, expected: ConnectionMode) -> None:
        """Only a keep-alive token selects keep-alive."""
        req = parse_request(_stream(f"GET / HTTP/1.1\r\nconnection: {value}\r\n\r\n".encode()))
        assert req.connection_mode is expected

    def test_connection_mode_default(self) -> None:
        """No Connection header means close."""
        req = parse_request(_stream(b"GET / HTTP/1.1\r\n\r\n"))
        assert req.connection_mode is ConnectionMode.CLOSE
