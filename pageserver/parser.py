import logging
from typing import BinaryIO, List, Tuple

from .models import IncomingRequest, MalformedRequest, RequestIOError

logger = logging.getLogger(__name__)


def read_head(stream: BinaryIO, max_header_bytes: int = 65536) -> List[str]:
    """
    Read lines up to the first blank line or end of stream.
    The body, if any, is left unread.
    """
    lines: List[str] = []
    consumed = 0
    while True:
        try:
            raw = stream.readline(max_header_bytes + 1)
        except OSError as e:
            raise RequestIOError(f"read failed: {e}") from e

        if raw == b"":
            if not lines:
                raise RequestIOError("connection closed before request line")
            return lines

        consumed += len(raw)
        if consumed > max_header_bytes:
            raise MalformedRequest("request head too large")

        raw = raw.rstrip(b"\r\n")
        if not raw:
            return lines

        try:
            lines.append(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise MalformedRequest("request head is not valid UTF-8") from e


def split_header(line: str) -> Tuple[str, str]:
    name, sep, value = line.partition(":")
    if not sep:
        return line, ""
    return name.strip(), value.strip()


def parse_lines(lines: List[str]) -> IncomingRequest:
    if not lines:
        raise MalformedRequest("empty request")

    parts = lines[0].split()
    if len(parts) < 2:
        raise MalformedRequest(f"bad request line: {lines[0]!r}")

    method, target = parts[0], parts[1]
    if not target.startswith("/"):
        raise MalformedRequest(f"request target must start with '/': {target!r}")

    headers = tuple(split_header(line) for line in lines[1:])
    return IncomingRequest(method=method, path=target, headers=headers)


def parse_request(stream: BinaryIO, max_header_bytes: int = 65536) -> IncomingRequest:
    lines = read_head(stream, max_header_bytes)
    logger.info("Request received:\n%s", "\n".join(lines))
    return parse_lines(lines)
