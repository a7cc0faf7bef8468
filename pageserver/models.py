from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ParseError(Exception):
    """Request could not be turned into an IncomingRequest."""


class MalformedRequest(ParseError):
    pass


class RequestIOError(ParseError):
    """Reading the request failed or the peer closed before sending anything."""


class ConnectionMode(str, Enum):
    CLOSE = "close"
    KEEP_ALIVE = "keep-alive"


@dataclass(frozen=True)
class IncomingRequest:
    method: str
    path: str
    headers: Tuple[Tuple[str, str], ...] = ()

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    @property
    def connection_mode(self) -> ConnectionMode:
        value = self.header("Connection")
        if value is None:
            return ConnectionMode.CLOSE
        tokens = [t.strip().lower() for t in value.split(",")]
        if ConnectionMode.KEEP_ALIVE.value in tokens:
            return ConnectionMode.KEEP_ALIVE
        return ConnectionMode.CLOSE


@dataclass(frozen=True)
class ResolvedTarget:
    fs_path: str
    exists: bool
    content: Optional[bytes] = None


@dataclass(frozen=True)
class ResponseSpec:
    status: int
    reason: str
    content_type: str
    body: bytes = b""
    connection: ConnectionMode = ConnectionMode.CLOSE

    @property
    def headers(self) -> Tuple[Tuple[str, str], ...]:
        return (
            ("Content-Type", self.content_type),
            ("Content-Length", str(len(self.body))),
            ("Connection", self.connection.value),
        )

    def status_line(self, http_version: str) -> str:
        return f"{http_version} {int(self.status)} {self.reason}"

    def head(self, http_version: str) -> str:
        lines = [self.status_line(http_version)]
        lines.extend(f"{k}: {v}" for k, v in self.headers)
        return "\r\n".join(lines) + "\r\n\r\n"

    def render(self, http_version: str) -> bytes:
        return self.head(http_version).encode("iso-8859-1") + self.body
