import logging
import socket

from .config import Config
from .handler import FileHandler
from .models import MalformedRequest, RequestIOError, ResponseSpec
from .parser import parse_request

logger = logging.getLogger(__name__)


class Engine:
    def handle_connection(self, conn: socket.socket) -> None:
        try:
            self.process(conn)
        finally:
            try:
                conn.close()
            except OSError:
                pass

    def process(self, conn: socket.socket) -> None:
        raise NotImplementedError


class HTTPEngine(Engine):
    def __init__(self, config: Config, request_handler: FileHandler) -> None:
        self.config = config
        self.request_handler = request_handler

    def process(self, conn: socket.socket) -> None:
        with conn.makefile("rb") as stream:
            try:
                req = parse_request(stream, self.config.max_header_bytes)
            except RequestIOError as e:
                logger.warning("Failed to read request: %s", e)
                return
            except MalformedRequest as e:
                logger.info("Malformed request: %s", e)
                resp = self.request_handler.bad_request()
            else:
                resp = self.request_handler.handle(req)

        self._send(conn, resp)

    def _send(self, conn: socket.socket, resp: ResponseSpec) -> None:
        http_version = self.config.http_version
        logger.info("Response sent:\n%s", resp.head(http_version).rstrip("\r\n").replace("\r\n", "\n"))
        try:
            conn.sendall(resp.render(http_version))
        except OSError as e:
            logger.warning("Failed to send response: %s", e)
