import logging
import os
from http import HTTPStatus
from typing import Optional

from .models import ConnectionMode, IncomingRequest, ResponseSpec
from .resolver import TraversalAttempt, content_type_for, read_text, resolve

logger = logging.getLogger(__name__)

ALLOWED_METHOD = "GET"

DEFAULT_MESSAGES = {
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Directory traversal not allowed",
    HTTPStatus.NOT_FOUND: "File Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Error reading file",
}

# Statuses that consult a custom page when legacy_error_pages is on.
LEGACY_PAGE_STATUSES = frozenset({HTTPStatus.FORBIDDEN, HTTPStatus.NOT_FOUND})


class FileHandler:
    def __init__(self, document_root: str, legacy_error_pages: bool = False) -> None:
        self.root = os.path.abspath(document_root)
        self.legacy_error_pages = legacy_error_pages

    def handle(self, req: IncomingRequest) -> ResponseSpec:
        conn_mode = req.connection_mode

        if req.method != ALLOWED_METHOD:
            logger.info("Method not allowed: %s", req.method)
            return self.error(HTTPStatus.METHOD_NOT_ALLOWED, conn_mode)

        try:
            target = resolve(self.root, req.path)
        except TraversalAttempt as e:
            logger.warning("Blocked directory traversal attempt: %s", e.path)
            return self.error(HTTPStatus.FORBIDDEN, conn_mode)

        if not target.exists:
            logger.info("File not found: %s", target.fs_path)
            return self.error(HTTPStatus.NOT_FOUND, conn_mode)

        if target.content is None:
            return self.error(HTTPStatus.INTERNAL_SERVER_ERROR, conn_mode)

        return ResponseSpec(
            status=HTTPStatus.OK,
            reason=HTTPStatus.OK.phrase,
            content_type=content_type_for(target.fs_path),
            body=target.content,
            connection=conn_mode,
        )

    def bad_request(self) -> ResponseSpec:
        return self.error(HTTPStatus.BAD_REQUEST, ConnectionMode.CLOSE)

    def error(self, status: HTTPStatus, conn_mode: ConnectionMode) -> ResponseSpec:
        page = self._error_page(status)
        if page is not None:
            body, ctype = page, "text/html"
        else:
            body, ctype = DEFAULT_MESSAGES[status].encode("utf-8"), "text/plain"

        return ResponseSpec(
            status=status,
            reason=status.phrase,
            content_type=ctype,
            body=body,
            connection=conn_mode,
        )

    def _error_page(self, status: HTTPStatus) -> Optional[bytes]:
        if self.legacy_error_pages and status not in LEGACY_PAGE_STATUSES:
            return None

        page_path = os.path.join(self.root, f"{status.value}.html")
        if not os.path.exists(page_path):
            return None
        return read_text(page_path)
