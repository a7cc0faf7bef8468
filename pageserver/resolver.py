import logging
import os
from typing import Optional

from .models import ResolvedTarget

logger = logging.getLogger(__name__)

INDEX_PATH = "/index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Suffix match, first hit wins, case-sensitive.
CONTENT_TYPES = (
    (".html", "text/html"),
    (".css", "text/css"),
    (".js", "application/javascript"),
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".jpeg", "image/jpeg"),
    (".gif", "image/gif"),
    (".svg", "image/svg+xml"),
    (".ico", "image/x-icon"),
    (".txt", "text/plain"),
    (".pdf", "application/pdf"),
)


class TraversalAttempt(Exception):
    def __init__(self, path: str) -> None:
        super().__init__(f"directory traversal refused: {path}")
        self.path = path


def content_type_for(filename: str) -> str:
    for suffix, ctype in CONTENT_TYPES:
        if filename.endswith(suffix):
            return ctype
    return DEFAULT_CONTENT_TYPE


def normalize_path(url_path: str) -> str:
    return INDEX_PATH if url_path == "/" else url_path


def join_root(root: str, url_path: str) -> str:
    """
    Append the path (minus exactly one leading slash) to the root.
    No normalization: "a//b" and "./x" are kept as written.
    """
    rel = url_path[1:] if url_path.startswith("/") else url_path
    if not root.endswith(os.sep):
        root += os.sep
    return root + rel


def read_text(fs_path: str) -> Optional[bytes]:
    """Return the file bytes if it reads as UTF-8 text, None otherwise."""
    try:
        with open(fs_path, "rb") as f:
            data = f.read()
        data.decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading file %s: %s", fs_path, e)
        return None
    return data


def resolve(root: str, url_path: str) -> ResolvedTarget:
    url_path = normalize_path(url_path)
    if ".." in url_path:
        raise TraversalAttempt(url_path)

    fs_path = join_root(root, url_path)
    if not os.path.exists(fs_path):
        return ResolvedTarget(fs_path=fs_path, exists=False)

    return ResolvedTarget(fs_path=fs_path, exists=True, content=read_text(fs_path))
