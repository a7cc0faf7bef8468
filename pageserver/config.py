import os
import sys
from dataclasses import dataclass
from typing import Optional

PAGES_DIR = "pages"

# Launcher directories that sit one level below the project root.
_BUILD_DIRS = ("build", "dist")


@dataclass(frozen=True)
class Config:
    host: str = "127.0.0.1"
    port: int = 8080
    root: str = "."
    workers: int = 4
    queue_size: int = 0
    backlog: int = 128
    recv_timeout: Optional[float] = None
    accept_timeout: float = 1.0
    max_header_bytes: int = 65536
    http_version: str = "HTTP/1.1"
    legacy_error_pages: bool = False
    debug: bool = False


def discover_root(cli_root: Optional[str] = None, script_path: Optional[str] = None) -> str:
    """
    Pick the directory to serve.
    An explicit CLI root wins; otherwise "pages" next to the launcher script,
    and "pages" under the working directory as the last resort.
    """
    if cli_root:
        return os.path.abspath(cli_root)

    if script_path is None:
        script_path = sys.argv[0] if sys.argv and sys.argv[0] else ""

    if script_path:
        script_dir = os.path.dirname(os.path.abspath(script_path))
        if os.path.basename(script_dir) in _BUILD_DIRS:
            script_dir = os.path.dirname(script_dir)
        return os.path.join(script_dir, PAGES_DIR)

    return os.path.join(os.getcwd(), PAGES_DIR)
