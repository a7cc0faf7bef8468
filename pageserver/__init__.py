from .config import Config, discover_root
from .server import ThreadedHTTPServer

__all__ = ["Config", "ThreadedHTTPServer", "discover_root"]
