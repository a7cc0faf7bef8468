import logging
import socket
import threading
from typing import Optional, Tuple

from .config import Config
from .engine import Engine, HTTPEngine
from .handler import FileHandler
from .pool import WorkerPool

logger = logging.getLogger(__name__)


class ThreadedHTTPServer:
    def __init__(self, config: Config) -> None:
        self.config = config

        # Created on run()
        self._listen_sock: Optional[socket.socket] = None
        self._engine: Optional[Engine] = None
        self._pool: Optional[WorkerPool] = None

        self._stop_event = threading.Event()
        self._ready = threading.Event()

    @property
    def server_address(self) -> Optional[Tuple[str, int]]:
        if self._listen_sock is None:
            return None
        return self._listen_sock.getsockname()[:2]

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def run(self) -> None:
        self._stop_event.clear()

        self._listen_sock = self._create_listen_socket()
        handler = FileHandler(self.config.root, legacy_error_pages=self.config.legacy_error_pages)
        self._engine = HTTPEngine(self.config, handler)
        self._pool = WorkerPool(self.config, self._engine)

        self._pool.start()

        host, port = self.server_address
        logger.info("Server running on http://%s:%s", host, port)
        logger.info("Serving files from: %s", handler.root)
        self._ready.set()

        # Accept loop blocks the current thread until stopped
        try:
            self._accept_loop()
        finally:
            self._cleanup()

    def stop(self) -> None:
        self._stop_event.set()

        # unblock accept() immediately
        if self._listen_sock is not None:
            try:
                self._listen_sock.close()
            except OSError:
                pass

    def _cleanup(self) -> None:
        if self._listen_sock is not None:
            try:
                self._listen_sock.close()
            except OSError:
                pass

        if self._pool is not None:
            self._pool.stop()

        self._listen_sock = None
        self._pool = None
        self._engine = None
        self._ready.clear()

    def _create_listen_socket(self) -> socket.socket:
        """
        Create/bind/listen.
        Uses SO_REUSEADDR to make restarts easier during development.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.bind((self.config.host, self.config.port))
        sock.listen(self.config.backlog)

        # only so the loop can notice stop()
        sock.settimeout(self.config.accept_timeout)

        return sock

    def _accept_loop(self) -> None:
        """
        Accept connections and submit to worker pool.
        Exits when stop_event is set or listen socket is closed.
        """
        assert self._listen_sock is not None
        assert self._pool is not None

        while not self._stop_event.is_set():
            try:
                conn, addr = self._listen_sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._stop_event.is_set():
                    # listen socket closed by stop()
                    break
                logger.error("Connection failed: %s", e)
                continue

            logger.debug("Accepted connection from %s", addr)

            try:
                conn.settimeout(self.config.recv_timeout)
                conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError:
                try:
                    conn.close()
                except OSError:
                    pass
                continue

            # Pool closes conn after handling
            self._pool.submit(conn, addr)
