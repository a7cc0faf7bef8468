import argparse
import logging
import os
import sys

from pageserver.config import Config, discover_root
from pageserver.server import ThreadedHTTPServer as Server

LOG_FORMAT = "%(asctime)s [%(threadName)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("pageserver.httpd")


def configure_logging(debug: bool = False) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    root = logging.getLogger("pageserver")
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="A simple static page server")
    parser.add_argument("--host", "-H", type=str, default="127.0.0.1", help="host to listen on")
    parser.add_argument("--port", "-p", type=int, default=8080, help="port to listen on")
    parser.add_argument("--root", "-r", type=str, default=None, help="directory to serve (default: ./pages next to this script)")
    parser.add_argument("--workers", "-w", type=int, default=4, help="number of worker threads")
    parser.add_argument("--http-version", choices=("1.0", "1.1"), default="1.1", help="HTTP version in status lines")
    parser.add_argument("--legacy-error-pages", action="store_true", help="only use custom pages for 403 and 404")
    parser.add_argument("--debug", "-D", action="store_true", help="enable debug logging")
    return parser


def make_config(args: argparse.Namespace) -> Config:
    return Config(
        host=args.host,
        port=args.port,
        root=discover_root(args.root),
        workers=args.workers,
        http_version=f"HTTP/{args.http_version}",
        legacy_error_pages=args.legacy_error_pages,
        debug=args.debug,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)
    config = make_config(args)

    if not os.path.isdir(config.root):
        logger.error("Pages directory does not exist: %s", config.root)
        logger.error("Please create a 'pages' folder with web files")
        return 1

    server = Server(config)
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Shutting down")
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
