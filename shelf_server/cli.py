from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from shelf_server.api.main import create_app
from shelf_server.config import load_settings
from shelf_server.errors import ConfigurationError, NetworkUnavailableError
from shelf_server.network import advertised_address

logger = logging.getLogger("shelf_server.cli")

WELCOME = r"""
__        __   _
\ \      / /__| | ___ ___  _ __ ___   ___
 \ \ /\ / / _ \ |/ __/ _ \| '_ ` _ \ / _ \
  \ V  V /  __/ | (_| (_) | | | | | |  __/
   \_/\_/ \___|_|\___\___/|_| |_| |_|\___|
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shelf-server",
        description="Serve a directory of books to devices on the local network.",
    )
    parser.add_argument(
        "start_dir",
        nargs="?",
        default=None,
        help="directory to open by default, relative to the root (default: the root itself)",
    )
    parser.add_argument("--port", type=int, default=None, help="listen port (overrides PORT)")
    parser.add_argument("--host", default=None, help="bind address (overrides SHELF_HOST)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    environ = dict(os.environ)
    if args.port is not None:
        environ["PORT"] = str(args.port)
    if args.host is not None:
        environ["SHELF_HOST"] = args.host

    try:
        settings = load_settings(environ, start_dir=args.start_dir)
        address = advertised_address(settings.port)
    except (ConfigurationError, NetworkUnavailableError) as exc:
        logger.error("%s", exc)
        return 1

    app = create_app(settings, address=address)

    print(WELCOME)
    logger.info("Serving %s (root %s) on %s:%d", settings.start_dir, settings.root, settings.host, settings.port)
    logger.info("Enter http://%s in your browser", address)

    # uvicorn drains in-flight requests on SIGINT/SIGTERM before returning.
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    logger.info("Server stopped")
    return 0
