"""
Local preview server for a built site.

Serves the site directory over HTTP until interrupted.
"""

import functools
import logging
import os
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

from .exceptions import DirectoryAccessError

DEFAULT_PORT = 8090
DEFAULT_HOST = 'localhost'

logger = logging.getLogger('Rabla.server')


class PreviewRequestHandler(SimpleHTTPRequestHandler):
    """Static file handler that logs requests through the Rabla logger."""

    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} - {format % args}")


def create_server(directory: str, port: int = DEFAULT_PORT, host: str = DEFAULT_HOST) -> ThreadingHTTPServer:
    """Bind an HTTP server serving directory. Port 0 picks a free port."""
    if not os.path.isdir(directory):
        raise DirectoryAccessError(f"Site directory does not exist: {directory}", path=directory)
    handler = functools.partial(PreviewRequestHandler, directory=directory)
    return ThreadingHTTPServer((host, port), handler)


def serve_directory(directory: str, port: Optional[int] = None, host: str = DEFAULT_HOST) -> None:
    """Serve directory on host:port, blocking until Ctrl-C."""
    if port is None:
        port = DEFAULT_PORT
    httpd = create_server(directory, port, host)
    with httpd:
        logger.info(f"Serving at http://{host}:{httpd.server_address[1]}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Stopped preview server")
