#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/server.py
"""HTTP front end for transformation URLs.

Every ``GET`` path is handed to a ``MediaDispatcher``. Images are rendered
fully before the response starts, so failures become clean error
responses. Video is streamed: the status line and headers go out with the
first chunk of transcoded output, and the body ends when the connection
closes.

Status mapping:

- 200: success, ``Content-Type`` is the asset's MIME type
- 400: malformed URL, unsupported type or media, failed operation
- 404: asset not found
- 500: anything else (logged with traceback)

``GET /`` answers ``ok`` for health checks.
"""

from __future__ import annotations

import http.server
import logging
from typing import Any, Optional
from urllib.parse import urlsplit

from mediaforge.dispatch import MediaDispatcher, MediaRequest
from mediaforge.exceptions import (
    MalformedUrlError,
    MediaForgeError,
    NotFoundError,
    OperationError,
    SinkClosedError,
    UnsupportedMediaError,
    UnsupportedTypeError,
)

logger = logging.getLogger(__name__)

CLIENT_ERRORS = (MalformedUrlError, UnsupportedTypeError, UnsupportedMediaError, OperationError)
HEALTH_PATHS = ("", "/")


def status_for_error(error: BaseException) -> int:
    """Map an exception raised while serving a request to an HTTP status."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, CLIENT_ERRORS):
        return 400
    return 500


class _ResponseSink:
    """Write video chunks to the client, sending headers with the first one."""

    def __init__(self, handler: MediaRequestHandler, content_type: str):
        self.handler = handler
        self.content_type = content_type
        self.started = False
        self.bytes_sent = 0

    def start(self) -> None:
        if self.started:
            return
        self.started = True
        self.handler.send_response(200)
        self.handler.send_header("Content-Type", self.content_type)
        self.handler.send_header("Cache-Control", "no-store")
        self.handler.end_headers()

    def write(self, data: bytes) -> int:
        if self.handler.wfile.closed:
            raise SinkClosedError("Client connection is closed")
        self.start()
        self.handler.wfile.write(data)
        self.bytes_sent += len(data)
        return len(data)


class MediaRequestHandler(http.server.BaseHTTPRequestHandler):
    """Serve transformation URLs through the server's dispatcher."""

    # HTTP/1.0: a streamed video body ends when the connection closes
    protocol_version = "HTTP/1.0"
    server: MediaForgeServer

    def do_GET(self) -> None:
        if urlsplit(self.path).path in HEALTH_PATHS:
            self._send_text(200, "ok")
            return

        dispatcher = self.server.dispatcher
        sink: Optional[_ResponseSink] = None
        try:
            request = dispatcher.prepare(self.path)
            if request.domain == "image":
                self._send_image(dispatcher, request)
            else:
                sink = _ResponseSink(self, request.mime_type)
                dispatcher.stream_video(request, sink)
                sink.start()
        except MediaForgeError as e:
            self._send_failure(e, sink)
        except Exception as e:
            logger.exception(f"Unexpected error serving {self.path}")
            self._send_failure(e, sink)

    def _send_image(self, dispatcher: MediaDispatcher, request: MediaRequest) -> None:
        body = dispatcher.render_image(request)
        self.send_response(200)
        self.send_header("Content-Type", request.mime_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_failure(self, error: BaseException, sink: Optional[_ResponseSink]) -> None:
        status = status_for_error(error)
        if sink is not None and sink.started:
            # Headers are gone; closing the connection truncates the stream
            logger.error(f"Stream for {self.path} failed after {sink.bytes_sent} bytes: {error}")
            self.close_connection = True
            return

        if status == 500:
            message = f"Internal server error: {error}"
        else:
            logger.info(f"{status} for {self.path}: {error}")
            message = str(error)
        self._send_text(status, message)

    def _send_text(self, status: int, message: str) -> None:
        body = message.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.info(f"{self.address_string()} {format % args}")


class MediaForgeServer(http.server.ThreadingHTTPServer):
    """Threaded HTTP server holding the dispatcher its handlers use."""

    daemon_threads = True

    def __init__(self, server_address: tuple[str, int], dispatcher: MediaDispatcher):
        self.dispatcher = dispatcher
        super().__init__(server_address, MediaRequestHandler)

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}/"


def create_server(dispatcher: MediaDispatcher, host: str, port: int) -> MediaForgeServer:
    """Bind a server for ``dispatcher``; port 0 picks a free port.

    Raises
    ------
    OSError
        If the address cannot be bound

    """
    return MediaForgeServer((host, port), dispatcher)


__all__ = [
    "MediaForgeServer",
    "MediaRequestHandler",
    "create_server",
    "status_for_error",
]
