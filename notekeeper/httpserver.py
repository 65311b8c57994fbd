"""HTTP server of the client service with graceful shutdown."""

from __future__ import annotations

import threading
from collections.abc import Callable
from socketserver import ThreadingMixIn
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from .config import ClientEnv
from .logger import Field, Logger

__all__ = ["HTTPServer"]

SHUTDOWN_TIMEOUT = 5.0


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = False
    block_on_close = True
    app_log: Logger | None = None


class _LoggingRequestHandler(WSGIRequestHandler):
    """Sends per-request access lines to the application logger at debug level."""

    def log_message(self, format: str, *args: Any) -> None:
        app_log = getattr(self.server, "app_log", None)
        if app_log is not None:
            app_log.debug(
                "http request",
                Field("client", self.address_string()),
                Field("message", format % args),
            )


class HTTPServer:
    """Serves a WSGI application until asked to stop."""

    def __init__(self, log: Logger, app: Callable[..., Any], env: ClientEnv) -> None:
        self._log = log
        self._app = app
        self._host = env.host
        self._port = env.port
        self._server: _ThreadingWSGIServer | None = None
        self._serving: threading.Thread | None = None
        self.ready = threading.Event()

    @property
    def address(self) -> tuple[str, int] | None:
        """The bound host and port, once listening."""
        if self._server is None:
            return None
        host, port = self._server.server_address[:2]
        return host, port

    def _serve(self) -> None:
        assert self._server is not None
        try:
            self._server.serve_forever()
        except Exception as err:
            self._log.error("http-server failed to start or crashed", Field("error", err))
        else:
            self._log.info("http-server correctly stoppted")

    def _close(self) -> None:
        assert self._server is not None
        self._server.shutdown()
        if self._serving is not None:
            self._serving.join()
        self._server.server_close()

    def start_gracefully(self, stop: threading.Event) -> None:
        """Serve until stop is set, then shut down within a few seconds."""
        try:
            self._server = make_server(
                self._host,
                int(self._port),
                self._app,
                server_class=_ThreadingWSGIServer,
                handler_class=_LoggingRequestHandler,
            )
        except (OSError, ValueError, OverflowError) as err:
            self._log.error("http-server failed to start or crashed", Field("error", err))
        else:
            self._server.app_log = self._log
            self._serving = threading.Thread(target=self._serve, daemon=True)
            self._serving.start()
        finally:
            self.ready.set()

        self._log.info("http-server started")
        stop.wait()
        self._log.info("stopping http-server gracefully...")
        self._log.warn("Shutting down client-service...")

        if self._server is not None:
            closer = threading.Thread(target=self._close, daemon=True)
            closer.start()
            closer.join(SHUTDOWN_TIMEOUT)
            if closer.is_alive():
                self._log.error(
                    "failed to shutdown http-server", Field("error", "context deadline exceeded")
                )
                return
        self._log.info("client-service successfully stoppted")