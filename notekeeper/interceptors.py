"""Interceptors wrapping note service calls: logging and authorization."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .logger import Field, Logger
from .messages import RpcError, StatusCode

__all__ = [
    "LoggingStream",
    "logging_unary_interceptor",
    "auth_unary_interceptor",
    "logging_stream_interceptor",
]

Metadata = Mapping[str, Sequence[str]]
UnaryHandler = Callable[[Any], Any]
UnaryInterceptor = Callable[[Any, "Metadata | None", str, UnaryHandler], Any]
StreamHandler = Callable[[Any, Any], Any]
StreamInterceptor = Callable[[Any, Any, str, StreamHandler], Any]


def logging_unary_interceptor(log: Logger) -> UnaryInterceptor:
    """Log the start, outcome and duration of every unary call."""

    def intercept(request: Any, metadata: Metadata | None, method: str, handler: UnaryHandler) -> Any:
        log.info("start request", Field("method", method))
        start = time.monotonic()
        try:
            response = handler(request)
        except Exception as err:
            elapsed = int((time.monotonic() - start) * 1000)
            log.warn(
                "failed request",
                Field("method", method),
                Field("duration", elapsed),
                Field("error", err),
            )
            raise
        elapsed = int((time.monotonic() - start) * 1000)
        log.info("successfull request", Field("method", method), Field("duration", elapsed))
        return response

    return intercept


def auth_unary_interceptor() -> UnaryInterceptor:
    """Reject calls whose metadata carries no authorization value."""

    def intercept(request: Any, metadata: Metadata | None, method: str, handler: UnaryHandler) -> Any:
        if metadata is None:
            raise RpcError(StatusCode.UNAUTHENTICATED, "missing metadata")
        if "authorization" not in metadata:
            raise RpcError(StatusCode.UNAUTHENTICATED, "authorization header is required")
        if len(metadata["authorization"]) == 0:
            raise RpcError(StatusCode.UNAUTHENTICATED, "invalid authorization token")
        return handler(request)

    return intercept


class LoggingStream:
    """A server stream that logs every message sent and received."""

    def __init__(self, log: Logger, stream: Any) -> None:
        self._log = log
        self._stream = stream

    def send(self, message: Any) -> Any:
        self._log.info("server send:", Field("message", message))
        return self._stream.send(message)

    def receive(self) -> Any:
        message = None
        try:
            message = self._stream.receive()
            return message
        finally:
            self._log.info("server recieve:", Field("message", message))

    def __getattr__(self, name: str) -> Any:
        return getattr(self._stream, name)


def logging_stream_interceptor(log: Logger) -> StreamInterceptor:
    """Log the lifetime of every streaming call and wrap its stream."""

    def intercept(server: Any, stream: Any, method: str, handler: StreamHandler) -> Any:
        log.info("request to grpc-stream", Field("method", method))
        try:
            return handler(server, LoggingStream(log, stream))
        except Exception:
            log.error("error with grpc-stream", Field("method", method))
            raise
        finally:
            log.info("grpc-stream closed", Field("method", method))

    return intercept