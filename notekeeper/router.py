"""Routing of the note HTTP API, usable directly or as a WSGI application."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Mapping
from http import HTTPStatus
from typing import Any

from .httpapi import HttpNoteHandler, Response

__all__ = ["NoteRouter"]

PREFIX = "/notes/v1"


def _not_found() -> Response:
    return Response(
        HTTPStatus.NOT_FOUND.value,
        {"Content-Type": "text/plain; charset=utf-8", "X-Content-Type-Options": "nosniff"},
        b"404 page not found\n",
    )


def _not_allowed() -> Response:
    return Response(HTTPStatus.METHOD_NOT_ALLOWED.value)


def _environ_headers(environ: Mapping[str, Any]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            name = key[5:]
        elif key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            name = key
        else:
            continue
        headers["-".join(part.capitalize() for part in name.split("_"))] = value
    return headers


def _environ_body(environ: Mapping[str, Any]) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if length <= 0:
        return b""
    stream = environ.get("wsgi.input") or io.BytesIO()
    return stream.read(length)


class NoteRouter:
    """Routes requests under /notes/v1 to the note handler."""

    def __init__(self, handler: HttpNoteHandler) -> None:
        self._handler = handler

    def dispatch(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> Response:
        """Answer one request; path is the decoded path without query."""
        headers = headers or {}
        if path == PREFIX:
            route = "/"
        elif path.startswith(PREFIX + "/"):
            route = path[len(PREFIX):]
        else:
            return _not_found()

        if route == "/":
            if method == "GET":
                return self._handler.get_multi(headers)
            if method == "POST":
                return self._handler.create(body, headers)
            return _not_allowed()

        note_id = route[1:]
        if "/" in note_id:
            return _not_found()
        if method == "GET":
            return self._handler.get_by_id(note_id, headers)
        if method == "DELETE":
            return self._handler.delete_by_id(note_id, headers)
        return _not_allowed()

    def __call__(
        self, environ: Mapping[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        raw_path = environ.get("PATH_INFO", "") or ""
        path = raw_path.encode("latin-1").decode("utf-8", "replace")
        response = self.dispatch(
            environ.get("REQUEST_METHOD", "GET"),
            path,
            _environ_headers(environ),
            _environ_body(environ),
        )
        status = HTTPStatus(response.status)
        headers = list(response.headers.items())
        headers.append(("Content-Length", str(len(response.body))))
        start_response(f"{status.value} {status.phrase}", headers)
        return [response.body]