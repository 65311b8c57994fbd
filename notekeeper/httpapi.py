"""HTTP endpoints of the client service: JSON requests in, JSON responses out."""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Protocol

from .domain import (
    ClientInternalError,
    EmptyTitleError,
    InvalidDataError,
    InvalidUUIDError,
    IsDeletedError,
    Note,
    NoteCreate,
    NoteInternalError,
    NoteResponseError,
    NotFoundError,
    ServiceInternalError,
    TooLongDescError,
    TooLongTitleError,
    UnauthenticatedError,
)
from .logger import Field, Logger

__all__ = ["Response", "HttpNoteHandler", "map_error", "write_response"]

TITLE_LIMIT = 50
DESC_LIMIT = 255

_NIL_UUID = uuid.UUID(int=0)
_JSON_ESCAPES = {
    "&": "\\u0026",
    "<": "\\u003c",
    ">": "\\u003e",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass(frozen=True)
class Response:
    """An HTTP response: status code, headers and body bytes."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        """The decoded JSON body, or None when the body is empty."""
        return json.loads(self.body) if self.body else None


class _Gateway(Protocol):
    def create(self, item: NoteCreate, token: str | None = None) -> Note: ...

    def get_by_id(self, note_id: uuid.UUID, token: str | None = None) -> Note: ...

    def get_multi(self, token: str | None = None) -> list[Note]: ...

    def delete_by_id(self, note_id: uuid.UUID, token: str | None = None) -> Note: ...


def map_error(log: Logger, err: BaseException) -> tuple[int, str]:
    """Choose the HTTP status and message reported for an error."""
    if isinstance(err, NotFoundError):
        return HTTPStatus.NOT_FOUND.value, str(err)
    if isinstance(err, IsDeletedError):
        return HTTPStatus.GONE.value, str(err)
    if isinstance(err, (InvalidUUIDError, InvalidDataError)):
        return HTTPStatus.BAD_REQUEST.value, str(err)
    if isinstance(err, UnauthenticatedError):
        return HTTPStatus.UNAUTHORIZED.value, str(err)
    if isinstance(err, (NoteInternalError, NoteResponseError, ClientInternalError)):
        return HTTPStatus.INTERNAL_SERVER_ERROR.value, str(err)
    log.error("unknown error", Field("error", err))
    return HTTPStatus.INTERNAL_SERVER_ERROR.value, str(ServiceInternalError())


def _encode_json(data: Any) -> bytes:
    text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _JSON_ESCAPES.items():
        text = text.replace(char, escape)
    return (text + "\n").encode("utf-8")


def write_response(
    log: Logger, status: int, data: Any, err: BaseException | None = None
) -> Response:
    """Build a JSON response; an error replaces status and data with its mapping."""
    headers = {"Content-Type": "application/json"}
    if err is not None:
        status, message = map_error(log, err)
        data = {"error": message}
    if data is None:
        return Response(status, headers)
    try:
        body = _encode_json(data)
    except (TypeError, ValueError) as encode_err:
        log.error("failed to parse response data to client", Field("error", encode_err))
        body = b""
    return Response(status, headers, body)


def _format_time(stamp: datetime) -> str:
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    text = (
        f"{stamp.year:04d}-{stamp.month:02d}-{stamp.day:02d}"
        f"T{stamp.hour:02d}:{stamp.minute:02d}:{stamp.second:02d}"
    )
    if stamp.microsecond:
        text += "." + f"{stamp.microsecond:06d}".rstrip("0")
    offset = stamp.utcoffset()
    if not offset:
        return text + "Z"
    seconds = int(offset.total_seconds())
    sign = "+" if seconds >= 0 else "-"
    seconds = abs(seconds)
    return f"{text}{sign}{seconds // 3600:02d}:{seconds % 3600 // 60:02d}"


def _note_to_dto(note: Note) -> dict[str, Any]:
    return {
        "uuid": str(note.id),
        "title": note.title,
        "description": note.desc,
        "is_delete": note.is_del,
        "created_at": _format_time(note.created_at),
        "updated_at": _format_time(note.updated_at),
    }


def _auth_token(headers: Mapping[str, str] | None) -> str | None:
    for name, value in (headers or {}).items():
        if name.lower() == "authorization":
            return value or None
    return None


def _decode_create(body: bytes | str) -> NoteCreate:
    text = body.decode("utf-8", "replace") if isinstance(body, bytes) else body
    try:
        value, _ = json.JSONDecoder().raw_decode(text.lstrip(" \t\r\n"))
    except ValueError:
        raise InvalidDataError() from None
    if value is None:
        return NoteCreate(title="", desc="")
    if not isinstance(value, dict):
        raise InvalidDataError()
    fields = {"title": "", "description": ""}
    for key, item in value.items():
        name = key.lower()
        if name not in fields or item is None:
            continue
        if not isinstance(item, str):
            raise InvalidDataError()
        fields[name] = item
    return NoteCreate(title=fields["title"].strip(), desc=fields["description"].strip())


def _validate_create(item: NoteCreate) -> None:
    if len(item.title) == 0:
        raise InvalidDataError(str(EmptyTitleError()))
    if len(item.title) >= TITLE_LIMIT:
        raise InvalidDataError(str(TooLongTitleError()))
    if len(item.desc) >= DESC_LIMIT:
        raise InvalidDataError(str(TooLongDescError()))


def _parse_id(raw_id: str) -> uuid.UUID:
    try:
        note_id = uuid.UUID(raw_id)
    except (ValueError, TypeError, AttributeError):
        raise InvalidUUIDError() from None
    if note_id == _NIL_UUID:
        raise InvalidUUIDError()
    return note_id


class HttpNoteHandler:
    """Answers note requests of the HTTP API; errors become JSON error responses."""

    def __init__(self, log: Logger, gateway: _Gateway) -> None:
        self._log = log
        self._gateway = gateway

    def _failure(self, err: BaseException) -> Response:
        return write_response(self._log, 0, None, err)

    def create(self, body: bytes | str, headers: Mapping[str, str] | None = None) -> Response:
        try:
            item = _decode_create(body)
            _validate_create(item)
            note = self._gateway.create(item, _auth_token(headers))
        except Exception as err:
            return self._failure(err)
        return write_response(self._log, HTTPStatus.CREATED.value, _note_to_dto(note))

    def get_by_id(self, raw_id: str, headers: Mapping[str, str] | None = None) -> Response:
        try:
            note = self._gateway.get_by_id(_parse_id(raw_id), _auth_token(headers))
        except Exception as err:
            return self._failure(err)
        return write_response(self._log, HTTPStatus.OK.value, _note_to_dto(note))

    def get_multi(self, headers: Mapping[str, str] | None = None) -> Response:
        try:
            notes = self._gateway.get_multi(_auth_token(headers))
        except Exception as err:
            return self._failure(err)
        return write_response(self._log, HTTPStatus.OK.value, [_note_to_dto(n) for n in notes])

    def delete_by_id(self, raw_id: str, headers: Mapping[str, str] | None = None) -> Response:
        try:
            note = self._gateway.delete_by_id(_parse_id(raw_id), _auth_token(headers))
        except Exception as err:
            return self._failure(err)
        return write_response(self._log, HTTPStatus.OK.value, _note_to_dto(note))