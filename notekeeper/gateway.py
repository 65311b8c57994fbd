"""Client side of the note API: calls the note service and maps its errors."""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Protocol

from .domain import (
    ClientInternalError,
    InvalidDataError,
    InvalidUUIDError,
    IsDeletedError,
    Note,
    NoteCreate,
    NoteError,
    NoteInternalError,
    NoteResponseError,
    NotFoundError,
    UnauthenticatedError,
)
from .logger import Field, Logger
from .messages import (
    MessageValidationError,
    NoteCreateRequest,
    NoteIDRequest,
    NoteList,
    NoteMessage,
    RpcError,
    StatusCode,
    validate,
)

__all__ = [
    "AUTH_KEY",
    "NoteGateway",
    "map_error_rpc",
    "map_error",
    "create_metadata",
]

AUTH_KEY = "authorization"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NIL_UUID = uuid.UUID(int=0)

Metadata = Mapping[str, Sequence[str]]


class _NoteClient(Protocol):
    def create(self, request: NoteCreateRequest, metadata: Metadata | None) -> NoteMessage: ...

    def get_by_id(self, request: NoteIDRequest, metadata: Metadata | None) -> NoteMessage: ...

    def get_multi(self, metadata: Metadata | None) -> NoteList: ...

    def delete_by_id(self, request: NoteIDRequest, metadata: Metadata | None) -> NoteMessage: ...


def map_error_rpc(log: Logger, err: RpcError) -> NoteError:
    """Translate a status error from the note service into a domain error."""
    code = err.code
    if code is StatusCode.NOT_FOUND:
        return NotFoundError()
    if code is StatusCode.FAILED_PRECONDITION:
        return IsDeletedError()
    if code is StatusCode.INVALID_ARGUMENT:
        return InvalidDataError("; ".join(detail.detail for detail in err.details))
    if code is StatusCode.UNAUTHENTICATED:
        log.info(err.message)
        return UnauthenticatedError(err.message)
    if code is StatusCode.INTERNAL:
        return NoteInternalError()
    log.error("unknown error code from note service", Field("code", code))
    return NoteInternalError()


def map_error(log: Logger, err: BaseException) -> NoteError:
    """Pass known client errors through; anything else becomes an internal error."""
    if isinstance(err, (InvalidUUIDError, NoteResponseError, InvalidDataError)):
        return err
    log.error("unknown error from client service", Field("error", err))
    return ClientInternalError()


def create_metadata(token: str) -> dict[str, list[str]]:
    """Build call metadata carrying the authorization token."""
    return {AUTH_KEY: [token]}


def _to_note(message: NoteMessage) -> Note:
    try:
        note_id = uuid.UUID(message.id)
    except ValueError:
        note_id = _NIL_UUID
    return Note(
        id=note_id,
        title=message.title,
        desc=message.desc,
        is_del=message.is_del,
        created_at=message.created_at if message.created_at is not None else _EPOCH,
        updated_at=message.updated_at if message.updated_at is not None else _EPOCH,
    )


class NoteGateway:
    """Calls the note service; every failure is raised as a NoteError."""

    def __init__(self, log: Logger, client: _NoteClient) -> None:
        self._log = log
        self._client = client

    @staticmethod
    def _metadata(token: str | None) -> Metadata | None:
        return None if token is None else create_metadata(token)

    def _rpc_failure(self, err: Exception) -> NoteError:
        if isinstance(err, RpcError):
            return map_error_rpc(self._log, err)
        return map_error(self._log, err)

    def _checked(self, message: NoteMessage) -> Note:
        try:
            validate(message)
        except MessageValidationError:
            raise map_error(self._log, NoteResponseError()) from None
        return _to_note(message)

    def _id_request(self, note_id: uuid.UUID) -> NoteIDRequest:
        request = NoteIDRequest(id=str(note_id))
        try:
            validate(request)
        except MessageValidationError:
            raise map_error(self._log, InvalidUUIDError()) from None
        return request

    def create(self, item: NoteCreate, token: str | None = None) -> Note:
        request = NoteCreateRequest(title=item.title, desc=item.desc)
        try:
            validate(request)
        except MessageValidationError:
            raise map_error(self._log, InvalidDataError()) from None
        try:
            out = self._client.create(request, self._metadata(token))
        except Exception as err:
            raise self._rpc_failure(err) from err
        return self._checked(out)

    def get_by_id(self, note_id: uuid.UUID, token: str | None = None) -> Note:
        request = self._id_request(note_id)
        try:
            out = self._client.get_by_id(request, self._metadata(token))
        except Exception as err:
            raise self._rpc_failure(err) from err
        return self._checked(out)

    def get_multi(self, token: str | None = None) -> list[Note]:
        try:
            out = self._client.get_multi(self._metadata(token))
        except Exception as err:
            raise self._rpc_failure(err) from err
        for message in out.notes:
            try:
                validate(message)
            except MessageValidationError:
                raise map_error(self._log, NoteResponseError()) from None
        return [_to_note(message) for message in out.notes]

    def delete_by_id(self, note_id: uuid.UUID, token: str | None = None) -> Note:
        request = self._id_request(note_id)
        try:
            out = self._client.delete_by_id(request, self._metadata(token))
        except Exception as err:
            raise self._rpc_failure(err) from err
        return self._checked(out)