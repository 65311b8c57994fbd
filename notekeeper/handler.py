"""Note service endpoints: validation, error mapping and event subscription."""

from __future__ import annotations

import dataclasses
import threading
import uuid
from collections.abc import Callable
from typing import Protocol

from .domain import (
    EmptyTitleError,
    InvalidDataError,
    InvalidUUIDError,
    IsDeletedError,
    Note,
    NoteCreate,
    NoteEvent,
    NoteResponseError,
    NotFoundError,
    TooLongDescError,
    TooLongTitleError,
)
from .eventbus import ConsumeCancelled
from .logger import Field, Logger
from .messages import (
    ErrorDetails,
    EventResponse,
    Health,
    MessageValidationError,
    NoteCreateRequest,
    NoteIDRequest,
    NoteList,
    NoteMessage,
    RpcError,
    StatusCode,
    event_to_message,
    note_to_message,
    notes_to_message_list,
    validate,
)

__all__ = ["NoteHandler", "map_error"]

_INVALID_ARGUMENT_ERRORS = (
    InvalidDataError,
    EmptyTitleError,
    TooLongTitleError,
    TooLongDescError,
    InvalidUUIDError,
)


class _NoteOperations(Protocol):
    def create(self, note_create: NoteCreate) -> Note: ...

    def get_by_id(self, note_id: uuid.UUID) -> Note: ...

    def get_multi(self) -> list[Note]: ...

    def delete_by_id(self, note_id: uuid.UUID) -> Note: ...


class _Bus(Protocol):
    def produce(self, event: NoteEvent) -> object: ...

    def consume(self, cancel: threading.Event | None = None) -> NoteEvent: ...


def map_error(log: Logger, err: BaseException) -> RpcError:
    """Turn a service error into the status error returned to the caller."""
    if isinstance(err, NotFoundError):
        return RpcError(StatusCode.NOT_FOUND, str(err))
    if isinstance(err, IsDeletedError):
        return RpcError(StatusCode.FAILED_PRECONDITION, str(err))
    if isinstance(err, _INVALID_ARGUMENT_ERRORS):
        return RpcError(
            StatusCode.INVALID_ARGUMENT,
            InvalidDataError.default_message,
            [ErrorDetails(str(err))],
        )
    log.error("unknown service error", Field("error", err))
    return RpcError(StatusCode.INTERNAL, "internal error in note service")


def _is_context_error(err: BaseException) -> bool:
    if isinstance(err, (ConsumeCancelled, TimeoutError)):
        return True
    return isinstance(err, RpcError) and err.code in (
        StatusCode.CANCELLED,
        StatusCode.DEADLINE_EXCEEDED,
    )


class NoteHandler:
    """Serves note calls; every failure is raised as an RpcError."""

    def __init__(self, log: Logger, bus: _Bus, usecase: _NoteOperations) -> None:
        self._log = log
        self._bus = bus
        self._usecase = usecase

    def _checked_response(self, note: Note) -> NoteMessage:
        message = note_to_message(note)
        try:
            validate(message)
        except MessageValidationError:
            raise map_error(self._log, NoteResponseError()) from None
        return message

    def _parse_id(self, request: NoteIDRequest) -> uuid.UUID:
        try:
            validate(request)
        except MessageValidationError:
            raise map_error(self._log, InvalidUUIDError()) from None
        return uuid.UUID(request.id)

    def create(self, request: NoteCreateRequest) -> NoteMessage:
        request = dataclasses.replace(
            request, title=request.title.strip(), desc=request.desc.strip()
        )
        try:
            validate(request)
        except MessageValidationError as err:
            raise map_error(self._log, InvalidDataError(str(err))) from err
        try:
            note = self._usecase.create(NoteCreate(title=request.title, desc=request.desc))
        except Exception as err:
            raise map_error(self._log, err) from err
        self._bus.produce(NoteEvent(id=note.id, title=note.title))
        return self._checked_response(note)

    def get_by_id(self, request: NoteIDRequest) -> NoteMessage:
        note_id = self._parse_id(request)
        try:
            note = self._usecase.get_by_id(note_id)
        except Exception as err:
            raise map_error(self._log, err) from err
        return self._checked_response(note)

    def get_multi(self) -> NoteList:
        try:
            notes = self._usecase.get_multi()
        except Exception as err:
            raise map_error(self._log, err) from err
        result = notes_to_message_list(notes)
        for message in result.notes:
            try:
                validate(message)
            except MessageValidationError:
                raise map_error(self._log, NoteResponseError()) from None
        return result

    def delete_by_id(self, request: NoteIDRequest) -> NoteMessage:
        note_id = self._parse_id(request)
        try:
            note = self._usecase.delete_by_id(note_id)
        except Exception as err:
            raise map_error(self._log, err) from err
        return self._checked_response(note)

    def subscribe_to_events(
        self,
        send: Callable[[EventResponse], object],
        cancel: threading.Event | None = None,
    ) -> None:
        """Stream a health notice, then every bus event, until cancelled."""
        try:
            send(EventResponse(health=Health("event subscription is successful")))
        except Exception as err:
            self._handle_failure(err, "failed to send event")
            return
        while True:
            try:
                event = self._bus.consume(cancel)
            except Exception as err:
                self._handle_failure(err, "failed to consume event bus")
                return
            try:
                send(EventResponse(note=event_to_message(event)))
            except Exception as err:
                self._handle_failure(err, "failed to send event")
                return

    def _handle_failure(self, err: Exception, what: str) -> None:
        if _is_context_error(err):
            self._log.info("stream context done", Field("reason", err))
            return
        self._log.error(what, Field("error", err))
        raise RpcError(StatusCode.INTERNAL, "internal error") from err