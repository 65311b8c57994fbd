"""Domain model of notes and the errors the services report."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

__all__ = [
    "NoteError",
    "NotFoundError",
    "IsDeletedError",
    "EmptyTitleError",
    "TooLongTitleError",
    "TooLongDescError",
    "InvalidUUIDError",
    "NoteInternalError",
    "ClientInternalError",
    "InvalidDataError",
    "UnauthenticatedError",
    "NoteResponseError",
    "ServiceInternalError",
    "Note",
    "NoteCreate",
    "NoteEvent",
]


class NoteError(Exception):
    """Base of every note service error; an optional detail follows the message."""

    default_message = "note error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        message = f"{self.default_message}: {detail}" if detail else self.default_message
        super().__init__(message)


class NotFoundError(NoteError):
    default_message = "note not found"


class IsDeletedError(NoteError):
    default_message = "note has been deleted"


class EmptyTitleError(NoteError):
    default_message = "required note fields aren't filled"


class TooLongTitleError(NoteError):
    default_message = "note title is too long"


class TooLongDescError(NoteError):
    default_message = "note description is too long"


class InvalidUUIDError(NoteError):
    default_message = "invalid uuid"


class NoteInternalError(NoteError):
    default_message = "internal error in note service"


class ClientInternalError(NoteError):
    default_message = "internal error in client service"


class InvalidDataError(NoteError):
    default_message = "invalid transmitted data"


class UnauthenticatedError(NoteError):
    default_message = "not authenticated"


class NoteResponseError(NoteError):
    default_message = "returned data from note service are not expected"


class ServiceInternalError(NoteError):
    default_message = "internal service error"


@dataclass(frozen=True)
class Note:
    """A stored note."""

    id: uuid.UUID
    title: str
    desc: str
    is_del: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NoteCreate:
    """The data needed to create a note."""

    title: str
    desc: str = ""


@dataclass(frozen=True)
class NoteEvent:
    """Notification that a note was created."""

    id: uuid.UUID
    title: str