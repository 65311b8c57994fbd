"""Wire messages of the note API, their validation rules and status codes."""

from __future__ import annotations

import enum
import functools
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from .domain import Note, NoteEvent

__all__ = [
    "StatusCode",
    "RpcError",
    "MessageValidationError",
    "NoteMessage",
    "NoteCreateRequest",
    "NoteIDRequest",
    "NoteList",
    "NoteEventMessage",
    "Health",
    "EventResponse",
    "ErrorDetails",
    "validate",
    "note_to_message",
    "notes_to_message_list",
    "event_to_message",
]

TITLE_MAX_LENGTH = 49
DESC_MAX_LENGTH = 254

_UUID_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


class StatusCode(enum.Enum):
    """Status codes of a remote call."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


@dataclass(frozen=True)
class ErrorDetails:
    """Extra detail attached to an invalid-argument status."""

    detail: str


class RpcError(Exception):
    """A failed remote call: a status code, a message and optional details."""

    def __init__(
        self, code: StatusCode, message: str, details: Iterable[ErrorDetails] = ()
    ) -> None:
        self.code = code
        self.message = message
        self.details = tuple(details)
        super().__init__(f"rpc error: code = {code.name} desc = {message}")


class MessageValidationError(ValueError):
    """A message breaks one or more of its field rules."""

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations = list(violations)
        super().__init__("validation error: " + "; ".join(self.violations))


@dataclass
class NoteCreateRequest:
    title: str = ""
    desc: str = ""


@dataclass
class NoteIDRequest:
    id: str = ""


@dataclass
class NoteMessage:
    id: str
    title: str
    desc: str
    is_del: bool
    created_at: datetime | None
    updated_at: datetime | None


@dataclass
class NoteList:
    notes: list[NoteMessage] = field(default_factory=list)


@dataclass
class NoteEventMessage:
    id: str
    title: str


@dataclass
class Health:
    message: str


@dataclass
class EventResponse:
    """A subscription message carrying either a health notice or a note event."""

    health: Health | None = None
    note: NoteEventMessage | None = None

    def __post_init__(self) -> None:
        if (self.health is None) == (self.note is None):
            raise ValueError("exactly one of health or note must be set")


# Messages that carry no field rules of their own.
_RULE_FREE_TYPES = (Health, ErrorDetails)


def _uuid_violations(name: str, value: str) -> list[str]:
    if _UUID_PATTERN.fullmatch(value):
        return []
    return [f"{name}: value must be a valid UUID"]


def _title_violations(name: str, value: str) -> list[str]:
    if len(value) < 1:
        return [f"{name}: value length must be at least 1 characters"]
    if len(value) > TITLE_MAX_LENGTH:
        return [f"{name}: value length must be at most {TITLE_MAX_LENGTH} characters"]
    return []


def _desc_violations(name: str, value: str) -> list[str]:
    if len(value) > DESC_MAX_LENGTH:
        return [f"{name}: value length must be at most {DESC_MAX_LENGTH} characters"]
    return []


@functools.singledispatch
def _violations(message: object, prefix: str = "") -> list[str]:
    if isinstance(message, _RULE_FREE_TYPES):
        return []
    raise TypeError(f"no validation rules for {type(message).__name__}")


@_violations.register
def _(message: NoteCreateRequest, prefix: str = "") -> list[str]:
    return _title_violations(prefix + "title", message.title) + _desc_violations(
        prefix + "desc", message.desc
    )


@_violations.register
def _(message: NoteIDRequest, prefix: str = "") -> list[str]:
    return _uuid_violations(prefix + "id", message.id)


@_violations.register
def _(message: NoteMessage, prefix: str = "") -> list[str]:
    found = _uuid_violations(prefix + "id", message.id)
    found += _title_violations(prefix + "title", message.title)
    found += _desc_violations(prefix + "desc", message.desc)
    for name, stamp in (("created_at", message.created_at), ("updated_at", message.updated_at)):
        if stamp is None:
            found.append(f"{prefix}{name}: value is required")
    return found


@_violations.register
def _(message: NoteList, prefix: str = "") -> list[str]:
    found: list[str] = []
    for position, note in enumerate(message.notes):
        found += _violations(note, f"{prefix}notes[{position}].")
    return found


@_violations.register
def _(message: NoteEventMessage, prefix: str = "") -> list[str]:
    return _uuid_violations(prefix + "id", message.id) + _title_violations(
        prefix + "title", message.title
    )


@_violations.register
def _(message: EventResponse, prefix: str = "") -> list[str]:
    if message.note is not None:
        return _violations(message.note, prefix + "note.")
    return _violations(message.health, prefix + "health.")


def validate(message: object) -> object:
    """Check a message against its rules; return it, or raise MessageValidationError."""
    found = _violations(message)
    if found:
        raise MessageValidationError(found)
    return message


def note_to_message(note: Note) -> NoteMessage:
    return NoteMessage(
        id=str(note.id),
        title=note.title,
        desc=note.desc,
        is_del=note.is_del,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def notes_to_message_list(notes: Iterable[Note]) -> NoteList:
    return NoteList(notes=[note_to_message(note) for note in notes])


def event_to_message(event: NoteEvent) -> NoteEventMessage:
    return NoteEventMessage(id=str(event.id), title=event.title)