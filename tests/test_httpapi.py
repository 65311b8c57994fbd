import uuid
from datetime import datetime, timezone
from http import HTTPStatus

import pytest

from notekeeper.domain import (
    EmptyTitleError,
    InvalidDataError,
    InvalidUUIDError,
    IsDeletedError,
    Note,
    NoteCreate,
    NoteInternalError,
    NotFoundError,
    ServiceInternalError,
    TooLongDescError,
    TooLongTitleError,
    UnauthenticatedError,
)
from notekeeper.httpapi import HttpNoteHandler, Response, map_error, write_response

STAMP = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class RecordingLog:
    def __init__(self):
        self.entries = []

    def debug(self, msg, *args):
        self.entries.append(("debug", msg, args))

    def info(self, msg, *args):
        self.entries.append(("info", msg, args))

    def warn(self, msg, *args):
        self.entries.append(("warn", msg, args))

    def error(self, msg, *args):
        self.entries.append(("error", msg, args))

    def sync(self):
        pass


def make_note(note_id=None, title="title", desc="", is_del=False, stamp=STAMP):
    return Note(
        id=note_id or uuid.uuid4(),
        title=title,
        desc=desc,
        is_del=is_del,
        created_at=stamp,
        updated_at=stamp,
    )


class FakeGateway:
    def __init__(self, notes=(), error=None):
        self.calls = []
        self.notes = list(notes)
        self.error = error

    def _record(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def create(self, item, token=None):
        self._record("create", item, token)
        return make_note(title=item.title, desc=item.desc)

    def get_by_id(self, note_id, token=None):
        self._record("get_by_id", note_id, token)
        return make_note(note_id)

    def get_multi(self, token=None):
        self._record("get_multi", token)
        return self.notes

    def delete_by_id(self, note_id, token=None):
        self._record("delete_by_id", note_id, token)
        return make_note(note_id, is_del=True)


def make_handler(**kwargs):
    gateway = FakeGateway(**kwargs)
    return HttpNoteHandler(RecordingLog(), gateway), gateway


def test_create_trims_fields_and_passes_token():
    handler, gateway = make_handler()
    response = handler.create(
        b'{"title": "  Hello ", "description": " text "}', {"authorization": "Bearer token"}
    )
    assert response.status == HTTPStatus.CREATED
    assert gateway.calls == [("create", NoteCreate(title="Hello", desc="text"), "Bearer token")]
    payload = response.json()
    assert payload["title"] == "Hello"
    assert payload["description"] == "text"
    assert payload["is_delete"] is False
    assert set(payload) == {"uuid", "title", "description", "is_delete", "created_at", "updated_at"}


def test_create_without_authorization_sends_no_token():
    handler, gateway = make_handler()
    handler.create(b'{"title": "a"}', {})
    assert gateway.calls[0][2] is None


def test_create_matches_keys_case_insensitively():
    handler, gateway = make_handler()
    handler.create(b'{"Title": "x", "DESCRIPTION": "y"}')
    assert gateway.calls[0][1] == NoteCreate(title="x", desc="y")


@pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'{"title": 5}'])
def test_create_rejects_malformed_body(body):
    handler, gateway = make_handler()
    response = handler.create(body)
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.json() == {"error": str(InvalidDataError())}
    assert gateway.calls == []


@pytest.mark.parametrize(
    "body, reason",
    [
        (b'{"title": "   "}', EmptyTitleError),
        (b'{"title": "' + b"a" * 50 + b'"}', TooLongTitleError),
        (b'{"title": "a", "description": "' + b"d" * 255 + b'"}', TooLongDescError),
    ],
)
def test_create_validates_lengths(body, reason):
    handler, gateway = make_handler()
    response = handler.create(body)
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.json() == {"error": str(InvalidDataError(str(reason())))}
    assert gateway.calls == []


def test_create_accepts_limits_minus_one():
    handler, _ = make_handler()
    body = ('{"title": "' + "t" * 49 + '", "description": "' + "d" * 254 + '"}').encode()
    assert handler.create(body).status == HTTPStatus.CREATED


@pytest.mark.parametrize("raw_id", ["nope", str(uuid.UUID(int=0))])
def test_get_by_id_rejects_bad_ids(raw_id):
    handler, gateway = make_handler()
    response = handler.get_by_id(raw_id)
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.json() == {"error": str(InvalidUUIDError())}
    assert gateway.calls == []


def test_get_by_id_returns_note():
    handler, gateway = make_handler()
    note_id = uuid.uuid4()
    response = handler.get_by_id(str(note_id), {"Authorization": "Bearer token"})
    assert response.status == HTTPStatus.OK
    assert response.json()["uuid"] == str(note_id)
    assert gateway.calls == [("get_by_id", note_id, "Bearer token")]


@pytest.mark.parametrize(
    "error, status",
    [
        (NotFoundError(), HTTPStatus.NOT_FOUND),
        (IsDeletedError(), HTTPStatus.GONE),
        (UnauthenticatedError("missing metadata"), HTTPStatus.UNAUTHORIZED),
        (NoteInternalError(), HTTPStatus.INTERNAL_SERVER_ERROR),
        (InvalidDataError("bad"), HTTPStatus.BAD_REQUEST),
    ],
)
def test_gateway_errors_map_to_status(error, status):
    handler, _ = make_handler(error=error)
    response = handler.get_by_id(str(uuid.uuid4()))
    assert response.status == status
    assert response.json() == {"error": str(error)}


def test_unknown_error_is_hidden_and_logged():
    log = RecordingLog()
    status, message = map_error(log, RuntimeError("boom"))
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert message == str(ServiceInternalError())
    assert [entry[1] for entry in log.entries] == ["unknown error"]


def test_get_multi_lists_notes():
    notes = [make_note(title="a"), make_note(title="b")]
    handler, _ = make_handler(notes=notes)
    response = handler.get_multi()
    assert response.status == HTTPStatus.OK
    assert [item["uuid"] for item in response.json()] == [str(n.id) for n in notes]


def test_delete_by_id_reports_deleted_note():
    handler, gateway = make_handler()
    note_id = uuid.uuid4()
    response = handler.delete_by_id(str(note_id))
    assert response.status == HTTPStatus.OK
    assert response.json()["is_delete"] is True
    assert gateway.calls == [("delete_by_id", note_id, None)]


def test_timestamps_are_rfc3339():
    payload = make_handler()[0].get_multi().json()
    assert payload == []
    handler, _ = make_handler(notes=[make_note()])
    assert handler.get_multi().json()[0]["created_at"] == "2024-01-02T03:04:05Z"


def test_fractional_seconds_are_trimmed():
    stamp = STAMP.replace(microsecond=500000)
    handler, _ = make_handler(notes=[make_note(stamp=stamp)])
    assert handler.get_multi().json()[0]["updated_at"] == "2024-01-02T03:04:05.5Z"


def test_write_response_escapes_html_and_ends_with_newline():
    response = write_response(RecordingLog(), HTTPStatus.OK, {"title": "<b>"})
    assert b"\\u003cb\\u003e" in response.body
    assert response.body.endswith(b"\n")
    assert response.json() == {"title": "<b>"}
    assert response.headers["Content-Type"] == "application/json"


def test_write_response_without_data_has_empty_body():
    response = write_response(RecordingLog(), HTTPStatus.NO_CONTENT, None)
    assert response == Response(HTTPStatus.NO_CONTENT, {"Content-Type": "application/json"})


def test_write_response_logs_unencodable_data():
    log = RecordingLog()
    response = write_response(log, HTTPStatus.OK, {"value": object()})
    assert response.body == b""
    assert log.entries[0][1] == "failed to parse response data to client"