import uuid
from datetime import datetime, timezone

import pytest

from notekeeper.domain import Note, NoteEvent
from notekeeper.messages import (
    ErrorDetails,
    EventResponse,
    Health,
    MessageValidationError,
    NoteCreateRequest,
    NoteEventMessage,
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


def _note(title="shopping", desc="milk"):
    now = datetime.now(timezone.utc)
    return Note(id=uuid.uuid4(), title=title, desc=desc, is_del=False, created_at=now, updated_at=now)


def test_note_to_message_keeps_fields():
    note = _note()
    message = note_to_message(note)
    assert message.id == str(note.id)
    assert (message.title, message.desc, message.is_del) == (note.title, note.desc, note.is_del)
    assert message.created_at == note.created_at
    assert message.updated_at == note.updated_at


def test_notes_to_message_list_preserves_order():
    notes = [_note("a"), _note("b"), _note("c")]
    result = notes_to_message_list(notes)
    assert [m.id for m in result.notes] == [str(n.id) for n in notes]


def test_event_to_message():
    event = NoteEvent(id=uuid.uuid4(), title="hello")
    message = event_to_message(event)
    assert message == NoteEventMessage(id=str(event.id), title="hello")


def test_validate_returns_valid_message():
    request = NoteCreateRequest(title="t", desc="d")
    assert validate(request) is request


def test_empty_title_rejected():
    with pytest.raises(MessageValidationError) as info:
        validate(NoteCreateRequest(title="", desc=""))
    assert any(v.startswith("title:") for v in info.value.violations)


def test_title_length_limit():
    assert validate(NoteCreateRequest(title="x" * 49)).title == "x" * 49
    with pytest.raises(MessageValidationError):
        validate(NoteCreateRequest(title="x" * 50))


def test_desc_length_limit():
    assert validate(NoteCreateRequest(title="t", desc="d" * 254)).desc == "d" * 254
    with pytest.raises(MessageValidationError):
        validate(NoteCreateRequest(title="t", desc="d" * 255))


def test_title_counts_characters_not_bytes():
    title = "я" * 49
    assert validate(NoteCreateRequest(title=title)).title == title


def test_id_request_requires_uuid():
    good = NoteIDRequest(id=str(uuid.uuid4()))
    assert validate(good) is good
    with pytest.raises(MessageValidationError):
        validate(NoteIDRequest(id="not-a-uuid"))


def test_note_message_requires_timestamps():
    message = note_to_message(_note())
    message.created_at = None
    with pytest.raises(MessageValidationError) as info:
        validate(message)
    assert any("created_at" in v for v in info.value.violations)


def test_note_list_reports_bad_entry():
    good = note_to_message(_note())
    bad = NoteMessage(id="x", title="t", desc="", is_del=False, created_at=None, updated_at=None)
    with pytest.raises(MessageValidationError) as info:
        validate(NoteList(notes=[good, bad]))
    assert all(v.startswith("notes[1].") for v in info.value.violations)


def test_event_response_needs_exactly_one():
    with pytest.raises(ValueError):
        EventResponse()
    with pytest.raises(ValueError):
        EventResponse(health=Health("ok"), note=NoteEventMessage(id="x", title="t"))
    assert EventResponse(health=Health("ok")).note is None


def test_validate_unknown_type():
    with pytest.raises(TypeError):
        validate(object())


def test_rpc_error_carries_code_and_details():
    err = RpcError(StatusCode.NOT_FOUND, "note not found", [ErrorDetails("why")])
    assert err.code is StatusCode.NOT_FOUND
    assert err.message == "note not found"
    assert err.details == (ErrorDetails("why"),)
    assert "note not found" in str(err)