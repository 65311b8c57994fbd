import uuid

import pytest

from notekeeper.domain import IsDeletedError, NoteCreate, NotFoundError
from notekeeper.repository import NoteRepository


@pytest.fixture
def repo():
    return NoteRepository()


def test_create_returns_stored_note(repo):
    note = repo.create(NoteCreate("title", "desc"))
    assert note.title == "title"
    assert note.desc == "desc"
    assert note.is_del is False
    assert note.created_at == note.updated_at


def test_get_by_id_round_trip(repo):
    note = repo.create(NoteCreate("a", "b"))
    assert repo.get_by_id(note.id) == note


def test_get_unknown_raises_not_found(repo):
    with pytest.raises(NotFoundError):
        repo.get_by_id(uuid.uuid4())


def test_delete_marks_deleted(repo):
    note = repo.create(NoteCreate("a"))
    deleted = repo.delete_by_id(note.id)
    assert deleted.is_del is True
    assert deleted.id == note.id
    assert deleted.updated_at >= note.created_at
    assert deleted.created_at == note.created_at


def test_get_deleted_raises(repo):
    note = repo.create(NoteCreate("a"))
    repo.delete_by_id(note.id)
    with pytest.raises(IsDeletedError):
        repo.get_by_id(note.id)


def test_delete_twice_raises(repo):
    note = repo.create(NoteCreate("a"))
    repo.delete_by_id(note.id)
    with pytest.raises(IsDeletedError):
        repo.delete_by_id(note.id)


def test_delete_unknown_raises_not_found(repo):
    with pytest.raises(NotFoundError):
        repo.delete_by_id(uuid.uuid4())


def test_get_multi_excludes_deleted(repo):
    keep = repo.create(NoteCreate("keep"))
    drop = repo.create(NoteCreate("drop"))
    repo.delete_by_id(drop.id)
    assert [n.id for n in repo.get_multi()] == [keep.id]


def test_ids_are_unique(repo):
    ids = {repo.create(NoteCreate(f"n{i}")).id for i in range(50)}
    assert len(ids) == 50
    assert len(repo.get_multi()) == 50


def test_empty_repository_lists_nothing(repo):
    assert repo.get_multi() == []