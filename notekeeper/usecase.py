"""Business operations on notes, delegating storage to a repository."""

from __future__ import annotations

import uuid
from typing import Protocol

from .domain import Note, NoteCreate
from .logger import Logger

__all__ = ["NoteUseCase"]


class _NoteStore(Protocol):
    def create(self, note_create: NoteCreate) -> Note: ...

    def get_by_id(self, note_id: uuid.UUID) -> Note: ...

    def get_multi(self) -> list[Note]: ...

    def delete_by_id(self, note_id: uuid.UUID) -> Note: ...


class NoteUseCase:
    """Note operations; repository errors propagate unchanged."""

    def __init__(self, log: Logger | None, repo: _NoteStore) -> None:
        self._log = log
        self._repo = repo

    def create(self, note_create: NoteCreate) -> Note:
        return self._repo.create(note_create)

    def get_by_id(self, note_id: uuid.UUID) -> Note:
        return self._repo.get_by_id(note_id)

    def get_multi(self) -> list[Note]:
        return self._repo.get_multi()

    def delete_by_id(self, note_id: uuid.UUID) -> Note:
        return self._repo.delete_by_id(note_id)