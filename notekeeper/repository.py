"""In-memory, thread-safe storage of notes."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from .domain import IsDeletedError, Note, NoteCreate, NotFoundError
from .logger import Logger

__all__ = ["NoteRepository"]


@dataclass
class _NoteRow:
    id: uuid.UUID
    title: str
    desc: str
    created_at: datetime
    updated_at: datetime
    is_del: bool = False

    def to_note(self) -> Note:
        return Note(
            id=self.id,
            title=self.title,
            desc=self.desc,
            is_del=self.is_del,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class NoteRepository:
    """Keeps notes in memory; deleted notes stay stored, marked as deleted."""

    def __init__(self, log: Logger | None = None) -> None:
        self._log = log
        self._lock = threading.Lock()
        self._rows: dict[uuid.UUID, _NoteRow] = {}

    def _new_id(self) -> uuid.UUID:
        note_id = uuid.uuid4()
        while note_id in self._rows:
            note_id = uuid.uuid4()
        return note_id

    def _live_row(self, note_id: uuid.UUID) -> _NoteRow:
        row = self._rows.get(note_id)
        if row is None:
            raise NotFoundError()
        if row.is_del:
            raise IsDeletedError()
        return row

    def create(self, note_create: NoteCreate) -> Note:
        """Store a new note and return it."""
        with self._lock:
            created_at = datetime.now(timezone.utc)
            row = _NoteRow(
                id=self._new_id(),
                title=note_create.title,
                desc=note_create.desc,
                created_at=created_at,
                updated_at=created_at,
            )
            self._rows[row.id] = row
            return row.to_note()

    def get_by_id(self, note_id: uuid.UUID) -> Note:
        """Return the note; raise NotFoundError or IsDeletedError."""
        with self._lock:
            return self._live_row(note_id).to_note()

    def get_multi(self) -> list[Note]:
        """Return every note that has not been deleted."""
        with self._lock:
            return [row.to_note() for row in self._rows.values() if not row.is_del]

    def delete_by_id(self, note_id: uuid.UUID) -> Note:
        """Mark the note deleted and return it; raise as get_by_id does."""
        with self._lock:
            row = self._live_row(note_id)
            row.is_del = True
            row.updated_at = datetime.now(timezone.utc)
            return row.to_note()