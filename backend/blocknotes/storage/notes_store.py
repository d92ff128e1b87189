from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, select
from sqlalchemy.orm import Session

from blocknotes.errors import NotFound
from blocknotes.storage.database import Base
from blocknotes.storage.users_store import UserRow


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime) -> str:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat(timespec="microseconds")


class NoteRow(Base):
    __tablename__ = "notes"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    content = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=False)


@dataclass(frozen=True)
class Note:
    id: uuid.UUID
    owner_user_id: str
    content: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": self.owner_user_id,
            "content": [dict(block) for block in self.content],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


def _to_note(row: NoteRow) -> Note:
    return Note(
        id=uuid.UUID(row.id),
        owner_user_id=row.user_id,
        content=list(row.content),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class NotesStore:
    """Owner-scoped persistence for notes.

    Every read and write filters on the owner, so a note belonging to another
    user looks exactly like a note that does not exist.
    """

    def __init__(self, session: Session):
        self.session = session

    def _owned_row(self, note_id: uuid.UUID, owner_id: str) -> NoteRow:
        row = (
            self.session.execute(
                select(NoteRow).where(NoteRow.id == str(note_id), NoteRow.user_id == owner_id)
            )
            .scalars()
            .first()
        )
        if row is None:
            raise NotFound("Note not found")
        return row

    def owner_exists(self, owner_id: str) -> bool:
        return self.session.get(UserRow, owner_id) is not None

    def create(self, owner_id: str, blocks: list[dict[str, Any]]) -> Note:
        now = _utc_now()
        row = NoteRow(
            id=str(uuid.uuid4()),
            user_id=owner_id,
            content=list(blocks),
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return _to_note(row)

    def get_owned(self, note_id: uuid.UUID, owner_id: str) -> Note:
        return _to_note(self._owned_row(note_id, owner_id))

    def list_owned(self, owner_id: str) -> list[Note]:
        # no pagination: fine for a personal notebook, revisit for large accounts
        rows = self.session.execute(
            select(NoteRow).where(NoteRow.user_id == owner_id).order_by(NoteRow.created_at.desc())
        ).scalars()
        return [_to_note(r) for r in rows]

    def update_content(self, note_id: uuid.UUID, owner_id: str, blocks: list[dict[str, Any]]) -> Note:
        row = self._owned_row(note_id, owner_id)
        # assign a new list so the JSON column is flagged dirty
        row.content = list(blocks)
        row.updated_at = _utc_now()
        self.session.commit()
        self.session.refresh(row)
        return _to_note(row)

    def delete(self, note_id: uuid.UUID, owner_id: str) -> None:
        row = self._owned_row(note_id, owner_id)
        self.session.delete(row)
        self.session.commit()
