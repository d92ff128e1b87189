from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Union

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blocknotes.errors import NotFound, PersistenceFailure, Unauthorized
from blocknotes.storage.database import get_db
from blocknotes.storage.notes_store import Note, NotesStore
from blocknotes.utils.content_blocks import dump_blocks, parse_content

logger = logging.getLogger(__name__)

NoteId = Union[uuid.UUID, str]


def _matches(note: Note, needle: str) -> bool:
    return any(
        block.get("type") == "text" and needle in str(block.get("content", "")).lower()
        for block in note.content
    )


def _note_uuid(note_id: NoteId) -> uuid.UUID:
    # an id that cannot exist is just another missing note
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(str(note_id))
    except ValueError:
        raise NotFound("Note not found")


class NotesService:
    """Note operations on behalf of a caller.

    Checks always run in the same order: identity, then content, then the
    owner-scoped store call. NotFound from the store is passed through.
    """

    def __init__(self, store: NotesStore):
        self.store = store

    def _rollback(self, action: str, exc: SQLAlchemyError) -> PersistenceFailure:
        logger.error("Failed to %s: %s", action, exc)
        self.store.session.rollback()
        return PersistenceFailure(f"Failed to {action}")

    def _require_identity(self, user_id: Optional[str]) -> str:
        if not user_id:
            raise Unauthorized("Missing credentials")
        try:
            known = self.store.owner_exists(user_id)
        except SQLAlchemyError as exc:
            raise self._rollback("resolve user", exc)
        if not known:
            raise Unauthorized("Unknown user")
        return user_id

    def list_notes(self, user_id: Optional[str], query: Optional[str] = None) -> list[Note]:
        owner = self._require_identity(user_id)
        try:
            notes = self.store.list_owned(owner)
        except SQLAlchemyError as exc:
            raise self._rollback("list notes", exc)

        needle = (query or "").strip().lower()
        if not needle:
            return notes
        return [n for n in notes if _matches(n, needle)]

    def create_note(self, user_id: Optional[str], raw_content: Any) -> Note:
        owner = self._require_identity(user_id)
        blocks = dump_blocks(parse_content(raw_content))
        try:
            return self.store.create(owner, blocks)
        except SQLAlchemyError as exc:
            raise self._rollback("create note", exc)

    def get_note(self, user_id: Optional[str], note_id: NoteId) -> Note:
        owner = self._require_identity(user_id)
        nid = _note_uuid(note_id)
        try:
            return self.store.get_owned(nid, owner)
        except SQLAlchemyError as exc:
            raise self._rollback("get note", exc)

    def update_note(self, user_id: Optional[str], note_id: NoteId, raw_content: Any) -> Note:
        owner = self._require_identity(user_id)
        blocks = dump_blocks(parse_content(raw_content))
        nid = _note_uuid(note_id)
        try:
            return self.store.update_content(nid, owner, blocks)
        except SQLAlchemyError as exc:
            raise self._rollback("update note", exc)

    def delete_note(self, user_id: Optional[str], note_id: NoteId) -> None:
        owner = self._require_identity(user_id)
        nid = _note_uuid(note_id)
        try:
            self.store.delete(nid, owner)
        except SQLAlchemyError as exc:
            raise self._rollback("delete note", exc)


def get_notes_service(db: Session = Depends(get_db)) -> NotesService:
    return NotesService(NotesStore(db))
