from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError

from blocknotes.errors import InvalidContent, NotFound, PersistenceFailure, Unauthorized
from blocknotes.models.notes import MessageOut, NoteEnvelope, NoteListEnvelope, NoteOut, NoteWrite
from blocknotes.services.notes_service import NotesService, get_notes_service
from blocknotes.storage.audit_log import AuditEntry, AuditLog, get_audit_log
from blocknotes.utils.jwt_auth import get_current_user

router = APIRouter(prefix="/notes", tags=["notes"])


def _to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, Unauthorized):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, InvalidContent):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
    # PersistenceFailure carries a generic message only
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


async def read_content(request: Request, user_id: str = Depends(get_current_user)) -> Any:
    """Decode the `content` field of the body, only once the caller is identified."""
    try:
        body = await request.json()
    except ValueError:
        raise _to_http(InvalidContent("Request body must be JSON"))
    try:
        payload = NoteWrite.model_validate(body)
    except ValidationError:
        raise _to_http(InvalidContent("Request body must be an object with a content field"))
    return payload.content


@router.get("", response_model=NoteListEnvelope)
def list_notes(
    q: Optional[str] = Query(default=None, max_length=200),
    user_id: str = Depends(get_current_user),
    notes: NotesService = Depends(get_notes_service),
) -> NoteListEnvelope:
    try:
        found = notes.list_notes(user_id, query=q)
    except (Unauthorized, PersistenceFailure) as exc:
        raise _to_http(exc)
    return NoteListEnvelope(notes=[NoteOut(**n.to_dict()) for n in found])


@router.post("", response_model=NoteEnvelope, status_code=status.HTTP_201_CREATED)
def create_note(
    user_id: str = Depends(get_current_user),
    content: Any = Depends(read_content),
    notes: NotesService = Depends(get_notes_service),
    audit: AuditLog = Depends(get_audit_log),
) -> NoteEnvelope:
    try:
        note = notes.create_note(user_id, content)
    except (Unauthorized, InvalidContent, PersistenceFailure) as exc:
        raise _to_http(exc)

    audit.record(AuditEntry.for_note("NOTE_CREATED", note))
    return NoteEnvelope(note=NoteOut(**note.to_dict()))


@router.get("/{note_id}", response_model=NoteEnvelope)
def get_note(
    note_id: str,
    user_id: str = Depends(get_current_user),
    notes: NotesService = Depends(get_notes_service),
) -> NoteEnvelope:
    try:
        note = notes.get_note(user_id, note_id)
    except (Unauthorized, NotFound, PersistenceFailure) as exc:
        raise _to_http(exc)
    return NoteEnvelope(note=NoteOut(**note.to_dict()))


@router.put("/{note_id}", response_model=NoteEnvelope)
def update_note(
    note_id: str,
    user_id: str = Depends(get_current_user),
    content: Any = Depends(read_content),
    notes: NotesService = Depends(get_notes_service),
    audit: AuditLog = Depends(get_audit_log),
) -> NoteEnvelope:
    try:
        updated = notes.update_note(user_id, note_id, content)
    except (Unauthorized, InvalidContent, NotFound, PersistenceFailure) as exc:
        raise _to_http(exc)

    audit.record(AuditEntry.for_note("NOTE_UPDATED", updated))
    return NoteEnvelope(note=NoteOut(**updated.to_dict()))


@router.delete("/{note_id}", response_model=MessageOut)
def delete_note(
    note_id: str,
    user_id: str = Depends(get_current_user),
    notes: NotesService = Depends(get_notes_service),
    audit: AuditLog = Depends(get_audit_log),
) -> MessageOut:
    try:
        notes.delete_note(user_id, note_id)
    except (Unauthorized, NotFound, PersistenceFailure) as exc:
        raise _to_http(exc)

    audit.record(AuditEntry(action="NOTE_DELETED", user_id=user_id, note_id=note_id))
    return MessageOut(message="Note deleted")
