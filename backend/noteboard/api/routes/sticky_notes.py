"""Sticky Notes — list history and submit new notes.

Invariants:
    - GET returns at most notes_list_limit notes, newest first, [] when empty
    - POST returns 201 with the stored note; 400 on invalid body or duplicate signature
    - Storage failures surface as 500 via the NoteboardError handler
    - Broadcast happens inside hub.submit, after persistence, before the response
"""

from fastapi import APIRouter, Depends, status

from noteboard.api.dependencies import get_hub
from noteboard.core.broadcast_hub import BroadcastHub
from noteboard.schemas.note import NoteCreate

router = APIRouter(prefix="/api/sticky-notes", tags=["sticky-notes"])


@router.get("")
async def list_sticky_notes(hub: BroadcastHub = Depends(get_hub)):
    """Recent notes, newest first."""
    notes = await hub.list_notes()
    return [note.to_payload() for note in notes]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_sticky_note(
    body: NoteCreate, hub: BroadcastHub = Depends(get_hub),
):
    """Store a note once and broadcast it to live connections."""
    note = await hub.submit(body.to_draft())
    return note.to_payload()
