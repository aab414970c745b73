# notes.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from supabase import Client

from ..auth import Authority, get_authority
from ..config import get_db
from ..schemas import NoteCreate, NoteUpdate
from ..services import notes

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("")
def list_notes_api(
    course: Optional[str] = Query(None, description="Only notes of this course"),
    search: Optional[str] = Query(None, description="Text to find in title or content"),
    tags: Optional[str] = Query(None, description="Comma separated tags, any match"),
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()] if tags else None
    return notes.list_notes(db, authority, course=course, search=search, tags=tag_list)


@router.get("/{note_id}")
def get_note_api(
    note_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return notes.get_note(db, authority, note_id)


@router.post("", status_code=201)
def create_note_api(
    payload: NoteCreate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return notes.create_note(db, authority, payload)


@router.put("/{note_id}")
def update_note_api(
    note_id: str,
    payload: NoteUpdate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return notes.update_note(db, authority, note_id, payload)


@router.delete("/{note_id}")
def delete_note_api(
    note_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return notes.delete_note(db, authority, note_id)
