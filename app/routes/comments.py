from fastapi import APIRouter, Depends

from supabase import Client

from ..auth import Authority, get_authority
from ..config import get_db
from ..schemas import CommentCreate
from ..services import notes


router = APIRouter(prefix="/notes/{note_id}/comments", tags=["comments"])


@router.post("")
def add_comment_api(
    note_id: str,
    comment: CommentCreate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return notes.add_comment(db, authority, note_id, comment)


@router.put("/{comment_id}")
def update_comment_api(
    note_id: str,
    comment_id: str,
    comment: CommentCreate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return notes.update_comment(db, authority, note_id, comment_id, comment)


@router.delete("/{comment_id}")
def delete_comment_api(
    note_id: str,
    comment_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return notes.delete_comment(db, authority, note_id, comment_id)
