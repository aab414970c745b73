"""Note repository: notes, their access lists and comment threads."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from supabase import Client

from .. import crud
from ..access import can_moderate, can_read, can_write_edit, is_author, readable_filter
from ..aggregates import SubResources
from ..errors import ForbiddenError, NotFoundError
from ..schemas import CommentCreate, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _shared_with(access_list: List[Dict]) -> List[str]:
    """Users named in ``access_list``, kept alongside it for list queries."""
    users = []
    for grant in access_list:
        if grant["user"] not in users:
            users.append(grant["user"])
    return users


def _require_note(db: Client, note_id: str) -> Dict:
    note = crud.get_by_id(db, "notes", note_id)
    if not note:
        raise NotFoundError("Note not found")
    return note


def _deny(authority, note_id: str, action: str):
    logger.warning(f"User {authority.user_id} denied {action} on note {note_id}")
    raise ForbiddenError("Access denied")


def _populated(db: Client, notes: List[Dict]) -> List[Dict]:
    notes = crud.populate(db, notes, "author")
    notes = crud.populate(db, notes, "course", "courses", crud.COURSE_FIELDS)
    notes = crud.populate(db, notes, "access_list.user")
    return crud.populate(db, notes, "comments.user")


def _search_filter(search: str) -> str:
    term = search.replace("\\", "\\\\").replace('"', '\\"')
    return f'title.ilike."*{term}*",content.ilike."*{term}*"'


def list_notes(
    db: Client,
    authority,
    course: Optional[str] = None,
    search: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> List[Dict]:
    """
    List the notes visible to the caller.

    Non-admin callers only receive public notes, notes they wrote and notes
    whose access list names them. ``search`` matches title or content,
    case-insensitively; ``tags`` matches notes carrying any of the tags.
    """
    access = readable_filter(authority)
    matches = _search_filter(search) if search else None
    if access and matches:
        any_of = f"and(or({access}),or({matches}))"
    else:
        any_of = access or matches

    notes = crud.list_notes(db, course=course, tags=tags or None, any_of=any_of)
    return _populated(db, notes)


def get_note(db: Client, authority, note_id: str) -> Dict:
    """
    Return a note and count the view.

    Every successful read increments ``view_count``. The increment is a
    read-modify-write without locking, so concurrent reads may lose counts.
    """
    note = _require_note(db, note_id)
    if not can_read(authority, note):
        _deny(authority, note_id, "read")

    note = crud.update_by_id(
        db, "notes", note_id, {"view_count": int(note.get("view_count") or 0) + 1}
    )
    if note is None:
        raise NotFoundError("Note not found")
    return _populated(db, [note])[0]


def create_note(db: Client, authority, payload: NoteCreate) -> Dict:
    authority.require_admin("create notes")

    if payload.course and not crud.get_by_id(db, "courses", payload.course):
        raise NotFoundError("Course not found")

    access_list = [grant.model_dump() for grant in payload.access_list]
    now = _now()
    note = crud.insert(
        db,
        "notes",
        {
            "title": payload.title,
            "content": payload.content,
            "course": payload.course,
            "author": authority.user_id,
            "tags": payload.tags,
            "is_public": True if payload.is_public is None else payload.is_public,
            "access_list": access_list,
            "shared_with": _shared_with(access_list),
            "view_count": 0,
            "comments": [],
            "created_at": now,
            "updated_at": now,
        },
    )
    logger.info(f"Note {note['id']} created by {authority.user_id}")
    return _populated(db, [note])[0]


def update_note(db: Client, authority, note_id: str, payload: NoteUpdate) -> Dict:
    note = _require_note(db, note_id)
    if not can_write_edit(authority, note):
        _deny(authority, note_id, "update")

    if payload.course and not crud.get_by_id(db, "courses", payload.course):
        raise NotFoundError("Course not found")

    data = payload.model_dump()
    data["shared_with"] = _shared_with(data["access_list"])
    data["updated_at"] = _now()

    note = crud.update_by_id(db, "notes", note_id, data)
    logger.info(f"Note {note_id} updated by {authority.user_id}")
    return _populated(db, [note])[0]


def delete_note(db: Client, authority, note_id: str) -> Dict:
    note = _require_note(db, note_id)
    if not authority.is_admin and not is_author(authority, note):
        _deny(authority, note_id, "delete")

    crud.delete_by_id(db, "notes", note_id)
    logger.info(f"Note {note_id} deleted by {authority.user_id}")
    return {"message": "Note deleted successfully"}


# Comments


def _comment_with_user(db: Client, comment: Dict) -> Dict:
    return crud.populate(db, [comment], "user")[0]


def add_comment(db: Client, authority, note_id: str, payload: CommentCreate) -> Dict:
    note = _require_note(db, note_id)
    if not can_read(authority, note):
        _deny(authority, note_id, "comment")

    comments = SubResources(note.get("comments"))
    now = _now()
    comment = comments.append(
        {
            "user": authority.user_id,
            "content": payload.content,
            "created_at": now,
            "updated_at": now,
        }
    )
    crud.update_by_id(db, "notes", note_id, {"comments": comments.to_list()})
    logger.info(f"Comment {comment['id']} added to note {note_id}")
    return _comment_with_user(db, comment)


def _require_comment(db: Client, authority, note_id: str, comment_id: str):
    note = _require_note(db, note_id)
    comments = SubResources(note.get("comments"))
    comment = comments.get(comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    if not can_moderate(authority, comment.get("user")):
        logger.warning(
            f"User {authority.user_id} denied moderation of comment {comment_id}"
        )
        raise ForbiddenError("Access denied")
    return comments, comment


def update_comment(
    db: Client, authority, note_id: str, comment_id: str, payload: CommentCreate
) -> Dict:
    comments, comment = _require_comment(db, authority, note_id, comment_id)
    comment["content"] = payload.content
    comment["updated_at"] = _now()

    crud.update_by_id(db, "notes", note_id, {"comments": comments.to_list()})
    logger.info(f"Comment {comment_id} on note {note_id} edited")
    return _comment_with_user(db, comment)


def delete_comment(db: Client, authority, note_id: str, comment_id: str) -> Dict:
    comments, _ = _require_comment(db, authority, note_id, comment_id)
    comments.remove(comment_id)

    crud.update_by_id(db, "notes", note_id, {"comments": comments.to_list()})
    logger.info(f"Comment {comment_id} removed from note {note_id}")
    return {"message": "Comment deleted successfully"}
