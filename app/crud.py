import json
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from supabase import Client

from .errors import InternalError

logger = logging.getLogger(__name__)

USER_FIELDS = "id, username, full_name"
COURSE_FIELDS = "id, title, code"


def _execute(query, action: str):
    try:
        return query.execute()
    except Exception as e:
        logger.error(f"Supabase {action} failed: {e}", exc_info=True)
        raise InternalError(f"Database error while trying to {action}") from e


def _first(result) -> Optional[Dict]:
    return result.data[0] if result.data else None


def is_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def get_by_id(db: Client, table: str, row_id: str) -> Optional[Dict]:
    """Fetch a single row by primary key, or None when ``row_id`` is not a UUID."""
    if not is_uuid(row_id):
        return None
    query = db.table(table).select("*").eq("id", str(row_id))
    return _first(_execute(query, f"read {table}"))


def insert(db: Client, table: str, data: dict) -> Optional[Dict]:
    """Insert a row and return it as stored."""
    return _first(_execute(db.table(table).insert(data), f"insert into {table}"))


def update_by_id(db: Client, table: str, row_id: str, data: dict) -> Optional[Dict]:
    """Update the given fields of a row and return it as stored."""
    if not is_uuid(row_id):
        return None
    query = db.table(table).update(data).eq("id", str(row_id))
    return _first(_execute(query, f"update {table}"))


def delete_by_id(db: Client, table: str, row_id: str) -> None:
    """Delete a row by primary key."""
    if not is_uuid(row_id):
        return
    _execute(db.table(table).delete().eq("id", str(row_id)), f"delete from {table}")


# Users


def list_users(db: Client, fields: str = "*") -> List[Dict]:
    """Every user profile, newest first."""
    query = db.table("users").select(fields).order("created_at", desc=True)
    return _execute(query, "list users").data


# Courses


def find_course_by_code(db: Client, code: str) -> Optional[Dict]:
    query = db.table("courses").select("*").eq("code", code)
    return _first(_execute(query, "read courses"))


def list_active_courses(db: Client) -> List[Dict]:
    query = (
        db.table("courses")
        .select("*")
        .eq("is_active", True)
        .order("created_at", desc=True)
    )
    return _execute(query, "list courses").data


# Notes


def list_notes(
    db: Client,
    course: Optional[str] = None,
    tags: Optional[List[str]] = None,
    any_of: Optional[str] = None,
) -> List[Dict]:
    """
    List notes matching the given filters, newest first.

    Args:
        course: Restrict to one course id
        tags: Match notes carrying at least one of these tags
        any_of: Raw PostgREST ``or`` expression
    """
    if course and not is_uuid(course):
        return []
    query = db.table("notes").select("*")
    if course:
        query = query.eq("course", course)
    if tags:
        query = query.ov("tags", tags)
    if any_of:
        query = query.or_(any_of)
    return _execute(query.order("created_at", desc=True), "list notes").data


# Assignments


def list_assignments(db: Client, active_only: bool = False) -> List[Dict]:
    query = db.table("assignments").select("*")
    if active_only:
        query = query.eq("is_active", True)
    return _execute(query.order("created_at", desc=True), "list assignments").data


def list_assignments_submitted_by(db: Client, user_id: str) -> List[Dict]:
    """Assignments holding a submission by ``user_id``."""
    query = (
        db.table("assignments")
        .select("*")
        .filter("submissions", "cs", json.dumps([{"student": str(user_id)}]))
        .order("created_at", desc=True)
    )
    return _execute(query, "list submissions").data


# References


def _collect(value, path: List[str], found: set) -> None:
    if value is None:
        return
    if isinstance(value, list):
        for item in value:
            _collect(item, path, found)
        return
    if not path:
        if isinstance(value, (str, int)):
            found.add(str(value))
        return
    if isinstance(value, dict):
        _collect(value.get(path[0]), path[1:], found)


def _replace(value, path: List[str], lookup: Dict[str, Dict]):
    if value is None:
        return None
    if isinstance(value, list):
        return [_replace(item, path, lookup) for item in value]
    if not path:
        if isinstance(value, (str, int)):
            return lookup.get(str(value), value)
        return value
    if isinstance(value, dict) and path[0] in value:
        value = dict(value)
        value[path[0]] = _replace(value[path[0]], path[1:], lookup)
    return value


def populate(
    db: Client,
    docs: Iterable[Dict],
    path: str,
    table: str = "users",
    fields: str = USER_FIELDS,
) -> List[Dict]:
    """
    Resolve a stored reference into the referenced row's selected fields.

    ``path`` is dotted and walks through lists, so ``"comments.user"``
    resolves the author of every comment. References that no longer resolve
    are left as plain ids.
    """
    docs = list(docs)
    keys = path.split(".")
    ids: set = set()
    _collect(docs, keys, ids)
    ids = {i for i in ids if is_uuid(i)}
    if not ids:
        return docs

    query = db.table(table).select(fields).in_("id", sorted(ids))
    lookup = {str(row["id"]): row for row in _execute(query, f"read {table}").data}
    return [_replace(doc, keys, lookup) for doc in docs]
