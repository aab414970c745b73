"""
Access decisions for notes and their comments.

All functions are pure and return booleans; the services raise
``ForbiddenError`` when a decision comes back ``False``.
"""

from typing import Dict, List, Optional

VIEW = "view"
EDIT = "edit"


def find_grant(access_list: Optional[List[Dict]], user_id: str) -> Optional[Dict]:
    """Return the last access-list entry for ``user_id``, if any."""
    grant = None
    for entry in access_list or []:
        if str(entry.get("user")) == str(user_id):
            grant = entry
    return grant


def is_author(authority, resource: Dict) -> bool:
    return str(resource.get("author")) == authority.user_id


def can_read(authority, resource: Dict) -> bool:
    if authority.is_admin or is_author(authority, resource):
        return True
    if resource.get("is_public"):
        return True
    return find_grant(resource.get("access_list"), authority.user_id) is not None


def can_write_edit(authority, resource: Dict) -> bool:
    if authority.is_admin or is_author(authority, resource):
        return True
    grant = find_grant(resource.get("access_list"), authority.user_id)
    return grant is not None and grant.get("access_type") == EDIT


def can_moderate(authority, owner_id) -> bool:
    return authority.is_admin or str(owner_id) == authority.user_id


def readable_filter(authority) -> Optional[str]:
    """
    PostgREST ``or`` expression matching the notes ``can_read`` would allow.

    Access-list membership is matched through the ``shared_with`` array,
    which mirrors the users named in ``access_list``.
    """
    if authority.is_admin:
        return None
    user_id = authority.user_id
    return f"is_public.eq.true,author.eq.{user_id},shared_with.cs.{{{user_id}}}"
