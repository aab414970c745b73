"""User directory: account statistics for the admin dashboard."""

import logging
from typing import Dict

from supabase import Client

from .. import crud
from ..auth import ADMIN_ROLE

logger = logging.getLogger(__name__)

STUDENT_ROLE = "student"
RECENT_USERS = 5
OVERVIEW_FIELDS = "id, username, full_name, role, created_at"


def overview(db: Client, authority) -> Dict:
    """
    Count user accounts by role and list the newest ones.

    Educators are part of ``totalUsers`` but have no counter of their own.
    """
    authority.require_admin("view user statistics")

    users = crud.list_users(db, OVERVIEW_FIELDS)
    roles = [user.get("role") or STUDENT_ROLE for user in users]
    return {
        "totalUsers": len(users),
        "totalStudents": roles.count(STUDENT_ROLE),
        "totalAdmins": roles.count(ADMIN_ROLE),
        "recentUsers": users[:RECENT_USERS],
    }
