"""
Caller identity and role resolution.

The role is evaluated once per request into an ``Authority`` which is passed
explicitly into every service operation.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from supabase import Client

from .config import get_db
from .errors import ForbiddenError

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class Authority:
    """Capabilities of the authenticated caller."""

    is_admin = False

    def __init__(self, user_id: str, role: str):
        self.user_id = str(user_id)
        self.role = role

    @classmethod
    def for_caller(cls, user_id: str, role: Optional[str]) -> "Authority":
        if role == ADMIN_ROLE:
            return AdminAuthority(user_id, role)
        return MemberAuthority(user_id, role or "student")

    def require_admin(self, action: str) -> None:
        if not self.is_admin:
            logger.warning(f"User {self.user_id} denied admin action: {action}")
            raise ForbiddenError("Access denied. Admin only.")

    def require_member(self, action: str) -> None:
        if self.is_admin:
            logger.warning(f"Admin {self.user_id} denied member action: {action}")
            raise ForbiddenError(f"Admins cannot {action}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(user_id={self.user_id!r}, role={self.role!r})"


class AdminAuthority(Authority):
    is_admin = True


class MemberAuthority(Authority):
    is_admin = False


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Token is not valid")
    return token.strip()


def get_authority(
    authorization: Optional[str] = Header(None), db: Client = Depends(get_db)
) -> Authority:
    """
    Resolve the caller behind a Supabase access token.

    The token is verified by Supabase Auth; the role comes from the caller's
    row in the ``users`` table.
    """
    token = _bearer_token(authorization)
    try:
        response = db.auth.get_user(token)
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Token is not valid")

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Token is not valid")

    result = db.table("users").select("id, role").eq("id", str(user.id)).execute()
    if not result.data:
        raise HTTPException(status_code=401, detail="User not found")

    return Authority.for_caller(result.data[0]["id"], result.data[0].get("role"))
