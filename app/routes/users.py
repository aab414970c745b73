# users.py
from fastapi import APIRouter, Depends

from supabase import Client

from ..auth import Authority, get_authority
from ..config import get_db
from ..services import users

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/stats/overview")
def user_overview_api(
    authority: Authority = Depends(get_authority), db: Client = Depends(get_db)
):
    return users.overview(db, authority)
