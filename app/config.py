import os
import logging

from supabase import create_client, Client

logger = logging.getLogger(__name__)

ASSIGNMENT_BUCKET: str = os.environ.get("ASSIGNMENT_BUCKET", "assignments")
MAX_UPLOAD_MB: int = int(os.environ.get("MAX_UPLOAD_MB", "50"))
PORT: int = int(os.environ.get("PORT", "5000"))
CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]


def get_db() -> Client:
    SUPABASE_URL: str = os.environ.get("SUPABASE_URL")
    SUPABASE_KEY: str = os.environ.get("SUPABASE_KEY")
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_KEY environment variables must be set"
        )
    return create_client(SUPABASE_URL, SUPABASE_KEY)
