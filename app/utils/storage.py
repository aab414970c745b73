import logging
import os
import uuid
from typing import BinaryIO

from pydantic import BaseModel
from supabase import Client

from ..config import ASSIGNMENT_BUCKET
from ..schemas import ArtifactUpload

logger = logging.getLogger(__name__)


class StoredArtifact(BaseModel):
    path: str
    public_url: str
    original_name: str
    extension: str
    size: int


def read_capped(stream: BinaryIO, limit: int) -> bytes:
    """
    Read an upload stream, stopping one byte past ``limit``.

    The extra byte lets the size check tell an upload of exactly ``limit``
    bytes from a larger one without buffering the rest of it.
    """
    return stream.read(limit + 1)


def file_extension(filename: str) -> str:
    """Lower-cased extension of ``filename`` including the dot, or ``""``."""
    return os.path.splitext(filename or "")[1].lower()


class SupabaseArtifactStorage:
    """Stores submission artifacts in a Supabase storage bucket."""

    def __init__(self, db: Client, bucket: str = ASSIGNMENT_BUCKET):
        self.db = db
        self.bucket = bucket

    def upload(self, upload: ArtifactUpload) -> StoredArtifact:
        """
        Upload a file to Supabase storage and return where it can be retrieved

        Args:
            upload (ArtifactUpload): The file to upload

        Returns:
            StoredArtifact: Object path, public URL and file metadata
        """
        object_name = str(uuid.uuid4()) + "-" + os.path.basename(upload.filename)
        options = {"content-type": upload.content_type or "application/octet-stream"}

        logger.info(f"Uploading {upload.filename} to {self.bucket}/{object_name}")
        bucket = self.db.storage.from_(self.bucket)
        bucket.upload(object_name, upload.content, options)

        return StoredArtifact(
            path=object_name,
            public_url=bucket.get_public_url(object_name),
            original_name=upload.filename,
            extension=os.path.splitext(upload.filename)[1],
            size=upload.size,
        )

    def remove(self, path: str) -> None:
        """Delete a stored object, e.g. when the submission pointing at it was not saved."""
        logger.info(f"Removing {self.bucket}/{path}")
        self.db.storage.from_(self.bucket).remove([path])
