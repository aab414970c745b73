# assignments.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from supabase import Client

from ..auth import Authority, get_authority
from ..config import MAX_UPLOAD_MB, get_db
from ..schemas import ArtifactUpload, AssignmentCreate, AssignmentUpdate, GradeCreate
from ..services import assignments
from ..services.assignments import MEGABYTE
from ..utils.storage import SupabaseArtifactStorage, read_capped

router = APIRouter(prefix="/assignments", tags=["assignments"])


def get_storage(db: Client = Depends(get_db)) -> SupabaseArtifactStorage:
    return SupabaseArtifactStorage(db)


@router.get("")
def list_assignments_api(
    authority: Authority = Depends(get_authority), db: Client = Depends(get_db)
):
    return assignments.list_assignments(db, authority)


@router.get("/user/submissions")
def my_submissions_api(
    authority: Authority = Depends(get_authority), db: Client = Depends(get_db)
):
    return assignments.list_my_submissions(db, authority)


@router.get("/{assignment_id}")
def get_assignment_api(
    assignment_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return assignments.get_assignment(db, authority, assignment_id)


@router.post("", status_code=201)
def create_assignment_api(
    payload: AssignmentCreate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return assignments.create_assignment(db, authority, payload)


@router.put("/{assignment_id}")
def update_assignment_api(
    assignment_id: str,
    payload: AssignmentUpdate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return assignments.update_assignment(db, authority, assignment_id, payload)


@router.delete("/{assignment_id}")
def delete_assignment_api(
    assignment_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return assignments.delete_assignment(db, authority, assignment_id)


@router.post("/{assignment_id}/submit", status_code=201)
def submit_assignment_api(
    assignment_id: str,
    file: Optional[UploadFile] = File(None),
    url: Optional[str] = Form(None),
    comments: Optional[str] = Form(None),
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
    storage: SupabaseArtifactStorage = Depends(get_storage),
):
    upload = None
    if file is not None and file.filename:
        upload = ArtifactUpload(
            filename=file.filename,
            content=read_capped(file.file, MAX_UPLOAD_MB * MEGABYTE),
            content_type=file.content_type,
        )
    return assignments.submit(
        db, storage, authority, assignment_id, upload=upload, url=url, comments=comments
    )


@router.put("/{assignment_id}/submissions/{submission_id}/grade")
def grade_submission_api(
    assignment_id: str,
    submission_id: str,
    payload: GradeCreate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return assignments.grade_submission(
        db, authority, assignment_id, submission_id, payload
    )
