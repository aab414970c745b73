"""Assignment repository: assignments, student submissions and grading."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from supabase import Client

from .. import crud
from ..aggregates import SubResources
from ..config import MAX_UPLOAD_MB
from ..errors import (
    DuplicateSubmissionError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from ..schemas import ArtifactUpload, AssignmentCreate, AssignmentUpdate, GradeCreate
from ..utils.storage import file_extension

logger = logging.getLogger(__name__)

URL_SUBMISSION = "url"
ANY_SUBMISSION = "any"
MEGABYTE = 1024 * 1024


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_assignment(db: Client, assignment_id: str) -> Dict:
    assignment = crud.get_by_id(db, "assignments", assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment


def _populated(db: Client, assignments: List[Dict]) -> List[Dict]:
    assignments = crud.populate(db, assignments, "created_by")
    return crud.populate(db, assignments, "submissions.student")


def list_assignments(db: Client, authority) -> List[Dict]:
    """Admins see every assignment, everyone else only the active ones."""
    assignments = crud.list_assignments(db, active_only=not authority.is_admin)
    return _populated(db, assignments)


def get_assignment(db: Client, authority, assignment_id: str) -> Dict:
    assignment = _require_assignment(db, assignment_id)
    if not authority.is_admin and not assignment.get("is_active"):
        raise ForbiddenError("Assignment not available")
    return _populated(db, [assignment])[0]


def create_assignment(db: Client, authority, payload: AssignmentCreate) -> Dict:
    authority.require_admin("create assignments")

    data = payload.model_dump(mode="json")
    data.update(
        {
            "is_active": True,
            "created_by": authority.user_id,
            "submissions": [],
            "created_at": _now(),
        }
    )
    assignment = crud.insert(db, "assignments", data)
    logger.info(f"Assignment {assignment['id']} created by {authority.user_id}")
    return crud.populate(db, [assignment], "created_by")[0]


def update_assignment(
    db: Client, authority, assignment_id: str, payload: AssignmentUpdate
) -> Dict:
    authority.require_admin("update assignments")
    _require_assignment(db, assignment_id)

    assignment = crud.update_by_id(
        db, "assignments", assignment_id, payload.model_dump(mode="json")
    )
    logger.info(f"Assignment {assignment_id} updated by {authority.user_id}")
    return crud.populate(db, [assignment], "created_by")[0]


def delete_assignment(db: Client, authority, assignment_id: str) -> Dict:
    authority.require_admin("delete assignments")
    _require_assignment(db, assignment_id)

    crud.delete_by_id(db, "assignments", assignment_id)
    logger.info(f"Assignment {assignment_id} deleted by {authority.user_id}")
    return {"message": "Assignment deleted successfully"}


def _validate_artifact(
    assignment: Dict, upload: Optional[ArtifactUpload], url: Optional[str]
) -> None:
    mode = assignment.get("submission_type")

    if mode not in (ANY_SUBMISSION, URL_SUBMISSION):
        if upload is None:
            raise ValidationError("File is required for this assignment")

        allowed = [ext.lower() for ext in assignment.get("allowed_extensions") or []]
        if allowed and file_extension(upload.filename) not in allowed:
            raise ValidationError(
                f"File type not allowed. Allowed types: {', '.join(allowed)}"
            )

    if mode == URL_SUBMISSION and not url:
        raise ValidationError("URL is required for this assignment")

    if upload is not None:
        limit_mb = min(int(assignment.get("max_file_size") or MAX_UPLOAD_MB), MAX_UPLOAD_MB)
        if upload.size > limit_mb * MEGABYTE:
            raise ValidationError(f"File is too large. Maximum size: {limit_mb} MB")


def submit(
    db: Client,
    storage,
    authority,
    assignment_id: str,
    upload: Optional[ArtifactUpload] = None,
    url: Optional[str] = None,
    comments: Optional[str] = None,
) -> Dict:
    """
    Record the caller's submission for an assignment.

    A student may submit once per assignment. The duplicate check reads the
    assignment and the append writes it back, so two concurrent submissions
    by the same student can both be recorded (best-effort, non-atomic).

    Args:
        storage: Artifact storage receiving ``upload``
        upload: Attached file, if any
        url: Link submitted instead of (or next to) a file
        comments: Free-text note from the student
    """
    authority.require_member("submit assignments")

    assignment = _require_assignment(db, assignment_id)
    if not assignment.get("is_active"):
        raise ForbiddenError("Assignment is not active")

    submissions = SubResources(assignment.get("submissions"))
    if submissions.find_by("student", authority.user_id) is not None:
        raise DuplicateSubmissionError("You have already submitted this assignment")

    _validate_artifact(assignment, upload, url)

    if upload is not None:
        stored = storage.upload(upload)
        file_url, file_name, file_type = (
            stored.public_url,
            stored.original_name,
            stored.extension,
        )
    else:
        file_url, file_name, file_type = url, url, URL_SUBMISSION

    submission = submissions.append(
        {
            "student": authority.user_id,
            "submitted_at": _now(),
            "file_url": file_url,
            "file_name": file_name,
            "file_type": file_type,
            "comments": comments or "",
            "grade": None,
            "feedback": None,
        }
    )
    try:
        crud.update_by_id(
            db, "assignments", assignment_id, {"submissions": submissions.to_list()}
        )
    except InternalError:
        if upload is not None:
            storage.remove(stored.path)
        raise
    logger.info(
        f"Submission {submission['id']} recorded for assignment {assignment_id} "
        f"by {authority.user_id}"
    )
    return submission


def grade_submission(
    db: Client, authority, assignment_id: str, submission_id: str, payload: GradeCreate
) -> Dict:
    authority.require_admin("grade submissions")

    assignment = _require_assignment(db, assignment_id)
    submissions = SubResources(assignment.get("submissions"))
    submission = submissions.get(submission_id)
    if submission is None:
        raise NotFoundError("Submission not found")

    submission["grade"] = payload.grade
    submission["feedback"] = payload.feedback
    crud.update_by_id(
        db, "assignments", assignment_id, {"submissions": submissions.to_list()}
    )
    logger.info(f"Submission {submission_id} graded by {authority.user_id}")
    return submission


def list_my_submissions(db: Client, authority) -> List[Dict]:
    """Pair every assignment the caller submitted to with their submission."""
    assignments = crud.list_assignments_submitted_by(db, authority.user_id)
    assignments = crud.populate(db, assignments, "created_by")

    results = []
    for assignment in assignments:
        submission = SubResources(assignment.get("submissions")).find_by(
            "student", authority.user_id
        )
        results.append(
            {
                "assignment": {
                    "id": assignment["id"],
                    "title": assignment.get("title"),
                    "due_date": assignment.get("due_date"),
                    "created_by": assignment.get("created_by"),
                },
                "submission": submission,
            }
        )
    return results
