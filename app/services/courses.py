"""Course registry: course documents and enrollment rosters."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from supabase import Client

from .. import crud
from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..schemas import CourseCreate, CourseUpdate

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"
DEFAULT_LEVEL = "Beginner"
DEFAULT_MAX_STUDENTS = 100
DEFAULT_DURATION = timedelta(days=365)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_course(db: Client, course_id: str) -> Dict:
    course = crud.get_by_id(db, "courses", course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


def _with_instructor(db: Client, course: Dict) -> Dict:
    return crud.populate(db, [course], "instructor")[0]


def list_courses(db: Client) -> List[Dict]:
    return crud.populate(db, crud.list_active_courses(db), "instructor")


def get_course(db: Client, course_id: str) -> Dict:
    course = _require_course(db, course_id)
    course = _with_instructor(db, course)
    return crud.populate(db, [course], "students")[0]


def create_course(db: Client, authority, payload: CourseCreate) -> Dict:
    authority.require_admin("create courses")

    if crud.find_course_by_code(db, payload.code):
        raise ValidationError("Course with this code already exists")

    start = payload.start_date or _now()
    course = crud.insert(
        db,
        "courses",
        {
            "title": payload.title,
            "description": payload.description,
            "code": payload.code,
            "instructor": payload.instructor or authority.user_id,
            "students": [],
            "category": payload.category or DEFAULT_CATEGORY,
            "level": payload.level or DEFAULT_LEVEL,
            "max_students": payload.max_students or DEFAULT_MAX_STUDENTS,
            "start_date": start.isoformat(),
            "end_date": (payload.end_date or _now() + DEFAULT_DURATION).isoformat(),
            "is_active": True,
        },
    )
    logger.info(f"Course {course['code']} created by {authority.user_id}")
    return _with_instructor(db, course)


def update_course(db: Client, authority, course_id: str, payload: CourseUpdate) -> Dict:
    course = _require_course(db, course_id)
    if not authority.is_admin and str(course.get("instructor")) != authority.user_id:
        logger.warning(f"User {authority.user_id} denied update of course {course_id}")
        raise ForbiddenError("Access denied")

    if payload.code != course.get("code"):
        existing = crud.find_course_by_code(db, payload.code)
        if existing and str(existing["id"]) != str(course["id"]):
            raise ValidationError("Course with this code already exists")

    if payload.max_students < len(course.get("students") or []):
        raise ValidationError("Capacity cannot be lower than the current enrollment")

    data = payload.model_dump(mode="json", exclude={"instructor"})
    if payload.instructor:
        data["instructor"] = payload.instructor
    if payload.start_date is None:
        data.pop("start_date")
    if payload.end_date is None:
        data.pop("end_date")

    updated = crud.update_by_id(db, "courses", course_id, data)
    logger.info(f"Course {course_id} updated by {authority.user_id}")
    return _with_instructor(db, updated)


def delete_course(db: Client, authority, course_id: str) -> Dict:
    authority.require_admin("delete courses")
    _require_course(db, course_id)
    crud.delete_by_id(db, "courses", course_id)
    logger.info(f"Course {course_id} deleted by {authority.user_id}")
    return {"message": "Course deleted successfully"}


def enroll(db: Client, authority, course_id: str) -> Dict:
    """
    Add the caller to a course roster.

    The roster check and the write are separate calls, so two concurrent
    enrollments can both pass the capacity check (best-effort, non-atomic).
    """
    course = _require_course(db, course_id)
    if not course.get("is_active"):
        raise ValidationError("Course is not active")

    students = [str(s) for s in course.get("students") or []]
    if authority.user_id in students:
        raise ValidationError("Already enrolled in this course")
    if len(students) >= int(course.get("max_students") or DEFAULT_MAX_STUDENTS):
        raise ValidationError("Course is full")

    students.append(authority.user_id)
    crud.update_by_id(db, "courses", course_id, {"students": students})
    logger.info(f"User {authority.user_id} enrolled in course {course_id}")
    return {"message": "Enrolled successfully"}
