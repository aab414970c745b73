# courses.py
from fastapi import APIRouter, Depends

from supabase import Client

from ..auth import Authority, get_authority
from ..config import get_db
from ..schemas import CourseCreate, CourseUpdate
from ..services import courses

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("")
def list_courses_api(
    authority: Authority = Depends(get_authority), db: Client = Depends(get_db)
):
    return courses.list_courses(db)


@router.get("/{course_id}")
def get_course_api(
    course_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return courses.get_course(db, course_id)


@router.post("", status_code=201)
def create_course_api(
    payload: CourseCreate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return courses.create_course(db, authority, payload)


@router.put("/{course_id}")
def update_course_api(
    course_id: str,
    payload: CourseUpdate,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return courses.update_course(db, authority, course_id, payload)


@router.delete("/{course_id}")
def delete_course_api(
    course_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return courses.delete_course(db, authority, course_id)


@router.post("/{course_id}/enroll")
def enroll_api(
    course_id: str,
    authority: Authority = Depends(get_authority),
    db: Client = Depends(get_db),
):
    return courses.enroll(db, authority, course_id)
