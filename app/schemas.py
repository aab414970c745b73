# schemas.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


AccessType = Literal["view", "edit"]
SubmissionType = Literal["file", "url", "any"]


class AccessGrant(BaseModel):
    user: str
    access_type: AccessType = "view"


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    code: str = Field(..., min_length=1, max_length=20)
    instructor: Optional[str] = None
    category: Optional[str] = None
    level: Optional[str] = None
    max_students: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class CourseUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    code: str = Field(..., min_length=1, max_length=20)
    instructor: Optional[str] = None
    category: str = "General"
    level: str = "Beginner"
    max_students: int = Field(100, ge=1)
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str
    course: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_public: Optional[bool] = None
    access_list: List[AccessGrant] = Field(default_factory=list)


class NoteUpdate(BaseModel):
    """Complete editable field set of a note; omitted fields are reset."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str
    course: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_public: bool = True
    access_list: List[AccessGrant] = Field(default_factory=list)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


def _normalize_extensions(values: List[str]) -> List[str]:
    normalized = []
    for value in values:
        value = value.strip().lower()
        if not value:
            continue
        if not value.startswith("."):
            value = "." + value
        normalized.append(value)
    return normalized


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    submission_type: SubmissionType = "file"
    due_date: datetime
    max_file_size: int = Field(10, ge=1, description="Maximum artifact size in MB")
    allowed_extensions: List[str] = Field(default_factory=list)

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, values: List[str]) -> List[str]:
        return _normalize_extensions(values)


class AssignmentUpdate(AssignmentCreate):
    is_active: bool = True


class GradeCreate(BaseModel):
    grade: Optional[float] = Field(None, ge=0)
    feedback: Optional[str] = None


class ArtifactUpload(BaseModel):
    """An uploaded file as handed to the assignment service."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)
