# models.py
"""
Layout of the Supabase tables.

Each aggregate is one row: access lists, comments and submissions live in
JSONB columns of their parent so a single update rewrites the whole document.
"""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import CreateTable

Base = declarative_base()


def _uuid_pk():
    return Column(
        UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")
    )


class User(Base):
    __tablename__ = "users"
    id = Column(UUID(as_uuid=True), primary_key=True)
    username = Column(String(50), nullable=False, unique=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, server_default="student")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Course(Base):
    __tablename__ = "courses"
    id = _uuid_pk()
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    code = Column(String(20), nullable=False, unique=True)
    instructor = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    students = Column(ARRAY(UUID(as_uuid=True)), nullable=False, server_default="{}")
    category = Column(String(100), nullable=False, server_default="General")
    level = Column(String(50), nullable=False, server_default="Beginner")
    max_students = Column(Integer, nullable=False, server_default="100")
    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Note(Base):
    __tablename__ = "notes"
    id = _uuid_pk()
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    course = Column(UUID(as_uuid=True), ForeignKey("courses.id"), nullable=True)
    author = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    is_public = Column(Boolean, nullable=False, server_default=text("true"))
    # [{"user": <uuid>, "access_type": "view" | "edit"}, ...]
    access_list = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    shared_with = Column(ARRAY(UUID(as_uuid=True)), nullable=False, server_default="{}")
    tags = Column(ARRAY(String), nullable=False, server_default="{}")
    view_count = Column(Integer, nullable=False, server_default="0")
    comments = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())


class Assignment(Base):
    __tablename__ = "assignments"
    id = _uuid_pk()
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    submission_type = Column(String(10), nullable=False, server_default="file")
    due_date = Column(DateTime(timezone=True), nullable=False)
    max_file_size = Column(Integer, nullable=False, server_default="10")
    allowed_extensions = Column(ARRAY(String), nullable=False, server_default="{}")
    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    submissions = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


def create_schema_sql() -> str:
    """Render the CREATE TABLE statements for PostgreSQL."""
    dialect = postgresql.dialect()
    statements = [
        str(CreateTable(table).compile(dialect=dialect)).strip()
        for table in Base.metadata.sorted_tables
    ]
    return ";\n\n".join(statements) + ";\n"


if __name__ == "__main__":
    print(create_schema_sql())
