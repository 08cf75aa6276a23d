"""Cassandra tables and entities for the course catalog.

Only what the progress and approval workflows need is stored: the course
owner and the set of lessons that count towards completion.
"""

from typing import Any
from uuid import UUID, uuid4

from learnhub.utils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    course_id UUID PRIMARY KEY,
    instructor_id UUID,
    title TEXT,
    description TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# "Which courses does this instructor own?"
COURSES_BY_INSTRUCTOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_instructor (
    instructor_id UUID,
    course_id UUID,
    title TEXT,
    description TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (instructor_id, course_id)
)
"""

# Lessons of a course; partition = course so one read returns the whole registry
COURSE_LESSONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_lessons (
    course_id UUID,
    lesson_id UUID,
    module_id UUID,
    title TEXT,
    position INT,
    created_at TIMESTAMP,
    PRIMARY KEY (course_id, lesson_id)
)
"""

COURSES_TABLES_CQL = [
    COURSES_TABLE_CQL,
    COURSES_BY_INSTRUCTOR_TABLE_CQL,
    COURSE_LESSONS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """A course and its owning instructor."""

    def __init__(
        self,
        instructor_id: UUID,
        title: str,
        course_id: UUID | None = None,
        description: str | None = None,
        created_at=None,
        updated_at=None,
    ):
        self.course_id = course_id or uuid4()
        self.instructor_id = instructor_id
        self.title = title.strip()
        self.description = description
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create from a row of either course table."""
        return cls(
            course_id=row.course_id,
            instructor_id=row.instructor_id,
            title=row.title or "",
            description=row.description,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "instructor_id": self.instructor_id,
            "title": self.title,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.course_id} {self.title!r}>"


class Lesson:
    """A lesson registered in a course.

    Attributes:
        course_id: Owning course
        lesson_id: Lesson UUID
        module_id: Optional grouping inside the course
        title: Display title
        position: Sort order inside the course
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        lesson_id: UUID | None = None,
        module_id: UUID | None = None,
        position: int = 0,
        created_at=None,
    ):
        self.course_id = course_id
        self.lesson_id = lesson_id or uuid4()
        self.module_id = module_id
        self.title = title.strip()
        self.position = position
        self.created_at = ensure_utc_aware(created_at) or utc_now()

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        return cls(
            course_id=row.course_id,
            lesson_id=row.lesson_id,
            module_id=row.module_id,
            title=row.title or "",
            position=row.position or 0,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "lesson_id": self.lesson_id,
            "module_id": self.module_id,
            "title": self.title,
            "position": self.position,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.lesson_id} course={self.course_id} #{self.position}>"
