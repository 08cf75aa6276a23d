"""Database models for lesson progress.

One record per (student, course, lesson), partitioned by (student, course)
so a single read returns everything needed to aggregate course progress.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from learnhub.utils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

LESSON_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_progress (
    student_id UUID,
    course_id UUID,
    lesson_id UUID,
    module_id UUID,
    completed BOOLEAN,
    completed_at TIMESTAMP,
    last_accessed_at TIMESTAMP,
    time_spent_seconds INT,
    PRIMARY KEY ((student_id, course_id), lesson_id)
)
"""

PROGRESS_TABLES_CQL = [
    LESSON_PROGRESS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonProgress:
    """A student's state on one lesson.

    Attributes:
        student_id: Student UUID
        course_id: Course UUID
        lesson_id: Lesson UUID
        module_id: Module of the lesson, if any
        completed: Completion toggle
        completed_at: When it was last marked complete (None while incomplete)
        last_accessed_at: Refreshed on every toggle or access
        time_spent_seconds: Accumulated study time
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        module_id: UUID | None = None,
        completed: bool = False,
        completed_at: datetime | None = None,
        last_accessed_at: datetime | None = None,
        time_spent_seconds: int = 0,
    ):
        self.student_id = student_id
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.module_id = module_id
        self.completed = completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.last_accessed_at = ensure_utc_aware(last_accessed_at) or utc_now()
        self.time_spent_seconds = time_spent_seconds

    @classmethod
    def from_row(cls, row: Any) -> "LessonProgress":
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            lesson_id=row.lesson_id,
            module_id=row.module_id,
            completed=bool(row.completed),
            completed_at=row.completed_at,
            last_accessed_at=row.last_accessed_at,
            time_spent_seconds=row.time_spent_seconds or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "course_id": self.course_id,
            "lesson_id": self.lesson_id,
            "module_id": self.module_id,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "last_accessed_at": self.last_accessed_at,
            "time_spent_seconds": self.time_spent_seconds,
        }

    def __repr__(self) -> str:
        state = "completed" if self.completed else "incomplete"
        return (
            f"<LessonProgress student={self.student_id} lesson={self.lesson_id} "
            f"{state}>"
        )
