"""Database models for course enrollments.

Dual-write pattern: the same enrollment is stored partitioned by course
(instructor listings) and by student (the student's own course list).
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from learnhub.utils import ensure_utc_aware, utc_now


class EnrollmentStatus(str, Enum):
    """Enrollment approval status."""

    PENDING = "pending"
    APPROVED = "approved"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# "Which students are in this course?"
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    student_id UUID,
    status TEXT,
    progress INT,
    completed BOOLEAN,
    instructor_approved BOOLEAN,
    graduated_at TIMESTAMP,
    last_activity_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (course_id, student_id)
)
"""

# "Which courses is this student in?"
ENROLLMENTS_BY_STUDENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_student (
    student_id UUID,
    course_id UUID,
    status TEXT,
    progress INT,
    completed BOOLEAN,
    instructor_approved BOOLEAN,
    graduated_at TIMESTAMP,
    last_activity_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_STUDENT_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Enrollment:
    """A student's enrollment in a course.

    Attributes:
        course_id: Course UUID
        student_id: Student UUID
        status: pending or approved
        progress: Aggregated course progress, 0-100 (written by aggregation only)
        completed: Set together with instructor_approved on completion approval
        instructor_approved: Instructor confirmed the course is finished
        graduated_at: When completion was approved
        last_activity_at: Last progress recalculation
    """

    def __init__(
        self,
        course_id: UUID,
        student_id: UUID,
        status: str = EnrollmentStatus.PENDING.value,
        progress: int = 0,
        completed: bool = False,
        instructor_approved: bool = False,
        graduated_at: datetime | None = None,
        last_activity_at: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.student_id = student_id
        self.status = status
        self.progress = progress
        self.completed = completed
        self.instructor_approved = instructor_approved
        self.graduated_at = ensure_utc_aware(graduated_at)
        self.last_activity_at = ensure_utc_aware(last_activity_at)
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def is_approved(self) -> bool:
        return self.status == EnrollmentStatus.APPROVED.value

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create from a row of either enrollment table."""
        return cls(
            course_id=row.course_id,
            student_id=row.student_id,
            status=row.status or EnrollmentStatus.PENDING.value,
            progress=row.progress or 0,
            completed=bool(row.completed),
            instructor_approved=bool(row.instructor_approved),
            graduated_at=row.graduated_at,
            last_activity_at=row.last_activity_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "student_id": self.student_id,
            "status": self.status,
            "progress": self.progress,
            "completed": self.completed,
            "instructor_approved": self.instructor_approved,
            "graduated_at": self.graduated_at,
            "last_activity_at": self.last_activity_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Enrollment course={self.course_id} student={self.student_id} "
            f"{self.status} {self.progress}%>"
        )
