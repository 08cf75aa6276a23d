"""Enrollment service layer.

Business logic for:
- Enrollment requests, approval, rejection and cancellation
- Rosters and counts for the dashboards
- Progress write-back (called by the progress aggregation only)
- Course completion approval by the instructor
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.utils import utc_now

from .models import Enrollment, EnrollmentStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnhub.courses.models import Course
    from learnhub.courses.service import CourseService

logger = structlog.get_logger(__name__)

COMPLETE_PROGRESS = 100


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class EnrollmentError(Exception):
    """Base enrollment error."""

    def __init__(self, message: str, code: str = "enrollment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class EnrollmentNotFoundError(EnrollmentError):
    def __init__(self, message: str = "Enrollment not found"):
        super().__init__(message, "enrollment_not_found")


class AlreadyEnrolledError(EnrollmentError):
    def __init__(self, message: str = "Student already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class EnrollmentNotApprovedError(EnrollmentError):
    def __init__(self, message: str = "Enrollment has not been approved"):
        super().__init__(message, "enrollment_not_approved")


class CourseUnavailableError(EnrollmentError):
    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class ProgressIncompleteError(EnrollmentError):
    def __init__(self, message: str = "Course progress is below 100%"):
        super().__init__(message, "progress_incomplete")


# ==============================================================================
# Enrollment Service
# ==============================================================================


class EnrollmentService:
    """Service for the enrollment store."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE course_id = ? AND student_id = ?
        """)

        self._list_by_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments WHERE course_id = ?
        """)

        self._list_by_student = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_student WHERE student_id = ?
        """)

        # Full scan, only for the admin dashboard
        self._count_enrollments = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.enrollments
        """)

        self._upsert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (course_id, student_id, status, progress, completed,
             instructor_approved, graduated_at, last_activity_at,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._upsert_enrollment_by_student = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_student
            (student_id, course_id, status, progress, completed,
             instructor_approved, graduated_at, last_activity_at,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._update_progress = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET progress = ?, last_activity_at = ?, updated_at = ?
            WHERE course_id = ? AND student_id = ?
        """)

        self._update_progress_by_student = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments_by_student
            SET progress = ?, last_activity_at = ?, updated_at = ?
            WHERE student_id = ? AND course_id = ?
        """)

        self._delete_enrollment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.enrollments
            WHERE course_id = ? AND student_id = ?
        """)

        self._delete_enrollment_by_student = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.enrollments_by_student
            WHERE student_id = ? AND course_id = ?
        """)

    async def _save(self, enrollment: Enrollment) -> None:
        """Write both tables (dual-write)."""
        values = [
            enrollment.status,
            enrollment.progress,
            enrollment.completed,
            enrollment.instructor_approved,
            enrollment.graduated_at,
            enrollment.last_activity_at,
            enrollment.created_at,
            enrollment.updated_at,
        ]
        await self.session.aexecute(
            self._upsert_enrollment,
            [enrollment.course_id, enrollment.student_id, *values],
        )
        await self.session.aexecute(
            self._upsert_enrollment_by_student,
            [enrollment.student_id, enrollment.course_id, *values],
        )

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        result = await self.session.aexecute(
            self._get_enrollment, [course_id, student_id]
        )
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def require_enrollment(self, student_id: UUID, course_id: UUID) -> Enrollment:
        enrollment = await self.get_enrollment(student_id, course_id)
        if enrollment is None:
            raise EnrollmentNotFoundError
        return enrollment

    async def list_by_student(self, student_id: UUID) -> list[Enrollment]:
        rows = await self.session.aexecute(self._list_by_student, [student_id])
        return [Enrollment.from_row(row) for row in rows]

    async def list_by_course(self, course_id: UUID) -> list[Enrollment]:
        rows = await self.session.aexecute(self._list_by_course, [course_id])
        return [Enrollment.from_row(row) for row in rows]

    async def list_by_instructor(
        self, instructor_id: UUID
    ) -> list[tuple["Course", Enrollment]]:
        """Enrollments across every course the instructor owns, grouped by course."""
        roster: list[tuple["Course", Enrollment]] = []
        for course in await self.course_service.list_by_instructor(instructor_id):
            roster.extend(
                (course, enrollment)
                for enrollment in await self.list_by_course(course.course_id)
            )
        return roster

    async def count_enrollments(self) -> int:
        row = (await self.session.aexecute(self._count_enrollments)).one()
        return row.count if row else 0

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def request_enrollment(self, student_id: UUID, course_id: UUID) -> Enrollment:
        """Create a pending enrollment.

        Raises:
            CourseUnavailableError: Unknown course
            AlreadyEnrolledError: The student already has an enrollment
        """
        if await self.course_service.get_course(course_id) is None:
            raise CourseUnavailableError

        if await self.get_enrollment(student_id, course_id) is not None:
            raise AlreadyEnrolledError

        enrollment = Enrollment(course_id=course_id, student_id=student_id)
        await self._save(enrollment)

        logger.info(
            "enrollment_requested",
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return enrollment

    async def approve_enrollment(self, course_id: UUID, student_id: UUID) -> Enrollment:
        """Move a pending enrollment to approved. Approving twice is a no-op."""
        enrollment = await self.require_enrollment(student_id, course_id)
        if enrollment.is_approved:
            return enrollment

        enrollment.status = EnrollmentStatus.APPROVED.value
        enrollment.updated_at = utc_now()
        await self._save(enrollment)

        logger.info(
            "enrollment_approved",
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return enrollment

    async def remove_enrollment(
        self,
        course_id: UUID,
        student_id: UUID,
        reason: str = "rejected",
    ) -> None:
        """Delete an enrollment (instructor rejection or student cancellation)."""
        await self.require_enrollment(student_id, course_id)

        await self.session.aexecute(self._delete_enrollment, [course_id, student_id])
        await self.session.aexecute(
            self._delete_enrollment_by_student, [student_id, course_id]
        )

        logger.info(
            "enrollment_removed",
            student_id=str(student_id),
            course_id=str(course_id),
            reason=reason,
        )

    async def set_progress(
        self,
        student_id: UUID,
        course_id: UUID,
        progress: int,
        at: datetime | None = None,
    ) -> None:
        """Store the aggregated progress and activity timestamp on both tables."""
        now = at or utc_now()
        await self.session.aexecute(
            self._update_progress, [progress, now, now, course_id, student_id]
        )
        await self.session.aexecute(
            self._update_progress_by_student,
            [progress, now, now, student_id, course_id],
        )

    async def approve_completion(self, course_id: UUID, student_id: UUID) -> Enrollment:
        """Instructor sign-off that the student finished the course.

        Raises:
            EnrollmentNotFoundError: No enrollment
            EnrollmentNotApprovedError: Enrollment still pending
            ProgressIncompleteError: Aggregated progress below 100
        """
        enrollment = await self.require_enrollment(student_id, course_id)
        if not enrollment.is_approved:
            raise EnrollmentNotApprovedError
        if enrollment.progress < COMPLETE_PROGRESS:
            raise ProgressIncompleteError

        if enrollment.instructor_approved:
            return enrollment

        now = utc_now()
        enrollment.instructor_approved = True
        enrollment.completed = True
        enrollment.graduated_at = now
        enrollment.updated_at = now
        await self._save(enrollment)

        logger.info(
            "course_completion_approved",
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return enrollment
