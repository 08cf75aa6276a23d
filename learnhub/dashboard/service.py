"""Dashboard service layer.

Read-only summaries built from the course catalog, the enrollment store and
issued certificates. User totals live with the identity service and are not
reported here.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.progress.aggregation import round_half_up


if TYPE_CHECKING:
    from learnhub.certificates.service import CertificateService
    from learnhub.courses.service import CourseService
    from learnhub.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StudentStats:
    total_courses: int
    approved: int
    pending: int
    completed: int
    average_progress: int
    certificates: int


@dataclass(frozen=True)
class InstructorStats:
    total_courses: int
    total_students: int
    pending_approvals: int
    completed_students: int


@dataclass(frozen=True)
class AdminStats:
    total_courses: int
    total_enrollments: int


class DashboardService:
    """Per-role counters for the dashboard pages."""

    def __init__(
        self,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
        certificate_service: "CertificateService",
    ):
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self.certificate_service = certificate_service

    async def student_stats(self, student_id: UUID) -> StudentStats:
        """Counts over the student's enrollments.

        ``average_progress`` covers approved enrollments only; pending ones
        cannot make progress yet.
        """
        enrollments = await self.enrollment_service.list_by_student(student_id)
        approved = [e for e in enrollments if e.is_approved]
        certificates = await self.certificate_service.list_by_student(student_id)

        average = (
            round_half_up(sum(e.progress for e in approved), len(approved))
            if approved
            else 0
        )
        return StudentStats(
            total_courses=len(enrollments),
            approved=len(approved),
            pending=len(enrollments) - len(approved),
            completed=sum(1 for e in enrollments if e.completed),
            average_progress=average,
            certificates=len(certificates),
        )

    async def instructor_stats(self, instructor_id: UUID) -> InstructorStats:
        courses = await self.course_service.list_by_instructor(instructor_id)
        roster = await self.enrollment_service.list_by_instructor(instructor_id)
        enrollments = [enrollment for _, enrollment in roster]

        return InstructorStats(
            total_courses=len(courses),
            total_students=len(enrollments),
            pending_approvals=sum(1 for e in enrollments if not e.is_approved),
            completed_students=sum(1 for e in enrollments if e.completed),
        )

    async def admin_stats(self) -> AdminStats:
        stats = AdminStats(
            total_courses=await self.course_service.count_courses(),
            total_enrollments=await self.enrollment_service.count_enrollments(),
        )
        logger.debug(
            "admin_stats_counted",
            total_courses=stats.total_courses,
            total_enrollments=stats.total_enrollments,
        )
        return stats
