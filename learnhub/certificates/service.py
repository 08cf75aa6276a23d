"""Certificate service layer.

Issuance is gated on the instructor's completion approval and on the
aggregated progress being 100. Issuing twice returns the first certificate.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.enrollments.service import COMPLETE_PROGRESS

from .models import Certificate


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnhub.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CertificateError(Exception):
    """Base certificate error."""

    def __init__(self, message: str, code: str = "certificate_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CertificateNotFoundError(CertificateError):
    def __init__(self, message: str = "Certificate not found"):
        super().__init__(message, "certificate_not_found")


class NotEnrolledError(CertificateError):
    def __init__(self, message: str = "Student is not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class NotApprovedError(CertificateError):
    def __init__(self, message: str = "Course completion not yet approved by instructor"):
        super().__init__(message, "not_approved")


class ProgressIncompleteError(CertificateError):
    def __init__(self, message: str = "Course progress is below 100%"):
        super().__init__(message, "progress_incomplete")


# ==============================================================================
# Certificate Service
# ==============================================================================


class CertificateService:
    """Issue, list and revoke certificates."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        enrollment_service: "EnrollmentService",
    ):
        self.session = session
        self.keyspace = keyspace
        self.enrollment_service = enrollment_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_by_student_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates
            WHERE student_id = ? AND course_id = ?
        """)

        self._list_by_student = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates WHERE student_id = ?
        """)

        self._get_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates_by_id WHERE certificate_id = ?
        """)

        self._list_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates_by_id
        """)

        self._insert = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.certificates
            (student_id, course_id, certificate_id, issued_by, issued_at)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._insert_by_id = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.certificates_by_id
            (certificate_id, student_id, course_id, issued_by, issued_at)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._delete = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.certificates
            WHERE student_id = ? AND course_id = ?
        """)

        self._delete_by_id = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.certificates_by_id WHERE certificate_id = ?
        """)

    async def get_for_course(
        self, student_id: UUID, course_id: UUID
    ) -> Certificate | None:
        result = await self.session.aexecute(
            self._get_by_student_course, [student_id, course_id]
        )
        row = result.one()
        return Certificate.from_row(row) if row else None

    async def get_certificate(self, certificate_id: UUID) -> Certificate:
        result = await self.session.aexecute(self._get_by_id, [certificate_id])
        row = result.one()
        if not row:
            raise CertificateNotFoundError
        return Certificate.from_row(row)

    async def list_by_student(self, student_id: UUID) -> list[Certificate]:
        rows = await self.session.aexecute(self._list_by_student, [student_id])
        return [Certificate.from_row(row) for row in rows]

    async def list_all(self) -> list[Certificate]:
        rows = await self.session.aexecute(self._list_all)
        certificates = [Certificate.from_row(row) for row in rows]
        return sorted(certificates, key=lambda c: c.issued_at, reverse=True)

    async def issue(
        self,
        student_id: UUID,
        course_id: UUID,
        issued_by: UUID | None = None,
    ) -> tuple[Certificate, bool]:
        """Issue a certificate once the course is signed off.

        Returns:
            (certificate, created). ``created`` is False when the student
            already had one for the course.

        Raises:
            NotEnrolledError: No enrollment
            NotApprovedError: Instructor has not approved completion
            ProgressIncompleteError: Stored progress below 100
        """
        enrollment = await self.enrollment_service.get_enrollment(student_id, course_id)
        if enrollment is None:
            raise NotEnrolledError
        if not enrollment.instructor_approved:
            raise NotApprovedError
        if enrollment.progress < COMPLETE_PROGRESS:
            raise ProgressIncompleteError

        existing = await self.get_for_course(student_id, course_id)
        if existing is not None:
            return existing, False

        certificate = Certificate(
            student_id=student_id, course_id=course_id, issued_by=issued_by
        )
        values = [certificate.issued_by, certificate.issued_at]
        await self.session.aexecute(
            self._insert,
            [student_id, course_id, certificate.certificate_id, *values],
        )
        await self.session.aexecute(
            self._insert_by_id,
            [certificate.certificate_id, student_id, course_id, *values],
        )

        logger.info(
            "certificate_issued",
            certificate_id=str(certificate.certificate_id),
            student_id=str(student_id),
            course_id=str(course_id),
            issued_by=str(issued_by) if issued_by else None,
        )
        return certificate, True

    async def revoke(self, certificate_id: UUID) -> None:
        certificate = await self.get_certificate(certificate_id)

        await self.session.aexecute(
            self._delete, [certificate.student_id, certificate.course_id]
        )
        await self.session.aexecute(self._delete_by_id, [certificate_id])

        logger.info(
            "certificate_revoked",
            certificate_id=str(certificate_id),
            student_id=str(certificate.student_id),
            course_id=str(certificate.course_id),
        )
