"""Tests for the certificate issuance gate."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from learnhub.certificates.models import Certificate
from learnhub.certificates.service import (
    CertificateNotFoundError,
    CertificateService,
    NotApprovedError,
    NotEnrolledError,
    ProgressIncompleteError,
)
from learnhub.enrollments.models import Enrollment, EnrollmentStatus


@pytest.fixture
def mock_session():
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def enrollment_service():
    service = Mock()
    service.get_enrollment = AsyncMock(return_value=None)
    return service


@pytest.fixture
def service(mock_session, enrollment_service) -> CertificateService:
    service = CertificateService(
        session=mock_session,
        keyspace="test_keyspace",
        enrollment_service=enrollment_service,
    )
    service.get_for_course = AsyncMock(return_value=None)
    return service


def _finished(course_id, student_id, **overrides) -> Enrollment:
    data = {
        "status": EnrollmentStatus.APPROVED.value,
        "progress": 100,
        "completed": True,
        "instructor_approved": True,
    }
    data.update(overrides)
    return Enrollment(course_id=course_id, student_id=student_id, **data)


class TestIssue:
    @pytest.mark.asyncio
    async def test_issues_after_sign_off(
        self,
        service,
        enrollment_service,
        mock_session,
        student_id,
        course_id,
        instructor_id,
    ):
        enrollment_service.get_enrollment.return_value = _finished(course_id, student_id)

        certificate, created = await service.issue(
            student_id, course_id, issued_by=instructor_id
        )

        assert created is True
        assert certificate.student_id == student_id
        assert certificate.course_id == course_id
        assert certificate.issued_by == instructor_id
        # Written to both lookup tables
        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_second_issue_returns_existing(
        self, service, enrollment_service, mock_session, student_id, course_id
    ):
        enrollment_service.get_enrollment.return_value = _finished(course_id, student_id)
        existing = Certificate(student_id=student_id, course_id=course_id)
        service.get_for_course.return_value = existing

        certificate, created = await service.issue(student_id, course_id)

        assert created is False
        assert certificate is existing
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_instructor_approval(
        self, service, enrollment_service, mock_session, student_id, course_id
    ):
        enrollment_service.get_enrollment.return_value = _finished(
            course_id, student_id, instructor_approved=False
        )
        with pytest.raises(NotApprovedError):
            await service.issue(student_id, course_id)
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rechecks_progress(
        self, service, enrollment_service, student_id, course_id
    ):
        enrollment_service.get_enrollment.return_value = _finished(
            course_id, student_id, progress=96
        )
        with pytest.raises(ProgressIncompleteError):
            await service.issue(student_id, course_id)

    @pytest.mark.asyncio
    async def test_requires_enrollment(self, service, student_id, course_id):
        with pytest.raises(NotEnrolledError):
            await service.issue(student_id, course_id)


class TestRevoke:
    @pytest.mark.asyncio
    async def test_revoke_deletes_both_rows(self, service, mock_session, student_id, course_id):
        certificate = Certificate(student_id=student_id, course_id=course_id)
        service.get_certificate = AsyncMock(return_value=certificate)

        await service.revoke(certificate.certificate_id)

        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_certificate(self, service, mock_session):
        mock_session.aexecute.return_value.one.return_value = None
        with pytest.raises(CertificateNotFoundError):
            await service.revoke(uuid4())


class TestListing:
    @pytest.mark.asyncio
    async def test_list_all_newest_first(self, service, mock_session):
        older = Mock(
            student_id=uuid4(),
            course_id=uuid4(),
            certificate_id=uuid4(),
            issued_by=None,
            issued_at=datetime(2026, 1, 5, tzinfo=UTC),
        )
        newer = Mock(
            student_id=uuid4(),
            course_id=uuid4(),
            certificate_id=uuid4(),
            issued_by=None,
            issued_at=datetime(2026, 3, 1, tzinfo=UTC),
        )
        mock_session.aexecute.return_value = [older, newer]

        certificates = await service.list_all()

        assert [c.certificate_id for c in certificates] == [
            newer.certificate_id,
            older.certificate_id,
        ]
