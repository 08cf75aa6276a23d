"""Tests for the enrollment store."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session

from learnhub.courses.models import Course
from learnhub.enrollments.models import Enrollment, EnrollmentStatus
from learnhub.enrollments.service import (
    AlreadyEnrolledError,
    CourseUnavailableError,
    EnrollmentNotApprovedError,
    EnrollmentNotFoundError,
    EnrollmentService,
    ProgressIncompleteError,
)


@pytest.fixture
def mock_session():
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def course_service():
    return Mock()


@pytest.fixture
def enrollment_service(mock_session, course_service) -> EnrollmentService:
    return EnrollmentService(
        session=mock_session, keyspace="test_keyspace", course_service=course_service
    )


def _enrollment(course_id: UUID, student_id: UUID, **overrides) -> Enrollment:
    return Enrollment(course_id=course_id, student_id=student_id, **overrides)


class TestRequestEnrollment:
    @pytest.mark.asyncio
    async def test_creates_pending_enrollment(
        self,
        enrollment_service,
        course_service,
        mock_session,
        course_id,
        student_id,
        instructor_id,
    ):
        course_service.get_course = AsyncMock(
            return_value=Course(instructor_id=instructor_id, title="Python", course_id=course_id)
        )
        enrollment_service.get_enrollment = AsyncMock(return_value=None)

        enrollment = await enrollment_service.request_enrollment(student_id, course_id)

        assert enrollment.status == EnrollmentStatus.PENDING.value
        assert enrollment.progress == 0
        # Both access paths are written
        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_course(self, enrollment_service, course_service, course_id, student_id):
        course_service.get_course = AsyncMock(return_value=None)

        with pytest.raises(CourseUnavailableError):
            await enrollment_service.request_enrollment(student_id, course_id)

    @pytest.mark.asyncio
    async def test_duplicate_rejected(
        self, enrollment_service, course_service, mock_session, course_id, student_id
    ):
        course_service.get_course = AsyncMock(return_value=Mock())
        enrollment_service.get_enrollment = AsyncMock(
            return_value=_enrollment(course_id, student_id)
        )

        with pytest.raises(AlreadyEnrolledError):
            await enrollment_service.request_enrollment(student_id, course_id)
        mock_session.aexecute.assert_not_awaited()


class TestApproval:
    @pytest.mark.asyncio
    async def test_approve_pending(self, enrollment_service, mock_session, course_id, student_id):
        enrollment_service.get_enrollment = AsyncMock(
            return_value=_enrollment(course_id, student_id)
        )

        enrollment = await enrollment_service.approve_enrollment(course_id, student_id)

        assert enrollment.is_approved is True
        assert enrollment.updated_at is not None
        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_approve_twice_is_noop(
        self, enrollment_service, mock_session, course_id, student_id
    ):
        enrollment_service.get_enrollment = AsyncMock(
            return_value=_enrollment(
                course_id, student_id, status=EnrollmentStatus.APPROVED.value
            )
        )

        await enrollment_service.approve_enrollment(course_id, student_id)

        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_approve_missing(self, enrollment_service, course_id, student_id):
        enrollment_service.get_enrollment = AsyncMock(return_value=None)
        with pytest.raises(EnrollmentNotFoundError):
            await enrollment_service.approve_enrollment(course_id, student_id)


class TestRemoval:
    @pytest.mark.asyncio
    async def test_remove_deletes_both_rows(
        self, enrollment_service, mock_session, course_id, student_id
    ):
        enrollment_service.get_enrollment = AsyncMock(
            return_value=_enrollment(course_id, student_id)
        )

        await enrollment_service.remove_enrollment(course_id, student_id, reason="cancelled")

        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_remove_missing(self, enrollment_service, course_id, student_id):
        enrollment_service.get_enrollment = AsyncMock(return_value=None)
        with pytest.raises(EnrollmentNotFoundError):
            await enrollment_service.remove_enrollment(course_id, student_id)


class TestRosters:
    @pytest.mark.asyncio
    async def test_list_by_instructor_pairs_course_and_enrollment(
        self, enrollment_service, course_service, instructor_id, student_id
    ):
        python = Course(instructor_id=instructor_id, title="Python")
        sql = Course(instructor_id=instructor_id, title="SQL")
        course_service.list_by_instructor = AsyncMock(return_value=[python, sql])
        by_course = {
            python.course_id: [
                _enrollment(python.course_id, student_id),
                _enrollment(python.course_id, uuid4()),
            ],
            sql.course_id: [],
        }
        enrollment_service.list_by_course = AsyncMock(side_effect=by_course.get)

        roster = await enrollment_service.list_by_instructor(instructor_id)

        assert [course.title for course, _ in roster] == ["Python", "Python"]
        assert roster[0][1].student_id == student_id
        course_service.list_by_instructor.assert_awaited_once_with(instructor_id)

    @pytest.mark.asyncio
    async def test_list_by_instructor_without_courses(
        self, enrollment_service, course_service, instructor_id
    ):
        course_service.list_by_instructor = AsyncMock(return_value=[])
        assert await enrollment_service.list_by_instructor(instructor_id) == []

    @pytest.mark.asyncio
    async def test_count_enrollments(self, enrollment_service, mock_session):
        mock_session.aexecute.return_value.one.return_value = SimpleNamespace(count=12)
        assert await enrollment_service.count_enrollments() == 12


class TestProgressWriteBack:
    @pytest.mark.asyncio
    async def test_set_progress_updates_both_tables(
        self, enrollment_service, mock_session, course_id, student_id
    ):
        await enrollment_service.set_progress(student_id, course_id, 56)

        assert mock_session.aexecute.await_count == 2
        first_params = mock_session.aexecute.await_args_list[0].args[1]
        second_params = mock_session.aexecute.await_args_list[1].args[1]
        assert first_params[0] == 56
        assert first_params[-2:] == [course_id, student_id]
        assert second_params[-2:] == [student_id, course_id]


class TestApproveCompletion:
    @pytest.mark.asyncio
    async def test_requires_full_progress(self, enrollment_service, course_id, student_id):
        enrollment_service.get_enrollment = AsyncMock(
            return_value=_enrollment(
                course_id, student_id, status=EnrollmentStatus.APPROVED.value, progress=80
            )
        )
        with pytest.raises(ProgressIncompleteError):
            await enrollment_service.approve_completion(course_id, student_id)

    @pytest.mark.asyncio
    async def test_requires_approved_enrollment(
        self, enrollment_service, course_id, student_id
    ):
        enrollment_service.get_enrollment = AsyncMock(
            return_value=_enrollment(course_id, student_id, progress=100)
        )
        with pytest.raises(EnrollmentNotApprovedError):
            await enrollment_service.approve_completion(course_id, student_id)

    @pytest.mark.asyncio
    async def test_marks_completed(self, enrollment_service, mock_session, course_id, student_id):
        enrollment_service.get_enrollment = AsyncMock(
            return_value=_enrollment(
                course_id, student_id, status=EnrollmentStatus.APPROVED.value, progress=100
            )
        )

        enrollment = await enrollment_service.approve_completion(course_id, student_id)

        assert enrollment.instructor_approved is True
        assert enrollment.completed is True
        assert enrollment.graduated_at is not None
        assert mock_session.aexecute.await_count == 2
