"""Enrollment API endpoints.

Students request and cancel; the course instructor (or an admin) approves,
rejects and signs off completion.
"""

from uuid import UUID

from fastapi import APIRouter, status

from learnhub.auth.dependencies import InstructorUser, StudentUser
from learnhub.courses.dependencies import ManagedCourse

from .dependencies import EnrollmentServiceDep, handle_enrollment_error
from .schemas import (
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollRequest,
    InstructorEnrollmentListResponse,
    InstructorEnrollmentResponse,
)
from .service import EnrollmentError


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


def _list_response(enrollments) -> EnrollmentListResponse:
    return EnrollmentListResponse(
        items=[EnrollmentResponse.model_validate(e) for e in enrollments],
        total=len(enrollments),
    )


# ==============================================================================
# Student Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request enrollment",
)
async def request_enrollment(
    data: EnrollRequest,
    enrollment_service: EnrollmentServiceDep,
    user: StudentUser,
) -> EnrollmentResponse:
    """Request enrollment in a course. Starts as pending."""
    try:
        enrollment = await enrollment_service.request_enrollment(
            student_id=UUID(str(user.id)),
            course_id=data.course_id,
        )
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    return EnrollmentResponse.model_validate(enrollment)


@router.get("/my", response_model=EnrollmentListResponse, summary="My enrollments")
async def my_enrollments(
    enrollment_service: EnrollmentServiceDep,
    user: StudentUser,
) -> EnrollmentListResponse:
    enrollments = await enrollment_service.list_by_student(UUID(str(user.id)))
    return _list_response(enrollments)


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel my enrollment",
)
async def cancel_enrollment(
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    user: StudentUser,
) -> None:
    try:
        await enrollment_service.remove_enrollment(
            course_id, UUID(str(user.id)), reason="cancelled"
        )
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e


# ==============================================================================
# Instructor Endpoints
# ==============================================================================


@router.get(
    "/instructor-students",
    response_model=InstructorEnrollmentListResponse,
    summary="Students across my courses",
)
async def instructor_students(
    enrollment_service: EnrollmentServiceDep,
    user: InstructorUser,
) -> InstructorEnrollmentListResponse:
    roster = await enrollment_service.list_by_instructor(UUID(str(user.id)))
    return InstructorEnrollmentListResponse(
        items=[
            InstructorEnrollmentResponse(
                **EnrollmentResponse.model_validate(enrollment).model_dump(),
                course_title=course.title,
            )
            for course, enrollment in roster
        ],
        total=len(roster),
    )


@router.get(
    "/course/{course_id}",
    response_model=EnrollmentListResponse,
    summary="List course enrollments",
)
async def course_enrollments(
    course: ManagedCourse,
    enrollment_service: EnrollmentServiceDep,
) -> EnrollmentListResponse:
    enrollments = await enrollment_service.list_by_course(course.course_id)
    return _list_response(enrollments)


@router.put(
    "/{course_id}/students/{student_id}/approve",
    response_model=EnrollmentResponse,
    summary="Approve enrollment",
)
async def approve_enrollment(
    student_id: UUID,
    course: ManagedCourse,
    enrollment_service: EnrollmentServiceDep,
) -> EnrollmentResponse:
    try:
        enrollment = await enrollment_service.approve_enrollment(
            course.course_id, student_id
        )
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    return EnrollmentResponse.model_validate(enrollment)


@router.delete(
    "/{course_id}/students/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reject or remove enrollment",
)
async def reject_enrollment(
    student_id: UUID,
    course: ManagedCourse,
    enrollment_service: EnrollmentServiceDep,
) -> None:
    try:
        await enrollment_service.remove_enrollment(course.course_id, student_id)
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e


@router.post(
    "/{course_id}/students/{student_id}/approve-completion",
    response_model=EnrollmentResponse,
    summary="Approve course completion",
)
async def approve_completion(
    student_id: UUID,
    course: ManagedCourse,
    enrollment_service: EnrollmentServiceDep,
) -> EnrollmentResponse:
    """Sign off completion. Requires an approved enrollment at 100% progress."""
    try:
        enrollment = await enrollment_service.approve_completion(
            course.course_id, student_id
        )
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    return EnrollmentResponse.model_validate(enrollment)
