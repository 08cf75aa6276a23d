"""FastAPI dependencies for the course catalog.

Provides:
- Course service from app state
- ``ManagedCourse``: the path course, checked for owner-or-admin access.
  Every instructor-side endpoint of the other packages depends on it.
- Error mapping
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from learnhub.auth.dependencies import InstructorUser
from learnhub.auth.permissions import can_manage_course
from learnhub.auth.schemas import UserResponse

from .models import Course
from .service import CourseError, CourseService


async def get_course_service(request: Request) -> CourseService:
    """Get course service from app state."""
    service = getattr(request.app.state, "course_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Course service not available",
        )
    return service


CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]


def handle_course_error(error: CourseError) -> HTTPException:
    """Convert course errors to HTTP exceptions."""
    status_map = {
        "course_not_found": status.HTTP_404_NOT_FOUND,
        "lesson_not_found": status.HTTP_404_NOT_FOUND,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )


async def ensure_course_manager(
    course_service: CourseService,
    user: UserResponse,
    course_id: UUID,
) -> Course:
    """Resolve a course and require its instructor or an admin.

    Raises:
        HTTPException 404: Unknown course
        HTTPException 403: Caller neither owns the course nor is an admin
    """
    course = await course_service.get_course(course_id)
    if course is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )

    if not can_manage_course(user.role, user.id, course.instructor_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the course instructor or an admin can do this",
        )

    return course


async def verify_course_manage_access(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> Course:
    """Path-parameter form of ``ensure_course_manager``."""
    return await ensure_course_manager(course_service, user, course_id)


ManagedCourse = Annotated[Course, Depends(verify_course_manage_access)]
