"""FastAPI dependencies for progress tracking."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CourseProgressService, LessonProgressService, ProgressError


async def get_lesson_progress_service(request: Request) -> LessonProgressService:
    """Get lesson progress service from app state."""
    service = getattr(request.app.state, "lesson_progress_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress service not available",
        )
    return service


async def get_course_progress_service(request: Request) -> CourseProgressService:
    """Get course progress (aggregation) service from app state."""
    service = getattr(request.app.state, "course_progress_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress service not available",
        )
    return service


LessonProgressServiceDep = Annotated[
    LessonProgressService, Depends(get_lesson_progress_service)
]
CourseProgressServiceDep = Annotated[
    CourseProgressService, Depends(get_course_progress_service)
]


def handle_progress_error(error: ProgressError) -> HTTPException:
    """Convert progress errors to HTTP exceptions."""
    status_map = {
        "not_enrolled": status.HTTP_404_NOT_FOUND,
        "enrollment_not_approved": status.HTTP_403_FORBIDDEN,
        "lesson_not_found": status.HTTP_404_NOT_FOUND,
        "progress_not_found": status.HTTP_404_NOT_FOUND,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    )
