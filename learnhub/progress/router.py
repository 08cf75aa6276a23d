"""Progress API endpoints.

- /v1/lesson-progress: lesson toggles and access tracking
- /v1/course-progress: aggregated 60/20/20 course progress
"""

from uuid import UUID

from fastapi import APIRouter

from learnhub.auth.dependencies import StudentUser
from learnhub.courses.dependencies import CourseServiceDep, ManagedCourse

from .dependencies import (
    CourseProgressServiceDep,
    LessonProgressServiceDep,
    handle_progress_error,
)
from .schemas import (
    CourseProgressResponse,
    LessonAccessRequest,
    LessonProgressListResponse,
    LessonProgressResponse,
    LessonToggleRequest,
    LessonToggleResponse,
)
from .service import ProgressError


lesson_router = APIRouter(prefix="/v1/lesson-progress", tags=["progress"])
course_router = APIRouter(prefix="/v1/course-progress", tags=["progress"])


async def _list_response(
    lesson_progress_service, course_service, student_id: UUID, course_id: UUID
) -> LessonProgressListResponse:
    items = await lesson_progress_service.list_course_progress(student_id, course_id)
    total = await course_service.count_lessons(course_id)
    return LessonProgressListResponse(
        items=[LessonProgressResponse.model_validate(p) for p in items],
        completed=sum(1 for p in items if p.completed),
        total=total,
    )


# ==============================================================================
# Lesson Progress Endpoints
# ==============================================================================


@lesson_router.post(
    "/complete",
    response_model=LessonToggleResponse,
    summary="Mark lesson complete",
)
async def mark_lesson_complete(
    data: LessonToggleRequest,
    lesson_progress_service: LessonProgressServiceDep,
    course_progress_service: CourseProgressServiceDep,
    user: StudentUser,
) -> LessonToggleResponse:
    """Mark a lesson complete and return the recomputed course progress."""
    student_id = UUID(str(user.id))
    try:
        lesson = await lesson_progress_service.mark_complete(
            student_id, data.course_id, data.lesson_id
        )
        progress = await course_progress_service.recalculate(student_id, data.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return LessonToggleResponse(
        lesson=LessonProgressResponse.model_validate(lesson),
        course_progress=CourseProgressResponse.from_result(progress),
    )


@lesson_router.post(
    "/incomplete",
    response_model=LessonToggleResponse,
    summary="Mark lesson incomplete",
)
async def mark_lesson_incomplete(
    data: LessonToggleRequest,
    lesson_progress_service: LessonProgressServiceDep,
    course_progress_service: CourseProgressServiceDep,
    user: StudentUser,
) -> LessonToggleResponse:
    student_id = UUID(str(user.id))
    try:
        lesson = await lesson_progress_service.mark_incomplete(
            student_id, data.course_id, data.lesson_id
        )
        progress = await course_progress_service.recalculate(student_id, data.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return LessonToggleResponse(
        lesson=LessonProgressResponse.model_validate(lesson),
        course_progress=CourseProgressResponse.from_result(progress),
    )


@lesson_router.post(
    "/access",
    response_model=LessonProgressResponse,
    summary="Record lesson access",
)
async def record_lesson_access(
    data: LessonAccessRequest,
    lesson_progress_service: LessonProgressServiceDep,
    user: StudentUser,
) -> LessonProgressResponse:
    try:
        lesson = await lesson_progress_service.record_access(
            UUID(str(user.id)),
            data.course_id,
            data.lesson_id,
            data.time_spent_seconds,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return LessonProgressResponse.model_validate(lesson)


@lesson_router.get(
    "/course/{course_id}",
    response_model=LessonProgressListResponse,
    summary="My lesson progress in a course",
)
async def my_lesson_progress(
    course_id: UUID,
    lesson_progress_service: LessonProgressServiceDep,
    course_service: CourseServiceDep,
    user: StudentUser,
) -> LessonProgressListResponse:
    return await _list_response(
        lesson_progress_service, course_service, UUID(str(user.id)), course_id
    )


@lesson_router.get(
    "/course/{course_id}/student/{student_id}",
    response_model=LessonProgressListResponse,
    summary="A student's lesson progress",
)
async def student_lesson_progress(
    student_id: UUID,
    course: ManagedCourse,
    lesson_progress_service: LessonProgressServiceDep,
    course_service: CourseServiceDep,
) -> LessonProgressListResponse:
    return await _list_response(
        lesson_progress_service, course_service, student_id, course.course_id
    )


# ==============================================================================
# Course Progress Endpoints
# ==============================================================================


@course_router.get(
    "/{course_id}",
    response_model=CourseProgressResponse,
    summary="My course progress",
)
async def my_course_progress(
    course_id: UUID,
    course_progress_service: CourseProgressServiceDep,
    user: StudentUser,
) -> CourseProgressResponse:
    try:
        progress = await course_progress_service.calculate(UUID(str(user.id)), course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return CourseProgressResponse.from_result(progress)


@course_router.post(
    "/{course_id}/recalculate",
    response_model=CourseProgressResponse,
    summary="Recalculate my course progress",
)
async def recalculate_course_progress(
    course_id: UUID,
    course_progress_service: CourseProgressServiceDep,
    user: StudentUser,
) -> CourseProgressResponse:
    """Recompute and store progress on the enrollment. Safe to repeat."""
    try:
        progress = await course_progress_service.recalculate(
            UUID(str(user.id)), course_id
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return CourseProgressResponse.from_result(progress)


@course_router.get(
    "/{course_id}/student/{student_id}",
    response_model=CourseProgressResponse,
    summary="A student's course progress",
)
async def student_course_progress(
    student_id: UUID,
    course: ManagedCourse,
    course_progress_service: CourseProgressServiceDep,
) -> CourseProgressResponse:
    try:
        progress = await course_progress_service.calculate(student_id, course.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return CourseProgressResponse.from_result(progress)
