"""Course catalog API endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from learnhub.auth.dependencies import CurrentUser, InstructorUser

from .dependencies import CourseServiceDep, ManagedCourse, handle_course_error
from .schemas import (
    CourseResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    LessonListResponse,
    LessonResponse,
)
from .service import CourseError


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> CourseResponse:
    """Create a course owned by the calling instructor."""
    course = await course_service.create_course(
        instructor_id=UUID(str(user.id)),
        title=data.title,
        description=data.description,
    )
    return CourseResponse.model_validate(course)


@router.get("/{course_id}", response_model=CourseResponse, summary="Get course")
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> CourseResponse:
    course = await course_service.get_course(course_id)
    if course is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )
    return CourseResponse.model_validate(course)


@router.post(
    "/{course_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add lesson to course",
)
async def add_lesson(
    data: CreateLessonRequest,
    course: ManagedCourse,
    course_service: CourseServiceDep,
) -> LessonResponse:
    try:
        lesson = await course_service.add_lesson(
            course_id=course.course_id,
            title=data.title,
            module_id=data.module_id,
            position=data.position,
        )
    except CourseError as e:
        raise handle_course_error(e) from e
    return LessonResponse.model_validate(lesson)


@router.get(
    "/{course_id}/lessons",
    response_model=LessonListResponse,
    summary="List course lessons",
)
async def list_lessons(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> LessonListResponse:
    lessons = await course_service.list_lessons(course_id)
    return LessonListResponse(
        items=[LessonResponse.model_validate(lesson) for lesson in lessons],
        total=len(lessons),
    )


@router.delete(
    "/{course_id}/lessons/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove lesson from course",
)
async def remove_lesson(
    lesson_id: UUID,
    course: ManagedCourse,
    course_service: CourseServiceDep,
) -> None:
    try:
        await course_service.remove_lesson(course.course_id, lesson_id)
    except CourseError as e:
        raise handle_course_error(e) from e
