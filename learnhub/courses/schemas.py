"""Pydantic schemas for the course catalog."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateCourseRequest(BaseModel):
    """Course creation request."""

    title: str = Field(..., min_length=3, max_length=200, description="Course title")
    description: str | None = Field(None, max_length=5000)


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    instructor_id: UUID
    title: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class CreateLessonRequest(BaseModel):
    """Register a lesson in a course."""

    title: str = Field(..., min_length=1, max_length=200)
    module_id: UUID | None = Field(None, description="Optional module grouping")
    position: int | None = Field(
        None, ge=0, description="Sort order (default: append at the end)"
    )


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lesson_id: UUID
    course_id: UUID
    module_id: UUID | None = None
    title: str
    position: int
    created_at: datetime


class LessonListResponse(BaseModel):
    items: list[LessonResponse]
    total: int
