"""Pydantic schemas for enrollments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import EnrollmentStatus


class EnrollRequest(BaseModel):
    """Student enrollment request."""

    course_id: UUID = Field(..., description="Course to enroll in")


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    student_id: UUID
    status: EnrollmentStatus
    progress: int = Field(ge=0, le=100)
    completed: bool
    instructor_approved: bool
    graduated_at: datetime | None = None
    last_activity_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None


class EnrollmentListResponse(BaseModel):
    items: list[EnrollmentResponse]
    total: int


class InstructorEnrollmentResponse(EnrollmentResponse):
    course_title: str


class InstructorEnrollmentListResponse(BaseModel):
    """Students across every course of the calling instructor."""

    items: list[InstructorEnrollmentResponse]
    total: int
