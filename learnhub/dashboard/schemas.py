"""Pydantic schemas for the dashboards."""

from pydantic import BaseModel, ConfigDict, Field


class StudentStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_courses: int = Field(description="Enrollments, pending or approved")
    approved: int
    pending: int
    completed: int = Field(description="Completion signed off by the instructor")
    average_progress: int = Field(ge=0, le=100)
    certificates: int


class InstructorStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_courses: int
    total_students: int = Field(description="Enrollments across owned courses")
    pending_approvals: int
    completed_students: int


class AdminStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_courses: int
    total_enrollments: int
