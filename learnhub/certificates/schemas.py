"""Pydantic schemas for certificates."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class IssueCertificateRequest(BaseModel):
    course_id: UUID
    student_id: UUID


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    certificate_id: UUID
    student_id: UUID
    course_id: UUID
    course_title: str | None = None
    issued_by: UUID | None = None
    issued_at: datetime


class CertificateListResponse(BaseModel):
    items: list[CertificateResponse]
    total: int
