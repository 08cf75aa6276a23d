"""Database models for certificates.

``certificates`` is keyed by (student, course), which makes issuance an
idempotent upsert; ``certificates_by_id`` serves lookups and revocation by
certificate id.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from learnhub.utils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

CERTIFICATES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates (
    student_id UUID,
    course_id UUID,
    certificate_id UUID,
    issued_by UUID,
    issued_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

CERTIFICATES_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates_by_id (
    certificate_id UUID PRIMARY KEY,
    student_id UUID,
    course_id UUID,
    issued_by UUID,
    issued_at TIMESTAMP
)
"""

CERTIFICATES_TABLES_CQL = [
    CERTIFICATES_TABLE_CQL,
    CERTIFICATES_BY_ID_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Certificate:
    """Proof that a student finished a course."""

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        certificate_id: UUID | None = None,
        issued_by: UUID | None = None,
        issued_at: datetime | None = None,
    ):
        self.student_id = student_id
        self.course_id = course_id
        self.certificate_id = certificate_id or uuid4()
        self.issued_by = issued_by
        self.issued_at = ensure_utc_aware(issued_at) or utc_now()

    @classmethod
    def from_row(cls, row: Any) -> "Certificate":
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            certificate_id=row.certificate_id,
            issued_by=row.issued_by,
            issued_at=row.issued_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "certificate_id": str(self.certificate_id),
            "student_id": str(self.student_id),
            "course_id": str(self.course_id),
            "issued_by": str(self.issued_by) if self.issued_by else None,
            "issued_at": self.issued_at.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"<Certificate {self.certificate_id} "
            f"student={self.student_id} course={self.course_id}>"
        )
