"""Certificate API endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from learnhub.auth.dependencies import AdminUser, CurrentUser, InstructorUser, StudentUser
from learnhub.auth.permissions import UserRole, has_permission
from learnhub.courses.dependencies import CourseServiceDep, ensure_course_manager
from learnhub.courses.service import CourseService

from .dependencies import CertificateServiceDep, handle_certificate_error
from .models import Certificate
from .schemas import CertificateListResponse, CertificateResponse, IssueCertificateRequest
from .service import CertificateError


router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


async def _with_titles(
    certificates: list[Certificate], course_service: CourseService
) -> list[CertificateResponse]:
    titles: dict[UUID, str | None] = {}
    items = []
    for certificate in certificates:
        if certificate.course_id not in titles:
            course = await course_service.get_course(certificate.course_id)
            titles[certificate.course_id] = course.title if course else None
        item = CertificateResponse.model_validate(certificate)
        item.course_title = titles[certificate.course_id]
        items.append(item)
    return items


@router.get("", response_model=CertificateListResponse, summary="My certificates")
async def my_certificates(
    certificate_service: CertificateServiceDep,
    course_service: CourseServiceDep,
    user: StudentUser,
) -> CertificateListResponse:
    certificates = await certificate_service.list_by_student(UUID(str(user.id)))
    items = await _with_titles(certificates, course_service)
    return CertificateListResponse(items=items, total=len(items))


@router.get("/all", response_model=CertificateListResponse, summary="All certificates")
async def all_certificates(
    certificate_service: CertificateServiceDep,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> CertificateListResponse:
    certificates = await certificate_service.list_all()
    items = await _with_titles(certificates, course_service)
    return CertificateListResponse(items=items, total=len(items))


@router.post(
    "/issue",
    response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue certificate for a completed course",
)
async def issue_certificate(
    data: IssueCertificateRequest,
    response: Response,
    certificate_service: CertificateServiceDep,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> CertificateResponse:
    """Issue the certificate, or return the existing one with 200."""
    course = await ensure_course_manager(course_service, user, data.course_id)
    try:
        certificate, created = await certificate_service.issue(
            data.student_id, data.course_id, issued_by=UUID(str(user.id))
        )
    except CertificateError as e:
        raise handle_certificate_error(e) from e

    if not created:
        response.status_code = status.HTTP_200_OK
    item = CertificateResponse.model_validate(certificate)
    item.course_title = course.title
    return item


@router.get(
    "/{certificate_id}",
    response_model=CertificateResponse,
    summary="Get certificate",
)
async def get_certificate(
    certificate_id: UUID,
    certificate_service: CertificateServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> CertificateResponse:
    try:
        certificate = await certificate_service.get_certificate(certificate_id)
    except CertificateError as e:
        raise handle_certificate_error(e) from e

    is_owner = str(certificate.student_id) == str(user.id)
    if not is_owner and not has_permission(user.role, UserRole.INSTRUCTOR):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to view this certificate",
        )

    (item,) = await _with_titles([certificate], course_service)
    return item


@router.delete(
    "/{certificate_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke certificate",
)
async def revoke_certificate(
    certificate_id: UUID,
    certificate_service: CertificateServiceDep,
    admin: AdminUser,
) -> None:
    try:
        await certificate_service.revoke(certificate_id)
    except CertificateError as e:
        raise handle_certificate_error(e) from e
