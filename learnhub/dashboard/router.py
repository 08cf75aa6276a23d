"""Dashboard API endpoints, one per role."""

from uuid import UUID

from fastapi import APIRouter

from learnhub.auth.dependencies import AdminUser, InstructorUser, StudentUser

from .dependencies import DashboardServiceDep
from .schemas import AdminStatsResponse, InstructorStatsResponse, StudentStatsResponse


router = APIRouter(prefix="/v1/dashboard", tags=["dashboard"])


@router.get("/student", response_model=StudentStatsResponse, summary="Student stats")
async def student_stats(
    dashboard_service: DashboardServiceDep,
    user: StudentUser,
) -> StudentStatsResponse:
    stats = await dashboard_service.student_stats(UUID(str(user.id)))
    return StudentStatsResponse.model_validate(stats)


@router.get(
    "/instructor",
    response_model=InstructorStatsResponse,
    summary="Instructor stats",
)
async def instructor_stats(
    dashboard_service: DashboardServiceDep,
    user: InstructorUser,
) -> InstructorStatsResponse:
    """Counts over the courses the caller owns."""
    stats = await dashboard_service.instructor_stats(UUID(str(user.id)))
    return InstructorStatsResponse.model_validate(stats)


@router.get("/admin", response_model=AdminStatsResponse, summary="Platform stats")
async def admin_stats(
    dashboard_service: DashboardServiceDep,
    admin: AdminUser,
) -> AdminStatsResponse:
    stats = await dashboard_service.admin_stats()
    return AdminStatsResponse.model_validate(stats)
