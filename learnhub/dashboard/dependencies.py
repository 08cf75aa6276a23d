"""FastAPI dependencies for the dashboards."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import DashboardService


async def get_dashboard_service(request: Request) -> DashboardService:
    service = getattr(request.app.state, "dashboard_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard service not available",
        )
    return service


DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]
