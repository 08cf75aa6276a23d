"""LearnHub API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnhub.certificates.router import router as certificates_router
from learnhub.certificates.service import CertificateService
from learnhub.config import Settings, get_settings
from learnhub.core.context import get_request_id
from learnhub.core.database import init_async_cassandra, shutdown_async_cassandra
from learnhub.core.logging import configure_structlog, get_logger
from learnhub.core.middleware import RequestContextMiddleware
from learnhub.courses.router import router as courses_router
from learnhub.courses.service import CourseService
from learnhub.dashboard.router import router as dashboard_router
from learnhub.dashboard.service import DashboardService
from learnhub.enrollments.router import router as enrollments_router
from learnhub.enrollments.service import EnrollmentService
from learnhub.health.router import router as health_router
from learnhub.progress.router import course_router as course_progress_router
from learnhub.progress.router import lesson_router as lesson_progress_router
from learnhub.progress.service import CourseProgressService, LessonProgressService
from learnhub.quizzes.router import progress_router as quiz_progress_router
from learnhub.quizzes.router import router as quizzes_router
from learnhub.quizzes.service import QuizService
from learnhub.short_questions.router import router as short_questions_router
from learnhub.short_questions.service import ShortQuestionService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session: Any, settings: Settings) -> None:
    """Build every domain service on one session and publish it on ``app.state``.

    Construction order follows the service dependencies: catalog, enrollments,
    lesson progress, assessments, certificates, then the aggregator and the
    dashboards that read them.
    """
    keyspace = settings.cassandra_keyspace

    course_service = CourseService(session=session, keyspace=keyspace)
    enrollment_service = EnrollmentService(
        session=session, keyspace=keyspace, course_service=course_service
    )
    lesson_progress_service = LessonProgressService(
        session=session,
        keyspace=keyspace,
        course_service=course_service,
        enrollment_service=enrollment_service,
    )
    quiz_service = QuizService(
        session=session,
        keyspace=keyspace,
        course_service=course_service,
        enrollment_service=enrollment_service,
        lesson_progress_service=lesson_progress_service,
        default_passing_score=settings.default_passing_score,
        default_max_attempts=settings.default_quiz_max_attempts,
    )
    short_question_service = ShortQuestionService(
        session=session,
        keyspace=keyspace,
        enrollment_service=enrollment_service,
        default_passing_score=settings.default_passing_score,
    )
    certificate_service = CertificateService(
        session=session, keyspace=keyspace, enrollment_service=enrollment_service
    )

    app.state.course_service = course_service
    app.state.enrollment_service = enrollment_service
    app.state.lesson_progress_service = lesson_progress_service
    app.state.quiz_service = quiz_service
    app.state.short_question_service = short_question_service
    app.state.certificate_service = certificate_service
    app.state.course_progress_service = CourseProgressService(
        course_service=course_service,
        enrollment_service=enrollment_service,
        lesson_progress_service=lesson_progress_service,
        quiz_service=quiz_service,
        short_question_service=short_question_service,
    )
    app.state.dashboard_service = DashboardService(
        course_service=course_service,
        enrollment_service=enrollment_service,
        certificate_service=certificate_service,
    )
    logger.info("services_initialized", keyspace=keyspace)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    app.state.cassandra_session = None
    if settings.cassandra_enabled:
        try:
            session = await init_async_cassandra()
            init_services(app, session, settings)
            app.state.cassandra_session = session
        except Exception as e:
            logger.warning(
                "database_init_skipped",
                error=str(e),
                message="Running without database connection",
            )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    if settings.cassandra_enabled:
        await shutdown_async_cassandra()


# ==============================================================================
# Error Envelope
# ==============================================================================


def error_response(
    request: Request,
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> ORJSONResponse:
    """``{"error", "message", "status_code", "request_id"}`` plus extra keys."""
    request_id = getattr(request.state, "request_id", None) or get_request_id() or None
    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
            "request_id": request_id,
            **extra,
        },
        headers=headers,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=str(exc.detail),
        path=request.url.path,
        method=request.method,
    )
    # 5xx details stay in the logs
    message = (
        str(exc.detail)
        if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
        else "Internal server error"
    )
    return error_response(
        request, exc.status_code, message, headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    logger.warning(
        "request_validation_failed",
        fields=[d["field"] for d in details],
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        details=details,
    )


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> ORJSONResponse:
    logger.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
    )


# ==============================================================================
# Application Factory
# ==============================================================================


def create_app() -> FastAPI:
    """Build the LearnHub application.

    Services are attached by the lifespan; without a database every domain
    route answers 503 while health probes keep working.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="LearnHub course progress and assessment API",
        # Tracebacks are logged by the handlers, never rendered
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Last added runs first: CORS wraps the request context middleware
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(enrollments_router)
    app.include_router(lesson_progress_router)
    app.include_router(course_progress_router)
    app.include_router(quizzes_router)
    app.include_router(quiz_progress_router)
    app.include_router(short_questions_router)
    app.include_router(certificates_router)
    app.include_router(dashboard_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "LearnHub API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "learnhub.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.is_development,
    )
