"""FastAPI dependencies for quizzes."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import QuizError, QuizService


async def get_quiz_service(request: Request) -> QuizService:
    """Get quiz service from app state."""
    service = getattr(request.app.state, "quiz_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Quiz service not available",
        )
    return service


QuizServiceDep = Annotated[QuizService, Depends(get_quiz_service)]


def handle_quiz_error(error: QuizError) -> HTTPException:
    """Convert quiz errors to HTTP exceptions."""
    status_map = {
        "quiz_not_found": status.HTTP_404_NOT_FOUND,
        "attempt_not_found": status.HTTP_404_NOT_FOUND,
        "no_results": status.HTTP_404_NOT_FOUND,
        "quiz_exists": status.HTTP_409_CONFLICT,
        "attempt_not_in_progress": status.HTTP_409_CONFLICT,
        "max_attempts_exceeded": status.HTTP_409_CONFLICT,
        "quiz_not_published": status.HTTP_403_FORBIDDEN,
        "enrollment_not_approved": status.HTTP_403_FORBIDDEN,
        "lessons_incomplete": status.HTTP_403_FORBIDDEN,
        "incomplete_answers": status.HTTP_422_UNPROCESSABLE_ENTITY,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )
