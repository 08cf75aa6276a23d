"""FastAPI dependencies for short questions."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ShortQuestionError, ShortQuestionService


async def get_short_question_service(request: Request) -> ShortQuestionService:
    """Get short-question service from app state."""
    service = getattr(request.app.state, "short_question_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Short-question service not available",
        )
    return service


ShortQuestionServiceDep = Annotated[
    ShortQuestionService, Depends(get_short_question_service)
]


def handle_short_question_error(error: ShortQuestionError) -> HTTPException:
    """Convert short-question errors to HTTP exceptions."""
    status_map = {
        "set_not_found": status.HTTP_404_NOT_FOUND,
        "submission_not_found": status.HTTP_404_NOT_FOUND,
        "not_enrolled": status.HTTP_404_NOT_FOUND,
        "set_exists": status.HTTP_409_CONFLICT,
        "already_submitted": status.HTTP_409_CONFLICT,
        "submission_not_submitted": status.HTTP_409_CONFLICT,
        "submission_finalized": status.HTTP_409_CONFLICT,
        "set_not_published": status.HTTP_403_FORBIDDEN,
        "enrollment_not_approved": status.HTTP_403_FORBIDDEN,
        "invalid_answers": status.HTTP_422_UNPROCESSABLE_ENTITY,
        "answer_length": status.HTTP_422_UNPROCESSABLE_ENTITY,
        "invalid_points": status.HTTP_422_UNPROCESSABLE_ENTITY,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )
