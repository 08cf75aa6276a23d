"""Quiz API endpoints.

- /v1/quizzes: authoring by the course instructor, public read
- /v1/quiz-progress: student attempts (start, submit, results)
"""

from uuid import UUID

from fastapi import APIRouter, status

from learnhub.auth.dependencies import CurrentUser, InstructorUser, StudentUser
from learnhub.courses.dependencies import (
    CourseServiceDep,
    ManagedCourse,
    ensure_course_manager,
)
from learnhub.progress.dependencies import CourseProgressServiceDep, handle_progress_error
from learnhub.progress.schemas import CourseProgressResponse
from learnhub.progress.service import ProgressError

from .dependencies import QuizServiceDep, handle_quiz_error
from .models import AttemptStatus
from .schemas import (
    AttemptSummary,
    CreateQuizRequest,
    QuizInstructorResponse,
    QuizProgressResponse,
    QuizPublicResponse,
    QuizResultsResponse,
    StartQuizResponse,
    SubmitQuizRequest,
    SubmitQuizResponse,
    UpdateQuizRequest,
)
from .service import QuizError, QuizNotPublishedError


router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])
progress_router = APIRouter(prefix="/v1/quiz-progress", tags=["quizzes"])


# ==============================================================================
# Authoring Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=QuizInstructorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course quiz",
)
async def create_quiz(
    data: CreateQuizRequest,
    quiz_service: QuizServiceDep,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> QuizInstructorResponse:
    await ensure_course_manager(course_service, user, data.course_id)
    try:
        quiz = await quiz_service.create_quiz(
            course_id=data.course_id,
            created_by=UUID(str(user.id)),
            title=data.title,
            questions=[q.to_question() for q in data.questions],
            description=data.description,
            instructions=data.instructions,
            passing_score=data.passing_score,
            time_limit_minutes=data.time_limit_minutes,
            max_attempts=data.max_attempts,
            requires_all_lessons=data.requires_all_lessons,
            is_published=data.is_published,
        )
    except QuizError as e:
        raise handle_quiz_error(e) from e
    return QuizInstructorResponse.from_entity(quiz)


@router.put(
    "/course/{course_id}",
    response_model=QuizInstructorResponse,
    summary="Update course quiz",
)
async def update_quiz(
    data: UpdateQuizRequest,
    course: ManagedCourse,
    quiz_service: QuizServiceDep,
) -> QuizInstructorResponse:
    try:
        quiz = await quiz_service.update_quiz(course.course_id, data.changes())
    except QuizError as e:
        raise handle_quiz_error(e) from e
    return QuizInstructorResponse.from_entity(quiz)


@router.delete(
    "/course/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course quiz",
)
async def delete_quiz(course: ManagedCourse, quiz_service: QuizServiceDep) -> None:
    try:
        await quiz_service.delete_quiz(course.course_id)
    except QuizError as e:
        raise handle_quiz_error(e) from e


@router.get(
    "/course/{course_id}",
    response_model=QuizPublicResponse,
    summary="Get course quiz (without answers)",
)
async def get_quiz(
    course_id: UUID,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> QuizPublicResponse:
    try:
        quiz = await quiz_service.require_quiz(course_id)
        if not quiz.is_published:
            raise QuizNotPublishedError
    except QuizError as e:
        raise handle_quiz_error(e) from e
    return QuizPublicResponse.from_entity(quiz)


@router.get(
    "/course/{course_id}/instructor",
    response_model=QuizInstructorResponse,
    summary="Get course quiz with answers",
)
async def get_quiz_for_instructor(
    course: ManagedCourse,
    quiz_service: QuizServiceDep,
) -> QuizInstructorResponse:
    try:
        quiz = await quiz_service.require_quiz(course.course_id)
    except QuizError as e:
        raise handle_quiz_error(e) from e
    return QuizInstructorResponse.from_entity(quiz)


# ==============================================================================
# Attempt Endpoints
# ==============================================================================


@progress_router.get(
    "/courses/{course_id}/progress",
    response_model=QuizProgressResponse,
    summary="My quiz standing",
)
async def quiz_progress(
    course_id: UUID,
    quiz_service: QuizServiceDep,
    user: StudentUser,
) -> QuizProgressResponse:
    student_id = UUID(str(user.id))
    quiz = await quiz_service.get_quiz(course_id)
    attempts = await quiz_service.list_attempts(student_id, course_id)
    submitted = [a for a in attempts if a.is_submitted]
    in_progress = next(
        (a for a in attempts if a.status == AttemptStatus.IN_PROGRESS.value), None
    )

    return QuizProgressResponse(
        course_id=course_id,
        quiz_id=quiz.quiz_id if quiz else None,
        passing_score=quiz.passing_score if quiz else None,
        max_attempts=quiz.max_attempts if quiz else None,
        attempts_used=len(attempts),
        attempts_remaining=max(0, quiz.max_attempts - len(attempts)) if quiz else 0,
        passed=any(a.passed for a in submitted),
        best_percentage=max((a.percentage for a in submitted), default=None),
        in_progress_attempt_id=in_progress.attempt_id if in_progress else None,
        attempts=[AttemptSummary.model_validate(a) for a in attempts],
    )


@progress_router.post(
    "/courses/{course_id}/start",
    response_model=StartQuizResponse,
    summary="Start or resume quiz attempt",
)
async def start_quiz(
    course_id: UUID,
    quiz_service: QuizServiceDep,
    user: StudentUser,
) -> StartQuizResponse:
    try:
        quiz, attempt = await quiz_service.start_quiz(UUID(str(user.id)), course_id)
    except QuizError as e:
        raise handle_quiz_error(e) from e
    return StartQuizResponse.from_entities(quiz, attempt)


@progress_router.post(
    "/courses/{course_id}/submit",
    response_model=SubmitQuizResponse,
    summary="Submit quiz attempt",
)
async def submit_quiz(
    course_id: UUID,
    data: SubmitQuizRequest,
    quiz_service: QuizServiceDep,
    course_progress_service: CourseProgressServiceDep,
    user: StudentUser,
) -> SubmitQuizResponse:
    """Score the attempt and return it with the recomputed course progress."""
    student_id = UUID(str(user.id))
    try:
        attempt, result = await quiz_service.submit_quiz(
            student_id,
            course_id,
            data.attempt_id,
            data.answers,
            data.time_spent_seconds,
        )
    except QuizError as e:
        raise handle_quiz_error(e) from e

    try:
        progress = await course_progress_service.recalculate(student_id, course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return SubmitQuizResponse(
        score=result.score,
        total_questions=result.total_questions,
        percentage=result.percentage,
        passed=result.passed,
        attempt_number=attempt.attempt_number,
        points_earned=result.points_earned,
        points_total=result.points_total,
        course_progress=CourseProgressResponse.from_result(progress),
    )


@progress_router.get(
    "/courses/{course_id}/results",
    response_model=QuizResultsResponse,
    summary="Review my latest quiz result",
)
async def quiz_results(
    course_id: UUID,
    quiz_service: QuizServiceDep,
    user: StudentUser,
) -> QuizResultsResponse:
    try:
        quiz, attempt = await quiz_service.get_results(UUID(str(user.id)), course_id)
    except QuizError as e:
        raise handle_quiz_error(e) from e
    return QuizResultsResponse.from_entities(quiz, attempt)
