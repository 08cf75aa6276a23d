"""Short-question API endpoints.

Authoring and grading by the course instructor; start, submit and results
for enrolled students.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from learnhub.auth.dependencies import CurrentUser, InstructorUser, StudentUser
from learnhub.courses.dependencies import (
    CourseServiceDep,
    ManagedCourse,
    ensure_course_manager,
)
from learnhub.progress.dependencies import CourseProgressServiceDep, handle_progress_error
from learnhub.progress.schemas import CourseProgressResponse
from learnhub.progress.service import ProgressError

from .dependencies import ShortQuestionServiceDep, handle_short_question_error
from .models import SubmissionStatus
from .schemas import (
    CreateShortQuestionSetRequest,
    GradeSubmissionRequest,
    GradeSubmissionResponse,
    ShortQuestionSetInstructorResponse,
    ShortQuestionSetResponse,
    StartShortQuestionsResponse,
    SubmissionInstructorResponse,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitAnswersRequest,
    SubmitAnswersResponse,
    UpdateShortQuestionSetRequest,
)
from .service import (
    SetNotPublishedError,
    ShortQuestionError,
    SubmissionNotFoundError,
)


router = APIRouter(prefix="/v1/short-questions", tags=["short-questions"])


# ==============================================================================
# Authoring Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=ShortQuestionSetInstructorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course short-question set",
)
async def create_set(
    data: CreateShortQuestionSetRequest,
    service: ShortQuestionServiceDep,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> ShortQuestionSetInstructorResponse:
    await ensure_course_manager(course_service, user, data.course_id)
    try:
        question_set = await service.create_set(
            course_id=data.course_id,
            created_by=UUID(str(user.id)),
            title=data.title,
            questions=[q.to_question() for q in data.questions],
            description=data.description,
            instructions=data.instructions,
            passing_score=data.passing_score,
            time_limit_minutes=data.time_limit_minutes,
            is_published=data.is_published,
        )
    except ShortQuestionError as e:
        raise handle_short_question_error(e) from e
    return ShortQuestionSetInstructorResponse.from_entity(question_set)


@router.put(
    "/course/{course_id}",
    response_model=ShortQuestionSetInstructorResponse,
    summary="Update course short-question set",
)
async def update_set(
    data: UpdateShortQuestionSetRequest,
    course: ManagedCourse,
    service: ShortQuestionServiceDep,
) -> ShortQuestionSetInstructorResponse:
    try:
        question_set = await service.update_set(course.course_id, data.changes())
    except ShortQuestionError as e:
        raise handle_short_question_error(e) from e
    return ShortQuestionSetInstructorResponse.from_entity(question_set)


@router.delete(
    "/course/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course short-question set",
)
async def delete_set(course: ManagedCourse, service: ShortQuestionServiceDep) -> None:
    try:
        await service.delete_set(course.course_id)
    except ShortQuestionError as e:
        raise handle_short_question_error(e) from e


@router.get(
    "/course/{course_id}",
    response_model=ShortQuestionSetResponse,
    summary="Get course short-question set (without answers)",
)
async def get_set(
    course_id: UUID,
    service: ShortQuestionServiceDep,
    user: CurrentUser,
) -> ShortQuestionSetResponse:
    try:
        question_set = await service.require_set(course_id)
        if not question_set.is_published:
            raise SetNotPublishedError
    except ShortQuestionError as e:
        raise handle_short_question_error(e) from e
    return ShortQuestionSetResponse.from_entity(question_set)


# ==============================================================================
# Student Endpoints
# ==============================================================================


@router.post(
    "/course/{course_id}/start",
    response_model=StartShortQuestionsResponse,
    summary="Start or resume short questions",
)
async def start(
    course_id: UUID,
    service: ShortQuestionServiceDep,
    user: StudentUser,
) -> StartShortQuestionsResponse:
    try:
        question_set, submission = await service.start(UUID(str(user.id)), course_id)
    except ShortQuestionError as e:
        raise handle_short_question_error(e) from e
    return StartShortQuestionsResponse(
        submission_id=submission.submission_id,
        status=submission.status,
        started_at=submission.started_at,
        question_set=ShortQuestionSetResponse.from_entity(question_set),
    )


@router.post(
    "/course/{course_id}/submit",
    response_model=SubmitAnswersResponse,
    summary="Submit answers for grading",
)
async def submit(
    course_id: UUID,
    data: SubmitAnswersRequest,
    service: ShortQuestionServiceDep,
    course_progress_service: CourseProgressServiceDep,
    user: StudentUser,
) -> SubmitAnswersResponse:
    student_id = UUID(str(user.id))
    try:
        submission = await service.submit(
            student_id, course_id, data.answers, data.time_spent_seconds
        )
    except ShortQuestionError as e:
        raise handle_short_question_error(e) from e

    try:
        progress = await course_progress_service.recalculate(student_id, course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return SubmitAnswersResponse(
        submission=SubmissionResponse.from_entity(submission),
        course_progress=CourseProgressResponse.from_result(progress),
    )


@router.get(
    "/course/{course_id}/results",
    response_model=SubmissionResponse,
    summary="My short-question submission",
)
async def results(
    course_id: UUID,
    service: ShortQuestionServiceDep,
    user: StudentUser,
) -> SubmissionResponse:
    submission = await service.get_submission(UUID(str(user.id)), course_id)
    if submission is None:
        raise handle_short_question_error(SubmissionNotFoundError())
    return SubmissionResponse.from_entity(submission)


# ==============================================================================
# Grading Endpoints
# ==============================================================================


@router.get(
    "/course/{course_id}/submissions",
    response_model=SubmissionListResponse,
    summary="List submissions of a course",
)
async def list_submissions(
    course: ManagedCourse,
    service: ShortQuestionServiceDep,
    submission_status: SubmissionStatus | None = Query(None, alias="status"),
) -> SubmissionListResponse:
    submissions = await service.list_submissions(course.course_id, submission_status)
    return SubmissionListResponse(
        items=[SubmissionInstructorResponse.model_validate(s) for s in submissions],
        total=len(submissions),
    )


@router.put(
    "/course/{course_id}/submissions/{student_id}/grade",
    response_model=GradeSubmissionResponse,
    summary="Grade a submission",
)
async def grade(
    student_id: UUID,
    data: GradeSubmissionRequest,
    course: ManagedCourse,
    user: InstructorUser,
    service: ShortQuestionServiceDep,
    course_progress_service: CourseProgressServiceDep,
) -> GradeSubmissionResponse:
    """Store grades and return the student's recomputed course progress."""
    try:
        submission = await service.grade(
            course.course_id,
            student_id,
            [g.to_grade() for g in data.grades],
            graded_by=UUID(str(user.id)),
            overall_feedback=data.overall_feedback,
            instructor_notes=data.instructor_notes,
            finalize=data.finalize,
        )
    except ShortQuestionError as e:
        raise handle_short_question_error(e) from e

    try:
        progress = await course_progress_service.recalculate(student_id, course.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return GradeSubmissionResponse(
        submission=SubmissionInstructorResponse.model_validate(submission),
        course_progress=CourseProgressResponse.from_result(progress),
    )
