"""Tests for quiz authoring and attempts."""

from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session

from learnhub.enrollments.models import Enrollment, EnrollmentStatus
from learnhub.quizzes.models import AttemptStatus, Quiz, QuizAttempt, QuizQuestion
from learnhub.quizzes.service import (
    AttemptNotFoundError,
    AttemptNotInProgressError,
    EnrollmentNotApprovedError,
    IncompleteAnswersError,
    LessonsIncompleteError,
    MaxAttemptsExceededError,
    NoResultsError,
    QuizExistsError,
    QuizNotPublishedError,
    QuizService,
)


@pytest.fixture
def mock_session():
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def lessons() -> set[UUID]:
    return {uuid4(), uuid4()}


@pytest.fixture
def course_service(lessons):
    service = Mock()
    service.lesson_ids = AsyncMock(return_value=lessons)
    return service


@pytest.fixture
def enrollment_service(course_id, student_id):
    service = Mock()
    service.get_enrollment = AsyncMock(
        return_value=Enrollment(
            course_id=course_id,
            student_id=student_id,
            status=EnrollmentStatus.APPROVED.value,
        )
    )
    return service


@pytest.fixture
def lesson_progress_service(lessons):
    service = Mock()
    service.completed_lesson_ids = AsyncMock(return_value=set(lessons))
    return service


@pytest.fixture
def quiz(course_id) -> Quiz:
    return Quiz(
        course_id=course_id,
        title="Final quiz",
        questions=[
            QuizQuestion(text=f"Q{i}", options=["a", "b", "c", "d"], correct_index=i % 4)
            for i in range(5)
        ],
        passing_score=70,
        max_attempts=3,
    )


@pytest.fixture
def quiz_service(
    mock_session, course_service, enrollment_service, lesson_progress_service, quiz
) -> QuizService:
    service = QuizService(
        session=mock_session,
        keyspace="test_keyspace",
        course_service=course_service,
        enrollment_service=enrollment_service,
        lesson_progress_service=lesson_progress_service,
        default_passing_score=70,
        default_max_attempts=3,
    )
    service.get_quiz = AsyncMock(return_value=quiz)
    service.list_attempts = AsyncMock(return_value=[])
    return service


def _attempt(quiz: Quiz, student_id: UUID, number: int, **overrides) -> QuizAttempt:
    return QuizAttempt(
        student_id=student_id,
        course_id=quiz.course_id,
        quiz_id=quiz.quiz_id,
        attempt_number=number,
        **overrides,
    )


class TestAuthoring:
    @pytest.mark.asyncio
    async def test_create_uses_defaults(self, quiz_service, mock_session, course_id):
        quiz_service.get_quiz.return_value = None

        created = await quiz_service.create_quiz(
            course_id=course_id,
            created_by=uuid4(),
            title="Quiz",
            questions=[QuizQuestion(text="Q", options=["a", "b"], correct_index=1)],
        )

        assert created.passing_score == 70
        assert created.max_attempts == 3
        mock_session.aexecute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_zero_passing_score_kept(self, quiz_service, course_id):
        quiz_service.get_quiz.return_value = None

        created = await quiz_service.create_quiz(
            course_id=course_id,
            created_by=uuid4(),
            title="Quiz",
            questions=[QuizQuestion(text="Q", options=["a", "b"], correct_index=1)],
            passing_score=0,
        )

        assert created.passing_score == 0

    @pytest.mark.asyncio
    async def test_one_quiz_per_course(self, quiz_service, course_id):
        with pytest.raises(QuizExistsError):
            await quiz_service.create_quiz(
                course_id=course_id,
                created_by=uuid4(),
                title="Again",
                questions=[QuizQuestion(text="Q", options=["a", "b"], correct_index=0)],
            )

    @pytest.mark.asyncio
    async def test_update_converts_question_dicts(self, quiz_service, course_id):
        updated = await quiz_service.update_quiz(
            course_id,
            {
                "title": "Renamed",
                "questions": [{"text": "New", "options": ["x", "y"], "correct_index": 0}],
            },
        )

        assert updated.title == "Renamed"
        assert isinstance(updated.questions[0], QuizQuestion)
        assert updated.updated_at is not None


class TestStartQuiz:
    @pytest.mark.asyncio
    async def test_starts_first_attempt(self, quiz_service, mock_session, student_id, course_id):
        quiz, attempt = await quiz_service.start_quiz(student_id, course_id)

        assert attempt.attempt_number == 1
        assert attempt.status == AttemptStatus.IN_PROGRESS.value
        assert attempt.total_questions == 5
        mock_session.aexecute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_resumes_in_progress_attempt(
        self, quiz_service, mock_session, quiz, student_id, course_id
    ):
        open_attempt = _attempt(quiz, student_id, 1)
        quiz_service.list_attempts.return_value = [open_attempt]

        _, attempt = await quiz_service.start_quiz(student_id, course_id)

        assert attempt is open_attempt
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pending_enrollment(self, quiz_service, enrollment_service, student_id, course_id):
        enrollment_service.get_enrollment.return_value = Enrollment(
            course_id=course_id, student_id=student_id
        )
        with pytest.raises(EnrollmentNotApprovedError):
            await quiz_service.start_quiz(student_id, course_id)

    @pytest.mark.asyncio
    async def test_unpublished(self, quiz_service, quiz, student_id, course_id):
        quiz.is_published = False
        with pytest.raises(QuizNotPublishedError):
            await quiz_service.start_quiz(student_id, course_id)

    @pytest.mark.asyncio
    async def test_lessons_required(
        self, quiz_service, lesson_progress_service, student_id, course_id
    ):
        lesson_progress_service.completed_lesson_ids.return_value = set()
        with pytest.raises(LessonsIncompleteError):
            await quiz_service.start_quiz(student_id, course_id)

    @pytest.mark.asyncio
    async def test_lessons_not_required(
        self, quiz_service, lesson_progress_service, quiz, student_id, course_id
    ):
        quiz.requires_all_lessons = False
        lesson_progress_service.completed_lesson_ids.return_value = set()

        _, attempt = await quiz_service.start_quiz(student_id, course_id)

        assert attempt.attempt_number == 1

    @pytest.mark.asyncio
    async def test_max_attempts(self, quiz_service, quiz, student_id, course_id):
        quiz_service.list_attempts.return_value = [
            _attempt(quiz, student_id, n, status=AttemptStatus.SUBMITTED.value)
            for n in (1, 2, 3)
        ]
        with pytest.raises(MaxAttemptsExceededError):
            await quiz_service.start_quiz(student_id, course_id)


class TestSubmitQuiz:
    @pytest.mark.asyncio
    async def test_scores_four_of_five(
        self, quiz_service, mock_session, quiz, student_id, course_id
    ):
        attempt = _attempt(quiz, student_id, 1)
        quiz_service.list_attempts.return_value = [attempt]

        submitted, result = await quiz_service.submit_quiz(
            student_id, course_id, attempt.attempt_id, [0, 1, 2, 3, 3], 120
        )

        assert result.score == 4
        assert result.percentage == 80
        assert result.passed is True
        assert submitted.status == AttemptStatus.SUBMITTED.value
        assert submitted.time_spent_seconds == 120
        assert submitted.submitted_at is not None
        mock_session.aexecute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_attempt(self, quiz_service, student_id, course_id):
        with pytest.raises(AttemptNotFoundError):
            await quiz_service.submit_quiz(student_id, course_id, uuid4(), [0] * 5)

    @pytest.mark.asyncio
    async def test_already_submitted(self, quiz_service, quiz, student_id, course_id):
        attempt = _attempt(quiz, student_id, 1, status=AttemptStatus.SUBMITTED.value)
        quiz_service.list_attempts.return_value = [attempt]

        with pytest.raises(AttemptNotInProgressError):
            await quiz_service.submit_quiz(student_id, course_id, attempt.attempt_id, [0] * 5)

    @pytest.mark.asyncio
    async def test_wrong_answer_count(
        self, quiz_service, mock_session, quiz, student_id, course_id
    ):
        attempt = _attempt(quiz, student_id, 1)
        quiz_service.list_attempts.return_value = [attempt]

        with pytest.raises(IncompleteAnswersError):
            await quiz_service.submit_quiz(student_id, course_id, attempt.attempt_id, [0, 1])
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_sheet_keeps_attempt_open(
        self, quiz_service, mock_session, quiz, student_id, course_id
    ):
        attempt = _attempt(quiz, student_id, 1)
        quiz_service.list_attempts.return_value = [attempt]

        with pytest.raises(IncompleteAnswersError):
            await quiz_service.submit_quiz(
                student_id, course_id, attempt.attempt_id, [-1, -1, -1, -1, -1]
            )

        assert attempt.status == AttemptStatus.IN_PROGRESS.value
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enrollment_removed_mid_attempt(
        self, quiz_service, enrollment_service, mock_session, quiz, student_id, course_id
    ):
        attempt = _attempt(quiz, student_id, 1)
        quiz_service.list_attempts.return_value = [attempt]
        enrollment_service.get_enrollment.return_value = None

        with pytest.raises(EnrollmentNotApprovedError):
            await quiz_service.submit_quiz(
                student_id, course_id, attempt.attempt_id, [0, 1, 2, 3, 0]
            )
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_unanswered_question(
        self, quiz_service, mock_session, quiz, student_id, course_id
    ):
        attempt = _attempt(quiz, student_id, 1)
        quiz_service.list_attempts.return_value = [attempt]

        with pytest.raises(IncompleteAnswersError):
            await quiz_service.submit_quiz(
                student_id, course_id, attempt.attempt_id, [0, 1, 2, 3, -1]
            )
        mock_session.aexecute.assert_not_awaited()


class TestStandingAndResults:
    @pytest.mark.asyncio
    async def test_any_passed_attempt_counts(self, quiz_service, quiz, student_id, course_id):
        submitted = AttemptStatus.SUBMITTED.value
        quiz_service.list_attempts.return_value = [
            _attempt(quiz, student_id, 1, status=submitted, percentage=80, passed=True),
            _attempt(quiz, student_id, 2, status=submitted, percentage=40, passed=False),
            _attempt(quiz, student_id, 3),
        ]

        standing = await quiz_service.get_standing(student_id, course_id)

        assert standing.passed is True
        assert standing.attempts == 2
        assert standing.best_percentage == 80

    @pytest.mark.asyncio
    async def test_no_attempts(self, quiz_service, student_id, course_id):
        standing = await quiz_service.get_standing(student_id, course_id)
        assert standing.passed is False
        assert standing.best_percentage is None

    @pytest.mark.asyncio
    async def test_results_latest_submitted(self, quiz_service, quiz, student_id, course_id):
        submitted = AttemptStatus.SUBMITTED.value
        latest = _attempt(quiz, student_id, 2, status=submitted)
        quiz_service.list_attempts.return_value = [
            _attempt(quiz, student_id, 1, status=submitted),
            latest,
        ]

        _, attempt = await quiz_service.get_results(student_id, course_id)

        assert attempt is latest

    @pytest.mark.asyncio
    async def test_no_results(self, quiz_service, student_id, course_id):
        with pytest.raises(NoResultsError):
            await quiz_service.get_results(student_id, course_id)
