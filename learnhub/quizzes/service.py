"""Quiz service layer.

Business logic for:
- Quiz authoring (one quiz per course)
- Attempt lifecycle: start (or resume), submit, review
- Quiz standing used by course progress aggregation
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.utils import utc_now

from .models import AttemptStatus, Quiz, QuizAttempt, QuizQuestion, dump_questions
from .scoring import QuizScore, answers_complete, score_quiz


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnhub.courses.service import CourseService
    from learnhub.enrollments.service import EnrollmentService
    from learnhub.progress.service import LessonProgressService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class QuizError(Exception):
    """Base quiz error."""

    def __init__(self, message: str, code: str = "quiz_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class QuizNotFoundError(QuizError):
    def __init__(self, message: str = "Quiz not found for this course"):
        super().__init__(message, "quiz_not_found")


class QuizExistsError(QuizError):
    def __init__(self, message: str = "This course already has a quiz"):
        super().__init__(message, "quiz_exists")


class QuizNotPublishedError(QuizError):
    def __init__(self, message: str = "Quiz is not published"):
        super().__init__(message, "quiz_not_published")


class EnrollmentNotApprovedError(QuizError):
    def __init__(self, message: str = "Enrollment has not been approved"):
        super().__init__(message, "enrollment_not_approved")


class LessonsIncompleteError(QuizError):
    def __init__(self, message: str = "Complete every lesson before the quiz"):
        super().__init__(message, "lessons_incomplete")


class MaxAttemptsExceededError(QuizError):
    def __init__(self, message: str = "No quiz attempts left"):
        super().__init__(message, "max_attempts_exceeded")


class AttemptNotFoundError(QuizError):
    def __init__(self, message: str = "Quiz attempt not found"):
        super().__init__(message, "attempt_not_found")


class AttemptNotInProgressError(QuizError):
    def __init__(self, message: str = "Quiz attempt was already submitted"):
        super().__init__(message, "attempt_not_in_progress")


class IncompleteAnswersError(QuizError):
    def __init__(self, message: str = "Provide one valid answer per question"):
        super().__init__(message, "incomplete_answers")


class NoResultsError(QuizError):
    def __init__(self, message: str = "No submitted quiz attempt yet"):
        super().__init__(message, "no_results")


@dataclass(frozen=True)
class QuizStanding:
    """What course progress needs to know about a student's quiz attempts."""

    passed: bool
    attempts: int
    best_percentage: int | None


# ==============================================================================
# Quiz Service
# ==============================================================================


class QuizService:
    """Service for course quizzes."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
        lesson_progress_service: "LessonProgressService",
        default_passing_score: int = 70,
        default_max_attempts: int = 3,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self.lesson_progress_service = lesson_progress_service
        self.default_passing_score = default_passing_score
        self.default_max_attempts = default_max_attempts
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_quiz = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quizzes WHERE course_id = ?
        """)

        self._upsert_quiz = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quizzes
            (course_id, quiz_id, title, description, instructions, questions,
             passing_score, time_limit_minutes, max_attempts,
             requires_all_lessons, is_published, created_by, created_at,
             updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._delete_quiz = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.quizzes WHERE course_id = ?
        """)

        self._list_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts
            WHERE student_id = ? AND course_id = ?
        """)

        self._upsert_attempt = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quiz_attempts
            (student_id, course_id, attempt_number, attempt_id, quiz_id, status,
             answers, score, total_questions, percentage, passed, points_earned,
             points_total, time_spent_seconds, started_at, submitted_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

    async def _save_quiz(self, quiz: Quiz) -> None:
        await self.session.aexecute(
            self._upsert_quiz,
            [
                quiz.course_id,
                quiz.quiz_id,
                quiz.title,
                quiz.description,
                quiz.instructions,
                dump_questions(quiz.questions),
                quiz.passing_score,
                quiz.time_limit_minutes,
                quiz.max_attempts,
                quiz.requires_all_lessons,
                quiz.is_published,
                quiz.created_by,
                quiz.created_at,
                quiz.updated_at,
            ],
        )

    async def _save_attempt(self, attempt: QuizAttempt) -> None:
        await self.session.aexecute(
            self._upsert_attempt,
            [
                attempt.student_id,
                attempt.course_id,
                attempt.attempt_number,
                attempt.attempt_id,
                attempt.quiz_id,
                attempt.status,
                attempt.answers,
                attempt.score,
                attempt.total_questions,
                attempt.percentage,
                attempt.passed,
                attempt.points_earned,
                attempt.points_total,
                attempt.time_spent_seconds,
                attempt.started_at,
                attempt.submitted_at,
            ],
        )

    # ==========================================================================
    # Authoring
    # ==========================================================================

    async def get_quiz(self, course_id: UUID) -> Quiz | None:
        result = await self.session.aexecute(self._get_quiz, [course_id])
        row = result.one()
        return Quiz.from_row(row) if row else None

    async def require_quiz(self, course_id: UUID) -> Quiz:
        quiz = await self.get_quiz(course_id)
        if quiz is None:
            raise QuizNotFoundError
        return quiz

    async def create_quiz(
        self,
        course_id: UUID,
        created_by: UUID,
        title: str,
        questions: list[QuizQuestion],
        description: str | None = None,
        instructions: str | None = None,
        passing_score: int | None = None,
        time_limit_minutes: int | None = None,
        max_attempts: int | None = None,
        requires_all_lessons: bool = True,
        is_published: bool = True,
    ) -> Quiz:
        """Create the course quiz. Unset scores and attempts use settings defaults.

        Raises:
            QuizExistsError: The course already has a quiz
        """
        if await self.get_quiz(course_id) is not None:
            raise QuizExistsError

        quiz = Quiz(
            course_id=course_id,
            title=title,
            questions=questions,
            description=description,
            instructions=instructions,
            passing_score=(
                self.default_passing_score if passing_score is None else passing_score
            ),
            time_limit_minutes=time_limit_minutes,
            max_attempts=max_attempts or self.default_max_attempts,
            requires_all_lessons=requires_all_lessons,
            is_published=is_published,
            created_by=created_by,
        )
        await self._save_quiz(quiz)

        logger.info(
            "quiz_created",
            course_id=str(course_id),
            quiz_id=str(quiz.quiz_id),
            questions=len(questions),
        )
        return quiz

    async def update_quiz(self, course_id: UUID, changes: dict[str, Any]) -> Quiz:
        """Apply partial changes (only keys present in ``changes``)."""
        quiz = await self.require_quiz(course_id)

        for field, value in changes.items():
            if field == "questions":
                value = [
                    q if isinstance(q, QuizQuestion) else QuizQuestion.from_dict(q)
                    for q in value
                ]
            setattr(quiz, field, value)
        quiz.updated_at = utc_now()
        await self._save_quiz(quiz)

        logger.info(
            "quiz_updated",
            course_id=str(course_id),
            fields=sorted(changes),
        )
        return quiz

    async def delete_quiz(self, course_id: UUID) -> None:
        """Delete the quiz. Past attempts stay in place for review."""
        await self.require_quiz(course_id)
        await self.session.aexecute(self._delete_quiz, [course_id])
        logger.info("quiz_deleted", course_id=str(course_id))

    # ==========================================================================
    # Attempts
    # ==========================================================================

    async def list_attempts(self, student_id: UUID, course_id: UUID) -> list[QuizAttempt]:
        rows = await self.session.aexecute(self._list_attempts, [student_id, course_id])
        attempts = [QuizAttempt.from_row(row) for row in rows]
        return sorted(attempts, key=lambda a: a.attempt_number)

    async def get_standing(self, student_id: UUID, course_id: UUID) -> QuizStanding:
        """Best submitted attempt decides; any passed attempt counts."""
        submitted = [
            a for a in await self.list_attempts(student_id, course_id) if a.is_submitted
        ]
        return QuizStanding(
            passed=any(a.passed for a in submitted),
            attempts=len(submitted),
            best_percentage=max((a.percentage for a in submitted), default=None),
        )

    async def start_quiz(
        self, student_id: UUID, course_id: UUID
    ) -> tuple[Quiz, QuizAttempt]:
        """Start a new attempt, or resume the one still in progress.

        Raises:
            EnrollmentNotApprovedError: Enrollment missing or pending
            QuizNotFoundError: The course has no quiz
            QuizNotPublishedError: The quiz is hidden from students
            LessonsIncompleteError: Lessons are required and not all done
            MaxAttemptsExceededError: Every allowed attempt was used
        """
        enrollment = await self.enrollment_service.get_enrollment(student_id, course_id)
        if enrollment is None or not enrollment.is_approved:
            raise EnrollmentNotApprovedError

        quiz = await self.require_quiz(course_id)
        if not quiz.is_published:
            raise QuizNotPublishedError

        attempts = await self.list_attempts(student_id, course_id)
        for attempt in attempts:
            if attempt.status == AttemptStatus.IN_PROGRESS.value:
                return quiz, attempt

        if quiz.requires_all_lessons:
            catalog = await self.course_service.lesson_ids(course_id)
            completed = await self.lesson_progress_service.completed_lesson_ids(
                student_id, course_id
            )
            if not catalog <= completed:
                raise LessonsIncompleteError

        if len(attempts) >= quiz.max_attempts:
            raise MaxAttemptsExceededError

        attempt = QuizAttempt(
            student_id=student_id,
            course_id=course_id,
            quiz_id=quiz.quiz_id,
            attempt_number=max((a.attempt_number for a in attempts), default=0) + 1,
            total_questions=len(quiz.questions),
            points_total=quiz.total_points,
        )
        await self._save_attempt(attempt)

        logger.info(
            "quiz_started",
            student_id=str(student_id),
            course_id=str(course_id),
            attempt_number=attempt.attempt_number,
        )
        return quiz, attempt

    async def submit_quiz(
        self,
        student_id: UUID,
        course_id: UUID,
        attempt_id: UUID,
        answers: list[int],
        time_spent_seconds: int = 0,
    ) -> tuple[QuizAttempt, QuizScore]:
        """Score and close an in-progress attempt.

        Raises:
            AttemptNotFoundError: Not an attempt this student started here
            AttemptNotInProgressError: Already submitted
            EnrollmentNotApprovedError: Enrollment removed since the attempt began
            QuizNotFoundError: The quiz was deleted meanwhile
            IncompleteAnswersError: Answer count or an option index is wrong
        """
        attempt = next(
            (
                a
                for a in await self.list_attempts(student_id, course_id)
                if a.attempt_id == attempt_id
            ),
            None,
        )
        if attempt is None:
            raise AttemptNotFoundError
        if attempt.status != AttemptStatus.IN_PROGRESS.value:
            raise AttemptNotInProgressError

        enrollment = await self.enrollment_service.get_enrollment(student_id, course_id)
        if enrollment is None or not enrollment.is_approved:
            raise EnrollmentNotApprovedError

        quiz = await self.require_quiz(course_id)
        if not answers_complete(quiz.questions, answers):
            raise IncompleteAnswersError

        result = score_quiz(quiz.questions, answers, quiz.passing_score)

        attempt.status = AttemptStatus.SUBMITTED.value
        attempt.answers = list(answers)
        attempt.score = result.score
        attempt.total_questions = result.total_questions
        attempt.percentage = result.percentage
        attempt.passed = result.passed
        attempt.points_earned = result.points_earned
        attempt.points_total = result.points_total
        attempt.time_spent_seconds = max(0, time_spent_seconds)
        attempt.submitted_at = utc_now()
        await self._save_attempt(attempt)

        logger.info(
            "quiz_submitted",
            student_id=str(student_id),
            course_id=str(course_id),
            attempt_number=attempt.attempt_number,
            score=result.score,
            percentage=result.percentage,
            passed=result.passed,
        )
        return attempt, result

    async def get_results(
        self, student_id: UUID, course_id: UUID
    ) -> tuple[Quiz, QuizAttempt]:
        """Quiz and the latest submitted attempt, for answer review."""
        quiz = await self.require_quiz(course_id)
        submitted = [
            a for a in await self.list_attempts(student_id, course_id) if a.is_submitted
        ]
        if not submitted:
            raise NoResultsError
        return quiz, submitted[-1]
