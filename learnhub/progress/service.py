"""Progress service layer.

Business logic for:
- Lesson completion toggling and access tracking (LessonProgressService)
- Course progress aggregation and write-back onto the enrollment
  (CourseProgressService)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.utils import utc_now

from .aggregation import ProgressBreakdown, aggregate_progress, percentage
from .models import LessonProgress


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnhub.courses.service import CourseService
    from learnhub.enrollments.service import EnrollmentService
    from learnhub.quizzes.service import QuizService
    from learnhub.short_questions.service import ShortQuestionService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotEnrolledError(ProgressError):
    def __init__(self, message: str = "Student is not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class EnrollmentNotApprovedError(ProgressError):
    def __init__(self, message: str = "Enrollment has not been approved"):
        super().__init__(message, "enrollment_not_approved")


class LessonNotInCourseError(ProgressError):
    def __init__(self, message: str = "Lesson not found in this course"):
        super().__init__(message, "lesson_not_found")


class LessonProgressNotFoundError(ProgressError):
    def __init__(self, message: str = "Lesson progress not found"):
        super().__init__(message, "progress_not_found")


# ==============================================================================
# Lesson Progress
# ==============================================================================


class LessonProgressService:
    """Per-lesson completion state of a student."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_lesson_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE student_id = ? AND course_id = ? AND lesson_id = ?
        """)

        self._get_course_lesson_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE student_id = ? AND course_id = ?
        """)

        self._upsert_lesson_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (student_id, course_id, lesson_id, module_id, completed,
             completed_at, last_accessed_at, time_spent_seconds)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

    async def _check_access(self, student_id: UUID, course_id: UUID, lesson_id: UUID):
        """Approved enrollment and a catalog lesson are required for any write.

        Returns:
            The catalog lesson
        """
        enrollment = await self.enrollment_service.get_enrollment(student_id, course_id)
        if enrollment is None or not enrollment.is_approved:
            raise EnrollmentNotApprovedError

        lesson = await self.course_service.get_lesson(course_id, lesson_id)
        if lesson is None:
            raise LessonNotInCourseError
        return lesson

    async def _save(self, progress: LessonProgress) -> None:
        await self.session.aexecute(
            self._upsert_lesson_progress,
            [
                progress.student_id,
                progress.course_id,
                progress.lesson_id,
                progress.module_id,
                progress.completed,
                progress.completed_at,
                progress.last_accessed_at,
                progress.time_spent_seconds,
            ],
        )

    async def get_lesson_progress(
        self, student_id: UUID, course_id: UUID, lesson_id: UUID
    ) -> LessonProgress | None:
        result = await self.session.aexecute(
            self._get_lesson_progress, [student_id, course_id, lesson_id]
        )
        row = result.one()
        return LessonProgress.from_row(row) if row else None

    async def list_course_progress(
        self, student_id: UUID, course_id: UUID
    ) -> list[LessonProgress]:
        rows = await self.session.aexecute(
            self._get_course_lesson_progress, [student_id, course_id]
        )
        return [LessonProgress.from_row(row) for row in rows]

    async def completed_lesson_ids(self, student_id: UUID, course_id: UUID) -> set[UUID]:
        return {
            p.lesson_id
            for p in await self.list_course_progress(student_id, course_id)
            if p.completed
        }

    async def mark_complete(
        self, student_id: UUID, course_id: UUID, lesson_id: UUID
    ) -> LessonProgress:
        """Mark a lesson completed (incomplete -> completed).

        Raises:
            EnrollmentNotApprovedError: Enrollment missing or pending
            LessonNotInCourseError: Lesson is not in the course catalog
        """
        lesson = await self._check_access(student_id, course_id, lesson_id)

        now = utc_now()
        existing = await self.get_lesson_progress(student_id, course_id, lesson_id)
        progress = existing or LessonProgress(
            student_id=student_id,
            course_id=course_id,
            lesson_id=lesson_id,
        )
        progress.module_id = lesson.module_id
        progress.completed = True
        progress.completed_at = now
        progress.last_accessed_at = now
        await self._save(progress)

        logger.info(
            "lesson_marked_complete",
            student_id=str(student_id),
            course_id=str(course_id),
            lesson_id=str(lesson_id),
        )
        return progress

    async def mark_incomplete(
        self, student_id: UUID, course_id: UUID, lesson_id: UUID
    ) -> LessonProgress:
        """Undo completion (completed -> incomplete).

        Raises:
            EnrollmentNotApprovedError: Enrollment missing or pending
            LessonNotInCourseError: Lesson is not in the course catalog
            LessonProgressNotFoundError: The student never touched the lesson
        """
        await self._check_access(student_id, course_id, lesson_id)

        progress = await self.get_lesson_progress(student_id, course_id, lesson_id)
        if progress is None:
            raise LessonProgressNotFoundError

        progress.completed = False
        progress.completed_at = None
        progress.last_accessed_at = utc_now()
        await self._save(progress)

        logger.info(
            "lesson_marked_incomplete",
            student_id=str(student_id),
            course_id=str(course_id),
            lesson_id=str(lesson_id),
        )
        return progress

    async def record_access(
        self,
        student_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        time_spent_seconds: int = 0,
    ) -> LessonProgress:
        """Refresh last access and add study time; completion is untouched."""
        lesson = await self._check_access(student_id, course_id, lesson_id)

        progress = await self.get_lesson_progress(
            student_id, course_id, lesson_id
        ) or LessonProgress(
            student_id=student_id,
            course_id=course_id,
            lesson_id=lesson_id,
            module_id=lesson.module_id,
        )
        progress.last_accessed_at = utc_now()
        progress.time_spent_seconds += max(0, time_spent_seconds)
        await self._save(progress)

        logger.debug(
            "lesson_accessed",
            student_id=str(student_id),
            lesson_id=str(lesson_id),
            time_spent_seconds=time_spent_seconds,
        )
        return progress


# ==============================================================================
# Course Progress Aggregation
# ==============================================================================


@dataclass
class CourseProgress:
    """Aggregated course progress with the inputs it was computed from."""

    student_id: UUID
    course_id: UUID
    breakdown: ProgressBreakdown
    quiz_attempts: int
    quiz_best_percentage: int | None
    short_question_status: str | None
    short_question_percentage: int | None

    @property
    def total(self) -> int:
        return self.breakdown.total

    @property
    def lesson_percentage(self) -> int:
        return percentage(self.breakdown.lessons_completed, self.breakdown.lessons_total)


class CourseProgressService:
    """Computes course progress and keeps ``enrollment.progress`` current.

    Every endpoint that changes an input (lesson toggle, quiz submission,
    short-question submission or grading) calls ``recalculate`` before it
    responds.
    """

    def __init__(
        self,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
        lesson_progress_service: LessonProgressService,
        quiz_service: "QuizService",
        short_question_service: "ShortQuestionService",
    ):
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self.lesson_progress_service = lesson_progress_service
        self.quiz_service = quiz_service
        self.short_question_service = short_question_service

    async def calculate(self, student_id: UUID, course_id: UUID) -> CourseProgress:
        """Compute progress without writing anything.

        Raises:
            NotEnrolledError: The student has no enrollment in the course
        """
        if await self.enrollment_service.get_enrollment(student_id, course_id) is None:
            raise NotEnrolledError

        catalog = await self.course_service.lesson_ids(course_id)
        completed = await self.lesson_progress_service.completed_lesson_ids(
            student_id, course_id
        )
        # Progress on lessons removed from the catalog does not count
        completed_in_catalog = len(completed & catalog)

        standing = await self.quiz_service.get_standing(
            student_id, course_id
        )
        submission = await self.short_question_service.get_submission(
            student_id, course_id
        )
        short_question_passed = submission is not None and submission.counts_as_passed

        breakdown = aggregate_progress(
            lessons_completed=completed_in_catalog,
            lessons_total=len(catalog),
            quiz_passed=standing.passed,
            short_question_passed=short_question_passed,
        )

        return CourseProgress(
            student_id=student_id,
            course_id=course_id,
            breakdown=breakdown,
            quiz_attempts=standing.attempts,
            quiz_best_percentage=standing.best_percentage,
            short_question_status=submission.status if submission else None,
            short_question_percentage=(
                submission.percentage if submission and submission.is_graded else None
            ),
        )

    async def recalculate(self, student_id: UUID, course_id: UUID) -> CourseProgress:
        """Compute progress and store it on the enrollment. Idempotent."""
        progress = await self.calculate(student_id, course_id)
        await self.enrollment_service.set_progress(student_id, course_id, progress.total)

        logger.info(
            "course_progress_updated",
            student_id=str(student_id),
            course_id=str(course_id),
            progress=progress.total,
            lessons=f"{progress.breakdown.lessons_completed}/{progress.breakdown.lessons_total}",
            quiz_passed=progress.breakdown.quiz_passed,
            short_question_passed=progress.breakdown.short_question_passed,
        )
        return progress
