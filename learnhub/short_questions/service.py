"""Short-question service layer.

Business logic for:
- Set authoring (one set per course)
- Student start and submit, with keyword assistance on each answer
- Instructor grading: pending -> graded -> completed
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.utils import utc_now

from .grading import assess_answer, answer_length_ok, points_valid, summarize_grades
from .models import (
    ShortQuestion,
    ShortQuestionSet,
    ShortQuestionSubmission,
    SubmissionStatus,
    SubmittedAnswer,
    dump_dataclasses,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnhub.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ShortQuestionError(Exception):
    """Base short-question error."""

    def __init__(self, message: str, code: str = "short_question_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class SetNotFoundError(ShortQuestionError):
    def __init__(self, message: str = "Short-question set not found for this course"):
        super().__init__(message, "set_not_found")


class SetExistsError(ShortQuestionError):
    def __init__(self, message: str = "This course already has a short-question set"):
        super().__init__(message, "set_exists")


class SetNotPublishedError(ShortQuestionError):
    def __init__(self, message: str = "Short-question set is not published"):
        super().__init__(message, "set_not_published")


class EnrollmentNotApprovedError(ShortQuestionError):
    def __init__(self, message: str = "Enrollment has not been approved"):
        super().__init__(message, "enrollment_not_approved")


class StudentNotEnrolledError(ShortQuestionError):
    def __init__(self, message: str = "Student is not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class SubmissionNotFoundError(ShortQuestionError):
    def __init__(self, message: str = "Submission not found"):
        super().__init__(message, "submission_not_found")


class AlreadySubmittedError(ShortQuestionError):
    def __init__(self, message: str = "Answers were already submitted"):
        super().__init__(message, "already_submitted")


class InvalidAnswersError(ShortQuestionError):
    def __init__(self, message: str = "Provide one answer per question"):
        super().__init__(message, "invalid_answers")


class AnswerLengthError(ShortQuestionError):
    def __init__(self, message: str = "Answer length is out of bounds"):
        super().__init__(message, "answer_length")


class SubmissionNotSubmittedError(ShortQuestionError):
    def __init__(self, message: str = "Submission has not been submitted yet"):
        super().__init__(message, "submission_not_submitted")


class SubmissionFinalizedError(ShortQuestionError):
    def __init__(self, message: str = "Submission grading is final"):
        super().__init__(message, "submission_finalized")


class InvalidPointsError(ShortQuestionError):
    def __init__(
        self, message: str = "Give one grade per question between 0 and its points"
    ):
        super().__init__(message, "invalid_points")


@dataclass(frozen=True)
class AnswerGrade:
    points: int
    feedback: str | None = None
    # None falls back to full marks
    is_correct: bool | None = None


# ==============================================================================
# Short Question Service
# ==============================================================================


class ShortQuestionService:
    """Service for short-question sets and their submissions."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        enrollment_service: "EnrollmentService",
        default_passing_score: int = 70,
    ):
        self.session = session
        self.keyspace = keyspace
        self.enrollment_service = enrollment_service
        self.default_passing_score = default_passing_score
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_set = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.short_question_sets WHERE course_id = ?
        """)

        self._upsert_set = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.short_question_sets
            (course_id, set_id, title, description, instructions, questions,
             passing_score, time_limit_minutes, is_published, created_by,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._delete_set = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.short_question_sets WHERE course_id = ?
        """)

        self._get_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.short_question_submissions
            WHERE course_id = ? AND student_id = ?
        """)

        self._list_submissions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.short_question_submissions
            WHERE course_id = ?
        """)

        self._upsert_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.short_question_submissions
            (course_id, student_id, submission_id, set_id, status, answers,
             total_score, max_score, percentage, passed, overall_feedback,
             instructor_notes, graded_by, time_spent_seconds, started_at,
             submitted_at, graded_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

    async def _save_set(self, question_set: ShortQuestionSet) -> None:
        await self.session.aexecute(
            self._upsert_set,
            [
                question_set.course_id,
                question_set.set_id,
                question_set.title,
                question_set.description,
                question_set.instructions,
                dump_dataclasses(question_set.questions),
                question_set.passing_score,
                question_set.time_limit_minutes,
                question_set.is_published,
                question_set.created_by,
                question_set.created_at,
                question_set.updated_at,
            ],
        )

    async def _save_submission(self, submission: ShortQuestionSubmission) -> None:
        await self.session.aexecute(
            self._upsert_submission,
            [
                submission.course_id,
                submission.student_id,
                submission.submission_id,
                submission.set_id,
                submission.status,
                dump_dataclasses(submission.answers),
                submission.total_score,
                submission.max_score,
                submission.percentage,
                submission.passed,
                submission.overall_feedback,
                submission.instructor_notes,
                submission.graded_by,
                submission.time_spent_seconds,
                submission.started_at,
                submission.submitted_at,
                submission.graded_at,
            ],
        )

    # ==========================================================================
    # Authoring
    # ==========================================================================

    async def get_set(self, course_id: UUID) -> ShortQuestionSet | None:
        result = await self.session.aexecute(self._get_set, [course_id])
        row = result.one()
        return ShortQuestionSet.from_row(row) if row else None

    async def require_set(self, course_id: UUID) -> ShortQuestionSet:
        question_set = await self.get_set(course_id)
        if question_set is None:
            raise SetNotFoundError
        return question_set

    async def create_set(
        self,
        course_id: UUID,
        created_by: UUID,
        title: str,
        questions: list[ShortQuestion],
        description: str | None = None,
        instructions: str | None = None,
        passing_score: int | None = None,
        time_limit_minutes: int | None = None,
        is_published: bool = True,
    ) -> ShortQuestionSet:
        """Create the course's set.

        Raises:
            SetExistsError: The course already has a set
        """
        if await self.get_set(course_id) is not None:
            raise SetExistsError

        question_set = ShortQuestionSet(
            course_id=course_id,
            title=title,
            questions=questions,
            description=description,
            instructions=instructions,
            passing_score=(
                self.default_passing_score if passing_score is None else passing_score
            ),
            time_limit_minutes=time_limit_minutes,
            is_published=is_published,
            created_by=created_by,
        )
        await self._save_set(question_set)

        logger.info(
            "short_question_set_created",
            course_id=str(course_id),
            set_id=str(question_set.set_id),
            questions=len(questions),
        )
        return question_set

    async def update_set(
        self, course_id: UUID, changes: dict[str, Any]
    ) -> ShortQuestionSet:
        question_set = await self.require_set(course_id)

        for name, value in changes.items():
            if name == "questions":
                value = [
                    q if isinstance(q, ShortQuestion) else ShortQuestion.from_dict(q)
                    for q in value
                ]
            setattr(question_set, name, value)
        question_set.updated_at = utc_now()
        await self._save_set(question_set)

        logger.info(
            "short_question_set_updated",
            course_id=str(course_id),
            fields=sorted(changes),
        )
        return question_set

    async def delete_set(self, course_id: UUID) -> None:
        await self.require_set(course_id)
        await self.session.aexecute(self._delete_set, [course_id])
        logger.info("short_question_set_deleted", course_id=str(course_id))

    # ==========================================================================
    # Submissions
    # ==========================================================================

    async def get_submission(
        self, student_id: UUID, course_id: UUID
    ) -> ShortQuestionSubmission | None:
        result = await self.session.aexecute(
            self._get_submission, [course_id, student_id]
        )
        row = result.one()
        return ShortQuestionSubmission.from_row(row) if row else None

    async def list_submissions(
        self, course_id: UUID, status: SubmissionStatus | None = None
    ) -> list[ShortQuestionSubmission]:
        rows = await self.session.aexecute(self._list_submissions, [course_id])
        submissions = [ShortQuestionSubmission.from_row(row) for row in rows]
        if status is not None:
            submissions = [s for s in submissions if s.status == status.value]
        return submissions

    async def start(
        self, student_id: UUID, course_id: UUID
    ) -> tuple[ShortQuestionSet, ShortQuestionSubmission]:
        """Open the set for a student, resuming an in-progress submission.

        Raises:
            EnrollmentNotApprovedError: Enrollment missing or pending
            SetNotFoundError: The course has no set
            SetNotPublishedError: The set is hidden from students
            AlreadySubmittedError: The student's single submission was sent
        """
        enrollment = await self.enrollment_service.get_enrollment(student_id, course_id)
        if enrollment is None or not enrollment.is_approved:
            raise EnrollmentNotApprovedError

        question_set = await self.require_set(course_id)
        if not question_set.is_published:
            raise SetNotPublishedError

        existing = await self.get_submission(student_id, course_id)
        if existing is not None:
            if existing.status != SubmissionStatus.IN_PROGRESS.value:
                raise AlreadySubmittedError
            return question_set, existing

        submission = ShortQuestionSubmission(
            course_id=course_id,
            student_id=student_id,
            set_id=question_set.set_id,
            max_score=question_set.total_points,
        )
        await self._save_submission(submission)

        logger.info(
            "short_questions_started",
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return question_set, submission

    async def submit(
        self,
        student_id: UUID,
        course_id: UUID,
        answers: list[str],
        time_spent_seconds: int = 0,
    ) -> ShortQuestionSubmission:
        """Submit answers for grading (in_progress -> pending).

        A student who never called ``start`` is started implicitly.

        Raises:
            InvalidAnswersError: Answer count differs from question count
            AnswerLengthError: A trimmed answer is outside its length bounds
        """
        question_set, submission = await self.start(student_id, course_id)

        if len(answers) != len(question_set.questions):
            raise InvalidAnswersError

        for index, (question, answer) in enumerate(
            zip(question_set.questions, answers, strict=True)
        ):
            if not answer_length_ok(question, answer):
                raise AnswerLengthError(
                    f"Answer {index + 1} must be between {question.min_length} "
                    f"and {question.max_length} characters"
                )

        submitted: list[SubmittedAnswer] = []
        for index, (question, answer) in enumerate(
            zip(question_set.questions, answers, strict=True)
        ):
            assessment = assess_answer(question, answer)
            submitted.append(
                SubmittedAnswer(
                    question_index=index,
                    student_answer=answer.strip(),
                    max_points=question.points,
                    suggested_points=assessment.suggested_points,
                    matched_keywords=list(assessment.matched_keywords),
                )
            )

        submission.answers = submitted
        submission.max_score = sum(a.max_points for a in submitted)
        submission.status = SubmissionStatus.PENDING.value
        submission.time_spent_seconds = max(0, time_spent_seconds)
        submission.submitted_at = utc_now()
        await self._save_submission(submission)

        logger.info(
            "short_questions_submitted",
            student_id=str(student_id),
            course_id=str(course_id),
            suggested_score=sum(a.suggested_points for a in submitted),
        )
        return submission

    async def grade(
        self,
        course_id: UUID,
        student_id: UUID,
        grades: list[AnswerGrade],
        graded_by: UUID,
        overall_feedback: str | None = None,
        instructor_notes: str | None = None,
        finalize: bool = False,
    ) -> ShortQuestionSubmission:
        """Store instructor grades and recompute totals.

        Allowed from pending or graded; ``finalize`` makes it completed.

        Raises:
            StudentNotEnrolledError: The enrollment was removed
            SubmissionNotFoundError: No submission for the student
            SubmissionNotSubmittedError: Still in progress
            SubmissionFinalizedError: Already completed
            InvalidPointsError: Wrong grade count or points outside [0, max]
        """
        if await self.enrollment_service.get_enrollment(student_id, course_id) is None:
            raise StudentNotEnrolledError

        submission = await self.get_submission(student_id, course_id)
        if submission is None:
            raise SubmissionNotFoundError
        if submission.status == SubmissionStatus.IN_PROGRESS.value:
            raise SubmissionNotSubmittedError
        if submission.status == SubmissionStatus.COMPLETED.value:
            raise SubmissionFinalizedError

        max_points = [a.max_points for a in submission.answers]
        points = [g.points for g in grades]
        if not points_valid(points, max_points):
            raise InvalidPointsError

        question_set = await self.get_set(course_id)
        passing_score = (
            question_set.passing_score if question_set else self.default_passing_score
        )
        summary = summarize_grades(points, max_points, passing_score)

        for answer, grade in zip(submission.answers, grades, strict=True):
            answer.points = grade.points
            answer.feedback = grade.feedback
            answer.is_correct = (
                grade.points == answer.max_points
                if grade.is_correct is None
                else grade.is_correct
            )

        now = utc_now()
        submission.total_score = summary.total_score
        submission.max_score = summary.max_score
        submission.percentage = summary.percentage
        submission.passed = summary.passed
        submission.overall_feedback = overall_feedback
        submission.instructor_notes = instructor_notes
        submission.graded_by = graded_by
        submission.graded_at = now
        submission.status = (
            SubmissionStatus.COMPLETED.value if finalize else SubmissionStatus.GRADED.value
        )
        await self._save_submission(submission)

        logger.info(
            "short_questions_graded",
            student_id=str(student_id),
            course_id=str(course_id),
            graded_by=str(graded_by),
            total_score=summary.total_score,
            percentage=summary.percentage,
            passed=summary.passed,
            status=submission.status,
        )
        return submission
