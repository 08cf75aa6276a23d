"""Database models for short-question sets and submissions.

One set per course (keyed by course_id) and one submission per
(course, student). Questions and answers are JSON text columns.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from learnhub.utils import ensure_utc_aware, utc_now


class SubmissionStatus(str, Enum):
    """Submission lifecycle.

    in_progress -> pending (submitted) -> graded -> completed (final).
    Grading may be repeated while graded; completed is terminal.
    """

    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    GRADED = "graded"
    COMPLETED = "completed"


GRADED_STATUSES = frozenset({SubmissionStatus.GRADED.value, SubmissionStatus.COMPLETED.value})


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

SHORT_QUESTION_SETS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.short_question_sets (
    course_id UUID PRIMARY KEY,
    set_id UUID,
    title TEXT,
    description TEXT,
    instructions TEXT,
    questions TEXT,
    passing_score INT,
    time_limit_minutes INT,
    is_published BOOLEAN,
    created_by UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Partition per course: the instructor grading queue is a single read
SHORT_QUESTION_SUBMISSIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.short_question_submissions (
    course_id UUID,
    student_id UUID,
    submission_id UUID,
    set_id UUID,
    status TEXT,
    answers TEXT,
    total_score INT,
    max_score INT,
    percentage INT,
    passed BOOLEAN,
    overall_feedback TEXT,
    instructor_notes TEXT,
    graded_by UUID,
    time_spent_seconds INT,
    started_at TIMESTAMP,
    submitted_at TIMESTAMP,
    graded_at TIMESTAMP,
    PRIMARY KEY (course_id, student_id)
)
"""

SHORT_QUESTIONS_TABLES_CQL = [
    SHORT_QUESTION_SETS_TABLE_CQL,
    SHORT_QUESTION_SUBMISSIONS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class ShortQuestion:
    """A free-text question with a model answer and assistance flags."""

    text: str
    correct_answer: str
    keywords: list[str] = field(default_factory=list)
    max_length: int = 500
    min_length: int = 10
    case_sensitive: bool = False
    exact_match: bool = False
    partial_credit: bool = True
    points: int = 1
    explanation: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShortQuestion":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class SubmittedAnswer:
    """A student's answer, the assistance suggestion and the instructor grade.

    ``points`` stays None until the instructor grades the answer.
    """

    question_index: int
    student_answer: str
    max_points: int
    suggested_points: int = 0
    matched_keywords: list[str] = field(default_factory=list)
    points: int | None = None
    is_correct: bool = False
    feedback: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubmittedAnswer":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def dump_dataclasses(items: list[Any]) -> str:
    return json.dumps([asdict(item) for item in items])


class ShortQuestionSet:
    """The short-question set of a course."""

    def __init__(
        self,
        course_id: UUID,
        title: str,
        questions: list[ShortQuestion],
        set_id: UUID | None = None,
        description: str | None = None,
        instructions: str | None = None,
        passing_score: int = 70,
        time_limit_minutes: int | None = None,
        is_published: bool = True,
        created_by: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.set_id = set_id or uuid4()
        self.title = title
        self.questions = questions
        self.description = description
        self.instructions = instructions
        self.passing_score = passing_score
        self.time_limit_minutes = time_limit_minutes
        self.is_published = is_published
        self.created_by = created_by
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    @classmethod
    def from_row(cls, row: Any) -> "ShortQuestionSet":
        questions = json.loads(row.questions) if row.questions else []
        return cls(
            course_id=row.course_id,
            set_id=row.set_id,
            title=row.title or "",
            questions=[ShortQuestion.from_dict(q) for q in questions],
            description=row.description,
            instructions=row.instructions,
            passing_score=row.passing_score if row.passing_score is not None else 70,
            time_limit_minutes=row.time_limit_minutes,
            is_published=bool(row.is_published),
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<ShortQuestionSet course={self.course_id} questions={len(self.questions)}>"


class ShortQuestionSubmission:
    """A student's single submission on a course's short-question set."""

    def __init__(
        self,
        course_id: UUID,
        student_id: UUID,
        set_id: UUID,
        submission_id: UUID | None = None,
        status: str = SubmissionStatus.IN_PROGRESS.value,
        answers: list[SubmittedAnswer] | None = None,
        total_score: int = 0,
        max_score: int = 0,
        percentage: int = 0,
        passed: bool = False,
        overall_feedback: str | None = None,
        instructor_notes: str | None = None,
        graded_by: UUID | None = None,
        time_spent_seconds: int = 0,
        started_at: datetime | None = None,
        submitted_at: datetime | None = None,
        graded_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.student_id = student_id
        self.set_id = set_id
        self.submission_id = submission_id or uuid4()
        self.status = status
        self.answers = answers or []
        self.total_score = total_score
        self.max_score = max_score
        self.percentage = percentage
        self.passed = passed
        self.overall_feedback = overall_feedback
        self.instructor_notes = instructor_notes
        self.graded_by = graded_by
        self.time_spent_seconds = time_spent_seconds
        self.started_at = ensure_utc_aware(started_at) or utc_now()
        self.submitted_at = ensure_utc_aware(submitted_at)
        self.graded_at = ensure_utc_aware(graded_at)

    @property
    def is_graded(self) -> bool:
        return self.status in GRADED_STATUSES

    @property
    def counts_as_passed(self) -> bool:
        """Counts towards course progress: instructor-graded and passed."""
        return self.is_graded and self.passed

    @classmethod
    def from_row(cls, row: Any) -> "ShortQuestionSubmission":
        answers = json.loads(row.answers) if row.answers else []
        return cls(
            course_id=row.course_id,
            student_id=row.student_id,
            set_id=row.set_id,
            submission_id=row.submission_id,
            status=row.status or SubmissionStatus.IN_PROGRESS.value,
            answers=[SubmittedAnswer.from_dict(a) for a in answers],
            total_score=row.total_score or 0,
            max_score=row.max_score or 0,
            percentage=row.percentage or 0,
            passed=bool(row.passed),
            overall_feedback=row.overall_feedback,
            instructor_notes=row.instructor_notes,
            graded_by=row.graded_by,
            time_spent_seconds=row.time_spent_seconds or 0,
            started_at=row.started_at,
            submitted_at=row.submitted_at,
            graded_at=row.graded_at,
        )

    def __repr__(self) -> str:
        return (
            f"<ShortQuestionSubmission course={self.course_id} "
            f"student={self.student_id} {self.status}>"
        )
