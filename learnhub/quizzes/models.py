"""Database models for course quizzes and attempts.

One quiz per course (the quiz table is keyed by course_id). Questions are
stored as a JSON text column. Attempts are numbered per (student, course).
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from learnhub.utils import ensure_utc_aware, utc_now


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

QUIZZES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quizzes (
    course_id UUID PRIMARY KEY,
    quiz_id UUID,
    title TEXT,
    description TEXT,
    instructions TEXT,
    questions TEXT,
    passing_score INT,
    time_limit_minutes INT,
    max_attempts INT,
    requires_all_lessons BOOLEAN,
    is_published BOOLEAN,
    created_by UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Attempts of a student on the course quiz, in attempt order
QUIZ_ATTEMPTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts (
    student_id UUID,
    course_id UUID,
    attempt_number INT,
    attempt_id UUID,
    quiz_id UUID,
    status TEXT,
    answers LIST<INT>,
    score INT,
    total_questions INT,
    percentage INT,
    passed BOOLEAN,
    points_earned INT,
    points_total INT,
    time_spent_seconds INT,
    started_at TIMESTAMP,
    submitted_at TIMESTAMP,
    PRIMARY KEY ((student_id, course_id), attempt_number)
) WITH CLUSTERING ORDER BY (attempt_number ASC)
"""

QUIZZES_TABLES_CQL = [
    QUIZZES_TABLE_CQL,
    QUIZ_ATTEMPTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class QuizQuestion:
    """Multiple-choice question. ``correct_index`` indexes into ``options``."""

    text: str
    options: list[str]
    correct_index: int
    points: int = 1
    explanation: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizQuestion":
        return cls(
            text=data["text"],
            options=list(data["options"]),
            correct_index=int(data["correct_index"]),
            points=int(data.get("points", 1)),
            explanation=data.get("explanation"),
        )


def dump_questions(questions: list[QuizQuestion]) -> str:
    return json.dumps([asdict(q) for q in questions])


class Quiz:
    """A course's quiz.

    Attributes:
        course_id: Course UUID (one quiz per course)
        quiz_id: Quiz UUID
        questions: Ordered questions
        passing_score: Percentage needed to pass (0-100)
        time_limit_minutes: Informational limit shown to students
        max_attempts: Attempts allowed per student
        requires_all_lessons: Starting needs every catalog lesson completed
        is_published: Students can only see and start published quizzes
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        questions: list[QuizQuestion],
        quiz_id: UUID | None = None,
        description: str | None = None,
        instructions: str | None = None,
        passing_score: int = 70,
        time_limit_minutes: int | None = None,
        max_attempts: int = 3,
        requires_all_lessons: bool = True,
        is_published: bool = True,
        created_by: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.quiz_id = quiz_id or uuid4()
        self.title = title
        self.description = description
        self.instructions = instructions
        self.questions = questions
        self.passing_score = passing_score
        self.time_limit_minutes = time_limit_minutes
        self.max_attempts = max_attempts
        self.requires_all_lessons = requires_all_lessons
        self.is_published = is_published
        self.created_by = created_by
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    @classmethod
    def from_row(cls, row: Any) -> "Quiz":
        questions = json.loads(row.questions) if row.questions else []
        return cls(
            course_id=row.course_id,
            quiz_id=row.quiz_id,
            title=row.title or "",
            description=row.description,
            instructions=row.instructions,
            questions=[QuizQuestion.from_dict(q) for q in questions],
            passing_score=row.passing_score if row.passing_score is not None else 70,
            time_limit_minutes=row.time_limit_minutes,
            max_attempts=row.max_attempts or 3,
            requires_all_lessons=(
                True if row.requires_all_lessons is None else row.requires_all_lessons
            ),
            is_published=bool(row.is_published),
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Quiz course={self.course_id} questions={len(self.questions)}>"


class QuizAttempt:
    """One attempt of a student at a course quiz."""

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        quiz_id: UUID,
        attempt_number: int,
        attempt_id: UUID | None = None,
        status: str = AttemptStatus.IN_PROGRESS.value,
        answers: list[int] | None = None,
        score: int = 0,
        total_questions: int = 0,
        percentage: int = 0,
        passed: bool = False,
        points_earned: int = 0,
        points_total: int = 0,
        time_spent_seconds: int = 0,
        started_at: datetime | None = None,
        submitted_at: datetime | None = None,
    ):
        self.student_id = student_id
        self.course_id = course_id
        self.quiz_id = quiz_id
        self.attempt_number = attempt_number
        self.attempt_id = attempt_id or uuid4()
        self.status = status
        self.answers = list(answers or [])
        self.score = score
        self.total_questions = total_questions
        self.percentage = percentage
        self.passed = passed
        self.points_earned = points_earned
        self.points_total = points_total
        self.time_spent_seconds = time_spent_seconds
        self.started_at = ensure_utc_aware(started_at) or utc_now()
        self.submitted_at = ensure_utc_aware(submitted_at)

    @property
    def is_submitted(self) -> bool:
        return self.status == AttemptStatus.SUBMITTED.value

    @classmethod
    def from_row(cls, row: Any) -> "QuizAttempt":
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            quiz_id=row.quiz_id,
            attempt_number=row.attempt_number,
            attempt_id=row.attempt_id,
            status=row.status or AttemptStatus.IN_PROGRESS.value,
            answers=row.answers,
            score=row.score or 0,
            total_questions=row.total_questions or 0,
            percentage=row.percentage or 0,
            passed=bool(row.passed),
            points_earned=row.points_earned or 0,
            points_total=row.points_total or 0,
            time_spent_seconds=row.time_spent_seconds or 0,
            started_at=row.started_at,
            submitted_at=row.submitted_at,
        )

    def __repr__(self) -> str:
        return (
            f"<QuizAttempt #{self.attempt_number} student={self.student_id} "
            f"{self.status} {self.percentage}%>"
        )
