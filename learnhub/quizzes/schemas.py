"""Pydantic schemas for quizzes and quiz attempts."""

from datetime import datetime
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from learnhub.progress.schemas import CourseProgressResponse

from .models import Quiz, QuizAttempt, QuizQuestion


# ==============================================================================
# Authoring
# ==============================================================================

# Fields an update may clear with an explicit null
NULLABLE_QUIZ_FIELDS = frozenset({"description", "instructions", "time_limit_minutes"})


class QuizQuestionRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
    options: list[str] = Field(..., min_length=2, max_length=10)
    correct_index: int = Field(..., ge=0)
    points: int = Field(1, ge=1, le=100)
    explanation: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_correct_index(self) -> Self:
        if self.correct_index >= len(self.options):
            msg = "correct_index must point at one of the options"
            raise ValueError(msg)
        return self

    def to_question(self) -> QuizQuestion:
        return QuizQuestion(**self.model_dump())


class CreateQuizRequest(BaseModel):
    """Create the quiz of a course. Omitted scores use server defaults."""

    course_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    instructions: str | None = Field(None, max_length=5000)
    questions: list[QuizQuestionRequest] = Field(..., min_length=1)
    passing_score: int | None = Field(None, ge=0, le=100)
    time_limit_minutes: int | None = Field(None, ge=1)
    max_attempts: int | None = Field(None, ge=1, le=100)
    requires_all_lessons: bool = True
    is_published: bool = True


class UpdateQuizRequest(BaseModel):
    """Partial quiz update."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    instructions: str | None = Field(None, max_length=5000)
    questions: list[QuizQuestionRequest] | None = Field(None, min_length=1)
    passing_score: int | None = Field(None, ge=0, le=100)
    time_limit_minutes: int | None = Field(None, ge=1)
    max_attempts: int | None = Field(None, ge=1, le=100)
    requires_all_lessons: bool | None = None
    is_published: bool | None = None

    def changes(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_QUIZ_FIELDS
        }


class QuizQuestionPublic(BaseModel):
    """Question as shown to students (no answer)."""

    index: int
    text: str
    options: list[str]
    points: int


class QuizQuestionFull(QuizQuestionPublic):
    correct_index: int
    explanation: str | None = None


class QuizPublicResponse(BaseModel):
    quiz_id: UUID
    course_id: UUID
    title: str
    description: str | None = None
    instructions: str | None = None
    passing_score: int
    time_limit_minutes: int | None = None
    max_attempts: int
    requires_all_lessons: bool
    total_questions: int
    total_points: int
    questions: list[QuizQuestionPublic]

    @classmethod
    def from_entity(cls, quiz: Quiz) -> "QuizPublicResponse":
        return cls(
            **_quiz_fields(quiz),
            questions=[
                QuizQuestionPublic(index=i, text=q.text, options=q.options, points=q.points)
                for i, q in enumerate(quiz.questions)
            ],
        )


class QuizInstructorResponse(BaseModel):
    quiz_id: UUID
    course_id: UUID
    title: str
    description: str | None = None
    instructions: str | None = None
    passing_score: int
    time_limit_minutes: int | None = None
    max_attempts: int
    requires_all_lessons: bool
    total_questions: int
    total_points: int
    is_published: bool
    created_at: datetime
    updated_at: datetime | None = None
    questions: list[QuizQuestionFull]

    @classmethod
    def from_entity(cls, quiz: Quiz) -> "QuizInstructorResponse":
        return cls(
            **_quiz_fields(quiz),
            is_published=quiz.is_published,
            created_at=quiz.created_at,
            updated_at=quiz.updated_at,
            questions=[
                QuizQuestionFull(
                    index=i,
                    text=q.text,
                    options=q.options,
                    points=q.points,
                    correct_index=q.correct_index,
                    explanation=q.explanation,
                )
                for i, q in enumerate(quiz.questions)
            ],
        )


def _quiz_fields(quiz: Quiz) -> dict[str, Any]:
    return {
        "quiz_id": quiz.quiz_id,
        "course_id": quiz.course_id,
        "title": quiz.title,
        "description": quiz.description,
        "instructions": quiz.instructions,
        "passing_score": quiz.passing_score,
        "time_limit_minutes": quiz.time_limit_minutes,
        "max_attempts": quiz.max_attempts,
        "requires_all_lessons": quiz.requires_all_lessons,
        "total_questions": len(quiz.questions),
        "total_points": quiz.total_points,
    }


# ==============================================================================
# Attempts
# ==============================================================================


class AttemptSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attempt_id: UUID
    attempt_number: int
    status: str
    score: int
    total_questions: int
    percentage: int
    passed: bool
    points_earned: int
    points_total: int
    time_spent_seconds: int
    started_at: datetime
    submitted_at: datetime | None = None


class StartQuizResponse(BaseModel):
    attempt_id: UUID
    attempt_number: int
    attempts_remaining: int
    started_at: datetime
    quiz: QuizPublicResponse

    @classmethod
    def from_entities(cls, quiz: Quiz, attempt: QuizAttempt) -> "StartQuizResponse":
        return cls(
            attempt_id=attempt.attempt_id,
            attempt_number=attempt.attempt_number,
            attempts_remaining=max(0, quiz.max_attempts - attempt.attempt_number),
            started_at=attempt.started_at,
            quiz=QuizPublicResponse.from_entity(quiz),
        )


class SubmitQuizRequest(BaseModel):
    """Answer sheet: one selected option index per question, none left blank."""

    attempt_id: UUID
    answers: list[int] = Field(..., min_length=1)
    time_spent_seconds: int = Field(0, ge=0)


class SubmitQuizResponse(BaseModel):
    score: int
    total_questions: int
    percentage: int
    passed: bool
    attempt_number: int
    points_earned: int
    points_total: int
    course_progress: CourseProgressResponse


class QuizProgressResponse(BaseModel):
    """A student's standing on a course quiz."""

    course_id: UUID
    quiz_id: UUID | None = None
    passing_score: int | None = None
    max_attempts: int | None = None
    attempts_used: int
    attempts_remaining: int
    passed: bool
    best_percentage: int | None = None
    in_progress_attempt_id: UUID | None = None
    attempts: list[AttemptSummary]


class QuestionReview(BaseModel):
    index: int
    text: str
    options: list[str]
    points: int
    correct_index: int
    selected_index: int | None = None
    is_correct: bool
    explanation: str | None = None


class QuizResultsResponse(BaseModel):
    attempt: AttemptSummary
    passing_score: int
    questions: list[QuestionReview]

    @classmethod
    def from_entities(cls, quiz: Quiz, attempt: QuizAttempt) -> "QuizResultsResponse":
        reviews = []
        for i, q in enumerate(quiz.questions):
            selected = attempt.answers[i] if i < len(attempt.answers) else None
            reviews.append(
                QuestionReview(
                    index=i,
                    text=q.text,
                    options=q.options,
                    points=q.points,
                    correct_index=q.correct_index,
                    selected_index=selected,
                    is_correct=selected == q.correct_index,
                    explanation=q.explanation,
                )
            )
        return cls(
            attempt=AttemptSummary.model_validate(attempt),
            passing_score=quiz.passing_score,
            questions=reviews,
        )
