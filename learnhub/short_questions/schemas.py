"""Pydantic schemas for short-question sets, submissions and grading."""

from datetime import datetime
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from learnhub.progress.schemas import CourseProgressResponse

from .models import ShortQuestion, ShortQuestionSet, ShortQuestionSubmission
from .service import AnswerGrade


# ==============================================================================
# Authoring
# ==============================================================================

NULLABLE_SET_FIELDS = frozenset({"description", "instructions", "time_limit_minutes"})


class ShortQuestionRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
    correct_answer: str = Field(..., min_length=1, max_length=5000)
    keywords: list[str] = Field(default_factory=list, max_length=50)
    max_length: int = Field(500, ge=1, le=10000)
    min_length: int = Field(10, ge=0)
    case_sensitive: bool = False
    exact_match: bool = False
    partial_credit: bool = True
    points: int = Field(1, ge=1, le=100)
    explanation: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_lengths(self) -> Self:
        if not self.correct_answer.strip():
            msg = "correct_answer must not be blank"
            raise ValueError(msg)
        if self.min_length > self.max_length:
            msg = "min_length must not exceed max_length"
            raise ValueError(msg)
        return self

    def to_question(self) -> ShortQuestion:
        data = self.model_dump()
        data["keywords"] = [k.strip() for k in self.keywords if k.strip()]
        return ShortQuestion(**data)


class CreateShortQuestionSetRequest(BaseModel):
    course_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    instructions: str | None = Field(None, max_length=5000)
    questions: list[ShortQuestionRequest] = Field(..., min_length=1)
    passing_score: int | None = Field(None, ge=0, le=100)
    time_limit_minutes: int | None = Field(None, ge=1)
    is_published: bool = True


class UpdateShortQuestionSetRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    instructions: str | None = Field(None, max_length=5000)
    questions: list[ShortQuestionRequest] | None = Field(None, min_length=1)
    passing_score: int | None = Field(None, ge=0, le=100)
    time_limit_minutes: int | None = Field(None, ge=1)
    is_published: bool | None = None

    def changes(self) -> dict[str, Any]:
        changes = {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_SET_FIELDS
        }
        if self.questions is not None:
            changes["questions"] = [q.to_question() for q in self.questions]
        return changes


class ShortQuestionPublic(BaseModel):
    """Question as shown to students (no model answer or keywords)."""

    index: int
    text: str
    points: int
    min_length: int
    max_length: int


class ShortQuestionFull(ShortQuestionPublic):
    correct_answer: str
    keywords: list[str]
    case_sensitive: bool
    exact_match: bool
    partial_credit: bool
    explanation: str | None = None


class ShortQuestionSetResponse(BaseModel):
    set_id: UUID
    course_id: UUID
    title: str
    description: str | None = None
    instructions: str | None = None
    passing_score: int
    time_limit_minutes: int | None = None
    total_questions: int
    total_points: int
    questions: list[ShortQuestionPublic]

    @classmethod
    def from_entity(cls, question_set: ShortQuestionSet) -> "ShortQuestionSetResponse":
        return cls(
            **_set_fields(question_set),
            questions=[
                ShortQuestionPublic(
                    index=i,
                    text=q.text,
                    points=q.points,
                    min_length=q.min_length,
                    max_length=q.max_length,
                )
                for i, q in enumerate(question_set.questions)
            ],
        )


class ShortQuestionSetInstructorResponse(BaseModel):
    set_id: UUID
    course_id: UUID
    title: str
    description: str | None = None
    instructions: str | None = None
    passing_score: int
    time_limit_minutes: int | None = None
    total_questions: int
    total_points: int
    is_published: bool
    created_at: datetime
    updated_at: datetime | None = None
    questions: list[ShortQuestionFull]

    @classmethod
    def from_entity(
        cls, question_set: ShortQuestionSet
    ) -> "ShortQuestionSetInstructorResponse":
        return cls(
            **_set_fields(question_set),
            is_published=question_set.is_published,
            created_at=question_set.created_at,
            updated_at=question_set.updated_at,
            questions=[
                ShortQuestionFull(
                    index=i,
                    text=q.text,
                    points=q.points,
                    min_length=q.min_length,
                    max_length=q.max_length,
                    correct_answer=q.correct_answer,
                    keywords=q.keywords,
                    case_sensitive=q.case_sensitive,
                    exact_match=q.exact_match,
                    partial_credit=q.partial_credit,
                    explanation=q.explanation,
                )
                for i, q in enumerate(question_set.questions)
            ],
        )


def _set_fields(question_set: ShortQuestionSet) -> dict[str, Any]:
    return {
        "set_id": question_set.set_id,
        "course_id": question_set.course_id,
        "title": question_set.title,
        "description": question_set.description,
        "instructions": question_set.instructions,
        "passing_score": question_set.passing_score,
        "time_limit_minutes": question_set.time_limit_minutes,
        "total_questions": len(question_set.questions),
        "total_points": question_set.total_points,
    }


# ==============================================================================
# Submissions
# ==============================================================================


class StartShortQuestionsResponse(BaseModel):
    submission_id: UUID
    status: str
    started_at: datetime
    question_set: ShortQuestionSetResponse


class SubmitAnswersRequest(BaseModel):
    answers: list[str] = Field(..., min_length=1)
    time_spent_seconds: int = Field(0, ge=0)


class AnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_index: int
    student_answer: str
    max_points: int
    points: int | None = None
    is_correct: bool = False
    feedback: str | None = None


class AnswerInstructorResponse(AnswerResponse):
    suggested_points: int
    matched_keywords: list[str]


class SubmissionResponse(BaseModel):
    """Student view. Scores are only shown once graded."""

    submission_id: UUID
    course_id: UUID
    status: str
    total_score: int | None = None
    max_score: int
    percentage: int | None = None
    passed: bool | None = None
    overall_feedback: str | None = None
    submitted_at: datetime | None = None
    graded_at: datetime | None = None
    answers: list[AnswerResponse]

    @classmethod
    def from_entity(cls, submission: ShortQuestionSubmission) -> "SubmissionResponse":
        graded = submission.is_graded
        return cls(
            submission_id=submission.submission_id,
            course_id=submission.course_id,
            status=submission.status,
            total_score=submission.total_score if graded else None,
            max_score=submission.max_score,
            percentage=submission.percentage if graded else None,
            passed=submission.passed if graded else None,
            overall_feedback=submission.overall_feedback if graded else None,
            submitted_at=submission.submitted_at,
            graded_at=submission.graded_at,
            answers=[
                AnswerResponse(
                    question_index=a.question_index,
                    student_answer=a.student_answer,
                    max_points=a.max_points,
                    points=a.points if graded else None,
                    is_correct=a.is_correct if graded else False,
                    feedback=a.feedback if graded else None,
                )
                for a in submission.answers
            ],
        )


class SubmissionInstructorResponse(BaseModel):
    """Grading-queue view with assistance suggestions."""

    model_config = ConfigDict(from_attributes=True)

    submission_id: UUID
    course_id: UUID
    student_id: UUID
    status: str
    total_score: int
    max_score: int
    percentage: int
    passed: bool
    overall_feedback: str | None = None
    instructor_notes: str | None = None
    graded_by: UUID | None = None
    time_spent_seconds: int
    started_at: datetime
    submitted_at: datetime | None = None
    graded_at: datetime | None = None
    answers: list[AnswerInstructorResponse]


class SubmissionListResponse(BaseModel):
    items: list[SubmissionInstructorResponse]
    total: int


class SubmitAnswersResponse(BaseModel):
    submission: SubmissionResponse
    course_progress: CourseProgressResponse


# ==============================================================================
# Grading
# ==============================================================================


class AnswerGradeRequest(BaseModel):
    points: int = Field(..., ge=0)
    is_correct: bool | None = Field(
        None, description="Omit to mark only full-mark answers correct"
    )
    feedback: str | None = Field(None, max_length=2000)

    def to_grade(self) -> AnswerGrade:
        return AnswerGrade(
            points=self.points, feedback=self.feedback, is_correct=self.is_correct
        )


class GradeSubmissionRequest(BaseModel):
    """One grade per question, in question order."""

    grades: list[AnswerGradeRequest] = Field(..., min_length=1)
    overall_feedback: str | None = Field(None, max_length=5000)
    instructor_notes: str | None = Field(None, max_length=5000)
    finalize: bool = False


class GradeSubmissionResponse(BaseModel):
    submission: SubmissionInstructorResponse
    course_progress: CourseProgressResponse
