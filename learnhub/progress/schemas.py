"""Pydantic schemas for lesson and course progress."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .aggregation import LESSON_WEIGHT, QUIZ_WEIGHT, SHORT_QUESTION_WEIGHT
from .service import CourseProgress


# ==============================================================================
# Lesson Progress
# ==============================================================================


class LessonToggleRequest(BaseModel):
    """Mark a lesson complete or incomplete."""

    course_id: UUID = Field(..., description="Course UUID")
    lesson_id: UUID = Field(..., description="Lesson UUID")


class LessonAccessRequest(BaseModel):
    """Record that the student opened a lesson."""

    course_id: UUID
    lesson_id: UUID
    time_spent_seconds: int = Field(0, ge=0, le=86400)


class LessonProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    student_id: UUID
    course_id: UUID
    lesson_id: UUID
    module_id: UUID | None = None
    completed: bool
    completed_at: datetime | None = None
    last_accessed_at: datetime | None = None
    time_spent_seconds: int = 0


class LessonProgressListResponse(BaseModel):
    items: list[LessonProgressResponse]
    completed: int
    total: int


# ==============================================================================
# Course Progress
# ==============================================================================


class LessonSection(BaseModel):
    percentage: int = Field(description="Share of catalog lessons completed, 0-100")
    completed: int
    total: int
    weight: int = LESSON_WEIGHT


class QuizSection(BaseModel):
    percentage: int = Field(description="Best attempt percentage, 0 without attempts")
    passed: bool
    attempts: int
    weight: int = QUIZ_WEIGHT


class ShortQuestionSection(BaseModel):
    percentage: int = Field(description="Graded percentage, 0 until graded")
    passed: bool
    status: str | None = None
    weight: int = SHORT_QUESTION_WEIGHT


class CourseProgressResponse(BaseModel):
    """Course progress with its 60/20/20 breakdown."""

    student_id: UUID
    course_id: UUID
    lesson_progress: LessonSection
    quiz_progress: QuizSection
    short_question_progress: ShortQuestionSection
    total_progress: int = Field(ge=0, le=100)
    breakdown: dict[str, int]

    @classmethod
    def from_result(cls, progress: CourseProgress) -> "CourseProgressResponse":
        b = progress.breakdown
        return cls(
            student_id=progress.student_id,
            course_id=progress.course_id,
            lesson_progress=LessonSection(
                percentage=progress.lesson_percentage,
                completed=b.lessons_completed,
                total=b.lessons_total,
            ),
            quiz_progress=QuizSection(
                percentage=progress.quiz_best_percentage or 0,
                passed=b.quiz_passed,
                attempts=progress.quiz_attempts,
            ),
            short_question_progress=ShortQuestionSection(
                percentage=progress.short_question_percentage or 0,
                passed=b.short_question_passed,
                status=progress.short_question_status,
            ),
            total_progress=b.total,
            breakdown={
                "lessons": b.lesson_points,
                "quiz": b.quiz_points,
                "short_questions": b.short_question_points,
            },
        )


class LessonToggleResponse(BaseModel):
    """Lesson state after a toggle, plus the recomputed course progress."""

    lesson: LessonProgressResponse
    course_progress: CourseProgressResponse
