"""Course progress aggregation (pure computation).

Course progress is a 60/20/20 split:

- lessons: completed / total of the 60 lesson points, rounded
- quiz: all 20 points once any quiz attempt passed
- short questions: all 20 points once a graded submission passed

Rounding is half-up on exact integer arithmetic, so 23/30 gives 77 and
0.5 always rounds away from zero.
"""

from dataclasses import dataclass


LESSON_WEIGHT = 60
QUIZ_WEIGHT = 20
SHORT_QUESTION_WEIGHT = 20
MAX_PROGRESS = 100


def round_half_up(numerator: int, denominator: int) -> int:
    """Round ``numerator / denominator`` to the nearest int, halves up.

    Both arguments must be non-negative; ``denominator`` must be positive.
    """
    if denominator <= 0:
        msg = "denominator must be positive"
        raise ValueError(msg)
    if numerator < 0:
        msg = "numerator must be non-negative"
        raise ValueError(msg)
    return (2 * numerator + denominator) // (2 * denominator)


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage of ``part`` in ``whole``; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(max(0, min(part, whole)) * 100, whole)


def weighted_share(part: int, whole: int, weight: int) -> int:
    """``part / whole * weight`` rounded half-up, within ``[0, weight]``."""
    if whole <= 0:
        return 0
    return round_half_up(max(0, min(part, whole)) * weight, whole)


@dataclass(frozen=True)
class ProgressBreakdown:
    """Every input and weighted share behind a course progress value."""

    lessons_completed: int
    lessons_total: int
    lesson_points: int
    quiz_passed: bool
    quiz_points: int
    short_question_passed: bool
    short_question_points: int
    total: int


def aggregate_progress(
    lessons_completed: int,
    lessons_total: int,
    quiz_passed: bool,
    short_question_passed: bool,
) -> ProgressBreakdown:
    """Combine the three progress inputs into a 0-100 course progress."""
    lesson_points = weighted_share(lessons_completed, lessons_total, LESSON_WEIGHT)
    quiz_points = QUIZ_WEIGHT if quiz_passed else 0
    short_question_points = SHORT_QUESTION_WEIGHT if short_question_passed else 0

    total = lesson_points + quiz_points + short_question_points
    return ProgressBreakdown(
        lessons_completed=min(max(lessons_completed, 0), max(lessons_total, 0)),
        lessons_total=max(lessons_total, 0),
        lesson_points=lesson_points,
        quiz_passed=quiz_passed,
        quiz_points=quiz_points,
        short_question_passed=short_question_passed,
        short_question_points=short_question_points,
        total=max(0, min(total, MAX_PROGRESS)),
    )
