"""Tests for course progress aggregation."""

import pytest

from learnhub.progress.aggregation import (
    LESSON_WEIGHT,
    QUIZ_WEIGHT,
    SHORT_QUESTION_WEIGHT,
    aggregate_progress,
    percentage,
    round_half_up,
    weighted_share,
)


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize(
        "numerator,denominator,expected",
        [
            (0, 5, 0),
            (1, 2, 1),
            (5, 2, 3),
            (2300, 30, 77),
            (360, 10, 36),
            (1, 3, 0),
            (2, 3, 1),
        ],
    )
    def test_rounds_halves_up(self, numerator: int, denominator: int, expected: int) -> None:
        assert round_half_up(numerator, denominator) == expected

    def test_zero_denominator_rejected(self) -> None:
        with pytest.raises(ValueError, match="denominator"):
            round_half_up(1, 0)

    def test_negative_numerator_rejected(self) -> None:
        with pytest.raises(ValueError, match="numerator"):
            round_half_up(-1, 2)


class TestPercentage:
    def test_empty_whole_is_zero(self) -> None:
        assert percentage(3, 0) == 0

    def test_clamped_to_whole(self) -> None:
        assert percentage(7, 5) == 100

    def test_two_thirds(self) -> None:
        assert percentage(2, 3) == 67


class TestWeightedShare:
    def test_lessons_six_of_ten(self) -> None:
        assert weighted_share(6, 10, LESSON_WEIGHT) == 36

    def test_no_lessons(self) -> None:
        assert weighted_share(0, 0, LESSON_WEIGHT) == 0

    def test_one_of_three_rounds(self) -> None:
        assert weighted_share(1, 3, LESSON_WEIGHT) == 20
        assert weighted_share(1, 7, LESSON_WEIGHT) == 9


class TestAggregateProgress:
    """Tests for the 60/20/20 split."""

    def test_weights_add_to_hundred(self) -> None:
        assert LESSON_WEIGHT + QUIZ_WEIGHT + SHORT_QUESTION_WEIGHT == 100

    def test_lessons_only(self) -> None:
        breakdown = aggregate_progress(6, 10, quiz_passed=False, short_question_passed=False)
        assert breakdown.lesson_points == 36
        assert breakdown.quiz_points == 0
        assert breakdown.short_question_points == 0
        assert breakdown.total == 36

    def test_quiz_adds_twenty(self) -> None:
        breakdown = aggregate_progress(6, 10, quiz_passed=True, short_question_passed=False)
        assert breakdown.total == 56

    def test_everything_done(self) -> None:
        breakdown = aggregate_progress(4, 4, quiz_passed=True, short_question_passed=True)
        assert breakdown.total == 100

    def test_course_without_lessons(self) -> None:
        breakdown = aggregate_progress(0, 0, quiz_passed=False, short_question_passed=False)
        assert breakdown.lesson_points == 0
        assert breakdown.total == 0

    def test_course_without_lessons_caps_at_forty(self) -> None:
        breakdown = aggregate_progress(0, 0, quiz_passed=True, short_question_passed=True)
        assert breakdown.total == 40

    def test_completed_count_never_exceeds_total(self) -> None:
        breakdown = aggregate_progress(12, 10, quiz_passed=False, short_question_passed=False)
        assert breakdown.lessons_completed == 10
        assert breakdown.lesson_points == 60

    @pytest.mark.parametrize("completed", range(0, 11))
    def test_total_stays_in_range(self, completed: int) -> None:
        breakdown = aggregate_progress(completed, 10, quiz_passed=True, short_question_passed=True)
        assert 0 <= breakdown.total <= 100
