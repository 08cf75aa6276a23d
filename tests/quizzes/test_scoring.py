"""Tests for quiz scoring."""

from learnhub.quizzes.models import QuizQuestion
from learnhub.quizzes.scoring import answers_complete, score_quiz


def _questions(count: int = 5) -> list[QuizQuestion]:
    return [
        QuizQuestion(text=f"Question {i}", options=["a", "b", "c"], correct_index=i % 3)
        for i in range(count)
    ]


class TestAnswersComplete:
    def test_one_answer_per_question(self) -> None:
        assert answers_complete(_questions(3), [0, 1, 2]) is True

    def test_wrong_length(self) -> None:
        assert answers_complete(_questions(3), [0, 1]) is False

    def test_out_of_range_option(self) -> None:
        assert answers_complete(_questions(3), [0, 1, 3]) is False

    def test_unanswered_rejected(self) -> None:
        assert answers_complete(_questions(3), [-1, 1, 2]) is False

    def test_blank_sheet_rejected(self) -> None:
        assert answers_complete(_questions(3), [-1, -1, -1]) is False


class TestScoreQuiz:
    def test_four_of_five_passes_at_seventy(self) -> None:
        questions = _questions(5)
        answers = [0, 1, 2, 0, 2]  # last one wrong

        result = score_quiz(questions, answers, passing_score=70)

        assert result.score == 4
        assert result.total_questions == 5
        assert result.percentage == 80
        assert result.passed is True
        assert result.correct == (True, True, True, True, False)

    def test_below_passing_score(self) -> None:
        questions = _questions(3)
        result = score_quiz(questions, [0, 0, 0], passing_score=70)
        assert result.score == 1
        assert result.percentage == 33
        assert result.passed is False

    def test_exact_passing_score_passes(self) -> None:
        questions = _questions(10)
        answers = [q.correct_index for q in questions[:7]] + [
            (q.correct_index + 1) % 3 for q in questions[7:]
        ]
        result = score_quiz(questions, answers, passing_score=70)
        assert result.percentage == 70
        assert result.passed is True

    def test_all_wrong_scores_zero(self) -> None:
        questions = _questions(2)
        result = score_quiz(questions, [1, 2], passing_score=0)
        assert result.score == 0
        assert result.percentage == 0

    def test_points_reported_but_not_deciding(self) -> None:
        questions = [
            QuizQuestion(text="easy", options=["a", "b"], correct_index=0, points=1),
            QuizQuestion(text="hard", options=["a", "b"], correct_index=1, points=9),
        ]
        result = score_quiz(questions, [0, 0], passing_score=50)
        assert result.points_earned == 1
        assert result.points_total == 10
        assert result.percentage == 50
        assert result.passed is True
