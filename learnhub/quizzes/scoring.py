"""Quiz scoring (pure computation).

``score`` is the number of correct answers, ``percentage`` is
``round(score / total * 100)`` rounded half-up and the attempt passes when
``percentage >= passing_score``. Points are reported alongside but do not
decide pass/fail.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from learnhub.progress.aggregation import percentage

from .models import QuizQuestion


@dataclass(frozen=True)
class QuizScore:
    score: int
    total_questions: int
    percentage: int
    passed: bool
    points_earned: int
    points_total: int
    correct: tuple[bool, ...]


def answers_complete(
    questions: Sequence[QuizQuestion], answers: Sequence[int]
) -> bool:
    """One answer per question, each a valid option index. Blanks are rejected."""
    if len(answers) != len(questions):
        return False
    return all(
        0 <= answer < len(question.options)
        for question, answer in zip(questions, answers, strict=True)
    )


def score_quiz(
    questions: Sequence[QuizQuestion],
    answers: Sequence[int],
    passing_score: int,
) -> QuizScore:
    """Score a complete answer sheet (see ``answers_complete``)."""
    correct = tuple(
        answer == question.correct_index
        for question, answer in zip(questions, answers, strict=True)
    )
    score = sum(correct)
    total = len(questions)
    pct = percentage(score, total)

    return QuizScore(
        score=score,
        total_questions=total,
        percentage=pct,
        passed=total > 0 and pct >= passing_score,
        points_earned=sum(q.points for q, ok in zip(questions, correct, strict=True) if ok),
        points_total=sum(q.points for q in questions),
        correct=correct,
    )
