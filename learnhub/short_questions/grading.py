"""Short-answer assistance and grade totals (pure computation).

Assistance only suggests points to the instructor; progress counts nothing
until an instructor grade is stored. The suggestion follows the question
flags in this order:

1. ``exact_match``: full points iff the answer equals the model answer
2. keywords present: share of keywords found in the answer; full points when
   all are found, proportional points with ``partial_credit``, else 0
3. otherwise: word-set (Jaccard) similarity with the model answer;
   identical -> full, >= 0.8 -> proportional, >= 0.5 -> half of proportional,
   below -> 0. Anything short of identical needs ``partial_credit``.

All comparisons fold case unless ``case_sensitive``.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from learnhub.progress.aggregation import percentage, round_half_up

from .models import ShortQuestion


class GradingMethod(str, Enum):
    EXACT = "exact"
    KEYWORD = "keyword"
    SIMILARITY = "similarity"


@dataclass(frozen=True)
class AnswerAssessment:
    method: GradingMethod
    matched_keywords: tuple[str, ...]
    similarity: float
    suggested_points: int


@dataclass(frozen=True)
class GradeSummary:
    total_score: int
    max_score: int
    percentage: int
    passed: bool


def normalize(text: str, case_sensitive: bool = False) -> str:
    text = text.strip()
    return text if case_sensitive else text.lower()


def word_overlap(first: str, second: str) -> tuple[int, int]:
    """Jaccard overlap of the word sets as ``(intersection, union)``."""
    words1 = set(first.split())
    words2 = set(second.split())
    return len(words1 & words2), len(words1 | words2)


def assess_answer(question: ShortQuestion, answer: str) -> AnswerAssessment:
    """Suggest points for one answer."""
    given = normalize(answer, question.case_sensitive)
    expected = normalize(question.correct_answer, question.case_sensitive)
    full = question.points

    if question.exact_match:
        hit = given == expected
        return AnswerAssessment(
            method=GradingMethod.EXACT,
            matched_keywords=(),
            similarity=1.0 if hit else 0.0,
            suggested_points=full if hit else 0,
        )

    keywords = [k for k in question.keywords if k.strip()]
    if keywords:
        matched = tuple(
            k for k in keywords if normalize(k, question.case_sensitive) in given
        )
        if len(matched) == len(keywords):
            points = full
        elif question.partial_credit:
            points = round_half_up(full * len(matched), len(keywords))
        else:
            points = 0
        return AnswerAssessment(
            method=GradingMethod.KEYWORD,
            matched_keywords=matched,
            similarity=len(matched) / len(keywords),
            suggested_points=points,
        )

    if given == expected:
        return AnswerAssessment(
            method=GradingMethod.SIMILARITY,
            matched_keywords=(),
            similarity=1.0,
            suggested_points=full,
        )

    common, union = word_overlap(given, expected)
    if union == 0 or not question.partial_credit:
        points = 0
    elif 5 * common >= 4 * union:
        points = round_half_up(full * common, union)
    elif 2 * common >= union:
        points = round_half_up(full * common, 2 * union)
    else:
        points = 0

    return AnswerAssessment(
        method=GradingMethod.SIMILARITY,
        matched_keywords=(),
        similarity=common / union if union else 0.0,
        suggested_points=points,
    )


def answer_length_ok(question: ShortQuestion, answer: str) -> bool:
    return question.min_length <= len(answer.strip()) <= question.max_length


def points_valid(points: Sequence[int], max_points: Sequence[int]) -> bool:
    """One grade per question, each within ``[0, max]``."""
    if len(points) != len(max_points):
        return False
    return all(0 <= p <= m for p, m in zip(points, max_points, strict=True))


def summarize_grades(
    points: Sequence[int],
    max_points: Sequence[int],
    passing_score: int,
) -> GradeSummary:
    """Total, percentage (half-up) and pass flag of a graded submission."""
    total = sum(points)
    maximum = sum(max_points)
    pct = percentage(total, maximum)
    return GradeSummary(
        total_score=total,
        max_score=maximum,
        percentage=pct,
        passed=maximum > 0 and pct >= passing_score,
    )
