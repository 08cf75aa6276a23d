"""Short-question endpoint tests."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from learnhub.courses.models import Course
from learnhub.progress.aggregation import aggregate_progress
from learnhub.progress.service import CourseProgress
from learnhub.short_questions.models import (
    ShortQuestion,
    ShortQuestionSet,
    ShortQuestionSubmission,
    SubmissionStatus,
    SubmittedAnswer,
)
from learnhub.short_questions.service import (
    AnswerLengthError,
    SubmissionFinalizedError,
)


@pytest.fixture
def question_set(course_id):
    return ShortQuestionSet(
        course_id=course_id,
        title="Reflection",
        questions=[
            ShortQuestion(
                text="What is a list?",
                correct_answer="An ordered mutable sequence",
                keywords=["ordered", "mutable"],
                points=10,
            )
        ],
    )


@pytest.fixture
def owned_course(services, course_id, instructor_id):
    course = Course(instructor_id=instructor_id, title="Python", course_id=course_id)
    services.course_service.get_course = AsyncMock(return_value=course)
    return course


def make_submission(question_set, student_id, status, points=None, passed=False):
    return ShortQuestionSubmission(
        course_id=question_set.course_id,
        student_id=student_id,
        set_id=question_set.set_id,
        status=status,
        answers=[
            SubmittedAnswer(
                question_index=0,
                student_answer="An ordered sequence you can change",
                max_points=10,
                suggested_points=5,
                matched_keywords=["ordered"],
                points=points,
            )
        ],
        total_score=points or 0,
        max_score=10,
        percentage=(points or 0) * 10,
        passed=passed,
    )


def make_progress(student_id, course_id, sq_passed, status):
    return CourseProgress(
        student_id=student_id,
        course_id=course_id,
        breakdown=aggregate_progress(10, 10, True, sq_passed),
        quiz_attempts=1,
        quiz_best_percentage=100,
        short_question_status=status,
        short_question_percentage=80 if sq_passed else None,
    )


def test_create_set_as_owner(
    client, services, owned_course, question_set, course_id, instructor_headers
):
    services.short_question_service.create_set = AsyncMock(return_value=question_set)

    response = client.post(
        "/v1/short-questions",
        json={
            "course_id": str(course_id),
            "title": "Reflection",
            "questions": [
                {
                    "text": "What is a list?",
                    "correct_answer": "An ordered mutable sequence",
                    "keywords": [" ordered ", "mutable"],
                    "points": 10,
                }
            ],
        },
        headers=instructor_headers,
    )

    assert response.status_code == 201
    assert response.json()["questions"][0]["correct_answer"]
    questions = services.short_question_service.create_set.await_args.kwargs["questions"]
    assert questions[0].keywords == ["ordered", "mutable"]


def test_create_set_rejects_inverted_length_bounds(
    client, services, course_id, instructor_headers
):
    response = client.post(
        "/v1/short-questions",
        json={
            "course_id": str(course_id),
            "title": "Reflection",
            "questions": [
                {
                    "text": "Why?",
                    "correct_answer": "Because",
                    "min_length": 50,
                    "max_length": 10,
                }
            ],
        },
        headers=instructor_headers,
    )

    assert response.status_code == 422


def test_public_set_hides_model_answers(
    client, services, question_set, course_id, student_headers
):
    services.short_question_service.require_set = AsyncMock(return_value=question_set)

    response = client.get(f"/v1/short-questions/course/{course_id}", headers=student_headers)

    assert response.status_code == 200
    question = response.json()["questions"][0]
    assert "correct_answer" not in question
    assert "keywords" not in question


def test_submit_hides_scores_until_graded(
    client, services, question_set, course_id, student_id, student_headers
):
    submission = make_submission(question_set, student_id, SubmissionStatus.PENDING.value)
    services.short_question_service.submit = AsyncMock(return_value=submission)
    services.course_progress_service.recalculate = AsyncMock(
        return_value=make_progress(student_id, course_id, False, "pending")
    )

    response = client.post(
        f"/v1/short-questions/course/{course_id}/submit",
        json={"answers": ["An ordered sequence you can change"]},
        headers=student_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["submission"]["status"] == "pending"
    assert body["submission"]["percentage"] is None
    assert body["submission"]["answers"][0]["points"] is None
    assert body["course_progress"]["total_progress"] == 80


def test_submit_answer_too_short(client, services, course_id, student_headers):
    services.short_question_service.submit = AsyncMock(
        side_effect=AnswerLengthError("Answer 1 is too short")
    )
    services.course_progress_service.recalculate = AsyncMock()

    response = client.post(
        f"/v1/short-questions/course/{course_id}/submit",
        json={"answers": ["short"]},
        headers=student_headers,
    )

    assert response.status_code == 422
    services.course_progress_service.recalculate.assert_not_awaited()


def test_results_without_submission(client, services, course_id, student_headers):
    services.short_question_service.get_submission = AsyncMock(return_value=None)

    response = client.get(
        f"/v1/short-questions/course/{course_id}/results", headers=student_headers
    )

    assert response.status_code == 404


def test_list_submissions_filters_by_status(
    client, services, owned_course, question_set, course_id, instructor_headers
):
    pending = make_submission(question_set, uuid4(), SubmissionStatus.PENDING.value)
    services.short_question_service.list_submissions = AsyncMock(return_value=[pending])

    response = client.get(
        f"/v1/short-questions/course/{course_id}/submissions",
        params={"status": "pending"},
        headers=instructor_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["answers"][0]["suggested_points"] == 5
    services.short_question_service.list_submissions.assert_awaited_once_with(
        course_id, SubmissionStatus.PENDING
    )


def test_grade_returns_recomputed_progress(
    client,
    services,
    owned_course,
    question_set,
    course_id,
    student_id,
    instructor_id,
    instructor_headers,
):
    graded = make_submission(
        question_set, student_id, SubmissionStatus.GRADED.value, points=8, passed=True
    )
    services.short_question_service.grade = AsyncMock(return_value=graded)
    services.course_progress_service.recalculate = AsyncMock(
        return_value=make_progress(student_id, course_id, True, "graded")
    )

    response = client.put(
        f"/v1/short-questions/course/{course_id}/submissions/{student_id}/grade",
        json={"grades": [{"points": 8, "is_correct": True, "feedback": "Good"}]},
        headers=instructor_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["submission"]["passed"] is True
    assert body["course_progress"]["total_progress"] == 100
    call = services.short_question_service.grade.await_args
    assert call.kwargs["graded_by"] == instructor_id
    assert call.args[2][0].points == 8
    assert call.args[2][0].is_correct is True


def test_grade_finalized_submission_conflicts(
    client, services, owned_course, course_id, student_id, instructor_headers
):
    services.short_question_service.grade = AsyncMock(
        side_effect=SubmissionFinalizedError()
    )
    services.course_progress_service.recalculate = AsyncMock()

    response = client.put(
        f"/v1/short-questions/course/{course_id}/submissions/{student_id}/grade",
        json={"grades": [{"points": 8}]},
        headers=instructor_headers,
    )

    assert response.status_code == 409


def test_grade_rejects_negative_points(
    client, services, owned_course, course_id, student_id, instructor_headers
):
    response = client.put(
        f"/v1/short-questions/course/{course_id}/submissions/{student_id}/grade",
        json={"grades": [{"points": -1}]},
        headers=instructor_headers,
    )

    assert response.status_code == 422
