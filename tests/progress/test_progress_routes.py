"""Lesson and course progress endpoint tests."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from learnhub.courses.models import Course
from learnhub.progress.aggregation import aggregate_progress
from learnhub.progress.models import LessonProgress
from learnhub.progress.service import (
    CourseProgress,
    EnrollmentNotApprovedError,
    LessonNotInCourseError,
    NotEnrolledError,
)


def make_progress(student_id, course_id, completed=6, total=10, quiz=False, sq=False):
    return CourseProgress(
        student_id=student_id,
        course_id=course_id,
        breakdown=aggregate_progress(completed, total, quiz, sq),
        quiz_attempts=1 if quiz else 0,
        quiz_best_percentage=80 if quiz else None,
        short_question_status="graded" if sq else None,
        short_question_percentage=77 if sq else None,
    )


@pytest.fixture
def lesson_id():
    return uuid4()


def test_mark_complete_returns_recomputed_progress(
    client, services, student_id, course_id, lesson_id, student_headers
):
    lesson = LessonProgress(student_id, course_id, lesson_id, completed=True)
    services.lesson_progress_service.mark_complete = AsyncMock(return_value=lesson)
    services.course_progress_service.recalculate = AsyncMock(
        return_value=make_progress(student_id, course_id)
    )

    response = client.post(
        "/v1/lesson-progress/complete",
        json={"course_id": str(course_id), "lesson_id": str(lesson_id)},
        headers=student_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["lesson"]["completed"] is True
    assert body["course_progress"]["total_progress"] == 36
    assert body["course_progress"]["lesson_progress"] == {
        "percentage": 60,
        "completed": 6,
        "total": 10,
        "weight": 60,
    }
    services.course_progress_service.recalculate.assert_awaited_once_with(
        student_id, course_id
    )


def test_mark_incomplete_returns_recomputed_progress(
    client, services, student_id, course_id, lesson_id, student_headers
):
    lesson = LessonProgress(student_id, course_id, lesson_id, completed=False)
    services.lesson_progress_service.mark_incomplete = AsyncMock(return_value=lesson)
    services.course_progress_service.recalculate = AsyncMock(
        return_value=make_progress(student_id, course_id, completed=5)
    )

    response = client.post(
        "/v1/lesson-progress/incomplete",
        json={"course_id": str(course_id), "lesson_id": str(lesson_id)},
        headers=student_headers,
    )

    assert response.status_code == 200
    assert response.json()["lesson"]["completed"] is False
    assert response.json()["course_progress"]["total_progress"] == 30


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (NotEnrolledError(), 404),
        (EnrollmentNotApprovedError(), 403),
        (LessonNotInCourseError(), 404),
    ],
)
def test_mark_complete_errors(
    client, services, course_id, lesson_id, student_headers, error, expected
):
    services.lesson_progress_service.mark_complete = AsyncMock(side_effect=error)
    services.course_progress_service.recalculate = AsyncMock()

    response = client.post(
        "/v1/lesson-progress/complete",
        json={"course_id": str(course_id), "lesson_id": str(lesson_id)},
        headers=student_headers,
    )

    assert response.status_code == expected
    services.course_progress_service.recalculate.assert_not_awaited()


def test_record_access_rejects_negative_time(
    client, services, course_id, lesson_id, student_headers
):
    response = client.post(
        "/v1/lesson-progress/access",
        json={
            "course_id": str(course_id),
            "lesson_id": str(lesson_id),
            "time_spent_seconds": -5,
        },
        headers=student_headers,
    )

    assert response.status_code == 422


def test_my_lesson_progress_counts_completed(
    client, services, student_id, course_id, student_headers
):
    items = [
        LessonProgress(student_id, course_id, uuid4(), completed=True),
        LessonProgress(student_id, course_id, uuid4(), completed=False),
    ]
    services.lesson_progress_service.list_course_progress = AsyncMock(
        return_value=items
    )
    services.course_service.count_lessons = AsyncMock(return_value=4)

    response = client.get(
        f"/v1/lesson-progress/course/{course_id}", headers=student_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["completed"] == 1
    assert body["total"] == 4
    assert len(body["items"]) == 2


def test_my_course_progress_full_breakdown(
    client, services, student_id, course_id, student_headers
):
    services.course_progress_service.calculate = AsyncMock(
        return_value=make_progress(
            student_id, course_id, completed=10, quiz=True, sq=True
        )
    )

    response = client.get(f"/v1/course-progress/{course_id}", headers=student_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total_progress"] == 100
    assert body["breakdown"] == {"lessons": 60, "quiz": 20, "short_questions": 20}
    assert body["quiz_progress"]["passed"] is True
    assert body["short_question_progress"]["status"] == "graded"


def test_student_course_progress_requires_course_manager(
    client, services, student_id, course_id, make_headers
):
    course = Course(instructor_id=uuid4(), title="Python", course_id=course_id)
    services.course_service.get_course = AsyncMock(return_value=course)
    services.course_progress_service.calculate = AsyncMock()

    response = client.get(
        f"/v1/course-progress/{course_id}/student/{student_id}",
        headers=make_headers(uuid4(), "instructor"),
    )

    assert response.status_code == 403
    services.course_progress_service.calculate.assert_not_awaited()


def test_student_course_progress_for_owner(
    client, services, student_id, course_id, instructor_id, instructor_headers
):
    course = Course(instructor_id=instructor_id, title="Python", course_id=course_id)
    services.course_service.get_course = AsyncMock(return_value=course)
    services.course_progress_service.calculate = AsyncMock(
        return_value=make_progress(student_id, course_id, quiz=True)
    )

    response = client.get(
        f"/v1/course-progress/{course_id}/student/{student_id}",
        headers=instructor_headers,
    )

    assert response.status_code == 200
    assert response.json()["total_progress"] == 56


def test_course_progress_is_student_only(client, services, course_id, admin_headers):
    response = client.get(f"/v1/course-progress/{course_id}", headers=admin_headers)

    assert response.status_code == 403
