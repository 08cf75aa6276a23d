"""Course catalog endpoint tests."""

from unittest.mock import AsyncMock
from uuid import uuid4

from learnhub.courses.models import Course, Lesson
from learnhub.courses.service import LessonNotFoundError


def test_create_course_as_instructor(client, services, instructor_id, instructor_headers):
    course = Course(instructor_id=instructor_id, title="Intro to Python")
    services.course_service.create_course = AsyncMock(return_value=course)

    response = client.post(
        "/v1/courses",
        json={"title": "Intro to Python"},
        headers=instructor_headers,
    )

    assert response.status_code == 201
    assert response.json()["course_id"] == str(course.course_id)
    services.course_service.create_course.assert_awaited_once_with(
        instructor_id=instructor_id, title="Intro to Python", description=None
    )


def test_create_course_rejected_for_student(client, services, student_headers):
    services.course_service.create_course = AsyncMock()

    response = client.post(
        "/v1/courses", json={"title": "Intro to Python"}, headers=student_headers
    )

    assert response.status_code == 403
    services.course_service.create_course.assert_not_awaited()


def test_create_course_validation_error_lists_fields(
    client, services, instructor_headers
):
    response = client.post("/v1/courses", json={"title": "ab"}, headers=instructor_headers)

    assert response.status_code == 422
    body = response.json()
    assert body["error"] is True
    assert body["message"] == "Validation error"
    assert any(d["field"] == "body.title" for d in body["details"])


def test_get_unknown_course_returns_404(client, services, student_headers):
    services.course_service.get_course = AsyncMock(return_value=None)

    response = client.get(f"/v1/courses/{uuid4()}", headers=student_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Course not found"


def test_add_lesson_as_owner(
    client, services, course_id, instructor_id, instructor_headers
):
    course = Course(instructor_id=instructor_id, title="Python", course_id=course_id)
    lesson = Lesson(course_id=course_id, title="Variables", position=0)
    services.course_service.get_course = AsyncMock(return_value=course)
    services.course_service.add_lesson = AsyncMock(return_value=lesson)

    response = client.post(
        f"/v1/courses/{course_id}/lessons",
        json={"title": "Variables"},
        headers=instructor_headers,
    )

    assert response.status_code == 201
    assert response.json()["lesson_id"] == str(lesson.lesson_id)


def test_add_lesson_rejected_for_other_instructor(
    client, services, course_id, instructor_headers
):
    course = Course(instructor_id=uuid4(), title="Python", course_id=course_id)
    services.course_service.get_course = AsyncMock(return_value=course)
    services.course_service.add_lesson = AsyncMock()

    response = client.post(
        f"/v1/courses/{course_id}/lessons",
        json={"title": "Variables"},
        headers=instructor_headers,
    )

    assert response.status_code == 403
    services.course_service.add_lesson.assert_not_awaited()


def test_admin_manages_any_course(client, services, course_id, admin_headers):
    course = Course(instructor_id=uuid4(), title="Python", course_id=course_id)
    services.course_service.get_course = AsyncMock(return_value=course)
    services.course_service.remove_lesson = AsyncMock()

    response = client.delete(
        f"/v1/courses/{course_id}/lessons/{uuid4()}", headers=admin_headers
    )

    assert response.status_code == 204


def test_remove_unknown_lesson_returns_404(
    client, services, course_id, instructor_id, instructor_headers
):
    course = Course(instructor_id=instructor_id, title="Python", course_id=course_id)
    services.course_service.get_course = AsyncMock(return_value=course)
    services.course_service.remove_lesson = AsyncMock(side_effect=LessonNotFoundError())

    response = client.delete(
        f"/v1/courses/{course_id}/lessons/{uuid4()}", headers=instructor_headers
    )

    assert response.status_code == 404


def test_list_lessons(client, services, course_id, student_headers):
    lessons = [
        Lesson(course_id=course_id, title="One", position=0),
        Lesson(course_id=course_id, title="Two", position=1),
    ]
    services.course_service.list_lessons = AsyncMock(return_value=lessons)

    response = client.get(f"/v1/courses/{course_id}/lessons", headers=student_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [item["title"] for item in body["items"]] == ["One", "Two"]
