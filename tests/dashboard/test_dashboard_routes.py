"""Dashboard endpoint tests."""

from unittest.mock import AsyncMock

from learnhub.dashboard.service import AdminStats, InstructorStats, StudentStats


def test_student_dashboard(client, services, student_id, student_headers):
    services.dashboard_service.student_stats = AsyncMock(
        return_value=StudentStats(
            total_courses=2,
            approved=1,
            pending=1,
            completed=0,
            average_progress=36,
            certificates=0,
        )
    )

    response = client.get("/v1/dashboard/student", headers=student_headers)

    assert response.status_code == 200
    assert response.json()["average_progress"] == 36
    services.dashboard_service.student_stats.assert_awaited_once_with(student_id)


def test_instructor_dashboard(client, services, instructor_id, instructor_headers):
    services.dashboard_service.instructor_stats = AsyncMock(
        return_value=InstructorStats(
            total_courses=3, total_students=10, pending_approvals=2, completed_students=4
        )
    )

    response = client.get("/v1/dashboard/instructor", headers=instructor_headers)

    assert response.status_code == 200
    assert response.json() == {
        "total_courses": 3,
        "total_students": 10,
        "pending_approvals": 2,
        "completed_students": 4,
    }
    services.dashboard_service.instructor_stats.assert_awaited_once_with(instructor_id)


def test_admin_dashboard(client, services, admin_headers):
    services.dashboard_service.admin_stats = AsyncMock(
        return_value=AdminStats(total_courses=5, total_enrollments=40)
    )

    response = client.get("/v1/dashboard/admin", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["total_enrollments"] == 40


def test_admin_dashboard_forbidden_for_instructors(client, services, instructor_headers):
    response = client.get("/v1/dashboard/admin", headers=instructor_headers)

    assert response.status_code == 403


def test_student_dashboard_forbidden_for_instructors(client, services, instructor_headers):
    response = client.get("/v1/dashboard/student", headers=instructor_headers)

    assert response.status_code == 403


def test_dashboard_without_database(client, student_headers):
    response = client.get("/v1/dashboard/student", headers=student_headers)

    assert response.status_code == 503
