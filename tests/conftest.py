"""Shared fixtures.

The environment is set before the application is imported: tests run without
Cassandra and write log files to a temporary directory.
"""

import os
import tempfile
from collections.abc import Callable
from types import SimpleNamespace
from unittest.mock import Mock
from uuid import UUID, uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("CASSANDRA_ENABLED", "false")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnhub-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from learnhub.auth.security import create_access_token  # noqa: E402
from learnhub.main import create_app  # noqa: E402


@pytest.fixture
def app() -> FastAPI:
    """Fresh application without services on ``app.state``."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def instructor_id() -> UUID:
    return uuid4()


@pytest.fixture
def admin_id() -> UUID:
    return uuid4()


@pytest.fixture
def course_id() -> UUID:
    return uuid4()


def _auth_headers(user_id: UUID, role: str) -> dict[str, str]:
    token = create_access_token(
        {"sub": str(user_id), "email": f"{role}@example.com", "role": role}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_headers() -> Callable[[UUID, str], dict[str, str]]:
    return _auth_headers


@pytest.fixture
def student_headers(student_id: UUID) -> dict[str, str]:
    return _auth_headers(student_id, "student")


@pytest.fixture
def instructor_headers(instructor_id: UUID) -> dict[str, str]:
    return _auth_headers(instructor_id, "instructor")


@pytest.fixture
def admin_headers(admin_id: UUID) -> dict[str, str]:
    return _auth_headers(admin_id, "admin")


SERVICE_NAMES = (
    "course_service",
    "enrollment_service",
    "lesson_progress_service",
    "course_progress_service",
    "quiz_service",
    "short_question_service",
    "certificate_service",
    "dashboard_service",
)


@pytest.fixture
def services(app: FastAPI) -> SimpleNamespace:
    """Mock services published on ``app.state``; tests set the awaited methods."""
    mocks = SimpleNamespace(**{name: Mock(name=name) for name in SERVICE_NAMES})
    for name in SERVICE_NAMES:
        setattr(app.state, name, getattr(mocks, name))
    return mocks
