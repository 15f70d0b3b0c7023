# tests/conftest.py
import asyncio
import os
import sys
import tempfile
from datetime import datetime

# Settings are read at import time, so the test environment has to be in place first.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "training-attendance-test-logs"))
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("SIGNATURE_STYLE", "full_name")

import pytest
from fastapi.testclient import TestClient

from training_attendance.backend.main import app
from training_attendance.backend.api.auth import get_current_user
from training_attendance.backend.models.db_models import User, Role, TrainingSession, AttendanceRecord
from training_attendance.backend.models.redis_models import SessionUser

if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


# ===== Sample data =====

def make_user(id: int = 42, role: Role = Role.STUDENT, **overrides) -> User:
    data = dict(
        id=id,
        identifier=f"user{id}@training.com",
        password_hash="not-a-real-digest",
        role=role,
        full_name=f"User {id}",
        job_title="Operator",
        department="Manufacturing",
        is_active=True,
    )
    data.update(overrides)
    return User(**data)


def make_session(id: int = 7, **overrides) -> TrainingSession:
    data = dict(
        id=id,
        date="2024-01-10",
        department="Manufacturing Facility",
        location="Manufacturing Facility",
        trainer_name="Jane Doe",
        trainer_designation="Safety Officer",
        training_type="Code of Conduct - Daily Orientation",
        training_title="Code of Conduct - Daily Orientation",
        training_content="Plant safety rules",
        session_start_time=datetime(2024, 1, 10, 10, 30),
        created_at=datetime(2024, 1, 10, 10, 30),
    )
    data.update(overrides)
    return TrainingSession(**data)


def make_record(id: int = 1, session_id: int = 7, student_id: int = 42, **overrides) -> AttendanceRecord:
    data = dict(
        id=id,
        session_id=session_id,
        student_id=student_id,
        check_in_time=datetime(2024, 1, 10, 10, 35),
        student_name=f"User {student_id}",
        signature=f"User {student_id}",
        job_title="Operator",
        comments="none",
    )
    data.update(overrides)
    return AttendanceRecord(**data)


def session_user_of(user: User) -> SessionUser:
    return SessionUser(
        id=user.id, identifier=user.identifier, role=user.role,
        full_name=user.full_name, job_title=user.job_title, department=user.department
    )


@pytest.fixture
def student_user() -> User:
    return make_user(42, Role.STUDENT, full_name="John Doe", job_title="Trainee")


@pytest.fixture
def teacher_user() -> User:
    return make_user(2, Role.TEACHER, identifier="teacher@training.com", full_name="Training Manager", job_title="Manager")


# ===== API fixtures =====

@pytest.fixture
def client():
    """TestClient without lifespan: every backing service is provided through dependency_overrides."""
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """Makes every request run as the given user."""
    def _login_as(user: User):
        app.dependency_overrides[get_current_user] = lambda: session_user_of(user)
    return _login_as
