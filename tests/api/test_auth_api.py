import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

from training_attendance.backend.main import app
from training_attendance.backend.api.auth import create_access_token
from training_attendance.backend.api.dependencies import get_redis_client, get_user_service
from training_attendance.backend.services.exceptions import AuthError, ValidationError
from training_attendance.backend.services.user_service import INVALID_CREDENTIALS
from training_attendance.backend.models.redis_models import UserSessionRedis

from conftest import session_user_of


@pytest.fixture
def mock_redis_client():
    redis_client = AsyncMock()
    app.dependency_overrides[get_redis_client] = lambda: redis_client
    return redis_client


@pytest.fixture
def mock_user_service():
    user_service = AsyncMock()
    app.dependency_overrides[get_user_service] = lambda: user_service
    return user_service


def _stored_session(user) -> UserSessionRedis:
    now = datetime.now(timezone.utc)
    return UserSessionRedis(
        user_data=session_user_of(user), session_id=uuid4(),
        session_start_time=now, session_end_time=now + timedelta(hours=1)
    )


def _bearer(user) -> dict:
    token = create_access_token({"id": user.id, "role": user.role.value}, timedelta(minutes=5))
    return {"Authorization": f"Bearer {token}"}


def test_login_success(client, mock_redis_client, mock_user_service, teacher_user):
    """Scenario: valid credentials return a token and the user, and open a server-side session."""
    mock_user_service.authenticate.return_value = teacher_user

    response = client.post("/api/v1/auth/login", json={"email": "teacher@training.com", "password": "teacher123"})

    assert response.status_code == 200
    data = response.json()
    assert data["token"]["access_token"]
    assert data["token"]["token_type"] == "bearer"
    assert data["user"]["role"] == "teacher"
    assert "password_hash" not in data["user"]
    mock_user_service.authenticate.assert_awaited_once_with("teacher@training.com", "teacher123")
    saved_session = mock_redis_client.save_user_session.call_args[0][0]
    assert saved_session.user_data.id == teacher_user.id


def test_login_wrong_password_fail(client, mock_redis_client, mock_user_service):
    """Scenario: wrong password gives 401 and no token."""
    mock_user_service.authenticate.side_effect = AuthError(INVALID_CREDENTIALS)

    response = client.post("/api/v1/auth/login", json={"username": "student@training.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == INVALID_CREDENTIALS
    assert "token" not in response.json()
    mock_redis_client.save_user_session.assert_not_called()


def test_login_missing_fields_fail(client, mock_redis_client, mock_user_service):
    mock_user_service.authenticate.side_effect = ValidationError("Username and password are required.")
    response = client.post("/api/v1/auth/login", json={})
    assert response.status_code == 400


def test_token_endpoint_accepts_form_login(client, mock_redis_client, mock_user_service, student_user):
    mock_user_service.authenticate.return_value = student_user
    response = client.post("/api/v1/auth/token", data={"username": "student@training.com", "password": "student123"})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


def test_me_with_live_session(client, mock_redis_client, mock_user_service, student_user):
    mock_redis_client.get_user_session.return_value = _stored_session(student_user)
    mock_user_service.get_user.return_value = student_user

    response = client.get("/api/v1/auth/me", headers=_bearer(student_user))

    assert response.status_code == 200
    assert response.json()["user"]["id"] == student_user.id


def test_token_after_logout_is_rejected(client, mock_redis_client, student_user):
    """Scenario: a token whose server-side session was removed no longer authenticates."""
    mock_redis_client.get_user_session.return_value = None

    response = client.get("/api/v1/auth/me", headers=_bearer(student_user))

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_missing_token_is_rejected(client, mock_redis_client):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401


def test_invalid_token_is_rejected(client, mock_redis_client):
    response = client.post("/api/v1/auth/logout", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


def test_expired_token_is_rejected(client, mock_redis_client, student_user):
    mock_redis_client.get_user_session.return_value = _stored_session(student_user)
    token = create_access_token({"id": student_user.id, "role": "student"}, timedelta(minutes=-1))
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_logout_success(client, mock_redis_client, student_user):
    mock_redis_client.get_user_session.return_value = _stored_session(student_user)

    response = client.post("/api/v1/auth/logout", headers=_bearer(student_user))

    assert response.status_code == 204
    mock_redis_client.delete_user_session.assert_awaited_once_with(student_user.id)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
