import pytest
import pytest_asyncio
from datetime import datetime
from unittest.mock import AsyncMock, patch

from training_attendance.backend.services.attendance_service import AttendanceService, make_signature
from training_attendance.backend.services.exceptions import NotFoundError, DuplicateCheckInError, StorageError
from training_attendance.backend.db.db_client import DuplicateRecordError, MissingReferenceError
from training_attendance.backend.models.db_models import Role
from training_attendance.backend.config.config import settings

from conftest import make_user, make_session, make_record

SERVICE_MODULE = "training_attendance.backend.services.attendance_service"
CHECK_IN_TIME = datetime(2024, 1, 10, 10, 35)


@pytest_asyncio.fixture
async def service_instance():
    mock_db_client = AsyncMock()
    service = AttendanceService(db_client=mock_db_client)
    return service, mock_db_client


def test_make_signature_uses_full_name_by_default(student_user):
    assert make_signature(student_user) == "John Doe"


def test_make_signature_identifier_style(student_user, monkeypatch):
    monkeypatch.setattr(settings, "SIGNATURE_STYLE", "identifier")
    assert make_signature(student_user) == "USER42@TRAINING.COM"


@pytest.mark.asyncio
class TestAttendanceService:

    async def test_check_in_success(self, service_instance, student_user):
        """Scenario: student 42 checks into session 7 with comment 'none'."""
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(id=7)
        mock_db_client.get_user_by_id.return_value = student_user
        mock_db_client.get_attendance_record.return_value = None
        mock_db_client.add_attendance_record.return_value = make_record(id=100, session_id=7, student_id=42)

        with patch(f"{SERVICE_MODULE}.local_now", return_value=CHECK_IN_TIME):
            record = await service.check_in(session_id=7, student_id=42, comments="none")

        assert record.id == 100
        mock_db_client.add_attendance_record.assert_awaited_once_with(
            session_id=7,
            student_id=42,
            check_in_time=CHECK_IN_TIME,
            student_name="John Doe",
            signature="John Doe",
            job_title="Trainee",
            comments="none",
        )

    async def test_check_in_twice_raises_duplicate(self, service_instance, student_user):
        """Scenario: the second check-in of the same pair is rejected and nothing is inserted."""
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(id=7)
        mock_db_client.get_user_by_id.return_value = student_user
        mock_db_client.get_attendance_record.return_value = make_record(session_id=7, student_id=42)

        with pytest.raises(DuplicateCheckInError, match="Already checked in for this session."):
            await service.check_in(session_id=7, student_id=42, comments="none")
        mock_db_client.add_attendance_record.assert_not_called()

    async def test_check_in_concurrent_duplicate_maps_constraint_violation(self, service_instance, student_user):
        """Scenario: both requests pass the pre-check; the unique constraint rejects the loser."""
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(id=7)
        mock_db_client.get_user_by_id.return_value = student_user
        mock_db_client.get_attendance_record.return_value = None
        mock_db_client.add_attendance_record.side_effect = DuplicateRecordError("uq_attendance_session_student")

        with pytest.raises(DuplicateCheckInError):
            await service.check_in(session_id=7, student_id=42)

    async def test_check_in_into_session_deleted_concurrently_raises_not_found(self, service_instance, student_user):
        """Scenario: the session is deleted after the lookup; the foreign key rejects the insert."""
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(id=7)
        mock_db_client.get_user_by_id.return_value = student_user
        mock_db_client.get_attendance_record.return_value = None
        mock_db_client.add_attendance_record.side_effect = MissingReferenceError("attendance_session_id_fkey")

        with pytest.raises(NotFoundError, match="Training session not found."):
            await service.check_in(session_id=7, student_id=42)

    async def test_check_in_without_session_id_uses_current_session(self, service_instance, student_user):
        service, mock_db_client = service_instance
        mock_db_client.get_latest_session_for_date.return_value = make_session(id=11)
        mock_db_client.get_user_by_id.return_value = student_user
        mock_db_client.get_attendance_record.return_value = None
        mock_db_client.add_attendance_record.return_value = make_record(id=5, session_id=11)

        with patch("training_attendance.backend.services.session_service.local_today", return_value="2024-01-10"):
            record = await service.check_in(session_id=None, student_id=42)

        assert record.session_id == 11
        mock_db_client.get_latest_session_for_date.assert_awaited_once_with("2024-01-10")
        assert mock_db_client.add_attendance_record.call_args.kwargs["comments"] == ""

    async def test_check_in_without_session_today_raises_not_found(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_latest_session_for_date.return_value = None
        with pytest.raises(NotFoundError, match="No training session found for today."):
            await service.check_in(session_id=None, student_id=42)

    async def test_check_in_unknown_session_raises_not_found(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = None
        with pytest.raises(NotFoundError, match="Training session not found."):
            await service.check_in(session_id=999, student_id=42)

    async def test_check_in_into_ended_session_is_accepted(self, service_instance, student_user):
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(
            id=7, session_end_time=datetime(2024, 1, 10, 10, 50), duration_minutes=20
        )
        mock_db_client.get_user_by_id.return_value = student_user
        mock_db_client.get_attendance_record.return_value = None
        mock_db_client.add_attendance_record.return_value = make_record()

        await service.check_in(session_id=7, student_id=42)
        mock_db_client.add_attendance_record.assert_awaited_once()

    @pytest.mark.parametrize("student", [
        None,
        make_user(42, Role.STUDENT, is_active=False),
        make_user(42, Role.TEACHER),
    ])
    async def test_check_in_requires_an_active_student(self, service_instance, student):
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(id=7)
        mock_db_client.get_user_by_id.return_value = student
        with pytest.raises(NotFoundError, match="Student not found."):
            await service.check_in(session_id=7, student_id=42)

    async def test_check_in_database_failure_raises_storage_error(self, service_instance, student_user):
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(id=7)
        mock_db_client.get_user_by_id.return_value = student_user
        mock_db_client.get_attendance_record.return_value = None
        mock_db_client.add_attendance_record.side_effect = ConnectionError("db down")
        with pytest.raises(StorageError):
            await service.check_in(session_id=7, student_id=42)

    async def test_get_session_attendance_returns_session_and_ordered_records(self, service_instance):
        service, mock_db_client = service_instance
        records = [
            make_record(id=1, check_in_time=datetime(2024, 1, 10, 10, 31)),
            make_record(id=2, student_id=43, check_in_time=datetime(2024, 1, 10, 10, 33)),
        ]
        mock_db_client.get_training_session.return_value = make_session(id=7)
        mock_db_client.get_attendance_records.return_value = records

        session, attendance = await service.get_session_attendance(7)

        assert session.id == 7
        assert attendance == records
        mock_db_client.get_attendance_records.assert_awaited_once_with(7)

    async def test_get_session_attendance_of_missing_session(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = None
        with pytest.raises(NotFoundError):
            await service.get_session_attendance(7)
        mock_db_client.get_attendance_records.assert_not_called()

    async def test_get_today_attendance_without_session(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_latest_session_for_date.return_value = None
        with pytest.raises(NotFoundError):
            await service.get_today_attendance()

    async def test_find_for_student(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_attendance_record.return_value = None
        assert await service.find_for_student(7, 42) is None
        mock_db_client.get_attendance_record.assert_awaited_once_with(7, 42)
