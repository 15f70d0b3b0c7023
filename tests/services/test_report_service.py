import pytest
import pytest_asyncio
from io import BytesIO
from unittest.mock import AsyncMock

from openpyxl import load_workbook

from training_attendance.backend.services.report_service import ReportService
from training_attendance.backend.services.exceptions import NotFoundError
from training_attendance.backend.tools.sheet_renderer import TABLE_HEADERS

from conftest import make_session, make_record


@pytest_asyncio.fixture
async def service_instance():
    mock_db_client = AsyncMock()
    return ReportService(db_client=mock_db_client), mock_db_client


@pytest.mark.asyncio
class TestReportService:

    async def test_export_session_builds_workbook_and_file_name(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = make_session(id=7, date="2024-01-10")
        mock_db_client.get_attendance_records.return_value = [make_record(id=1), make_record(id=2, student_id=43)]

        content, filename = await service.export_session(7)

        assert filename == "training-attendance-2024-01-10-session-7.xlsx"
        rows = list(load_workbook(BytesIO(content)).active.iter_rows(values_only=True))
        header_index = next(i for i, row in enumerate(rows) if list(row[:len(TABLE_HEADERS)]) == TABLE_HEADERS)
        assert len(rows) - header_index - 1 == 2

    async def test_export_missing_session(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_training_session.return_value = None
        with pytest.raises(NotFoundError):
            await service.export_session(7)

    async def test_export_date_uses_latest_session_of_day(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_latest_session_for_date.return_value = make_session(id=9, date="2024-01-10")
        mock_db_client.get_training_session.return_value = make_session(id=9, date="2024-01-10")
        mock_db_client.get_attendance_records.return_value = []

        _, filename = await service.export_date("2024-01-10")

        assert filename == "training-attendance-2024-01-10-session-9.xlsx"
        mock_db_client.get_latest_session_for_date.assert_awaited_once_with("2024-01-10")

    async def test_export_date_without_session(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_latest_session_for_date.return_value = None
        with pytest.raises(NotFoundError, match="No training session found for the specified date."):
            await service.export_date("2024-01-11")
