import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from training_attendance.backend.services.catalog_service import CatalogService
from training_attendance.backend.services.exceptions import ValidationError, NotFoundError, DuplicateIdentifierError
from training_attendance.backend.db.db_client import DuplicateRecordError
from training_attendance.backend.models.db_models import Department, JobTitle


@pytest_asyncio.fixture
async def service_instance():
    mock_db_client = AsyncMock()
    return CatalogService(db_client=mock_db_client), mock_db_client


@pytest.mark.asyncio
class TestCatalogService:

    async def test_create_department_strips_name(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.add_named_entry.return_value = Department(id=1, name="Quality")

        department = await service.create_department("  Quality ", "QA team")

        assert department.id == 1
        mock_db_client.add_named_entry.assert_awaited_once_with("departments", "Quality", "QA team")

    async def test_create_department_with_blank_name(self, service_instance):
        service, mock_db_client = service_instance
        with pytest.raises(ValidationError, match="Name is required."):
            await service.create_department("   ")
        mock_db_client.add_named_entry.assert_not_called()

    async def test_create_training_type_duplicate(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.add_named_entry.side_effect = DuplicateRecordError("training_types_name_key")
        with pytest.raises(DuplicateIdentifierError):
            await service.create_training_type("Safety Training")

    async def test_update_missing_department(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.update_named_entry.return_value = None
        with pytest.raises(NotFoundError, match="Catalog entry not found."):
            await service.update_department(99, "Quality")

    async def test_create_job_title(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.add_job_title.return_value = JobTitle(id=3, title="Inspector", department_id=1)

        job_title = await service.create_job_title("Inspector", 1)

        assert job_title.title == "Inspector"
        mock_db_client.add_job_title.assert_awaited_once_with("Inspector", 1)

    async def test_deactivate_job_title(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.deactivate_entry.return_value = True
        await service.deactivate_job_title(3)
        mock_db_client.deactivate_entry.assert_awaited_once_with("job_titles", 3)

    async def test_deactivate_missing_training_type(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.deactivate_entry.return_value = False
        with pytest.raises(NotFoundError):
            await service.deactivate_training_type(3)

    async def test_list_departments(self, service_instance):
        service, mock_db_client = service_instance
        mock_db_client.get_named_entries.return_value = [Department(id=1, name="Quality")]
        assert [d.name for d in await service.list_departments()] == ["Quality"]
        mock_db_client.get_named_entries.assert_awaited_once_with("departments")
