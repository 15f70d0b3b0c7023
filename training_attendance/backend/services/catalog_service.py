import logging
from typing import List, Optional

from ..db.db_client import AsyncPostgresClient, DuplicateRecordError
from ..models.db_models import Department, JobTitle, TrainingType
from .exceptions import ValidationError, NotFoundError, DuplicateIdentifierError, StorageError

logger = logging.getLogger(__name__)

DEPARTMENTS = "departments"
TRAINING_TYPES = "training_types"
JOB_TITLES = "job_titles"


def _require_name(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} is required.")
    return value.strip()


class CatalogService:
    """
    Reference data offered to the session and student forms: departments,
    job titles and training types. Entries are soft-deleted.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    # --- departments & training types share the (name, description) shape ---

    async def _list_named(self, table: str) -> list:
        try:
            return await self.db_client.get_named_entries(table)
        except Exception as e:
            logger.error(f"Database error while listing {table}.", exc_info=True)
            raise StorageError("A server error occurred while reading the catalog.") from e

    async def _create_named(self, table: str, name: Optional[str], description: Optional[str]):
        name = _require_name(name, "Name")
        try:
            entry = await self.db_client.add_named_entry(table, name, description)
        except DuplicateRecordError as e:
            raise DuplicateIdentifierError(f"'{name}' already exists.") from e
        except Exception as e:
            logger.error(f"Database error while adding to {table}.", exc_info=True)
            raise StorageError("A server error occurred while updating the catalog.") from e
        logger.info(f"Catalog entry {entry.id} ('{name}') added to {table}.")
        return entry

    async def _update_named(self, table: str, entry_id: int, name: Optional[str], description: Optional[str]):
        name = _require_name(name, "Name")
        try:
            entry = await self.db_client.update_named_entry(table, entry_id, name, description)
        except DuplicateRecordError as e:
            raise DuplicateIdentifierError(f"'{name}' already exists.") from e
        except Exception as e:
            logger.error(f"Database error while updating {table} entry {entry_id}.", exc_info=True)
            raise StorageError("A server error occurred while updating the catalog.") from e
        if entry is None:
            raise NotFoundError("Catalog entry not found.")
        return entry

    async def _deactivate(self, table: str, entry_id: int):
        try:
            deactivated = await self.db_client.deactivate_entry(table, entry_id)
        except Exception as e:
            logger.error(f"Database error while deactivating {table} entry {entry_id}.", exc_info=True)
            raise StorageError("A server error occurred while updating the catalog.") from e
        if not deactivated:
            raise NotFoundError("Catalog entry not found.")
        logger.info(f"Catalog entry {entry_id} in {table} deactivated.")

    async def list_departments(self) -> List[Department]:
        return await self._list_named(DEPARTMENTS)

    async def create_department(self, name: Optional[str], description: Optional[str] = None) -> Department:
        return await self._create_named(DEPARTMENTS, name, description)

    async def update_department(self, entry_id: int, name: Optional[str], description: Optional[str] = None) -> Department:
        return await self._update_named(DEPARTMENTS, entry_id, name, description)

    async def deactivate_department(self, entry_id: int):
        await self._deactivate(DEPARTMENTS, entry_id)

    async def list_training_types(self) -> List[TrainingType]:
        return await self._list_named(TRAINING_TYPES)

    async def create_training_type(self, name: Optional[str], description: Optional[str] = None) -> TrainingType:
        return await self._create_named(TRAINING_TYPES, name, description)

    async def update_training_type(self, entry_id: int, name: Optional[str], description: Optional[str] = None) -> TrainingType:
        return await self._update_named(TRAINING_TYPES, entry_id, name, description)

    async def deactivate_training_type(self, entry_id: int):
        await self._deactivate(TRAINING_TYPES, entry_id)

    # --- job titles ---

    async def list_job_titles(self) -> List[JobTitle]:
        try:
            return await self.db_client.get_job_titles()
        except Exception as e:
            logger.error("Database error while listing job titles.", exc_info=True)
            raise StorageError("A server error occurred while reading the catalog.") from e

    async def create_job_title(self, title: Optional[str], department_id: Optional[int] = None) -> JobTitle:
        title = _require_name(title, "Title")
        try:
            entry = await self.db_client.add_job_title(title, department_id)
        except DuplicateRecordError as e:
            raise DuplicateIdentifierError(f"'{title}' already exists.") from e
        except Exception as e:
            logger.error("Database error while adding a job title.", exc_info=True)
            raise StorageError("A server error occurred while updating the catalog.") from e
        logger.info(f"Job title {entry.id} ('{title}') added.")
        return entry

    async def update_job_title(self, entry_id: int, title: Optional[str], department_id: Optional[int] = None) -> JobTitle:
        title = _require_name(title, "Title")
        try:
            entry = await self.db_client.update_job_title(entry_id, title, department_id)
        except DuplicateRecordError as e:
            raise DuplicateIdentifierError(f"'{title}' already exists.") from e
        except Exception as e:
            logger.error(f"Database error while updating job title {entry_id}.", exc_info=True)
            raise StorageError("A server error occurred while updating the catalog.") from e
        if entry is None:
            raise NotFoundError("Catalog entry not found.")
        return entry

    async def deactivate_job_title(self, entry_id: int):
        await self._deactivate(JOB_TITLES, entry_id)
