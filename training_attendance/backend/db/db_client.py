import logging
from typing import Any, Dict, List, Optional
from datetime import datetime
import asyncpg
from ..models.db_models import (
    User, Role, TrainingSession, AttendanceRecord,
    Department, JobTitle, TrainingType
)
from .schema import DEFAULT_DEPARTMENTS, DEFAULT_JOB_TITLES, DEFAULT_TRAINING_TYPES

logger = logging.getLogger(__name__)


class DuplicateRecordError(Exception):
    """Raised when an INSERT/UPDATE hits a unique constraint."""
    def __init__(self, constraint: Optional[str] = None):
        super().__init__(f"Unique constraint violated: {constraint}")
        self.constraint = constraint


class MissingReferenceError(Exception):
    """Raised when an INSERT points at a row that no longer exists (foreign key violation)."""
    def __init__(self, constraint: Optional[str] = None):
        super().__init__(f"Foreign key constraint violated: {constraint}")
        self.constraint = constraint


_USER_PROFILE_COLUMNS = ("identifier", "full_name", "job_title", "phone", "department")

# Catalog tables sharing the (name, description) shape.
_NAMED_CATALOG_TABLES = {
    "departments": Department,
    "training_types": TrainingType,
}


def _affected_rows(status: str) -> int:
    """Turns an asyncpg command status such as 'DELETE 3' into 3."""
    try:
        return int(str(status).split()[-1])
    except (ValueError, IndexError):
        return 0


class AsyncPostgresClient:
    """
    PostgreSQL client that owns every query the application runs.
    """
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ===== Users =====

    async def add_user(self, identifier: str, password_hash: str, role: Role, full_name: str,
                       job_title: Optional[str] = None, phone: Optional[str] = None,
                       department: Optional[str] = None) -> User:
        """Inserts a new user. Raises DuplicateRecordError if the identifier is taken."""
        query = """
            INSERT INTO users (identifier, password_hash, role, full_name, job_title, phone, department)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *;
        """
        try:
            async with self._pool.acquire() as connection:
                record = await connection.fetchrow(
                    query, identifier, password_hash, Role(role).value, full_name, job_title, phone, department
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(e.constraint_name) from e
        return User(**record)

    async def add_user_if_missing(self, identifier: str, password_hash: str, role: Role, full_name: str,
                                  job_title: Optional[str] = None, department: Optional[str] = None) -> bool:
        """Bootstrap insert. Does nothing when the identifier already exists; returns True if a row was added."""
        query = """
            INSERT INTO users (identifier, password_hash, role, full_name, job_title, department)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (identifier) DO NOTHING;
        """
        async with self._pool.acquire() as connection:
            status = await connection.execute(
                query, identifier, password_hash, Role(role).value, full_name, job_title, department
            )
        return _affected_rows(status) == 1

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        query = "SELECT * FROM users WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, user_id)
            return User(**record) if record else None

    async def get_user_by_identifier(self, identifier: str) -> Optional[User]:
        query = "SELECT * FROM users WHERE identifier = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, identifier)
            return User(**record) if record else None

    async def get_users_by_role(self, role: Role, active_only: bool = True) -> List[User]:
        query = """
            SELECT * FROM users
            WHERE role = $1 AND (is_active OR NOT $2)
            ORDER BY full_name, id;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, Role(role).value, active_only)
            return [User(**record) for record in records]

    async def update_user_profile(self, user_id: int, fields: Dict[str, Any], role: Optional[Role] = None) -> Optional[User]:
        """
        Updates the given profile columns. Only columns in _USER_PROFILE_COLUMNS are accepted.
        Returns the updated user, or None if no row matched.
        """
        columns = [name for name in fields if name in _USER_PROFILE_COLUMNS]
        if not columns:
            return await self.get_user_by_id(user_id)

        assignments = ", ".join(f"{name} = ${index}" for index, name in enumerate(columns, start=2))
        values = [fields[name] for name in columns]
        query = f"UPDATE users SET {assignments} WHERE id = $1"
        if role is not None:
            query += f" AND role = ${len(columns) + 2}"
            values.append(Role(role).value)
        query += " RETURNING *;"

        try:
            async with self._pool.acquire() as connection:
                record = await connection.fetchrow(query, user_id, *values)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(e.constraint_name) from e
        return User(**record) if record else None

    async def set_user_active(self, user_id: int, is_active: bool) -> bool:
        query = "UPDATE users SET is_active = $2 WHERE id = $1;"
        async with self._pool.acquire() as connection:
            status = await connection.execute(query, user_id, is_active)
        return _affected_rows(status) == 1

    async def update_last_login(self, user_id: int, last_login: datetime):
        query = "UPDATE users SET last_login = $2 WHERE id = $1;"
        async with self._pool.acquire() as connection:
            await connection.execute(query, user_id, last_login)

    # ===== Training sessions =====

    async def add_training_session(self, date: str, trainer_name: str, session_start_time: datetime,
                                   department: Optional[str] = None, location: Optional[str] = None,
                                   trainer_designation: Optional[str] = None, training_type: Optional[str] = None,
                                   training_title: Optional[str] = None,
                                   training_content: Optional[str] = None) -> TrainingSession:
        query = """
            INSERT INTO training_sessions
                (date, department, location, trainer_name, trainer_designation,
                 training_type, training_title, training_content, session_start_time)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, date, department, location, trainer_name, trainer_designation,
                training_type, training_title, training_content, session_start_time
            )
            return TrainingSession(**record)

    async def get_training_session(self, session_id: int) -> Optional[TrainingSession]:
        query = "SELECT * FROM training_sessions WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, session_id)
            return TrainingSession(**record) if record else None

    async def get_training_sessions(self) -> List[TrainingSession]:
        """All sessions, newest day first and newest creation first within a day."""
        query = "SELECT * FROM training_sessions ORDER BY date DESC, created_at DESC, id DESC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [TrainingSession(**record) for record in records]

    async def get_latest_session_for_date(self, date: str) -> Optional[TrainingSession]:
        """The most recently created session of a given day."""
        query = """
            SELECT * FROM training_sessions
            WHERE date = $1
            ORDER BY created_at DESC, id DESC
            LIMIT 1;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, date)
            return TrainingSession(**record) if record else None

    async def end_training_session(self, session_id: int, end_time: datetime, duration: str,
                                   duration_minutes: int) -> Optional[TrainingSession]:
        """
        Ends a session in a single conditional UPDATE.
        Returns None when the session does not exist or has already been ended.
        """
        query = """
            UPDATE training_sessions
            SET session_end_time = $2, duration = $3, duration_minutes = $4
            WHERE id = $1 AND session_end_time IS NULL
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, session_id, end_time, duration, duration_minutes)
            return TrainingSession(**record) if record else None

    async def delete_training_session(self, session_id: int) -> bool:
        """Deletes a session's attendance and then the session itself, in one transaction."""
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                removed = await connection.execute("DELETE FROM attendance WHERE session_id = $1;", session_id)
                status = await connection.execute("DELETE FROM training_sessions WHERE id = $1;", session_id)
        deleted = _affected_rows(status) == 1
        if deleted:
            logger.info(f"Deleted training session {session_id} with {_affected_rows(removed)} attendance records.")
        return deleted

    # ===== Attendance =====

    async def add_attendance_record(self, session_id: int, student_id: int, check_in_time: datetime,
                                    student_name: Optional[str], signature: Optional[str],
                                    job_title: Optional[str], comments: Optional[str]) -> AttendanceRecord:
        """
        Inserts a check-in. The (session_id, student_id) unique constraint is the
        authoritative duplicate guard; a violation raises DuplicateRecordError.
        """
        query = """
            INSERT INTO attendance (session_id, student_id, check_in_time, student_name, signature, job_title, comments)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *;
        """
        try:
            async with self._pool.acquire() as connection:
                record = await connection.fetchrow(
                    query, session_id, student_id, check_in_time, student_name, signature, job_title, comments
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(e.constraint_name) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise MissingReferenceError(e.constraint_name) from e
        return AttendanceRecord(**record)

    async def get_attendance_records(self, session_id: int) -> List[AttendanceRecord]:
        """All check-ins of a session, earliest first."""
        query = "SELECT * FROM attendance WHERE session_id = $1 ORDER BY check_in_time ASC, id ASC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, session_id)
            return [AttendanceRecord(**record) for record in records]

    async def get_attendance_record(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        query = "SELECT * FROM attendance WHERE session_id = $1 AND student_id = $2;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, session_id, student_id)
            return AttendanceRecord(**record) if record else None

    # ===== Catalog: departments and training types =====

    async def get_named_entries(self, table: str) -> List[Any]:
        model = _NAMED_CATALOG_TABLES[table]
        query = f"SELECT * FROM {table} WHERE is_active ORDER BY name;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [model(**record) for record in records]

    async def add_named_entry(self, table: str, name: str, description: Optional[str]) -> Any:
        model = _NAMED_CATALOG_TABLES[table]
        query = f"INSERT INTO {table} (name, description) VALUES ($1, $2) RETURNING *;"
        try:
            async with self._pool.acquire() as connection:
                record = await connection.fetchrow(query, name, description)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(e.constraint_name) from e
        return model(**record)

    async def update_named_entry(self, table: str, entry_id: int, name: str, description: Optional[str]) -> Optional[Any]:
        model = _NAMED_CATALOG_TABLES[table]
        query = f"UPDATE {table} SET name = $2, description = $3 WHERE id = $1 RETURNING *;"
        try:
            async with self._pool.acquire() as connection:
                record = await connection.fetchrow(query, entry_id, name, description)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(e.constraint_name) from e
        return model(**record) if record else None

    async def deactivate_entry(self, table: str, entry_id: int) -> bool:
        if table not in _NAMED_CATALOG_TABLES and table != "job_titles":
            raise ValueError(f"Unknown catalog table: {table}")
        query = f"UPDATE {table} SET is_active = FALSE WHERE id = $1 AND is_active;"
        async with self._pool.acquire() as connection:
            status = await connection.execute(query, entry_id)
        return _affected_rows(status) == 1

    # ===== Catalog: job titles =====

    async def get_job_titles(self) -> List[JobTitle]:
        query = """
            SELECT jt.*, d.name AS department_name
            FROM job_titles jt
            LEFT JOIN departments d ON jt.department_id = d.id
            WHERE jt.is_active
            ORDER BY jt.title;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [JobTitle(**record) for record in records]

    async def add_job_title(self, title: str, department_id: Optional[int]) -> JobTitle:
        query = "INSERT INTO job_titles (title, department_id) VALUES ($1, $2) RETURNING *;"
        try:
            async with self._pool.acquire() as connection:
                record = await connection.fetchrow(query, title, department_id)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(e.constraint_name) from e
        return JobTitle(**record)

    async def update_job_title(self, entry_id: int, title: str, department_id: Optional[int]) -> Optional[JobTitle]:
        query = "UPDATE job_titles SET title = $2, department_id = $3 WHERE id = $1 RETURNING *;"
        try:
            async with self._pool.acquire() as connection:
                record = await connection.fetchrow(query, entry_id, title, department_id)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(e.constraint_name) from e
        return JobTitle(**record) if record else None

    # ===== Bootstrap =====

    async def seed_reference_data(self):
        """Inserts the default departments, job titles and training types. Existing rows are left untouched."""
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                await connection.executemany(
                    "INSERT INTO departments (name, description) VALUES ($1, $2) ON CONFLICT (name) DO NOTHING;",
                    DEFAULT_DEPARTMENTS
                )
                await connection.executemany(
                    """
                    INSERT INTO job_titles (title, department_id)
                    SELECT $1, id FROM departments WHERE name = $2
                    ON CONFLICT (title) DO NOTHING;
                    """,
                    DEFAULT_JOB_TITLES
                )
                await connection.executemany(
                    "INSERT INTO training_types (name, description) VALUES ($1, $2) ON CONFLICT (name) DO NOTHING;",
                    DEFAULT_TRAINING_TYPES
                )
