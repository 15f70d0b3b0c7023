import logging
import re
from typing import Any, Dict, List, Optional

from ..config.config import settings
from ..db.db_client import AsyncPostgresClient, DuplicateRecordError
from ..models.db_models import User, Role
from ..tools.clock import local_now
from ..tools.passwords import get_password_hash, verify_password
from .exceptions import ValidationError, AuthError, NotFoundError, DuplicateIdentifierError, StorageError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

# One message for every login failure so responses do not reveal which identifiers exist.
INVALID_CREDENTIALS = "Invalid username or password."


def normalize_identifier(identifier: Optional[str]) -> str:
    return (identifier or "").strip().lower()


class UserService:
    """
    Credential store: user lookup, password checks, provisioning and soft deletion.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def find_by_identifier(self, identifier: str) -> Optional[User]:
        try:
            return await self.db_client.get_user_by_identifier(normalize_identifier(identifier))
        except Exception as e:
            logger.error("Database error while looking up a user.", exc_info=True)
            raise StorageError("A server error occurred while looking up the user.") from e

    async def get_user(self, user_id: int) -> User:
        try:
            user = await self.db_client.get_user_by_id(user_id)
        except Exception as e:
            logger.error(f"Database error while fetching user {user_id}.", exc_info=True)
            raise StorageError("A server error occurred while fetching the user.") from e
        if not user:
            raise NotFoundError("User not found.")
        return user

    def verify_password(self, plain_password: str, password_hash: str) -> bool:
        return verify_password(plain_password, password_hash)

    async def authenticate(self, identifier: Optional[str], password: Optional[str]) -> User:
        """Returns the active user owning these credentials, else raises AuthError."""
        if not normalize_identifier(identifier) or not password:
            raise ValidationError("Username and password are required.")

        user = await self.find_by_identifier(identifier)
        if user is None:
            logger.warning(f"Login failed for '{normalize_identifier(identifier)}': unknown identifier.")
            raise AuthError(INVALID_CREDENTIALS)
        if not user.is_active:
            logger.warning(f"Login failed for '{user.identifier}': account is inactive.")
            raise AuthError(INVALID_CREDENTIALS)
        if not self.verify_password(password, user.password_hash):
            logger.warning(f"Login failed for '{user.identifier}': wrong password.")
            raise AuthError(INVALID_CREDENTIALS)

        last_login = local_now()
        try:
            await self.db_client.update_last_login(user.id, last_login)
        except Exception as e:
            logger.error(f"Database error while stamping last login of user {user.id}.", exc_info=True)
            raise StorageError("A server error occurred during login.") from e
        return user.model_copy(update={"last_login": last_login})

    async def create_user(self, identifier: str, password: str, role: Role, full_name: str,
                          job_title: Optional[str] = None, phone: Optional[str] = None,
                          department: Optional[str] = None) -> User:
        try:
            user = await self.db_client.add_user(
                identifier=normalize_identifier(identifier),
                password_hash=get_password_hash(password),
                role=role,
                full_name=full_name.strip(),
                job_title=job_title,
                phone=phone,
                department=department,
            )
        except DuplicateRecordError as e:
            logger.warning(f"Identifier '{normalize_identifier(identifier)}' is already registered.")
            raise DuplicateIdentifierError("Email already registered. Please use a different email address.") from e
        except Exception as e:
            logger.error("Database error while creating a user.", exc_info=True)
            raise StorageError("A server error occurred while creating the user.") from e
        logger.info(f"User {user.id} ('{user.identifier}', {user.role.value}) created.")
        return user

    async def create_student(self, email: Optional[str], password: Optional[str], full_name: Optional[str],
                             job_title: Optional[str] = None, phone: Optional[str] = None,
                             department: Optional[str] = None) -> User:
        if not normalize_identifier(email) or not password or not (full_name or "").strip():
            raise ValidationError("Email, password, and full name are required.")
        if not EMAIL_PATTERN.match(normalize_identifier(email)):
            raise ValidationError("Please enter a valid email address.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")

        return await self.create_user(
            identifier=email,
            password=password,
            role=Role.STUDENT,
            full_name=full_name,
            job_title=job_title or "",
            phone=phone or "",
            department=department or "",
        )

    async def list_students(self) -> List[User]:
        try:
            return await self.db_client.get_users_by_role(Role.STUDENT, active_only=True)
        except Exception as e:
            logger.error("Database error while listing students.", exc_info=True)
            raise StorageError("A server error occurred while listing students.") from e

    async def update_student(self, student_id: int, fields: Dict[str, Any]) -> User:
        """Edits a student's profile. Past attendance rows keep the values captured at check-in."""
        changes = {name: value for name, value in fields.items() if value is not None}
        if "identifier" in changes:
            changes["identifier"] = normalize_identifier(changes["identifier"])
            if not EMAIL_PATTERN.match(changes["identifier"]):
                raise ValidationError("Please enter a valid email address.")
        if "full_name" in changes and not changes["full_name"].strip():
            raise ValidationError("Full name cannot be empty.")

        try:
            user = await self.db_client.update_user_profile(student_id, changes, role=Role.STUDENT)
        except DuplicateRecordError as e:
            raise DuplicateIdentifierError("Email already registered. Please use a different email address.") from e
        except Exception as e:
            logger.error(f"Database error while updating student {student_id}.", exc_info=True)
            raise StorageError("A server error occurred while updating the student.") from e
        if user is None or user.role != Role.STUDENT:
            raise NotFoundError("Student not found.")
        logger.info(f"Student {student_id} profile updated ({', '.join(sorted(changes)) or 'no changes'}).")
        return user

    async def set_active(self, user_id: int, is_active: bool):
        try:
            updated = await self.db_client.set_user_active(user_id, is_active)
        except Exception as e:
            logger.error(f"Database error while changing the active flag of user {user_id}.", exc_info=True)
            raise StorageError("A server error occurred while updating the user.") from e
        if not updated:
            raise NotFoundError("User not found.")
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}.")

    async def deactivate_student(self, student_id: int):
        student = await self.get_user(student_id)
        if student.role != Role.STUDENT:
            raise NotFoundError("Student not found.")
        await self.set_active(student_id, False)

    async def seed_default_users(self):
        """Creates the bootstrap admin, teacher and student accounts when they are missing."""
        defaults = [
            (settings.SEED_ADMIN_EMAIL, settings.SEED_ADMIN_PASSWORD, Role.ADMIN, "System Administrator", "TCO", "IT Department"),
            (settings.SEED_TEACHER_EMAIL, settings.SEED_TEACHER_PASSWORD, Role.TEACHER, "Training Manager", "Manager", "Training Department"),
            (settings.SEED_STUDENT_EMAIL, settings.SEED_STUDENT_PASSWORD, Role.STUDENT, "John Doe", "Trainee", "Manufacturing"),
        ]
        for identifier, password, role, full_name, job_title, department in defaults:
            created = await self.db_client.add_user_if_missing(
                identifier=normalize_identifier(identifier),
                password_hash=get_password_hash(password),
                role=role,
                full_name=full_name,
                job_title=job_title,
                department=department,
            )
            if created:
                logger.info(f"Seeded default {role.value} account '{identifier}'.")
