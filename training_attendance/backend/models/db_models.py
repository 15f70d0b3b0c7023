# training_attendance/backend/models/db_models.py

from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class Role(str, Enum):
    """Closed set of user roles. Permission checks work on sets of roles, never on a two-way branch."""
    TEACHER = "teacher"
    STUDENT = "student"
    ADMIN = "admin"


# Roles allowed to manage sessions, students and exports.
STAFF_ROLES = frozenset({Role.TEACHER, Role.ADMIN})


class User(BaseModel):
    """
    Represents a user in the system, mapping to the 'users' table.
    """
    id: int
    identifier: str = Field(..., description="Login name (email or username), unique and stored lower-cased")
    password_hash: str = Field(..., repr=False)
    role: Role
    full_name: str
    job_title: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TrainingSession(BaseModel):
    """
    Represents a training session, mapping to the 'training_sessions' table.
    A session without session_end_time is still in progress.
    """
    id: int
    date: str = Field(..., description="Calendar day in YYYY-MM-DD form")
    department: Optional[str] = None
    location: Optional[str] = None
    trainer_name: str
    trainer_designation: Optional[str] = None
    training_type: Optional[str] = None
    training_title: Optional[str] = None
    training_content: Optional[str] = None
    session_start_time: datetime
    session_end_time: Optional[datetime] = None
    duration: Optional[str] = None
    duration_minutes: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.session_end_time is None


class AttendanceRecord(BaseModel):
    """
    Represents a single check-in, mapping to the 'attendance' table.
    student_name, signature and job_title are copies taken at check-in time.
    """
    id: int
    session_id: int = Field(..., description="FK linking to the training session")
    student_id: int = Field(..., description="FK linking to the student")
    check_in_time: datetime
    student_name: Optional[str] = None
    signature: Optional[str] = None
    job_title: Optional[str] = None
    comments: Optional[str] = None
    created_at: Optional[datetime] = None


class Department(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class JobTitle(BaseModel):
    id: int
    title: str
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class TrainingType(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
