from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from uuid import UUID
from .db_models import Role


class SessionUser(BaseModel):
    """The slice of a user that is cached with a login session (no password digest)."""
    id: int
    identifier: str
    role: Role
    full_name: str
    job_title: Optional[str] = None
    department: Optional[str] = None


class UserSessionRedis(BaseModel):
    """
    Represents a user's login session stored in Redis.
    Deleting it (logout) invalidates every token issued for the user.
    """
    user_data: SessionUser = Field(..., description="User data captured at login.")
    session_id: UUID = Field(..., description="Unique ID for this specific session.")
    session_start_time: datetime = Field(..., description="The time this session began.")
    session_end_time: datetime = Field(..., description="The time this session will expire.")
