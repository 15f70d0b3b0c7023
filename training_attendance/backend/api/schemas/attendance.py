from pydantic import BaseModel, Field, ConfigDict, AliasChoices
from datetime import datetime
from typing import List, Optional

from .session import SessionResponse


class CheckInRequest(BaseModel):
    """Without a session id the check-in goes to today's current session."""
    session_id: Optional[int] = Field(None, validation_alias=AliasChoices("session_id", "sessionId"))
    comments: Optional[str] = Field(None, validation_alias=AliasChoices("comments", "comment"))


class CheckInResponse(BaseModel):
    message: str
    attendance_id: int
    check_in_time: datetime


class AttendanceRecordResponse(BaseModel):
    """A check-in as captured at check-in time."""
    id: int
    session_id: int
    student_id: int
    check_in_time: datetime
    student_name: Optional[str] = None
    signature: Optional[str] = None
    job_title: Optional[str] = None
    comments: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SessionAttendanceResponse(BaseModel):
    session: SessionResponse
    attendance: List[AttendanceRecordResponse]
