from pydantic import BaseModel, Field, ConfigDict, AliasChoices
from datetime import datetime
from typing import Optional


class SessionCreateRequest(BaseModel):
    """Request model for creating a training session. Omitted fields fall back to configured defaults."""
    date: Optional[str] = Field(None, validation_alias=AliasChoices("date", "training_date"), description="YYYY-MM-DD; defaults to today.")
    trainer_name: Optional[str] = Field(None, description="Required.")
    trainer_designation: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    training_type: Optional[str] = None
    training_title: Optional[str] = None
    training_content: Optional[str] = None
    session_start_time: Optional[datetime] = Field(None, description="Defaults to the creation time.")


class SessionResponse(BaseModel):
    """Response model for a training session."""
    id: int
    date: str
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

    model_config = ConfigDict(from_attributes=True)


class SessionCreateResponse(BaseModel):
    id: int
    message: str


class SessionEndResponse(BaseModel):
    message: str
    end_time: datetime
    duration: str
    duration_minutes: int


class MessageResponse(BaseModel):
    message: str
