# training_attendance/backend/api/schemas/user.py
from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from datetime import datetime
from typing import Optional

from ...models.db_models import Role

class LoginRequest(BaseModel):
    """Accepts the login name as `identifier`, `email` or `username`."""
    identifier: Optional[str] = Field(None, validation_alias=AliasChoices("identifier", "email", "username"))
    password: Optional[str] = None

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserResponse(BaseModel):
    id: int
    identifier: str
    role: Role
    full_name: str
    job_title: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    token: Token
    user: UserResponse

class MeResponse(BaseModel):
    user: UserResponse

# Internal representation of JWT data
class TokenData(BaseModel):
    id: Optional[int] = None
    role: Optional[Role] = None


class StudentCreateRequest(BaseModel):
    email: Optional[str] = Field(None, validation_alias=AliasChoices("email", "username", "identifier"))
    password: Optional[str] = None
    full_name: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None

class StudentUpdateRequest(BaseModel):
    email: Optional[str] = Field(None, validation_alias=AliasChoices("email", "username", "identifier"))
    full_name: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None

class StudentCreateResponse(BaseModel):
    id: int
    message: str
    user: UserResponse

class StudentUpdateResponse(BaseModel):
    message: str
    user: UserResponse
