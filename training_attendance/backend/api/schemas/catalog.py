from pydantic import BaseModel, ConfigDict
from typing import Optional


class NamedEntryRequest(BaseModel):
    """Body for departments and training types."""
    name: Optional[str] = None
    description: Optional[str] = None


class JobTitleRequest(BaseModel):
    title: Optional[str] = None
    department_id: Optional[int] = None


class NamedEntryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class JobTitleResponse(BaseModel):
    id: int
    title: str
    department_id: Optional[int] = None
    department_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CatalogCreateResponse(BaseModel):
    id: int
    message: str
