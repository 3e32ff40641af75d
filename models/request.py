from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

class RequestStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"

def _text_or_number(v):
    # Forms post quantities as numbers as often as strings
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v

class RequestBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requester: Optional[str] = ""
    category: Optional[str] = None
    details: Optional[str] = ""
    location: Optional[str] = None
    quantity: Optional[str] = ""
    team_id: Optional[str] = Field(None, alias="teamId")
    spoc_id: Optional[str] = Field(None, alias="spocId")

    @field_validator('quantity', mode="before")
    @classmethod
    def quantity_as_text(cls, v):
        return _text_or_number(v)

class RequestCreate(RequestBase):
    pass

class Request(RequestBase):
    id: str
    status: RequestStatus
    created_at: datetime = Field(..., alias="createdAt")

class RequestUpdate(BaseModel):
    """Partial update; `id` and `createdAt` are never part of it."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    requester: Optional[str] = None
    category: Optional[str] = None
    details: Optional[str] = None
    location: Optional[str] = None
    quantity: Optional[str] = None
    team_id: Optional[str] = Field(None, alias="teamId")
    spoc_id: Optional[str] = Field(None, alias="spocId")
    status: Optional[RequestStatus] = None

    @field_validator('quantity', mode="before")
    @classmethod
    def quantity_as_text(cls, v):
        return _text_or_number(v)

class RequestDeleted(BaseModel):
    id: str
