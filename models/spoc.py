from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from enum import Enum

class UnlockMethod(str, Enum):
    PIN = "pin"
    SPOC_ID = "spocId"

class UnlockRequest(BaseModel):
    pin: Optional[str] = None

    @field_validator('pin', mode="before")
    @classmethod
    def pin_as_text(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

class UnlockResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    expires_in: int = Field(..., alias="expiresIn")
    method: UnlockMethod
    spoc_id: Optional[str] = Field(None, alias="spocId")

class ValidateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    spoc_id: Optional[str] = Field(None, alias="spocId")
