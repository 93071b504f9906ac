from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class PrivilegeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class PrivilegeUpdate(BaseModel):
    description: Optional[str] = None


class PrivilegeResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
