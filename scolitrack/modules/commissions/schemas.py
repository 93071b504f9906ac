from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from scolitrack.modules.users.schemas import UserSummary


class CommissionCreate(BaseModel):
    name: str = Field(..., min_length=1)
    establishment_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    speciality: Optional[str] = None
    color_code: Optional[str] = None
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None


class CommissionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    speciality: Optional[str] = None
    color_code: Optional[str] = None
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None


class MemberAdd(BaseModel):
    user_id: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)


class MemberRoleUpdate(BaseModel):
    role: str = Field(..., min_length=1)


class MemberResponse(BaseModel):
    id: str
    commission_id: str
    user_id: str
    role: str
    user: Optional[UserSummary] = None


class CommissionResponse(BaseModel):
    id: str
    name: str
    establishment_id: str
    description: Optional[str] = None
    speciality: Optional[str] = None
    color_code: Optional[str] = None
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None
    members: List[MemberResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
