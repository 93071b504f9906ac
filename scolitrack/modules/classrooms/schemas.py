from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from scolitrack.modules.users.schemas import UserSummary


class ClassRoomCreate(BaseModel):
    name: str = Field(..., min_length=1)
    education_level_ids: List[str] = Field(..., min_length=1)
    establishment_id: str = Field(..., min_length=1)
    capacity: Optional[int] = Field(None, ge=0)
    color_code: Optional[str] = None
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None


class ClassRoomUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    education_level_ids: Optional[List[str]] = Field(None, min_length=1)
    capacity: Optional[int] = Field(None, ge=0)
    color_code: Optional[str] = None
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None


class PersonnelAssign(BaseModel):
    user_id: str = Field(..., min_length=1)
    role_in_class: Optional[str] = None


class EducationLevelSummary(BaseModel):
    id: str
    name: str
    code: str


class PersonnelResponse(BaseModel):
    id: str
    class_room_id: str
    user_id: str
    role_in_class: Optional[str] = None
    user: Optional[UserSummary] = None


class ClassRoomResponse(BaseModel):
    id: str
    name: str
    establishment_id: str
    capacity: Optional[int] = None
    color_code: Optional[str] = None
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None
    education_levels: List[EducationLevelSummary] = []
    personnel: List[PersonnelResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
