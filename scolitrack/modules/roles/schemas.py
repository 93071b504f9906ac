from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from scolitrack.modules.privileges.schemas import PrivilegeResponse


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    privilege_ids: List[str] = []


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    privilege_ids: Optional[List[str]] = None


class RoleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_permanent: bool = False
    privileges: List[PrivilegeResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleAssign(BaseModel):
    role_name: str = Field(..., min_length=1)


class UserRoleResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role_name: Optional[str] = None
