import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator

from scolitrack.modules.users.schemas import UserSummary, validate_phone, validate_postal_code

EDUCATION_LEVEL_CODE_RE = re.compile(r"^[A-Z0-9_]{2,10}$")


class EstablishmentUpsert(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    postal_code: str
    city: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    website: Optional[HttpUrl] = None
    description: Optional[str] = Field(None, max_length=1000)
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None
    admin_id: str = Field(..., min_length=1)

    @field_validator("postal_code")
    @classmethod
    def check_postal_code(cls, v: str) -> str:
        return validate_postal_code(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class EstablishmentResponse(BaseModel):
    id: str
    name: str
    address: str
    postal_code: str
    city: str
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    logo_file_id: Optional[str] = None
    admin_id: Optional[str] = None
    admin: Optional[UserSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _check_code(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if not EDUCATION_LEVEL_CODE_RE.match(v):
        raise ValueError("Code must be 2 to 10 characters (uppercase letters, digits or underscore)")
    return v


class EducationLevelCreate(BaseModel):
    name: str = Field(..., min_length=1)
    code: str
    establishment_id: str = Field(..., min_length=1)

    @field_validator("code")
    @classmethod
    def check_code(cls, v: str) -> str:
        return _check_code(v)


class EducationLevelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = None

    @field_validator("code")
    @classmethod
    def check_code(cls, v: Optional[str]) -> Optional[str]:
        return _check_code(v)


class EducationLevelResponse(BaseModel):
    id: str
    name: str
    code: str
    establishment_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
