import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from scolitrack.config.privileges_config import USER_ROLE

POSTAL_CODE_RE = re.compile(r"^[0-9]{5}$")
PHONE_RE = re.compile(r"^((\+)33|0)[1-9](\d{2}){4}$")
PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^A-Za-z0-9]"), "a special character"),
)


def validate_password_strength(password: str) -> str:
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    for pattern, label in PASSWORD_RULES:
        if not pattern.search(password):
            raise ValueError(f"Password must contain {label}")
    return password


def validate_postal_code(value: Optional[str]) -> Optional[str]:
    if value and not POSTAL_CODE_RE.match(value):
        raise ValueError("Postal code must contain 5 digits")
    return value


def validate_phone(value: Optional[str]) -> Optional[str]:
    if value and not PHONE_RE.match(value.replace(" ", "")):
        raise ValueError("Invalid phone number")
    return value.replace(" ", "") if value else value


class NewPassword(BaseModel):
    """Password + confirmation pair with the password policy applied"""
    password: str = Field(..., max_length=64)
    confirm_password: str

    @field_validator("password")
    @classmethod
    def check_strength(cls, v: str) -> str:
        return validate_password_strength(v)

    @model_validator(mode="after")
    def check_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    role_name: str = USER_ROLE


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    birth_date: Optional[date] = None
    profession: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)

    @field_validator("gender")
    @classmethod
    def check_gender(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ("M", "F", "N"):
            raise ValueError("Gender must be M, F or N")
        return v

    @field_validator("postal_code")
    @classmethod
    def check_postal_code(cls, v: Optional[str]) -> Optional[str]:
        return validate_postal_code(v)

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class PasswordChange(NewPassword):
    current_password: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    role_name: Optional[str] = None
    email_verified: Optional[datetime] = None
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    birth_date: Optional[date] = None
    profession: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """User as embedded in other records"""
    id: str
    email: str
    name: Optional[str] = None
    role_name: Optional[str] = None
