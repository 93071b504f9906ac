from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

from scolitrack.modules.users.schemas import NewPassword, UserResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role_name: Optional[str] = None


class ActivateAccountRequest(NewPassword):
    token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(NewPassword):
    token: str = Field(..., min_length=1)


class MeResponse(UserResponse):
    privileges: List[str] = []
