from fastapi import APIRouter, Depends

from scolitrack.config import settings
from scolitrack.core.authorization import Caller
from scolitrack.core.dependencies import get_current_caller, get_user_repository
from scolitrack.core.encryption import EncryptedRepository
from scolitrack.core.mailer import Mailer, get_mailer
from scolitrack.core.responses import ApiResponse
from scolitrack.core.security import TokenService, get_token_service
from scolitrack.modules.auth.schemas import (
    LoginRequest, TokenResponse, ActivateAccountRequest,
    ForgotPasswordRequest, ResetPasswordRequest, MeResponse
)
from scolitrack.modules.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    users: EncryptedRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
    mailer: Mailer = Depends(get_mailer)
) -> AuthService:
    return AuthService(users, tokens, mailer, reset_ttl_minutes=settings.reset_token_ttl_minutes)


@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return ApiResponse(data=service.login(login_data), feedback="Logged in")


@router.get("/me", response_model=ApiResponse[MeResponse])
async def get_current_user(
    caller: Caller = Depends(get_current_caller),
    service: AuthService = Depends(get_auth_service)
):
    """Get the current user's profile and privileges"""
    return ApiResponse(data=service.me(caller), feedback="Profile retrieved")


@router.post("/activate-account", response_model=ApiResponse[None])
async def activate_account(
    activation: ActivateAccountRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Activate an account and set its password"""
    service.activate_account(activation.token, activation.password)
    return ApiResponse(feedback="Account activated, you can now log in")


@router.post("/forgot-password", response_model=ApiResponse[None])
async def forgot_password(
    request_data: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    return ApiResponse(feedback=service.request_password_reset(request_data.email))


@router.post("/reset-password", response_model=ApiResponse[None])
async def reset_password(
    reset_data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    service.reset_password(reset_data.token, reset_data.password)
    return ApiResponse(feedback="Password updated")
