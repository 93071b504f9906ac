from fastapi import APIRouter, Depends, Query
from supabase import Client
from typing import List, Optional

from scolitrack.config import settings
from scolitrack.config.privileges_config import PrivilegeName
from scolitrack.core.authorization import Caller, authorize
from scolitrack.core.dependencies import (
    get_current_caller,
    get_user_repository,
    pagination_meta,
    require_privilege,
)
from scolitrack.core.encryption import EncryptedRepository
from scolitrack.core.exceptions import Forbidden
from scolitrack.core.mailer import Mailer, get_mailer
from scolitrack.core.responses import ApiResponse
from scolitrack.database.supabase_client import get_supabase
from scolitrack.modules.roles.routes import get_role_service
from scolitrack.modules.roles.schemas import RoleAssign, UserRoleResponse
from scolitrack.modules.roles.service import RoleService
from scolitrack.modules.users.schemas import UserCreate, UserUpdate, UserResponse, PasswordChange
from scolitrack.modules.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(
    supabase: Client = Depends(get_supabase),
    users: EncryptedRepository = Depends(get_user_repository),
    mailer: Mailer = Depends(get_mailer)
) -> UserService:
    return UserService(supabase, users, mailer, activation_ttl_hours=settings.activation_token_ttl_hours)


@router.get("", response_model=ApiResponse[List[UserResponse]])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role_name: Optional[str] = None,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service)
):
    """List users, paginated"""
    users, total = service.list_users(page=page, limit=limit, role_name=role_name)
    return ApiResponse(data=users, feedback="Users retrieved", meta=pagination_meta(total, page, limit))


@router.post("", response_model=ApiResponse[UserResponse], status_code=201)
async def create_user(
    user_data: UserCreate,
    caller: Caller = Depends(require_privilege(PrivilegeName.MANAGE_USERS)),
    service: UserService = Depends(get_user_service)
):
    """Create a user and send the activation email"""
    return ApiResponse(data=service.create_user(user_data), feedback="User created, activation email sent")


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: str,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service)
):
    return ApiResponse(data=service.get_user(user_id), feedback="User retrieved")


@router.patch("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service)
):
    """Update a profile (own profile, or any profile with UPDATE_DATA)"""
    if caller.id != user_id:
        authorize(caller, PrivilegeName.UPDATE_DATA)
    return ApiResponse(data=service.update_user(user_id, user_data), feedback="Profile updated")


@router.put("/{user_id}/password", response_model=ApiResponse[None])
async def change_password(
    user_id: str,
    password_data: PasswordChange,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service)
):
    if caller.id != user_id:
        raise Forbidden("You can only change your own password")
    service.change_password(user_id, password_data)
    return ApiResponse(feedback="Password updated")


@router.put("/{user_id}/role", response_model=ApiResponse[UserRoleResponse])
async def assign_role(
    user_id: str,
    role_data: RoleAssign,
    caller: Caller = Depends(require_privilege(PrivilegeName.UPDATE_DATA)),
    service: RoleService = Depends(get_role_service)
):
    """Assign a role to a user"""
    user = service.assign_role_to_user(user_id, role_data.role_name)
    return ApiResponse(data=user, feedback=f"Role {user.role_name} assigned")
