from fastapi import APIRouter, Depends
from supabase import Client
from typing import List

from scolitrack.config.privileges_config import PrivilegeName
from scolitrack.core.authorization import Caller
from scolitrack.core.dependencies import get_current_caller, get_user_repository, require_privilege
from scolitrack.core.encryption import EncryptedRepository
from scolitrack.core.responses import ApiResponse
from scolitrack.database.supabase_client import get_supabase
from scolitrack.modules.roles.schemas import RoleCreate, RoleUpdate, RoleResponse
from scolitrack.modules.roles.service import RoleService

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(
    supabase: Client = Depends(get_supabase),
    users: EncryptedRepository = Depends(get_user_repository)
) -> RoleService:
    return RoleService(supabase, users)


@router.get("", response_model=ApiResponse[List[RoleResponse]])
async def list_roles(
    caller: Caller = Depends(get_current_caller),
    service: RoleService = Depends(get_role_service)
):
    """List roles with their privileges"""
    return ApiResponse(data=service.list_roles(), feedback="Roles retrieved")


@router.get("/{role_id}", response_model=ApiResponse[RoleResponse])
async def get_role(
    role_id: str,
    caller: Caller = Depends(get_current_caller),
    service: RoleService = Depends(get_role_service)
):
    return ApiResponse(data=service.get_role(role_id), feedback="Role retrieved")


@router.post("", response_model=ApiResponse[RoleResponse], status_code=201)
async def create_role(
    role_data: RoleCreate,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: RoleService = Depends(get_role_service)
):
    """Create a new role"""
    role = service.create_role(role_data)
    return ApiResponse(data=role, feedback=f"Role {role.name} created")


@router.put("/{role_id}", response_model=ApiResponse[RoleResponse])
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    caller: Caller = Depends(require_privilege(PrivilegeName.UPDATE_DATA)),
    service: RoleService = Depends(get_role_service)
):
    """Update a role and replace its privileges"""
    role = service.update_role(role_id, role_data)
    return ApiResponse(data=role, feedback=f"Role {role.name} updated")


@router.delete("/{role_id}", response_model=ApiResponse[None])
async def delete_role(
    role_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.DELETE_DATA)),
    service: RoleService = Depends(get_role_service)
):
    """Delete a role that is neither permanent nor assigned"""
    service.delete_role(role_id)
    return ApiResponse(feedback="Role deleted")
