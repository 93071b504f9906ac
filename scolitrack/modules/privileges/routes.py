from fastapi import APIRouter, Depends
from supabase import Client
from typing import List

from scolitrack.config.privileges_config import PrivilegeName
from scolitrack.core.authorization import Caller
from scolitrack.core.dependencies import get_current_caller, require_privilege
from scolitrack.core.responses import ApiResponse
from scolitrack.database.supabase_client import get_supabase
from scolitrack.modules.privileges.schemas import PrivilegeCreate, PrivilegeUpdate, PrivilegeResponse
from scolitrack.modules.privileges.service import PrivilegeService

router = APIRouter(prefix="/privileges", tags=["privileges"])


def get_privilege_service(supabase: Client = Depends(get_supabase)) -> PrivilegeService:
    return PrivilegeService(supabase)


@router.get("", response_model=ApiResponse[List[PrivilegeResponse]])
async def list_privileges(
    caller: Caller = Depends(get_current_caller),
    service: PrivilegeService = Depends(get_privilege_service)
):
    """List all privileges"""
    return ApiResponse(data=service.list_privileges(), feedback="Privileges retrieved")


@router.get("/{privilege_id}", response_model=ApiResponse[PrivilegeResponse])
async def get_privilege(
    privilege_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PrivilegeService = Depends(get_privilege_service)
):
    return ApiResponse(data=service.get_privilege(privilege_id), feedback="Privilege retrieved")


@router.post("", response_model=ApiResponse[PrivilegeResponse], status_code=201)
async def create_privilege(
    privilege_data: PrivilegeCreate,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: PrivilegeService = Depends(get_privilege_service)
):
    """Create a privilege from the registry"""
    return ApiResponse(data=service.create_privilege(privilege_data), feedback="Privilege created")


@router.put("/{privilege_id}", response_model=ApiResponse[PrivilegeResponse])
async def update_privilege(
    privilege_id: str,
    privilege_data: PrivilegeUpdate,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: PrivilegeService = Depends(get_privilege_service)
):
    """Update a privilege description"""
    return ApiResponse(data=service.update_privilege(privilege_id, privilege_data), feedback="Privilege updated")


@router.delete("/{privilege_id}", response_model=ApiResponse[None])
async def delete_privilege(
    privilege_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.DELETE_DATA)),
    service: PrivilegeService = Depends(get_privilege_service)
):
    """Delete a privilege and its role links"""
    service.delete_privilege(privilege_id)
    return ApiResponse(feedback="Privilege deleted")
