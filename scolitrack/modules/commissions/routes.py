from fastapi import APIRouter, Depends
from supabase import Client
from typing import List, Optional

from scolitrack.config.privileges_config import PrivilegeName
from scolitrack.core.authorization import Caller
from scolitrack.core.dependencies import get_current_caller, get_interceptor, require_privilege
from scolitrack.core.encryption import FieldEncryptionInterceptor
from scolitrack.core.responses import ApiResponse
from scolitrack.database.supabase_client import get_supabase
from scolitrack.modules.commissions.schemas import (
    CommissionCreate, CommissionUpdate, CommissionResponse,
    MemberAdd, MemberRoleUpdate, MemberResponse
)
from scolitrack.modules.commissions.service import CommissionService

router = APIRouter(prefix="/commissions", tags=["commissions"])


def get_commission_service(
    supabase: Client = Depends(get_supabase),
    interceptor: FieldEncryptionInterceptor = Depends(get_interceptor)
) -> CommissionService:
    return CommissionService(supabase, interceptor)


@router.get("", response_model=ApiResponse[List[CommissionResponse]])
async def list_commissions(
    establishment_id: Optional[str] = None,
    caller: Caller = Depends(get_current_caller),
    service: CommissionService = Depends(get_commission_service)
):
    """List commissions with their members"""
    return ApiResponse(data=service.list_commissions(establishment_id), feedback="Commissions retrieved")


@router.get("/mine", response_model=ApiResponse[List[CommissionResponse]])
async def list_my_commissions(
    caller: Caller = Depends(get_current_caller),
    service: CommissionService = Depends(get_commission_service)
):
    """Commissions the caller is a member of"""
    return ApiResponse(data=service.list_user_commissions(caller.id), feedback="Commissions retrieved")


@router.get("/{commission_id}", response_model=ApiResponse[CommissionResponse])
async def get_commission(
    commission_id: str,
    caller: Caller = Depends(get_current_caller),
    service: CommissionService = Depends(get_commission_service)
):
    return ApiResponse(data=service.get_commission(commission_id), feedback="Commission retrieved")


@router.post("", response_model=ApiResponse[CommissionResponse], status_code=201)
async def create_commission(
    commission_data: CommissionCreate,
    caller: Caller = Depends(require_privilege(PrivilegeName.MANAGE_COMMISSIONS)),
    service: CommissionService = Depends(get_commission_service)
):
    commission = service.create_commission(commission_data)
    return ApiResponse(data=commission, feedback=f"Commission {commission.name} created")


@router.put("/{commission_id}", response_model=ApiResponse[CommissionResponse])
async def update_commission(
    commission_id: str,
    commission_data: CommissionUpdate,
    caller: Caller = Depends(require_privilege(PrivilegeName.MANAGE_COMMISSIONS)),
    service: CommissionService = Depends(get_commission_service)
):
    return ApiResponse(data=service.update_commission(commission_id, commission_data), feedback="Commission updated")


@router.delete("/{commission_id}", response_model=ApiResponse[None])
async def delete_commission(
    commission_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.DELETE_DATA)),
    service: CommissionService = Depends(get_commission_service)
):
    service.delete_commission(commission_id)
    return ApiResponse(feedback="Commission deleted")


@router.post("/{commission_id}/members", response_model=ApiResponse[MemberResponse], status_code=201)
async def add_member(
    commission_id: str,
    member_data: MemberAdd,
    caller: Caller = Depends(require_privilege(PrivilegeName.MANAGE_COMMISSIONS)),
    service: CommissionService = Depends(get_commission_service)
):
    return ApiResponse(data=service.add_member(commission_id, member_data), feedback="Member added")


@router.put("/{commission_id}/members/{user_id}", response_model=ApiResponse[MemberResponse])
async def update_member_role(
    commission_id: str,
    user_id: str,
    member_data: MemberRoleUpdate,
    caller: Caller = Depends(require_privilege(PrivilegeName.MANAGE_COMMISSIONS)),
    service: CommissionService = Depends(get_commission_service)
):
    return ApiResponse(data=service.update_member_role(commission_id, user_id, member_data), feedback="Member updated")


@router.delete("/{commission_id}/members/{user_id}", response_model=ApiResponse[None])
async def remove_member(
    commission_id: str,
    user_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.MANAGE_COMMISSIONS)),
    service: CommissionService = Depends(get_commission_service)
):
    service.remove_member(commission_id, user_id)
    return ApiResponse(feedback="Member removed")
