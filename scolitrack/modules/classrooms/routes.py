from fastapi import APIRouter, Depends
from supabase import Client
from typing import List

from scolitrack.config.privileges_config import PrivilegeName
from scolitrack.core.authorization import Caller
from scolitrack.core.dependencies import get_interceptor, require_privilege
from scolitrack.core.encryption import FieldEncryptionInterceptor
from scolitrack.core.responses import ApiResponse
from scolitrack.database.supabase_client import get_supabase
from scolitrack.modules.classrooms.schemas import (
    ClassRoomCreate, ClassRoomUpdate, ClassRoomResponse,
    PersonnelAssign, PersonnelResponse
)
from scolitrack.modules.classrooms.service import ClassRoomService

router = APIRouter(prefix="/classrooms", tags=["classrooms"])


def get_classroom_service(
    supabase: Client = Depends(get_supabase),
    interceptor: FieldEncryptionInterceptor = Depends(get_interceptor)
) -> ClassRoomService:
    return ClassRoomService(supabase, interceptor)


@router.get("", response_model=ApiResponse[List[ClassRoomResponse]])
async def list_classrooms(
    establishment_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: ClassRoomService = Depends(get_classroom_service)
):
    """List the classrooms of an establishment"""
    return ApiResponse(data=service.list_classrooms(establishment_id), feedback="Classrooms retrieved")


@router.get("/{classroom_id}", response_model=ApiResponse[ClassRoomResponse])
async def get_classroom(
    classroom_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: ClassRoomService = Depends(get_classroom_service)
):
    return ApiResponse(data=service.get_classroom(classroom_id), feedback="Classroom retrieved")


@router.post("", response_model=ApiResponse[ClassRoomResponse], status_code=201)
async def create_classroom(
    classroom_data: ClassRoomCreate,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: ClassRoomService = Depends(get_classroom_service)
):
    classroom = service.create_classroom(classroom_data)
    return ApiResponse(data=classroom, feedback=f"Classroom {classroom.name} created")


@router.put("/{classroom_id}", response_model=ApiResponse[ClassRoomResponse])
async def update_classroom(
    classroom_id: str,
    classroom_data: ClassRoomUpdate,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: ClassRoomService = Depends(get_classroom_service)
):
    return ApiResponse(data=service.update_classroom(classroom_id, classroom_data), feedback="Classroom updated")


@router.delete("/{classroom_id}", response_model=ApiResponse[None])
async def delete_classroom(
    classroom_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.DELETE_DATA)),
    service: ClassRoomService = Depends(get_classroom_service)
):
    service.delete_classroom(classroom_id)
    return ApiResponse(feedback="Classroom deleted")


@router.post("/{classroom_id}/personnel", response_model=ApiResponse[PersonnelResponse])
async def assign_personnel(
    classroom_id: str,
    personnel_data: PersonnelAssign,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: ClassRoomService = Depends(get_classroom_service)
):
    """Assign a staff member to a classroom"""
    return ApiResponse(data=service.assign_personnel(classroom_id, personnel_data), feedback="Staff member assigned")


@router.delete("/{classroom_id}/personnel/{user_id}", response_model=ApiResponse[None])
async def remove_personnel(
    classroom_id: str,
    user_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: ClassRoomService = Depends(get_classroom_service)
):
    service.remove_personnel(classroom_id, user_id)
    return ApiResponse(feedback="Staff member removed")
