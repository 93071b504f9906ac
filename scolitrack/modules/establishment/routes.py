from fastapi import APIRouter, Depends, Response, status
from supabase import Client
from typing import List, Optional

from scolitrack.config.privileges_config import PrivilegeName
from scolitrack.core.authorization import Caller
from scolitrack.core.dependencies import get_current_caller, get_interceptor, get_user_repository, require_privilege
from scolitrack.core.encryption import EncryptedRepository, FieldEncryptionInterceptor
from scolitrack.core.responses import ApiResponse
from scolitrack.database.supabase_client import get_supabase
from scolitrack.modules.establishment.schemas import (
    EstablishmentUpsert, EstablishmentResponse,
    EducationLevelCreate, EducationLevelUpdate, EducationLevelResponse
)
from scolitrack.modules.establishment.service import EstablishmentService, EducationLevelService

router = APIRouter(prefix="/establishment", tags=["establishment"])


def get_establishment_service(
    supabase: Client = Depends(get_supabase),
    interceptor: FieldEncryptionInterceptor = Depends(get_interceptor),
    users: EncryptedRepository = Depends(get_user_repository)
) -> EstablishmentService:
    return EstablishmentService(supabase, interceptor, users)


def get_education_level_service(supabase: Client = Depends(get_supabase)) -> EducationLevelService:
    return EducationLevelService(supabase)


@router.get("", response_model=ApiResponse[Optional[EstablishmentResponse]])
async def get_establishment(
    caller: Caller = Depends(get_current_caller),
    service: EstablishmentService = Depends(get_establishment_service)
):
    establishment = service.get_establishment()
    feedback = "Establishment retrieved" if establishment else "No establishment configured"
    return ApiResponse(data=establishment, feedback=feedback)


@router.put("", response_model=ApiResponse[EstablishmentResponse])
async def upsert_establishment(
    establishment_data: EstablishmentUpsert,
    response: Response,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: EstablishmentService = Depends(get_establishment_service)
):
    """Create the establishment, or update it when it already exists"""
    establishment, created = service.upsert_establishment(establishment_data)
    if created:
        response.status_code = status.HTTP_201_CREATED
        return ApiResponse(data=establishment, feedback="Establishment created")
    return ApiResponse(data=establishment, feedback="Establishment updated")


@router.get("/education-levels", response_model=ApiResponse[List[EducationLevelResponse]])
async def list_education_levels(
    establishment_id: str,
    caller: Caller = Depends(get_current_caller),
    service: EducationLevelService = Depends(get_education_level_service)
):
    return ApiResponse(data=service.list_levels(establishment_id), feedback="Education levels retrieved")


@router.post("/education-levels", response_model=ApiResponse[EducationLevelResponse], status_code=201)
async def create_education_level(
    level_data: EducationLevelCreate,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: EducationLevelService = Depends(get_education_level_service)
):
    return ApiResponse(data=service.create_level(level_data), feedback="Education level created")


@router.put("/education-levels/{level_id}", response_model=ApiResponse[EducationLevelResponse])
async def update_education_level(
    level_id: str,
    level_data: EducationLevelUpdate,
    caller: Caller = Depends(require_privilege(PrivilegeName.SETUP_APPLICATION)),
    service: EducationLevelService = Depends(get_education_level_service)
):
    return ApiResponse(data=service.update_level(level_id, level_data), feedback="Education level updated")


@router.delete("/education-levels/{level_id}", response_model=ApiResponse[None])
async def delete_education_level(
    level_id: str,
    caller: Caller = Depends(require_privilege(PrivilegeName.DELETE_DATA)),
    service: EducationLevelService = Depends(get_education_level_service)
):
    service.delete_level(level_id)
    return ApiResponse(feedback="Education level deleted")
