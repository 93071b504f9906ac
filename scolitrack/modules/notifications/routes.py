from fastapi import APIRouter, Depends
from supabase import Client

from scolitrack.config.privileges_config import PrivilegeName
from scolitrack.core.authorization import Caller
from scolitrack.core.dependencies import get_current_caller, require_privilege
from scolitrack.core.responses import ApiResponse
from scolitrack.database.supabase_client import get_supabase
from scolitrack.modules.notifications.schemas import (
    NotificationCreate, PreparedNotification,
    SubscriptionCreate, SubscriptionDelete, SubscriptionResponse
)
from scolitrack.modules.notifications.service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.post("/subscriptions", response_model=ApiResponse[SubscriptionResponse])
async def subscribe(
    subscription: SubscriptionCreate,
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service)
):
    """Register the caller's push subscription"""
    return ApiResponse(data=service.subscribe(caller.id, subscription), feedback="Subscription saved")


@router.delete("/subscriptions", response_model=ApiResponse[None])
async def unsubscribe(
    subscription: SubscriptionDelete,
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service)
):
    service.unsubscribe(caller.id, subscription.endpoint)
    return ApiResponse(feedback="Subscription removed")


@router.post("/payloads", response_model=ApiResponse[PreparedNotification])
async def prepare_notification(
    notification: NotificationCreate,
    caller: Caller = Depends(require_privilege(PrivilegeName.MANAGE_USERS)),
    service: NotificationService = Depends(get_notification_service)
):
    """Build a notification payload and list the subscriptions it targets"""
    return ApiResponse(data=service.prepare(notification), feedback="Notification prepared")
