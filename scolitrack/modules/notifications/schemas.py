from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class SubscriptionCreate(BaseModel):
    endpoint: str = Field(..., min_length=1)
    keys: SubscriptionKeys


class SubscriptionDelete(BaseModel):
    endpoint: str = Field(..., min_length=1)


class SubscriptionResponse(BaseModel):
    endpoint: str
    p256dh: str
    auth: str
    user_id: Optional[str] = None


class NotificationTarget(BaseModel):
    type: Literal["user", "role"]
    id: str = Field(..., min_length=1)  # user id, or role name


class NotificationAction(BaseModel):
    action: str
    title: str


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    target: NotificationTarget
    data: Optional[Dict[str, Any]] = None
    icon: Optional[str] = None
    badge: Optional[str] = None
    vibrate: Optional[List[int]] = None
    actions: Optional[List[NotificationAction]] = None


class NotificationPayload(BaseModel):
    """Content handed to the service worker, keys follow the browser Notification API"""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    message: str
    icon: str
    badge: str
    vibrate: List[int]
    actions: List[NotificationAction]
    data: Dict[str, Any] = {}
    lang: str = "fr"
    renotify: bool = True
    require_interaction: bool = Field(True, serialization_alias="requireInteraction")


class PreparedNotification(BaseModel):
    payload: NotificationPayload
    subscriptions: List[SubscriptionResponse]
