import logging
import time
from typing import List

from supabase import Client

from scolitrack.core.exceptions import Conflict, NotFound
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.modules.notifications.models import (
    DEFAULT_ACTIONS, DEFAULT_BADGE, DEFAULT_ICON, DEFAULT_VIBRATE_PATTERN
)
from scolitrack.modules.notifications.schemas import (
    NotificationAction, NotificationCreate, NotificationPayload, PreparedNotification,
    SubscriptionCreate, SubscriptionResponse
)

logger = logging.getLogger(__name__)


def build_payload(notification: NotificationCreate) -> NotificationPayload:
    """Fill in the defaults of a notification payload"""
    data = {"url": "/", **(notification.data or {}), "dateOfArrival": int(time.time() * 1000)}
    return NotificationPayload(
        title=notification.title,
        message=notification.message,
        icon=notification.icon or DEFAULT_ICON,
        badge=notification.badge or DEFAULT_BADGE,
        vibrate=notification.vibrate or list(DEFAULT_VIBRATE_PATTERN),
        actions=notification.actions or [NotificationAction(**a) for a in DEFAULT_ACTIONS],
        data=data
    )


class NotificationService:
    def __init__(self, supabase: Client):
        self.subscriptions = TableRepository(supabase, "push_subscriptions")
        self.users = TableRepository(supabase, "users")

    def subscribe(self, user_id: str, data: SubscriptionCreate) -> SubscriptionResponse:
        """Register a browser subscription for the user; an endpoint belongs to one user"""
        record = {
            "user_id": user_id,
            "endpoint": data.endpoint,
            "p256dh": data.keys.p256dh,
            "auth": data.keys.auth
        }
        existing = self.subscriptions.find_one({"endpoint": data.endpoint}, columns="id, user_id")
        if existing and existing["user_id"] != user_id:
            logger.info(f"User {user_id} tried to register an endpoint owned by another user")
            raise Conflict("This subscription is registered by another user")
        if existing:
            rows = self.subscriptions.update(
                {"endpoint": data.endpoint, "user_id": user_id},
                {"p256dh": data.keys.p256dh, "auth": data.keys.auth, "updated_at": now_iso()}
            )
            if not rows:
                raise NotFound("Subscription not found")
            row = rows[0]
        else:
            row = self.subscriptions.create(record)
            logger.info(f"Push subscription registered for user {user_id}")
        return SubscriptionResponse(**row)

    def unsubscribe(self, user_id: str, endpoint: str) -> None:
        if not self.subscriptions.delete({"endpoint": endpoint, "user_id": user_id}):
            raise NotFound("Subscription not found")

    def _target_subscriptions(self, notification: NotificationCreate) -> List[dict]:
        target = notification.target
        if target.type == "user":
            return self.subscriptions.find({"user_id": target.id})
        users = self.users.find({"role_name": target.id}, columns="id")
        if not users:
            return []
        return self.subscriptions.find({"user_id": [u["id"] for u in users]})

    def prepare(self, notification: NotificationCreate) -> PreparedNotification:
        """Build the payload and resolve the subscriptions a push worker should deliver it to"""
        rows = self._target_subscriptions(notification)
        if not rows:
            raise NotFound("No subscription found for this target")
        logger.info(
            f"Prepared notification for {notification.target.type} {notification.target.id}: "
            f"{len(rows)} subscription(s)"
        )
        return PreparedNotification(
            payload=build_payload(notification),
            subscriptions=[SubscriptionResponse(**row) for row in rows]
        )
