import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from supabase import Client

from scolitrack.config.privileges_config import SUPER_ADMIN_ROLE
from scolitrack.core.encryption import EncryptedRepository
from scolitrack.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from scolitrack.core.mailer import Mailer
from scolitrack.core.security import hash_password, verify_password
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.modules.users.models import PUBLIC_COLUMNS
from scolitrack.modules.users.schemas import UserCreate, UserUpdate, UserResponse, PasswordChange

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client, users: EncryptedRepository, mailer: Optional[Mailer] = None,
                 activation_ttl_hours: int = 72):
        self.users = users
        self.roles = TableRepository(supabase, "roles")
        self.mailer = mailer
        self.activation_ttl_hours = activation_ttl_hours

    def get_user(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        row = self.users.find_one({"id": user_id}, columns=PUBLIC_COLUMNS)
        if not row:
            raise NotFound("User not found")
        return UserResponse(**row)

    def list_users(self, page: int = 1, limit: int = 10,
                   role_name: Optional[str] = None) -> Tuple[List[UserResponse], int]:
        """Page through users, optionally filtered by role. Returns (users, total)."""
        filters = {"role_name": role_name} if role_name else None
        rows, total = self.users.find_page(
            filters, page=page, limit=limit, columns=PUBLIC_COLUMNS, order_by="created_at", desc=True
        )
        return [UserResponse(**row) for row in rows], total

    def create_user(self, data: UserCreate) -> UserResponse:
        """
        Create an account without password and email an activation link.
        The user row is kept even if the email cannot be sent.
        """
        email = data.email.lower()
        if data.role_name == SUPER_ADMIN_ROLE:
            raise Forbidden(f"Role {SUPER_ADMIN_ROLE} cannot be given when creating a user")
        if not self.roles.find_one({"name": data.role_name}, columns="id"):
            raise NotFound(f"Role {data.role_name} does not exist")
        if self.users.find_one({"email": email}, columns="id"):
            raise Conflict("This email is already in use")

        token = str(uuid.uuid4())
        expiry = datetime.now(timezone.utc) + timedelta(hours=self.activation_ttl_hours)
        row = self.users.create({
            "email": email,
            "name": data.name,
            "first_name": data.first_name,
            "role_name": data.role_name,
            "reset_token": token,
            "reset_token_expiry": expiry.isoformat()
        })
        logger.info(f"Created user {row['id']} with role {data.role_name}")

        if self.mailer is not None:
            self.mailer.send_activation_email(email, data.name or email, token)
        return UserResponse(**row)

    def update_user(self, user_id: str, data: UserUpdate) -> UserResponse:
        """Update user profile"""
        update_data = data.model_dump(exclude_unset=True, mode="json")
        if not update_data:
            return self.get_user(user_id)
        update_data["updated_at"] = now_iso()

        rows = self.users.update({"id": user_id}, update_data)
        if not rows:
            raise NotFound("User not found")
        return UserResponse(**rows[0])

    def change_password(self, user_id: str, data: PasswordChange) -> None:
        user = self.users.find_one({"id": user_id}, columns="id, password")
        if not user:
            raise NotFound("User not found")
        if not verify_password(data.current_password, user.get("password")):
            raise ValidationFailed("Current password is incorrect")

        self.users.update({"id": user_id}, {
            "password": hash_password(data.password),
            "updated_at": now_iso()
        })
        logger.info(f"Password changed for user {user_id}")
