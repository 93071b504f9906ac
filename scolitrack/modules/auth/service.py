import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from scolitrack.config.privileges_config import list_all_privileges
from scolitrack.core.authorization import Caller
from scolitrack.core.encryption import EncryptedRepository
from scolitrack.core.exceptions import NotFound, Unauthenticated, ValidationFailed
from scolitrack.core.mailer import Mailer
from scolitrack.core.security import TokenService, hash_password, verify_password
from scolitrack.database.repository import now_iso, parse_timestamp
from scolitrack.modules.auth.schemas import LoginRequest, TokenResponse, MeResponse
from scolitrack.modules.users.models import PUBLIC_COLUMNS

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_FEEDBACK = "If an account exists for this email, a reset link has been sent"


class AuthService:
    def __init__(self, users: EncryptedRepository, tokens: TokenService,
                 mailer: Optional[Mailer] = None, reset_ttl_minutes: int = 60):
        self.users = users
        self.tokens = tokens
        self.mailer = mailer
        self.reset_ttl_minutes = reset_ttl_minutes

    def _find_by_valid_token(self, token: str) -> Optional[Dict]:
        user = self.users.find_one({"reset_token": token}, columns="id, email, reset_token_expiry")
        if not user:
            return None
        expiry = parse_timestamp(user.get("reset_token_expiry"))
        if expiry is None or expiry <= datetime.now(timezone.utc):
            return None
        return user

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Check credentials and issue a session token"""
        user = self.users.find_one(
            {"email": login_data.email.lower()}, columns="id, email, role_name, password"
        )
        if not user or not verify_password(login_data.password, user.get("password")):
            raise Unauthenticated("Invalid email or password")

        logger.info(f"User {user['id']} logged in")
        return TokenResponse(
            access_token=self.tokens.create_access_token(user["id"], user.get("role_name")),
            user_id=user["id"],
            email=user["email"],
            role_name=user.get("role_name")
        )

    def me(self, caller: Caller) -> MeResponse:
        """Profile of the caller with resolved privilege names"""
        row = self.users.find_one({"id": caller.id}, columns=PUBLIC_COLUMNS)
        if not row:
            raise NotFound("User not found")
        if caller.is_super_admin:
            privileges = [p["name"] for p in list_all_privileges()]
        else:
            privileges = sorted(caller.privileges)
        return MeResponse(**row, privileges=privileges)

    def activate_account(self, token: str, password: str) -> None:
        """Set the first password from an activation token"""
        user = self._find_by_valid_token(token)
        if not user:
            raise Unauthenticated("Invalid or expired token")

        now = now_iso()
        self.users.update({"id": user["id"]}, {
            "password": hash_password(password),
            "email_verified": now,
            "reset_token": None,
            "reset_token_expiry": None,
            "updated_at": now
        })
        logger.info(f"Account activated for user {user['id']}")

    def request_password_reset(self, email: str) -> str:
        """
        Store a reset token and email it when the account exists.
        Always returns the same feedback so account existence is not disclosed.
        """
        user = self.users.find_one({"email": email.lower()}, columns="id, email")
        if not user:
            logger.info("Password reset requested for unknown email")
            return FORGOT_PASSWORD_FEEDBACK

        token = secrets.token_hex(32)
        expiry = datetime.now(timezone.utc) + timedelta(minutes=self.reset_ttl_minutes)
        self.users.update({"id": user["id"]}, {
            "reset_token": token,
            "reset_token_expiry": expiry.isoformat()
        })
        if self.mailer is not None:
            self.mailer.send_reset_password_email(user["email"], token)
        return FORGOT_PASSWORD_FEEDBACK

    def reset_password(self, token: str, password: str) -> None:
        user = self._find_by_valid_token(token)
        if not user:
            raise ValidationFailed("Invalid or expired reset link")

        self.users.update({"id": user["id"]}, {
            "password": hash_password(password),
            "reset_token": None,
            "reset_token_expiry": None,
            "updated_at": now_iso()
        })
        logger.info(f"Password reset for user {user['id']}")
