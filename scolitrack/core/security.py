"""
Password hashing and session tokens
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Request

from scolitrack.config import Settings, settings
from scolitrack.core.exceptions import Unauthenticated

logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored password hash is malformed")
        return False


class TokenService:
    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        if not secret_key:
            raise ValueError("JWT_SECRET_KEY is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "TokenService":
        return cls(
            app_settings.jwt_secret_key,
            algorithm=app_settings.jwt_algorithm,
            expire_minutes=app_settings.access_token_expire_minutes,
        )

    def create_access_token(self, user_id: str, role_name: Optional[str]) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "role_name": role_name,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Session expired")
        except jwt.InvalidTokenError:
            raise Unauthenticated("Invalid or expired token")
        if not payload.get("sub"):
            raise Unauthenticated("Invalid or expired token")
        return payload


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens
