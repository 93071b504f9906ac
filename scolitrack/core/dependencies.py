"""
Core dependencies for route protection and sensitive data access
"""

import logging
from typing import Dict, FrozenSet, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from scolitrack.config.privileges_config import SUPER_ADMIN_ROLE
from scolitrack.core.authorization import Caller, Required, authorize, bind_caller
from scolitrack.core.encryption import (
    EncryptedRepository,
    EntityKind,
    FieldCipher,
    FieldEncryptionInterceptor,
)
from scolitrack.core.exceptions import Unauthenticated
from scolitrack.core.security import TokenService, get_token_service
from scolitrack.database.repository import TableRepository
from scolitrack.database.supabase_client import get_supabase

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_field_cipher(request: Request) -> FieldCipher:
    return request.app.state.cipher


def get_interceptor(cipher: FieldCipher = Depends(get_field_cipher)) -> FieldEncryptionInterceptor:
    return FieldEncryptionInterceptor(cipher)


def encrypted_repository(supabase: Client, interceptor: FieldEncryptionInterceptor,
                         table: str, kind: EntityKind) -> EncryptedRepository:
    return EncryptedRepository(TableRepository(supabase, table), interceptor, kind)


def get_user_repository(
    supabase: Client = Depends(get_supabase),
    interceptor: FieldEncryptionInterceptor = Depends(get_interceptor)
) -> EncryptedRepository:
    return encrypted_repository(supabase, interceptor, "users", EntityKind.USER)


def get_role_privilege_names(role_name: Optional[str], supabase: Client) -> FrozenSet[str]:
    """Flatten the role_privileges rows of a role into privilege names"""
    if not role_name:
        return frozenset()
    role = TableRepository(supabase, "roles").find_one({"name": role_name}, columns="id")
    if not role:
        return frozenset()
    links = TableRepository(supabase, "role_privileges").find({"role_id": role["id"]}, columns="privilege_id")
    if not links:
        return frozenset()
    privileges = TableRepository(supabase, "privileges").find(
        {"id": [link["privilege_id"] for link in links]}, columns="name"
    )
    return frozenset(p["name"] for p in privileges)


async def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    supabase: Client = Depends(get_supabase),
    tokens: TokenService = Depends(get_token_service)
) -> Caller:
    """
    Resolve the caller from the bearer token and bind it to the request context.
    The role is read from the users table so role changes apply immediately.
    """
    if credentials is None:
        raise Unauthenticated()

    payload = tokens.decode_access_token(credentials.credentials)
    user = TableRepository(supabase, "users").find_one({"id": payload["sub"]}, columns="id, email, role_name")
    if not user:
        raise Unauthenticated("Invalid or expired token")

    role_name = user.get("role_name")
    if role_name == SUPER_ADMIN_ROLE:
        privileges = frozenset()
    else:
        privileges = get_role_privilege_names(role_name, supabase)

    caller = Caller(id=user["id"], role_name=role_name, privileges=privileges, email=user.get("email"))
    request.state.caller = caller
    bind_caller(caller)
    return caller


def require_privilege(required: Required):
    """Factory function to create a privilege check dependency"""
    async def check_privilege(caller: Caller = Depends(get_current_caller)) -> Caller:
        return authorize(caller, required)
    return check_privilege


def require_any_privilege(*required: Required):
    async def check_any_privilege(caller: Caller = Depends(get_current_caller)) -> Caller:
        return authorize(caller, required, any_of=True)
    return check_any_privilege


def require_all_privileges(*required: Required):
    async def check_all_privileges(caller: Caller = Depends(get_current_caller)) -> Caller:
        return authorize(caller, required)
    return check_all_privileges


def pagination_meta(total: int, page: int, limit: int) -> Dict[str, int]:
    pages = (total + limit - 1) // limit if limit else 0
    return {"total": total, "page": page, "limit": limit, "pages": pages}
