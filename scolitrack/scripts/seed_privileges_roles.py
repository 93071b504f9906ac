"""
Seed Privileges and Roles Script
Populates the privileges and roles tables from the privilege registry and
creates the initial super admin account.
Run with: python -m scolitrack.scripts.seed_privileges_roles
"""

import logging
import sys
from typing import Dict, List

from supabase import Client

from scolitrack.config import settings
from scolitrack.config.privileges_config import (
    ROLE_TEMPLATES,
    SUPER_ADMIN_ROLE,
    list_all_privileges,
    privileges_for_role_template,
)
from scolitrack.core.encryption import EncryptedRepository, EntityKind, FieldCipher, FieldEncryptionInterceptor
from scolitrack.core.security import hash_password
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.database.supabase_client import SupabaseStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_privileges(supabase: Client) -> Dict[str, str]:
    """Upsert registry privileges. Returns {name: id}."""
    logger.info("Seeding privileges...")
    privileges = TableRepository(supabase, "privileges")
    created_count = 0
    updated_count = 0
    ids: Dict[str, str] = {}

    for privilege in list_all_privileges():
        existing = privileges.find_one({"name": privilege["name"]}, columns="id")
        if existing:
            privileges.update({"name": privilege["name"]}, {"description": privilege["description"]})
            ids[privilege["name"]] = existing["id"]
            updated_count += 1
            logger.debug(f"Updated privilege: {privilege['name']}")
        else:
            row = privileges.create(privilege)
            ids[privilege["name"]] = row["id"]
            created_count += 1
            logger.debug(f"Created privilege: {privilege['name']}")

    logger.info(f"Privileges seeded: {created_count} created, {updated_count} updated")
    return ids


def assign_privileges_to_role(supabase: Client, role_id: str, role_name: str, privilege_ids: List[str]) -> None:
    """Sync the role_privileges rows of a role with the wanted privilege ids"""
    role_privileges = TableRepository(supabase, "role_privileges")
    existing = {row["privilege_id"] for row in role_privileges.find({"role_id": role_id}, columns="privilege_id")}
    wanted = set(privilege_ids)

    new_links = [{"role_id": role_id, "privilege_id": pid} for pid in privilege_ids if pid not in existing]
    if new_links:
        role_privileges.create_many(new_links)
        logger.debug(f"Assigned {len(new_links)} privileges to role {role_name}")

    to_remove = existing - wanted
    if to_remove:
        role_privileges.delete({"role_id": role_id, "privilege_id": list(to_remove)})
        logger.debug(f"Removed {len(to_remove)} privileges from role {role_name}")


def seed_roles(supabase: Client, privilege_ids: Dict[str, str]) -> int:
    """Upsert the built-in permanent roles and their privileges"""
    logger.info("Seeding roles...")
    roles = TableRepository(supabase, "roles")
    created_count = 0
    updated_count = 0

    for role_name, template in ROLE_TEMPLATES.items():
        existing = roles.find_one({"name": role_name}, columns="id")
        if existing:
            roles.update({"name": role_name}, {
                "description": template["description"],
                "is_permanent": True,
                "updated_at": now_iso()
            })
            role_id = existing["id"]
            updated_count += 1
        else:
            role_id = roles.create({
                "name": role_name,
                "description": template["description"],
                "is_permanent": True
            })["id"]
            created_count += 1

        wanted = [privilege_ids[name] for name in privileges_for_role_template(role_name) if name in privilege_ids]
        assign_privileges_to_role(supabase, role_id, role_name, wanted)

    logger.info(f"Roles seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def seed_super_admin(supabase: Client, interceptor: FieldEncryptionInterceptor) -> bool:
    """Create the super admin account when none exists. Returns True when created."""
    users = EncryptedRepository(TableRepository(supabase, "users"), interceptor, EntityKind.USER)
    if users.find_one({"role_name": SUPER_ADMIN_ROLE}, columns="id"):
        logger.info("Super admin already exists")
        return False
    if not settings.super_admin_password:
        logger.warning("SUPER_ADMIN_PASSWORD is not set, skipping super admin creation")
        return False
    if users.find_one({"email": settings.super_admin_email.lower()}, columns="id"):
        logger.warning(f"A user already uses {settings.super_admin_email}, skipping super admin creation")
        return False

    users.create({
        "email": settings.super_admin_email.lower(),
        "name": "Super Admin",
        "password": hash_password(settings.super_admin_password),
        "role_name": SUPER_ADMIN_ROLE,
        "email_verified": now_iso()
    })
    logger.info(f"Super admin created: {settings.super_admin_email}")
    return True


def main():
    """Seed privileges, roles and the super admin"""
    store = SupabaseStore(settings.supabase_url, settings.supabase_key, settings.supabase_service_role_key)
    try:
        supabase = store.open()
        interceptor = FieldEncryptionInterceptor(FieldCipher(settings.encryption_key))

        logger.info("Starting privileges and roles seeding...")
        privilege_ids = seed_privileges(supabase)
        role_count = seed_roles(supabase, privilege_ids)
        seed_super_admin(supabase, interceptor)

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {len(privilege_ids)} privileges, {role_count} roles processed")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)
    finally:
        store.close()


if __name__ == "__main__":
    main()
