import logging
from typing import Dict, List, Optional

from supabase import Client

from scolitrack.config.privileges_config import SUPER_ADMIN_ROLE
from scolitrack.core.encryption import EncryptedRepository
from scolitrack.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.modules.privileges.schemas import PrivilegeResponse
from scolitrack.modules.privileges.service import normalize_name
from scolitrack.modules.roles.schemas import RoleCreate, RoleUpdate, RoleResponse, UserRoleResponse

logger = logging.getLogger(__name__)

REPLACE_ROLE_PRIVILEGES = "replace_role_privileges"
SUPER_ADMIN_TAKEN = f"Role {SUPER_ADMIN_ROLE} is already assigned to another user"


class RoleService:
    def __init__(self, supabase: Client, users: EncryptedRepository):
        self.roles = TableRepository(supabase, "roles")
        self.role_privileges = TableRepository(supabase, "role_privileges")
        self.privileges = TableRepository(supabase, "privileges")
        self.users = users

    def _get_role_row(self, role_id: str) -> Dict:
        row = self.roles.find_one({"id": role_id})
        if not row:
            raise NotFound("Role not found")
        return row

    def _privileges_by_role(self, role_ids: List[str]) -> Dict[str, List[PrivilegeResponse]]:
        grouped: Dict[str, List[PrivilegeResponse]] = {role_id: [] for role_id in role_ids}
        if not role_ids:
            return grouped
        links = self.role_privileges.find({"role_id": role_ids}, columns="role_id, privilege_id")
        if not links:
            return grouped
        privilege_rows = self.privileges.find(
            {"id": list({link["privilege_id"] for link in links})}, order_by="name"
        )
        by_id = {row["id"]: PrivilegeResponse(**row) for row in privilege_rows}
        for link in links:
            privilege = by_id.get(link["privilege_id"])
            if privilege is not None:
                grouped[link["role_id"]].append(privilege)
        for privileges in grouped.values():
            privileges.sort(key=lambda p: p.name)
        return grouped

    def _to_response(self, row: Dict, privileges: List[PrivilegeResponse]) -> RoleResponse:
        return RoleResponse(**{**row, "privileges": privileges})

    def _validate_privilege_ids(self, privilege_ids: List[str]) -> List[str]:
        unique_ids = list(dict.fromkeys(privilege_ids))
        if not unique_ids:
            return []
        found = self.privileges.find({"id": unique_ids}, columns="id")
        missing = set(unique_ids) - {row["id"] for row in found}
        if missing:
            raise ValidationFailed(f"Unknown privilege ids: {', '.join(sorted(missing))}")
        return unique_ids

    def _replace_privileges(self, role_id: str, privilege_ids: List[str]) -> None:
        """Swap the whole privilege set of a role in one store transaction"""
        self.roles.rpc(REPLACE_ROLE_PRIVILEGES, {
            "p_role_id": role_id,
            "p_privilege_ids": privilege_ids
        })

    def list_roles(self) -> List[RoleResponse]:
        """List assignable roles (the super role is never listed), oldest first"""
        rows = [
            row for row in self.roles.find(order_by="created_at")
            if row["name"] != SUPER_ADMIN_ROLE
        ]
        privileges = self._privileges_by_role([row["id"] for row in rows])
        return [self._to_response(row, privileges[row["id"]]) for row in rows]

    def get_role(self, role_id: str) -> RoleResponse:
        row = self._get_role_row(role_id)
        return self._to_response(row, self._privileges_by_role([role_id])[role_id])

    def create_role(self, data: RoleCreate) -> RoleResponse:
        """Create a role with its privileges; the name is stored in canonical form"""
        name = normalize_name(data.name)
        if not name:
            raise ValidationFailed("Role name is required")
        if self.roles.find_one({"name": name}, columns="id"):
            raise Conflict(f"Role {name} already exists")
        privilege_ids = self._validate_privilege_ids(data.privilege_ids)

        row = self.roles.create({
            "name": name,
            "description": data.description,
            "is_permanent": False
        })
        if privilege_ids:
            try:
                self._replace_privileges(row["id"], privilege_ids)
            except Exception:
                # Do not leave a role behind without the privileges it was created with
                self.roles.delete({"id": row["id"]})
                raise
        logger.info(f"Created role {name} with {len(privilege_ids)} privileges")
        return self.get_role(row["id"])

    def update_role(self, role_id: str, data: RoleUpdate) -> RoleResponse:
        """Update name/description and atomically replace the privilege set when given"""
        row = self._get_role_row(role_id)
        update_data = {}

        if data.name is not None:
            name = normalize_name(data.name)
            if not name:
                raise ValidationFailed("Role name is required")
            if name != row["name"]:
                if row.get("is_permanent"):
                    raise Forbidden(f"Permanent role {row['name']} cannot be renamed")
                if self.roles.find_one({"name": name}, columns="id"):
                    raise Conflict(f"Role {name} already exists")
                update_data["name"] = name
        if data.description is not None:
            update_data["description"] = data.description

        privilege_ids: Optional[List[str]] = None
        if data.privilege_ids is not None:
            privilege_ids = self._validate_privilege_ids(data.privilege_ids)

        if update_data:
            update_data["updated_at"] = now_iso()
            self.roles.update({"id": role_id}, update_data)
        if privilege_ids is not None:
            self._replace_privileges(role_id, privilege_ids)

        logger.info(f"Updated role {update_data.get('name', row['name'])}")
        return self.get_role(role_id)

    def delete_role(self, role_id: str) -> None:
        """Delete a non-permanent role no user holds"""
        row = self._get_role_row(role_id)
        if row.get("is_permanent"):
            raise Forbidden(f"Permanent role {row['name']} cannot be deleted")
        holders = self.users.count({"role_name": row["name"]})
        if holders:
            raise Conflict(
                f"Role {row['name']} is assigned to {holders} user(s); reassign them before deleting it"
            )

        # role_privileges rows go with the role (on delete cascade)
        try:
            self.roles.delete({"id": role_id})
        except Conflict:
            # A user was given the role after the holder count
            raise Conflict(f"Role {row['name']} is assigned to a user; reassign them before deleting it")
        logger.info(f"Deleted role {row['name']}")

    def assign_role_to_user(self, user_id: str, role_name: str) -> UserRoleResponse:
        """Point a user at a role; the super role has at most one holder"""
        if not self.roles.find_one({"name": role_name}, columns="id"):
            raise NotFound(f"Role {role_name} does not exist")
        user = self.users.find_one({"id": user_id}, columns="id, name, email, role_name")
        if not user:
            raise NotFound("User not found")

        if role_name == SUPER_ADMIN_ROLE:
            holder = self.users.find_one({"role_name": SUPER_ADMIN_ROLE}, columns="id")
            if holder and holder["id"] != user_id:
                raise Conflict(SUPER_ADMIN_TAKEN)

        if user.get("role_name") == role_name:
            return UserRoleResponse(**user)

        try:
            rows = self.users.update(
                {"id": user_id},
                {"role_name": role_name, "updated_at": now_iso()}
            )
        except Conflict:
            # Lost a race against a concurrent assignment; the unique index decided
            raise Conflict(SUPER_ADMIN_TAKEN)
        if not rows:
            raise NotFound("User not found")

        logger.info(f"Assigned role {role_name} to user {user_id}")
        updated = rows[0]
        return UserRoleResponse(
            id=updated["id"],
            name=updated.get("name"),
            email=updated["email"],
            role_name=updated.get("role_name")
        )
