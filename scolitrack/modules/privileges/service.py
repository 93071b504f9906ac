import logging
from typing import List

from supabase import Client

from scolitrack.config.privileges_config import is_known_privilege
from scolitrack.core.exceptions import Conflict, NotFound, ValidationFailed
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.modules.privileges.schemas import PrivilegeCreate, PrivilegeUpdate, PrivilegeResponse

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Canonical role/privilege name: upper case, spaces replaced by underscores"""
    return name.strip().upper().replace(" ", "_")


class PrivilegeService:
    def __init__(self, supabase: Client):
        self.privileges = TableRepository(supabase, "privileges")

    def list_privileges(self) -> List[PrivilegeResponse]:
        """List all privileges ordered by name"""
        rows = self.privileges.find(order_by="name")
        return [PrivilegeResponse(**row) for row in rows]

    def get_privilege(self, privilege_id: str) -> PrivilegeResponse:
        row = self.privileges.find_one({"id": privilege_id})
        if not row:
            raise NotFound("Privilege not found")
        return PrivilegeResponse(**row)

    def create_privilege(self, data: PrivilegeCreate) -> PrivilegeResponse:
        """Create a privilege; the name must belong to the privilege registry"""
        name = normalize_name(data.name)
        if not is_known_privilege(name):
            raise ValidationFailed(f"Unknown privilege: {name}")
        if self.privileges.find_one({"name": name}, columns="id"):
            raise Conflict(f"Privilege {name} already exists")

        row = self.privileges.create({"name": name, "description": data.description})
        logger.info(f"Created privilege {name}")
        return PrivilegeResponse(**row)

    def update_privilege(self, privilege_id: str, data: PrivilegeUpdate) -> PrivilegeResponse:
        """Update the description of a privilege; names are immutable"""
        self.get_privilege(privilege_id)
        rows = self.privileges.update(
            {"id": privilege_id},
            {"description": data.description, "updated_at": now_iso()}
        )
        if not rows:
            raise NotFound("Privilege not found")
        return PrivilegeResponse(**rows[0])

    def delete_privilege(self, privilege_id: str) -> None:
        """Delete a privilege and every role link to it"""
        privilege = self.get_privilege(privilege_id)
        # role_privileges rows go with the privilege (on delete cascade)
        self.privileges.delete({"id": privilege_id})
        logger.info(f"Deleted privilege {privilege.name}")
