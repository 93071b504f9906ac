import logging
from typing import Dict, List, Optional

from supabase import Client

from scolitrack.core.encryption import EncryptedRepository, EntityKind, FieldEncryptionInterceptor
from scolitrack.core.exceptions import Conflict, NotFound
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.modules.commissions.models import MEMBER_COLUMNS
from scolitrack.modules.commissions.schemas import (
    CommissionCreate, CommissionUpdate, CommissionResponse,
    MemberAdd, MemberRoleUpdate, MemberResponse
)

logger = logging.getLogger(__name__)


class CommissionService:
    def __init__(self, supabase: Client, interceptor: FieldEncryptionInterceptor):
        self.commissions = TableRepository(supabase, "commissions")
        self.establishments = TableRepository(supabase, "establishments")
        self.users = TableRepository(supabase, "users")
        self.members = EncryptedRepository(
            TableRepository(supabase, "commission_members"), interceptor, EntityKind.COMMISSION_MEMBER
        )

    def _get_row(self, commission_id: str) -> Dict:
        row = self.commissions.find_one({"id": commission_id})
        if not row:
            raise NotFound("Commission not found")
        return row

    def _with_members(self, rows: List[Dict]) -> List[CommissionResponse]:
        ids = [row["id"] for row in rows]
        if not ids:
            return []
        members_by_commission: Dict[str, List[MemberResponse]] = {commission_id: [] for commission_id in ids}
        for member in self.members.find({"commission_id": ids}, columns=MEMBER_COLUMNS):
            members_by_commission[member["commission_id"]].append(MemberResponse(**member))
        return [CommissionResponse(**row, members=members_by_commission[row["id"]]) for row in rows]

    def list_commissions(self, establishment_id: Optional[str] = None) -> List[CommissionResponse]:
        filters = {"establishment_id": establishment_id} if establishment_id else None
        return self._with_members(self.commissions.find(filters, order_by="name"))

    def list_user_commissions(self, user_id: str) -> List[CommissionResponse]:
        links = self.members.find({"user_id": user_id}, columns="commission_id")
        if not links:
            return []
        rows = self.commissions.find({"id": [link["commission_id"] for link in links]}, order_by="name")
        return self._with_members(rows)

    def get_commission(self, commission_id: str) -> CommissionResponse:
        return self._with_members([self._get_row(commission_id)])[0]

    def create_commission(self, data: CommissionCreate) -> CommissionResponse:
        if not self.establishments.find_one({"id": data.establishment_id}, columns="id"):
            raise NotFound("Establishment not found")
        row = self.commissions.create(data.model_dump())
        logger.info(f"Created commission {row['id']}")
        return CommissionResponse(**row)

    def update_commission(self, commission_id: str, data: CommissionUpdate) -> CommissionResponse:
        self._get_row(commission_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data:
            update_data["updated_at"] = now_iso()
            self.commissions.update({"id": commission_id}, update_data)
        return self.get_commission(commission_id)

    def delete_commission(self, commission_id: str) -> None:
        self._get_row(commission_id)
        # members go with the commission (on delete cascade)
        self.commissions.delete({"id": commission_id})
        logger.info(f"Deleted commission {commission_id}")

    def add_member(self, commission_id: str, data: MemberAdd) -> MemberResponse:
        self._get_row(commission_id)
        if not self.users.find_one({"id": data.user_id}, columns="id"):
            raise NotFound("User not found")
        key = {"commission_id": commission_id, "user_id": data.user_id}
        if self.members.find_one(key, columns="id"):
            raise Conflict("This user is already a member of the commission")

        self.members.create({**key, "role": data.role})
        return MemberResponse(**self.members.find_one(key, columns=MEMBER_COLUMNS))

    def update_member_role(self, commission_id: str, user_id: str, data: MemberRoleUpdate) -> MemberResponse:
        key = {"commission_id": commission_id, "user_id": user_id}
        if not self.members.update(key, {"role": data.role}):
            raise NotFound("This user is not a member of the commission")
        return MemberResponse(**self.members.find_one(key, columns=MEMBER_COLUMNS))

    def remove_member(self, commission_id: str, user_id: str) -> None:
        if not self.members.delete({"commission_id": commission_id, "user_id": user_id}):
            raise NotFound("This user is not a member of the commission")
