import logging
from typing import List, Optional, Tuple

from supabase import Client

from scolitrack.core.encryption import EncryptedRepository, EntityKind, FieldEncryptionInterceptor
from scolitrack.core.exceptions import Conflict, NotFound
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.modules.establishment.models import ESTABLISHMENT_COLUMNS
from scolitrack.modules.establishment.schemas import (
    EstablishmentUpsert, EstablishmentResponse,
    EducationLevelCreate, EducationLevelUpdate, EducationLevelResponse
)

logger = logging.getLogger(__name__)


class EstablishmentService:
    def __init__(self, supabase: Client, interceptor: FieldEncryptionInterceptor, users: EncryptedRepository):
        self.establishments = EncryptedRepository(
            TableRepository(supabase, "establishments"), interceptor, EntityKind.ESTABLISHMENT
        )
        self.users = users

    def get_establishment(self) -> Optional[EstablishmentResponse]:
        """The installation's establishment, with its head embedded"""
        rows = self.establishments.find(columns=ESTABLISHMENT_COLUMNS, order_by="created_at", limit=1)
        return EstablishmentResponse(**rows[0]) if rows else None

    def upsert_establishment(self, data: EstablishmentUpsert) -> Tuple[EstablishmentResponse, bool]:
        """Create the establishment or update the existing one. Returns (establishment, created)."""
        if not self.users.find_one({"id": data.admin_id}, columns="id"):
            raise NotFound("The establishment head must be an existing user")

        payload = data.model_dump(mode="json")
        existing = self.establishments.find(columns="id", order_by="created_at", limit=1)
        if existing:
            establishment_id = existing[0]["id"]
            payload["updated_at"] = now_iso()
            self.establishments.update({"id": establishment_id}, payload)
            created = False
        else:
            establishment_id = self.establishments.create(payload)["id"]
            created = True
        logger.info(f"{'Created' if created else 'Updated'} establishment {establishment_id}")

        row = self.establishments.find_one({"id": establishment_id}, columns=ESTABLISHMENT_COLUMNS)
        return EstablishmentResponse(**row), created


class EducationLevelService:
    def __init__(self, supabase: Client):
        self.levels = TableRepository(supabase, "education_levels")
        self.establishments = TableRepository(supabase, "establishments")

    def _get(self, level_id: str) -> dict:
        row = self.levels.find_one({"id": level_id})
        if not row:
            raise NotFound("Education level not found")
        return row

    def list_levels(self, establishment_id: str) -> List[EducationLevelResponse]:
        rows = self.levels.find({"establishment_id": establishment_id}, order_by="name")
        return [EducationLevelResponse(**row) for row in rows]

    def create_level(self, data: EducationLevelCreate) -> EducationLevelResponse:
        if not self.establishments.find_one({"id": data.establishment_id}, columns="id"):
            raise NotFound("Establishment not found")
        if self.levels.find_one({"establishment_id": data.establishment_id, "code": data.code}, columns="id"):
            raise Conflict(f"An education level with code {data.code} already exists")
        return EducationLevelResponse(**self.levels.create(data.model_dump()))

    def update_level(self, level_id: str, data: EducationLevelUpdate) -> EducationLevelResponse:
        row = self._get(level_id)
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return EducationLevelResponse(**row)
        code = update_data.get("code")
        if code and code != row["code"] and self.levels.find_one(
                {"establishment_id": row["establishment_id"], "code": code}, columns="id"):
            raise Conflict(f"An education level with code {code} already exists")
        rows = self.levels.update({"id": level_id}, update_data)
        return EducationLevelResponse(**rows[0])

    def delete_level(self, level_id: str) -> None:
        self._get(level_id)
        self.levels.delete({"id": level_id})
        logger.info(f"Deleted education level {level_id}")
