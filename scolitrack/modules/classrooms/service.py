import logging
from typing import Dict, List

from supabase import Client

from scolitrack.core.encryption import EncryptedRepository, EntityKind, FieldEncryptionInterceptor
from scolitrack.core.exceptions import NotFound, ValidationFailed
from scolitrack.database.repository import TableRepository, now_iso
from scolitrack.modules.classrooms.models import PERSONNEL_COLUMNS
from scolitrack.modules.classrooms.schemas import (
    ClassRoomCreate, ClassRoomUpdate, ClassRoomResponse,
    EducationLevelSummary, PersonnelAssign, PersonnelResponse
)

logger = logging.getLogger(__name__)


class ClassRoomService:
    def __init__(self, supabase: Client, interceptor: FieldEncryptionInterceptor):
        self.classrooms = TableRepository(supabase, "class_rooms")
        self.level_links = TableRepository(supabase, "class_room_education_levels")
        self.levels = TableRepository(supabase, "education_levels")
        self.users = TableRepository(supabase, "users")
        self.personnel = EncryptedRepository(
            TableRepository(supabase, "class_room_personnel"), interceptor, EntityKind.CLASSROOM_PERSONNEL
        )

    def _get_row(self, classroom_id: str) -> Dict:
        row = self.classrooms.find_one({"id": classroom_id})
        if not row:
            raise NotFound("Classroom not found")
        return row

    def _assemble(self, rows: List[Dict]) -> List[ClassRoomResponse]:
        """Attach education levels and personnel (with decrypted user names) to classrooms"""
        ids = [row["id"] for row in rows]
        if not ids:
            return []
        links = self.level_links.find({"class_room_id": ids})
        level_ids = list({link["education_level_id"] for link in links})
        levels = {
            level["id"]: EducationLevelSummary(**level)
            for level in (self.levels.find({"id": level_ids}) if level_ids else [])
        }
        personnel = self.personnel.find({"class_room_id": ids}, columns=PERSONNEL_COLUMNS)

        levels_by_room: Dict[str, List[EducationLevelSummary]] = {room_id: [] for room_id in ids}
        for link in links:
            level = levels.get(link["education_level_id"])
            if level is not None:
                levels_by_room[link["class_room_id"]].append(level)
        personnel_by_room: Dict[str, List[PersonnelResponse]] = {room_id: [] for room_id in ids}
        for member in personnel:
            personnel_by_room[member["class_room_id"]].append(PersonnelResponse(**member))

        return [
            ClassRoomResponse(
                **row,
                education_levels=sorted(levels_by_room[row["id"]], key=lambda level: level.name),
                personnel=personnel_by_room[row["id"]]
            )
            for row in rows
        ]

    def _check_levels(self, establishment_id: str, level_ids: List[str]) -> List[str]:
        unique_ids = list(dict.fromkeys(level_ids))
        found = self.levels.find({"id": unique_ids, "establishment_id": establishment_id}, columns="id")
        missing = set(unique_ids) - {row["id"] for row in found}
        if missing:
            raise ValidationFailed(f"Unknown education levels: {', '.join(sorted(missing))}")
        return unique_ids

    def list_classrooms(self, establishment_id: str) -> List[ClassRoomResponse]:
        rows = self.classrooms.find({"establishment_id": establishment_id}, order_by="name")
        return self._assemble(rows)

    def get_classroom(self, classroom_id: str) -> ClassRoomResponse:
        return self._assemble([self._get_row(classroom_id)])[0]

    def create_classroom(self, data: ClassRoomCreate) -> ClassRoomResponse:
        level_ids = self._check_levels(data.establishment_id, data.education_level_ids)
        row = self.classrooms.create(data.model_dump(exclude={"education_level_ids"}))
        self.level_links.create_many([
            {"class_room_id": row["id"], "education_level_id": level_id} for level_id in level_ids
        ])
        logger.info(f"Created classroom {row['id']}")
        return self.get_classroom(row["id"])

    def update_classroom(self, classroom_id: str, data: ClassRoomUpdate) -> ClassRoomResponse:
        row = self._get_row(classroom_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"education_level_ids"})
        if data.education_level_ids is not None:
            level_ids = self._check_levels(row["establishment_id"], data.education_level_ids)
            self.level_links.delete({"class_room_id": classroom_id})
            self.level_links.create_many([
                {"class_room_id": classroom_id, "education_level_id": level_id} for level_id in level_ids
            ])
        if update_data:
            update_data["updated_at"] = now_iso()
            self.classrooms.update({"id": classroom_id}, update_data)
        return self.get_classroom(classroom_id)

    def delete_classroom(self, classroom_id: str) -> None:
        self._get_row(classroom_id)
        # level links and personnel go with the classroom (on delete cascade)
        self.classrooms.delete({"id": classroom_id})
        logger.info(f"Deleted classroom {classroom_id}")

    def assign_personnel(self, classroom_id: str, data: PersonnelAssign) -> PersonnelResponse:
        """Attach a staff member to a classroom, or update their role when already attached"""
        self._get_row(classroom_id)
        if not self.users.find_one({"id": data.user_id}, columns="id"):
            raise NotFound("User not found")

        key = {"class_room_id": classroom_id, "user_id": data.user_id}
        if self.personnel.find_one(key, columns="id"):
            self.personnel.update(key, {"role_in_class": data.role_in_class})
        else:
            self.personnel.create({**key, "role_in_class": data.role_in_class})
        return PersonnelResponse(**self.personnel.find_one(key, columns=PERSONNEL_COLUMNS))

    def remove_personnel(self, classroom_id: str, user_id: str) -> None:
        removed = self.personnel.delete({"class_room_id": classroom_id, "user_id": user_id})
        if not removed:
            raise NotFound("This user is not assigned to the classroom")
