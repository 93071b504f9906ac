import pytest
from pydantic import ValidationError

from scolitrack.core.encryption import is_encrypted
from scolitrack.core.exceptions import Conflict, NotFound, ValidationFailed
from scolitrack.modules.classrooms.schemas import ClassRoomCreate, ClassRoomUpdate, PersonnelAssign
from scolitrack.modules.classrooms.service import ClassRoomService
from scolitrack.modules.commissions.schemas import CommissionCreate, MemberAdd, MemberRoleUpdate
from scolitrack.modules.commissions.service import CommissionService
from scolitrack.modules.establishment.schemas import EducationLevelCreate, EstablishmentUpsert
from scolitrack.modules.establishment.service import EducationLevelService, EstablishmentService


@pytest.fixture
def head(make_user):
    return make_user("direction@example.com", role_name="ADMIN", name="Marie Curie")


@pytest.fixture
def establishment(supabase, head):
    return supabase.seed(
        "establishments", name="Lycée Victor Hugo", address="1 rue de l'École",
        postal_code="75005", city="Paris", admin_id=head["id"]
    )


@pytest.fixture
def levels(supabase, establishment):
    return [
        supabase.seed("education_levels", name=name, code=code, establishment_id=establishment["id"])
        for name, code in (("Sixième", "6E"), ("Cinquième", "5E"))
    ]


def upsert(admin_id, **changes):
    data = {
        "name": "Lycée Victor Hugo", "address": "1 rue de l'École", "postal_code": "75005",
        "city": "Paris", "admin_id": admin_id, **changes
    }
    return EstablishmentUpsert(**data)


class TestEstablishment:
    def test_create_then_update(self, supabase, interceptor, users, head):
        service = EstablishmentService(supabase, interceptor, users)

        created, was_created = service.upsert_establishment(upsert(head["id"]))
        updated, was_created_again = service.upsert_establishment(upsert(head["id"], city="Lyon"))

        assert was_created and not was_created_again
        assert updated.id == created.id
        assert updated.city == "Lyon"
        assert len(supabase.tables["establishments"]) == 1

    def test_head_name_is_decrypted(self, supabase, interceptor, users, establishment):
        service = EstablishmentService(supabase, interceptor, users)

        result = service.get_establishment()

        assert result.admin.name == "Marie Curie"
        assert is_encrypted(supabase.tables["users"][0]["name"])

    def test_unknown_head(self, supabase, interceptor, users):
        service = EstablishmentService(supabase, interceptor, users)

        with pytest.raises(NotFound):
            service.upsert_establishment(upsert("missing"))

    def test_no_establishment_yet(self, supabase, interceptor, users):
        assert EstablishmentService(supabase, interceptor, users).get_establishment() is None

    def test_postal_code_is_checked(self):
        with pytest.raises(ValidationError):
            upsert("u-1", postal_code="ABCDE")


class TestEducationLevels:
    def test_code_is_normalized(self, supabase, establishment):
        level = EducationLevelService(supabase).create_level(
            EducationLevelCreate(name="Quatrième", code=" 4e ", establishment_id=establishment["id"])
        )

        assert level.code == "4E"

    def test_duplicate_code(self, supabase, levels, establishment):
        with pytest.raises(Conflict):
            EducationLevelService(supabase).create_level(
                EducationLevelCreate(name="Sixième bis", code="6E", establishment_id=establishment["id"])
            )

    def test_list_is_sorted(self, supabase, levels, establishment):
        names = [level.name for level in EducationLevelService(supabase).list_levels(establishment["id"])]

        assert names == ["Cinquième", "Sixième"]


class TestClassRooms:
    def test_create_with_levels(self, supabase, interceptor, establishment, levels):
        service = ClassRoomService(supabase, interceptor)

        room = service.create_classroom(ClassRoomCreate(
            name="6e A", establishment_id=establishment["id"], education_level_ids=[levels[0]["id"]]
        ))

        assert [level.code for level in room.education_levels] == ["6E"]
        assert room.personnel == []

    def test_level_of_another_establishment(self, supabase, interceptor, establishment):
        service = ClassRoomService(supabase, interceptor)

        with pytest.raises(ValidationFailed):
            service.create_classroom(ClassRoomCreate(
                name="6e A", establishment_id=establishment["id"], education_level_ids=["elsewhere"]
            ))

    def test_update_replaces_levels(self, supabase, interceptor, establishment, levels):
        service = ClassRoomService(supabase, interceptor)
        room = service.create_classroom(ClassRoomCreate(
            name="6e A", establishment_id=establishment["id"], education_level_ids=[levels[0]["id"]]
        ))

        updated = service.update_classroom(room.id, ClassRoomUpdate(education_level_ids=[levels[1]["id"]]))

        assert [level.code for level in updated.education_levels] == ["5E"]

    def test_personnel_assignment_is_upserted(self, supabase, interceptor, establishment, levels, head):
        service = ClassRoomService(supabase, interceptor)
        room = service.create_classroom(ClassRoomCreate(
            name="6e A", establishment_id=establishment["id"], education_level_ids=[levels[0]["id"]]
        ))

        service.assign_personnel(room.id, PersonnelAssign(user_id=head["id"], role_in_class="Professeur"))
        member = service.assign_personnel(room.id, PersonnelAssign(user_id=head["id"], role_in_class="Principal"))

        assert member.role_in_class == "Principal"
        assert member.user.name == "Marie Curie"
        assert len(service.get_classroom(room.id).personnel) == 1

    def test_remove_unassigned_personnel(self, supabase, interceptor):
        with pytest.raises(NotFound):
            ClassRoomService(supabase, interceptor).remove_personnel("room", "user")

    def test_delete(self, supabase, interceptor, establishment, levels):
        service = ClassRoomService(supabase, interceptor)
        room = service.create_classroom(ClassRoomCreate(
            name="6e A", establishment_id=establishment["id"], education_level_ids=[levels[0]["id"]]
        ))

        service.delete_classroom(room.id)

        assert supabase.tables["class_room_education_levels"] == []
        with pytest.raises(NotFound):
            service.get_classroom(room.id)


class TestCommissions:
    def test_members(self, supabase, interceptor, establishment, head):
        service = CommissionService(supabase, interceptor)
        commission = service.create_commission(CommissionCreate(name="Sécurité", establishment_id=establishment["id"]))

        service.add_member(commission.id, MemberAdd(user_id=head["id"], role="Présidente"))
        member = service.update_member_role(commission.id, head["id"], MemberRoleUpdate(role="Secrétaire"))

        assert member.role == "Secrétaire"
        assert member.user.name == "Marie Curie"
        assert [c.name for c in service.list_user_commissions(head["id"])] == ["Sécurité"]

    def test_duplicate_member(self, supabase, interceptor, establishment, head):
        service = CommissionService(supabase, interceptor)
        commission = service.create_commission(CommissionCreate(name="Sécurité", establishment_id=establishment["id"]))
        service.add_member(commission.id, MemberAdd(user_id=head["id"], role="Membre"))

        with pytest.raises(Conflict):
            service.add_member(commission.id, MemberAdd(user_id=head["id"], role="Membre"))

    def test_unknown_establishment(self, supabase, interceptor):
        with pytest.raises(NotFound):
            CommissionService(supabase, interceptor).create_commission(
                CommissionCreate(name="Sécurité", establishment_id="missing")
            )

    def test_delete_removes_members(self, supabase, interceptor, establishment, head):
        service = CommissionService(supabase, interceptor)
        commission = service.create_commission(CommissionCreate(name="Sécurité", establishment_id=establishment["id"]))
        service.add_member(commission.id, MemberAdd(user_id=head["id"], role="Membre"))

        service.delete_commission(commission.id)

        assert supabase.tables["commission_members"] == []
        assert service.list_user_commissions(head["id"]) == []


class TestEstablishmentRoutes:
    def test_upsert_status_codes(self, client, super_admin, head, auth_headers):
        body = {
            "name": "Lycée Victor Hugo", "address": "1 rue de l'École", "postal_code": "75005",
            "city": "Paris", "admin_id": head["id"], "website": "https://lycee.example.fr"
        }

        created = client.put("/api/v1/establishment", json=body, headers=auth_headers(super_admin))
        updated = client.put("/api/v1/establishment", json={**body, "city": "Lyon"}, headers=auth_headers(super_admin))

        assert created.status_code == 201
        assert updated.status_code == 200
        assert updated.json()["data"]["admin"]["name"] == "Marie Curie"

    def test_empty_establishment(self, client, super_admin, auth_headers):
        response = client.get("/api/v1/establishment", headers=auth_headers(super_admin))

        assert response.status_code == 200
        assert response.json()["data"] is None
        assert response.json()["feedback"] == "No establishment configured"
