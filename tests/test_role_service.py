import pytest
from postgrest.exceptions import APIError

from scolitrack.config.privileges_config import ADMIN_ROLE, SUPER_ADMIN_ROLE, USER_ROLE
from scolitrack.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from scolitrack.modules.privileges.service import PrivilegeService, normalize_name
from scolitrack.modules.roles.schemas import RoleCreate, RoleUpdate
from scolitrack.modules.roles.service import REPLACE_ROLE_PRIVILEGES, SUPER_ADMIN_TAKEN, RoleService


@pytest.fixture
def service(supabase, users, seeded):
    return RoleService(supabase, users)


def privilege_names(role):
    return [p.name for p in role.privileges]


class TestListRoles:
    def test_super_admin_is_never_listed(self, service):
        names = [role.name for role in service.list_roles()]

        assert SUPER_ADMIN_ROLE not in names
        assert names == [ADMIN_ROLE, USER_ROLE]

    def test_roles_carry_their_privileges(self, service):
        admin = next(role for role in service.list_roles() if role.name == ADMIN_ROLE)

        assert admin.is_permanent
        assert privilege_names(admin) == ["MANAGE_COMMISSIONS", "UPLOAD_FILES"]


class TestCreateRole:
    def test_name_is_normalized(self, service, seeded):
        role = service.create_role(RoleCreate(
            name="  professeur principal ",
            privilege_ids=[seeded["privileges"]["UPDATE_DATA"]]
        ))

        assert role.name == "PROFESSEUR_PRINCIPAL"
        assert not role.is_permanent
        assert privilege_names(role) == ["UPDATE_DATA"]

    def test_privileges_go_through_the_atomic_replacement(self, service, supabase, seeded):
        service.create_role(RoleCreate(name="TEACHER", privilege_ids=[seeded["privileges"]["UPDATE_DATA"]]))

        assert (REPLACE_ROLE_PRIVILEGES, "rpc") in supabase.calls

    def test_duplicate_name(self, service):
        with pytest.raises(Conflict):
            service.create_role(RoleCreate(name="admin"))

    def test_unknown_privilege_id(self, service, supabase):
        with pytest.raises(ValidationFailed):
            service.create_role(RoleCreate(name="TEACHER", privilege_ids=["missing"]))
        assert not any(row["name"] == "TEACHER" for row in supabase.tables["roles"])

    def test_failed_privilege_replacement_leaves_no_role(self, service, supabase, seeded):
        supabase.rpc_error = APIError({"code": "XX000", "message": "connection lost"})

        with pytest.raises(APIError):
            service.create_role(RoleCreate(name="TEACHER", privilege_ids=[seeded["privileges"]["UPDATE_DATA"]]))
        assert not any(row["name"] == "TEACHER" for row in supabase.tables["roles"])


class TestUpdateRole:
    def test_privilege_set_is_replaced_whole(self, service, make_role, seeded):
        role = make_role("TEACHER", privileges=["UPDATE_DATA", "UPLOAD_FILES"])

        updated = service.update_role(role["id"], RoleUpdate(
            privilege_ids=[seeded["privileges"]["DELETE_DATA"], seeded["privileges"]["DELETE_DATA"]]
        ))

        assert privilege_names(updated) == ["DELETE_DATA"]

    def test_failed_replacement_keeps_previous_set(self, service, supabase, make_role, seeded):
        role = make_role("TEACHER", privileges=["UPDATE_DATA"])
        supabase.rpc_error = APIError({"code": "XX000", "message": "connection lost"})

        with pytest.raises(APIError):
            service.update_role(role["id"], RoleUpdate(privilege_ids=[seeded["privileges"]["DELETE_DATA"]]))

        supabase.rpc_error = None
        assert privilege_names(service.get_role(role["id"])) == ["UPDATE_DATA"]

    def test_description_only_keeps_privileges(self, service, make_role):
        role = make_role("TEACHER", privileges=["UPDATE_DATA"])

        updated = service.update_role(role["id"], RoleUpdate(description="Enseignant"))

        assert updated.description == "Enseignant"
        assert privilege_names(updated) == ["UPDATE_DATA"]

    def test_rename_is_normalized(self, service, make_role):
        role = make_role("TEACHER")

        assert service.update_role(role["id"], RoleUpdate(name="head teacher")).name == "HEAD_TEACHER"

    def test_rename_onto_existing_name(self, service, make_role):
        role = make_role("TEACHER")

        with pytest.raises(Conflict):
            service.update_role(role["id"], RoleUpdate(name="admin"))

    def test_permanent_role_cannot_be_renamed(self, service, seeded):
        with pytest.raises(Forbidden):
            service.update_role(seeded["roles"][ADMIN_ROLE], RoleUpdate(name="BOSS"))

    def test_unknown_role(self, service):
        with pytest.raises(NotFound):
            service.update_role("missing", RoleUpdate(description="x"))


class TestDeleteRole:
    def test_permanent_role(self, service, seeded):
        with pytest.raises(Forbidden):
            service.delete_role(seeded["roles"][USER_ROLE])

    def test_role_still_assigned(self, service, make_role, make_user):
        role = make_role("TEACHER")
        make_user("prof@example.com", role_name="TEACHER")

        with pytest.raises(Conflict) as exc_info:
            service.delete_role(role["id"])
        assert "1 user" in exc_info.value.feedback

    def test_deleted_role_disappears_with_its_links(self, service, supabase, make_role):
        role = make_role("TEACHER", privileges=["UPDATE_DATA"])

        service.delete_role(role["id"])

        assert "TEACHER" not in [r.name for r in service.list_roles()]
        assert not [row for row in supabase.tables["role_privileges"] if row["role_id"] == role["id"]]
        with pytest.raises(NotFound):
            service.get_role(role["id"])

    def test_refused_delete_keeps_the_privileges(self, service, make_role, make_user, monkeypatch):
        role = make_role("TEACHER", privileges=["UPDATE_DATA", "UPLOAD_FILES"])
        make_user("prof@example.com", role_name="TEACHER")
        # The holder count misses an assignment committed by a concurrent request
        monkeypatch.setattr(service.users, "count", lambda filters=None: 0)

        with pytest.raises(Conflict, match="TEACHER is assigned"):
            service.delete_role(role["id"])
        assert privilege_names(service.get_role(role["id"])) == ["UPDATE_DATA", "UPLOAD_FILES"]


class TestDeletePrivilege:
    def test_roles_lose_the_deleted_privilege(self, service, supabase, seeded):
        PrivilegeService(supabase).delete_privilege(seeded["privileges"]["UPLOAD_FILES"])

        assert privilege_names(service.get_role(seeded["roles"][ADMIN_ROLE])) == ["MANAGE_COMMISSIONS"]
        assert "UPLOAD_FILES" not in [p.name for p in PrivilegeService(supabase).list_privileges()]


class TestAssignRole:
    def test_assign(self, service, make_role, make_user):
        make_role("TEACHER")
        user = make_user("prof@example.com")

        result = service.assign_role_to_user(user["id"], "TEACHER")

        assert result.role_name == "TEACHER"
        assert result.name == "Jean Dupont"

    def test_unknown_role(self, service, make_user):
        user = make_user("prof@example.com")

        with pytest.raises(NotFound, match="GHOST"):
            service.assign_role_to_user(user["id"], "GHOST")

    def test_unknown_user(self, service):
        with pytest.raises(NotFound):
            service.assign_role_to_user("missing", USER_ROLE)

    def test_second_super_admin_is_refused(self, service, super_admin, make_user):
        other = make_user("other@example.com")

        with pytest.raises(Conflict) as exc_info:
            service.assign_role_to_user(other["id"], SUPER_ADMIN_ROLE)
        assert exc_info.value.feedback == SUPER_ADMIN_TAKEN

    def test_reassigning_current_holder_is_a_no_op(self, service, super_admin):
        result = service.assign_role_to_user(super_admin["id"], SUPER_ADMIN_ROLE)

        assert result.id == super_admin["id"]
        assert result.role_name == SUPER_ADMIN_ROLE

    def test_first_super_admin(self, service, seeded, make_user):
        user = make_user("boss@example.com")

        assert service.assign_role_to_user(user["id"], SUPER_ADMIN_ROLE).role_name == SUPER_ADMIN_ROLE

    def test_store_uniqueness_wins_a_race(self, service, super_admin, make_user, users, monkeypatch):
        # The holder check misses a super admin committed by a concurrent request
        other = make_user("other@example.com")
        real_find_one = users.find_one

        def stale_find_one(filters=None, columns="*"):
            if filters == {"role_name": SUPER_ADMIN_ROLE}:
                return None
            return real_find_one(filters, columns=columns)

        monkeypatch.setattr(users, "find_one", stale_find_one)

        with pytest.raises(Conflict) as exc_info:
            service.assign_role_to_user(other["id"], SUPER_ADMIN_ROLE)
        assert exc_info.value.feedback == SUPER_ADMIN_TAKEN


def test_normalize_name():
    assert normalize_name("  chef de projet ") == "CHEF_DE_PROJET"
