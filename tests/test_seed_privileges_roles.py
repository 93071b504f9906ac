import pytest

from scolitrack.config import settings
from scolitrack.config.privileges_config import (
    ADMIN_EXCLUDED_PRIVILEGES,
    ADMIN_ROLE,
    ALL_PRIVILEGE_NAMES,
    SUPER_ADMIN_ROLE,
    USER_ROLE,
)
from scolitrack.core.encryption import is_encrypted
from scolitrack.core.security import verify_password
from scolitrack.scripts.seed_privileges_roles import seed_privileges, seed_roles, seed_super_admin


def role_row(supabase, role_name):
    return next(row for row in supabase.tables["roles"] if row["name"] == role_name)


def linked_privileges(supabase, role_name):
    role_id = role_row(supabase, role_name)["id"]
    names = {row["id"]: row["name"] for row in supabase.tables["privileges"]}
    return {names[row["privilege_id"]] for row in supabase.tables["role_privileges"] if row["role_id"] == role_id}


@pytest.fixture
def seed_all(supabase):
    def _seed_all():
        ids = seed_privileges(supabase)
        return ids, seed_roles(supabase, ids)
    return _seed_all


class TestSeedRoles:
    def test_first_run(self, supabase, seed_all):
        ids, role_count = seed_all()

        assert set(ids) == ALL_PRIVILEGE_NAMES
        assert role_count == 3
        assert linked_privileges(supabase, SUPER_ADMIN_ROLE) == ALL_PRIVILEGE_NAMES
        assert linked_privileges(supabase, ADMIN_ROLE) == ALL_PRIVILEGE_NAMES - ADMIN_EXCLUDED_PRIVILEGES
        assert linked_privileges(supabase, USER_ROLE) == set()
        assert all(row["is_permanent"] for row in supabase.tables["roles"])

    def test_second_run_changes_nothing(self, supabase, seed_all):
        seed_all()
        links = len(supabase.tables["role_privileges"])

        seed_all()

        assert len(supabase.tables["privileges"]) == len(ALL_PRIVILEGE_NAMES)
        assert len(supabase.tables["roles"]) == 3
        assert len(supabase.tables["role_privileges"]) == links

    def test_second_run_restores_the_templates(self, supabase, seed_all):
        ids, _ = seed_all()
        admin = role_row(supabase, ADMIN_ROLE)
        admin["description"] = "edited by hand"
        supabase.seed("role_privileges", role_id=admin["id"], privilege_id=ids["SETUP_APPLICATION"])
        supabase.tables["role_privileges"] = [
            row for row in supabase.tables["role_privileges"]
            if not (row["role_id"] == admin["id"] and row["privilege_id"] == ids["UPLOAD_FILES"])
        ]

        seed_all()

        assert linked_privileges(supabase, ADMIN_ROLE) == ALL_PRIVILEGE_NAMES - ADMIN_EXCLUDED_PRIVILEGES
        assert role_row(supabase, ADMIN_ROLE)["description"] != "edited by hand"


class TestSeedSuperAdmin:
    @pytest.fixture(autouse=True)
    def credentials(self, monkeypatch):
        monkeypatch.setattr(settings, "super_admin_email", "Root@Example.com")
        monkeypatch.setattr(settings, "super_admin_password", "Sup3r!Secret")

    def test_created_once(self, supabase, interceptor, seed_all):
        seed_all()

        assert seed_super_admin(supabase, interceptor) is True
        assert seed_super_admin(supabase, interceptor) is False

        [stored] = supabase.tables["users"]
        assert stored["email"] == "root@example.com"
        assert stored["role_name"] == SUPER_ADMIN_ROLE
        assert stored["email_verified"] is not None
        assert is_encrypted(stored["name"])
        assert interceptor.decrypt_value(stored["name"]) == "Super Admin"
        assert verify_password("Sup3r!Secret", stored["password"])

    def test_skipped_without_password(self, supabase, interceptor, monkeypatch):
        monkeypatch.setattr(settings, "super_admin_password", None)

        assert seed_super_admin(supabase, interceptor) is False
        assert supabase.tables.get("users", []) == []

    def test_skipped_when_email_is_taken(self, supabase, interceptor, make_user):
        make_user("root@example.com")

        assert seed_super_admin(supabase, interceptor) is False
        assert [row["role_name"] for row in supabase.tables["users"]] == [USER_ROLE]
