from scolitrack.config.privileges_config import (
    ADMIN_ROLE,
    ALL_PRIVILEGE_NAMES,
    PERMANENT_ROLES,
    PrivilegeName,
    SUPER_ADMIN_ROLE,
    USER_ROLE,
    has_all_privileges,
    has_any_privilege,
    has_privilege,
    is_known_privilege,
    list_all_privileges,
    privileges_excluded_from_role,
    privileges_for_role_template,
)


class TestRegistry:
    def test_lists_every_privilege_once_with_description(self):
        privileges = list_all_privileges()

        names = [p["name"] for p in privileges]
        assert len(names) == 9
        assert len(set(names)) == len(names)
        assert set(names) == ALL_PRIVILEGE_NAMES
        assert all(p["description"] for p in privileges)

    def test_order_is_stable(self):
        assert list_all_privileges() == list_all_privileges()
        assert list_all_privileges()[0]["name"] == PrivilegeName.SETUP_APPLICATION.value

    def test_known_privilege(self):
        assert is_known_privilege("DELETE_DATA")
        assert not is_known_privilege("delete_data")
        assert not is_known_privilege("LAUNCH_ROCKETS")


class TestRoleTemplates:
    def test_super_admin_gets_everything(self):
        assert privileges_excluded_from_role(SUPER_ADMIN_ROLE) == frozenset()
        assert set(privileges_for_role_template(SUPER_ADMIN_ROLE)) == ALL_PRIVILEGE_NAMES

    def test_admin_keeps_files_and_commissions(self):
        assert privileges_for_role_template(ADMIN_ROLE) == ["UPLOAD_FILES", "MANAGE_COMMISSIONS"]

    def test_user_gets_nothing(self):
        assert privileges_for_role_template(USER_ROLE) == []

    def test_unknown_template_excludes_everything(self):
        assert privileges_excluded_from_role("TEACHER") == ALL_PRIVILEGE_NAMES
        assert privileges_for_role_template("TEACHER") == []

    def test_built_in_roles_are_permanent(self):
        assert PERMANENT_ROLES == {SUPER_ADMIN_ROLE, ADMIN_ROLE, USER_ROLE}


class TestPrivilegeChecks:
    def test_has_privilege_accepts_enum_or_name(self):
        granted = ["UPDATE_DATA"]

        assert has_privilege(granted, PrivilegeName.UPDATE_DATA)
        assert has_privilege(granted, "UPDATE_DATA")
        assert not has_privilege(granted, PrivilegeName.DELETE_DATA)

    def test_any_and_all(self):
        granted = {"UPDATE_DATA", "UPLOAD_FILES"}

        assert has_any_privilege(granted, [PrivilegeName.DELETE_DATA, PrivilegeName.UPLOAD_FILES])
        assert not has_all_privileges(granted, [PrivilegeName.DELETE_DATA, PrivilegeName.UPLOAD_FILES])
        assert has_all_privileges(granted, ["UPDATE_DATA", "UPLOAD_FILES"])

    def test_nothing_granted(self):
        assert not has_privilege(None, "UPDATE_DATA")
        assert not has_any_privilege([], ["UPDATE_DATA"])
