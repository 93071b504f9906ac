"""
Privileges and Roles Configuration
Single source of truth for the privilege names known to the application and the
built-in role templates. Used by the authorization guard, the seed script and
the privileges module.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List


class PrivilegeName(str, Enum):
    SETUP_APPLICATION = "SETUP_APPLICATION"
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_STUDENTS = "MANAGE_STUDENTS"
    MANAGE_MEDICAL_INFORMATIONS = "MANAGE_MEDICAL_INFORMATIONS"
    DELETE_DATA = "DELETE_DATA"
    UPDATE_DATA = "UPDATE_DATA"
    UPLOAD_FILES = "UPLOAD_FILES"
    MANAGE_COMMISSIONS = "MANAGE_COMMISSIONS"
    INSCRIPTION = "INSCRIPTION"


# Ordered: this is the order used by list_all_privileges() and the seed script
PRIVILEGE_DESCRIPTIONS: Dict[PrivilegeName, str] = {
    PrivilegeName.SETUP_APPLICATION: "Paramétrer l'application",
    PrivilegeName.MANAGE_USERS: "Gérer les utilisateurs",
    PrivilegeName.MANAGE_STUDENTS: "Gérer les élèves",
    PrivilegeName.MANAGE_MEDICAL_INFORMATIONS: "Gérer les informations médicales",
    PrivilegeName.DELETE_DATA: "Supprimer des données",
    PrivilegeName.UPDATE_DATA: "Modifier des données",
    PrivilegeName.UPLOAD_FILES: "Télécharger des fichiers",
    PrivilegeName.MANAGE_COMMISSIONS: "Gérer les commissions",
    PrivilegeName.INSCRIPTION: "Gérer les inscriptions",
}

SUPER_ADMIN_ROLE = "SUPER_ADMIN"
ADMIN_ROLE = "ADMIN"
USER_ROLE = "USER"

ALL_PRIVILEGE_NAMES: FrozenSet[str] = frozenset(p.value for p in PrivilegeName)

ADMIN_EXCLUDED_PRIVILEGES: FrozenSet[str] = frozenset({
    PrivilegeName.SETUP_APPLICATION.value,
    PrivilegeName.MANAGE_USERS.value,
    PrivilegeName.MANAGE_STUDENTS.value,
    PrivilegeName.MANAGE_MEDICAL_INFORMATIONS.value,
    PrivilegeName.DELETE_DATA.value,
    PrivilegeName.UPDATE_DATA.value,
    PrivilegeName.INSCRIPTION.value,
})

# Built-in role templates, all permanent
ROLE_TEMPLATES = {
    SUPER_ADMIN_ROLE: {
        "description": "Super administrateur avec tous les privilèges",
        "excluded": frozenset(),
    },
    ADMIN_ROLE: {
        "description": "Administrateur de l'établissement",
        "excluded": ADMIN_EXCLUDED_PRIVILEGES,
    },
    USER_ROLE: {
        "description": "Utilisateur standard",
        "excluded": ALL_PRIVILEGE_NAMES,
    },
}

PERMANENT_ROLES: FrozenSet[str] = frozenset(ROLE_TEMPLATES)


def _as_name(privilege) -> str:
    return privilege.value if isinstance(privilege, PrivilegeName) else str(privilege)


def list_all_privileges() -> List[Dict[str, str]]:
    """Return every registry privilege as {name, description}, in declaration order"""
    return [
        {"name": name.value, "description": description}
        for name, description in PRIVILEGE_DESCRIPTIONS.items()
    ]


def privileges_excluded_from_role(role_template: str) -> FrozenSet[str]:
    """
    Privilege names withheld from a built-in role template.
    Unknown templates get nothing, so everything is excluded.
    """
    template = ROLE_TEMPLATES.get(role_template)
    if template is None:
        return ALL_PRIVILEGE_NAMES
    return template["excluded"]


def privileges_for_role_template(role_template: str) -> List[str]:
    excluded = privileges_excluded_from_role(role_template)
    return [p["name"] for p in list_all_privileges() if p["name"] not in excluded]


def is_known_privilege(name: str) -> bool:
    return name in ALL_PRIVILEGE_NAMES


def has_privilege(granted: Iterable[str], required) -> bool:
    return _as_name(required) in set(granted or ())


def has_any_privilege(granted: Iterable[str], required: Iterable) -> bool:
    granted_set = set(granted or ())
    return any(_as_name(r) in granted_set for r in required)


def has_all_privileges(granted: Iterable[str], required: Iterable) -> bool:
    granted_set = set(granted or ())
    return all(_as_name(r) in granted_set for r in required)
