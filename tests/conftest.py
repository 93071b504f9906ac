import base64
import os

from tests.fakes import TEST_JWT_SECRET

# Settings are read at import time
TEST_ENCRYPTION_KEY = base64.b64encode(bytes(range(32))).decode("ascii")
os.environ["ENCRYPTION_KEY"] = TEST_ENCRYPTION_KEY
os.environ["JWT_SECRET_KEY"] = TEST_JWT_SECRET
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from scolitrack.config.privileges_config import (  # noqa: E402
    ROLE_TEMPLATES,
    SUPER_ADMIN_ROLE,
    list_all_privileges,
    privileges_for_role_template,
)
from scolitrack.core.dependencies import get_field_cipher  # noqa: E402
from scolitrack.core.encryption import (  # noqa: E402
    EncryptedRepository,
    EntityKind,
    FieldCipher,
    FieldEncryptionInterceptor,
)
from scolitrack.core.mailer import Mailer, get_mailer  # noqa: E402
from scolitrack.core.security import TokenService, get_token_service, hash_password  # noqa: E402
from scolitrack.database.repository import TableRepository  # noqa: E402
from scolitrack.database.supabase_client import get_supabase  # noqa: E402
from scolitrack.main import app  # noqa: E402
from tests.fakes import TEST_PASSWORD, FakeSupabase  # noqa: E402


@pytest.fixture
def cipher():
    return FieldCipher(TEST_ENCRYPTION_KEY)


@pytest.fixture
def interceptor(cipher):
    return FieldEncryptionInterceptor(cipher)


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def seeded(supabase):
    """Registry privileges and the three built-in roles, like the seed script leaves them"""
    privilege_ids = {}
    for privilege in list_all_privileges():
        privilege_ids[privilege["name"]] = supabase.seed("privileges", **privilege)["id"]
    role_ids = {}
    for role_name, template in ROLE_TEMPLATES.items():
        role_ids[role_name] = supabase.seed(
            "roles", name=role_name, description=template["description"], is_permanent=True
        )["id"]
        for name in privileges_for_role_template(role_name):
            supabase.seed("role_privileges", role_id=role_ids[role_name], privilege_id=privilege_ids[name])
    return {"privileges": privilege_ids, "roles": role_ids}


@pytest.fixture
def users(supabase, interceptor):
    return EncryptedRepository(TableRepository(supabase, "users"), interceptor, EntityKind.USER)


@pytest.fixture
def make_user(users):
    """Create a user through the encrypted repository (name stored encrypted)"""
    def _make_user(email, role_name="USER", name="Jean Dupont", password=TEST_PASSWORD, **extra):
        return users.create({
            "email": email,
            "name": name,
            "role_name": role_name,
            "password": hash_password(password) if password else None,
            **extra
        })
    return _make_user


@pytest.fixture
def make_role(supabase, seeded):
    """Create a custom role holding the given privilege names"""
    def _make_role(name, privileges=(), is_permanent=False):
        role = supabase.seed("roles", name=name, description=None, is_permanent=is_permanent)
        for privilege in privileges:
            supabase.seed("role_privileges", role_id=role["id"], privilege_id=seeded["privileges"][privilege])
        return role
    return _make_role


@pytest.fixture
def tokens():
    return TokenService(TEST_JWT_SECRET, expire_minutes=60)


@pytest.fixture
def mailer():
    return MagicMock(spec=Mailer)


@pytest.fixture
def client(supabase, cipher, mailer, tokens):
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_field_cipher] = lambda: cipher
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_token_service] = lambda: tokens
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(tokens):
    """Bearer header for an existing user row"""
    def _auth_headers(user):
        return {"Authorization": f"Bearer {tokens.create_access_token(user['id'], user['role_name'])}"}
    return _auth_headers


@pytest.fixture
def super_admin(seeded, make_user):
    return make_user("admin@admin.com", role_name=SUPER_ADMIN_ROLE, name="Super Admin")
