"""
Shared fixtures: settings, in-memory storage, repositories and an ASGI client.

Every test gets a fresh MemoryStorage; the app built by `create_app` shares it
with the `repos` fixture, so records seeded through `repos` are visible to API
calls. Admin passwords are hashed once per session (bcrypt is slow).
"""
import pytest
from httpx import ASGITransport, AsyncClient

from hcp.config import Settings
from hcp.core.security import create_access_token, get_password_hash
from hcp.main import create_app
from hcp.repositories import Repositories
from hcp.schemas.admin import AdminUser
from hcp.schemas.enums import AdminRole, AdminStatus
from hcp.storage.memory import MemoryStorage


TEST_SECRET = "test-secret-key-not-for-production-0123456789"
ADMIN_PASSWORD = "Passw0rd!"


def make_settings(**overrides) -> Settings:
    values = {
        "SECRET_KEY": TEST_SECRET,
        "STORAGE_BACKEND": "memory",
        "ENFORCE_PARTNER_SCOPE": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def token_for(admin: AdminUser, config: Settings) -> str:
    return create_access_token(
        subject=admin.id,
        role=admin.role.value,
        additional_claims={"email": admin.email},
        config=config,
    )


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def config() -> Settings:
    return make_settings()


@pytest.fixture(scope="session")
def password_hash() -> str:
    return get_password_hash(ADMIN_PASSWORD)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def repos(storage, config) -> Repositories:
    return Repositories(storage, config)


@pytest.fixture
async def super_admin(repos, password_hash) -> AdminUser:
    return await repos.admins.create(AdminUser(
        id="admin-hq",
        name="HQ Admin",
        email="hq@example.com",
        role=AdminRole.SUPER_ADMIN,
        status=AdminStatus.ACTIVE,
        password_hash=password_hash,
    ))


@pytest.fixture
async def community_admin(repos, password_hash) -> AdminUser:
    return await repos.admins.create(AdminUser(
        id="admin-p1",
        name="P1 Lead",
        email="lead@p1.example.com",
        role=AdminRole.COMMUNITY_ADMIN,
        status=AdminStatus.ACTIVE,
        assigned_codes=["P1"],
        password_hash=password_hash,
    ))


@pytest.fixture
def app(config, storage):
    return create_app(config, storage)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(super_admin, config) -> dict:
    return bearer(token_for(super_admin, config))


@pytest.fixture
def community_headers(community_admin, config) -> dict:
    return bearer(token_for(community_admin, config))


@pytest.fixture
def issue_token(config):
    """Bearer headers for any admin, signed with the test settings."""
    return lambda admin: bearer(token_for(admin, config))
