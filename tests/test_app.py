import pytest
from httpx import ASGITransport, AsyncClient

from hcp.core.errors import ServerMisconfigured
from hcp.main import create_app, seed_bootstrap_admin
from hcp.repositories import Repositories
from hcp.storage.memory import MemoryStorage

from conftest import make_settings


def test_missing_secret_fails_at_startup():
    with pytest.raises(ServerMisconfigured):
        create_app(make_settings(SECRET_KEY=""), MemoryStorage())


async def test_health_and_root(client):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    root = await client.get("/")
    assert root.json()["version"] == "1.0.0"


async def test_health_reports_unreadable_storage(client, storage):
    storage.put_raw("hcp_audit_logs", "{oops")
    response = await client.get("/health")
    assert response.status_code == 503


async def test_bootstrap_admin_seeded_once():
    config = make_settings(BOOTSTRAP_ADMIN_EMAIL="Root@Example.com", BOOTSTRAP_ADMIN_PASSWORD="changeme!")
    repos = Repositories(MemoryStorage(), config)

    admin = await seed_bootstrap_admin(repos, config)
    assert admin.is_super_admin
    assert admin.email == "root@example.com"
    assert await seed_bootstrap_admin(repos, config) is None
    assert len(await repos.admins.get_all()) == 1


async def test_lifespan_seeds_bootstrap_admin():
    config = make_settings(BOOTSTRAP_ADMIN_EMAIL="root@example.com", BOOTSTRAP_ADMIN_PASSWORD="changeme!")
    storage = MemoryStorage()
    app = create_app(config, storage)

    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/v1/auth/login", json={"email": "root@example.com", "password": "changeme!"})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "Super Admin (HQ)"
