"""Identity API test cases: repositories driven through request scopes."""
from httpx import AsyncClient
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from apps.identity.models import Tenant, User
from datarepo.config import settings

PREFIX = settings.API_V1_IDENTITY_PREFIX


class TestRegister:
    """Tenant + admin registration in one unit of work."""

    async def test_register_creates_tenant_and_admin(self, client: AsyncClient, async_session: AsyncSession):
        response = await client.post(
            f"{PREFIX}/register",
            json={"tenant_name": "acme", "username": "root", "email": "root@acme.test"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == 200
        assert data["data"]["username"] == "root"
        assert data["data"]["role"] == "admin"
        assert data["data"]["id"] is not None
        assert response.headers["X-Trace-ID"]

        tenant = (await async_session.exec(select(Tenant).where(Tenant.name == "acme"))).one()
        assert data["data"]["tenant_id"] == tenant.id

    async def test_register_duplicate_tenant(self, client: AsyncClient, sample_tenant: Tenant):
        response = await client.post(
            f"{PREFIX}/register",
            json={"tenant_name": sample_tenant.name, "username": "other"},
        )

        assert response.status_code == 200
        assert response.json()["code"] == 400


class TestTenants:
    """Tenant CRUD endpoints."""

    async def test_list_and_get(self, client: AsyncClient, sample_tenant: Tenant):
        response = await client.get(f"{PREFIX}/tenants")
        assert response.status_code == 200
        assert [t["name"] for t in response.json()["data"]] == ["acme"]

        response = await client.get(f"{PREFIX}/tenants/{sample_tenant.id}")
        assert response.status_code == 200
        assert response.json()["data"]["description"] == "Acme Corp"

    async def test_get_missing_tenant(self, client: AsyncClient):
        response = await client.get(f"{PREFIX}/tenants/999")

        assert response.status_code == 404
        assert response.json()["code"] == 404

    async def test_update_tenant(self, client: AsyncClient, sample_tenant: Tenant, async_session: AsyncSession):
        response = await client.put(
            f"{PREFIX}/tenants/{sample_tenant.id}",
            json={"name": "acme-renamed", "description": "Renamed"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "acme-renamed"

        async_session.expire_all()
        tenant = await async_session.get(Tenant, sample_tenant.id)
        assert tenant.name == "acme-renamed"
        assert tenant.description == "Renamed"

    async def test_update_missing_tenant(self, client: AsyncClient):
        response = await client.put(f"{PREFIX}/tenants/999", json={"name": "ghost"})

        assert response.status_code == 404

    async def test_delete_tenant_with_users(
        self, client: AsyncClient, sample_tenant: Tenant, sample_user: User, async_session: AsyncSession
    ):
        response = await client.delete(f"{PREFIX}/tenants/{sample_tenant.id}")

        assert response.status_code == 200
        assert response.json()["data"]["users_removed"] == 1

        async_session.expire_all()
        assert (await async_session.exec(select(Tenant))).all() == []
        assert (await async_session.exec(select(User))).all() == []


class TestUsers:
    """User endpoints."""

    async def test_add_and_list_users(self, client: AsyncClient, sample_tenant: Tenant):
        response = await client.post(
            f"{PREFIX}/tenants/{sample_tenant.id}/users",
            json={"username": "jane", "email": "jane@acme.test"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["role"] == "member"

        response = await client.get(f"{PREFIX}/tenants/{sample_tenant.id}/users")
        assert [u["username"] for u in response.json()["data"]] == ["jane"]

        response = await client.get(f"{PREFIX}/users/jane")
        assert response.json()["data"]["tenant_id"] == sample_tenant.id

    async def test_duplicate_username_conflicts(self, client: AsyncClient, sample_tenant: Tenant, sample_user: User):
        response = await client.post(
            f"{PREFIX}/tenants/{sample_tenant.id}/users",
            json={"username": sample_user.username},
        )

        assert response.status_code == 409
        assert response.json()["code"] == 409

    async def test_add_user_to_missing_tenant(self, client: AsyncClient):
        response = await client.post(f"{PREFIX}/tenants/999/users", json={"username": "nobody"})

        assert response.status_code == 404

    async def test_validation_error(self, client: AsyncClient, sample_tenant: Tenant):
        response = await client.post(f"{PREFIX}/tenants/{sample_tenant.id}/users", json={})

        assert response.status_code == 422
