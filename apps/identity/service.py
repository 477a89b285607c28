from typing import List, Optional
from loguru import logger
from datarepo.context.scope import Scope
from datarepo.exceptions.errors import NotFoundError, PersistenceError
from datarepo.exceptions.handler import BusinessException
from datarepo.repository.options import SaveOptions
from .models import Tenant, User
from .repository import TenantRepository, UserRepository

class IdentityService:
    def __init__(self, scope: Scope):
        """Both repositories resolve the scope's shared context, so they see each other's pending changes."""
        self.scope = scope
        self.tenants = TenantRepository(scope)
        self.users = UserRepository(scope)

    async def register_tenant_admin(self, tenant_name: str, username: str, email: Optional[str] = None) -> User:
        """Register a new tenant and its admin in one unit of work."""
        if await self.tenants.get_by_name(tenant_name):
            raise BusinessException("Tenant/org name already registered", code=400)

        tenant = self.tenants.add(Tenant(name=tenant_name))
        # Flush only, to obtain the tenant id inside the open transaction
        await self.tenants.save_changes(SaveOptions.NONE | SaveOptions.ROLLBACK_ON_FAILURE)

        user = self.users.add(
            User(username=username, email=email, tenant_id=tenant.id, role="admin")
        )
        try:
            await self.users.save_changes()
        except PersistenceError:
            logger.warning(f"Registration of tenant {tenant_name} rolled back")
            raise

        logger.info(f"Tenant {tenant_name} created with admin {username}")
        return user

    async def list_tenants(self) -> List[Tenant]:
        return await self.tenants.get_all()

    async def get_tenant(self, tenant_id: int) -> Tenant:
        return await self.tenants.single(Tenant.id == tenant_id)

    async def rename_tenant(self, tenant_id: int, name: str, description: Optional[str]) -> Tenant:
        """Apply new values through a detached copy, the way a client round-trip would."""
        changes = Tenant(id=tenant_id, name=name, description=description)
        tenant = await self.tenants.modify(changes)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def delete_tenant(self, tenant_id: int) -> int:
        """Delete a tenant together with its users; returns the number of users removed."""
        tenant = await self.tenants.single(Tenant.id == tenant_id)
        removed = await self.users.delete_where(tenant_id=tenant_id)
        # Users first so the foreign key holds at flush time
        await self.users.save_changes(SaveOptions.NONE | SaveOptions.ROLLBACK_ON_FAILURE)
        await self.tenants.remove(tenant)
        logger.info(f"Tenant {tenant_id} deleted with {removed} user(s)")
        return removed

    async def add_user(self, tenant_id: int, username: str, email: Optional[str], role: str) -> User:
        await self.tenants.single(Tenant.id == tenant_id)
        return await self.users.create(
            User(username=username, email=email, tenant_id=tenant_id, role=role)
        )

    async def list_users(self, tenant_id: int) -> List[User]:
        return await self.users.get_by_tenant_id(tenant_id)

    async def get_user(self, username: str) -> User:
        return await self.users.single(username=username)
