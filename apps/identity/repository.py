"""Identity module repository implementations."""

from typing import List, Optional
from sqlmodel.ext.asyncio.session import AsyncSession
from datarepo.context.scope import Scope
from datarepo.repository.base import BaseRepository
from .models import Tenant, User


class TenantRepository(BaseRepository[Tenant, AsyncSession]):
    """Tenant repository."""

    def __init__(self, scope: Optional[Scope] = None, **kwargs):
        super().__init__(Tenant, scope, **kwargs)

    async def get_by_name(self, name: str) -> Optional[Tenant]:
        """Find tenant by name."""
        return await self.find_first(name=name)


class UserRepository(BaseRepository[User, AsyncSession]):
    """User repository."""

    def __init__(self, scope: Optional[Scope] = None, **kwargs):
        super().__init__(User, scope, **kwargs)

    async def get_by_username(self, username: str) -> Optional[User]:
        """Find user by username."""
        return await self.find_first(username=username)

    async def get_by_tenant_id(self, tenant_id: int) -> List[User]:
        """Find all users by tenant ID."""
        return await self.find(tenant_id=tenant_id)
